"""
Concentrated-liquidity math for Orca whirlpools.

Prices are Q64.64 square roots, fees are expressed in hundredths of a basis
point and protocol fees in basis points of the collected fee. All math is
integer-exact; rounding follows the direction that favours the pool.
"""

from __future__ import annotations

from dataclasses import dataclass

from orca_direct.errors import SwapError

# Protocol constants
TICK_ARRAY_SIZE = 88
MIN_TICK_INDEX = -443636
MAX_TICK_INDEX = 443636
MIN_SQRT_PRICE_X64 = 4295048016
MAX_SQRT_PRICE_X64 = 79226673515401279992447579055

FEE_RATE_MUL_VALUE = 1_000_000
PROTOCOL_FEE_RATE_MUL_VALUE = 10_000

U64_MAX = (1 << 64) - 1
U128_MAX = (1 << 128) - 1
Q64_MASK = (1 << 64) - 1

# sqrt(1.0001^(2^i)) in Q32.96 for i = 1..18, applied to positive ticks
_POSITIVE_TICK_RATIOS_X96 = [
    79236085330515764027303304731,
    79244008939048815603706035061,
    79259858533276714757314932305,
    79291567232598584799939703904,
    79355022692464371645785046466,
    79482085999252804386437311141,
    79736823300114093921829183326,
    80248749790819932309965073892,
    81282483887344747381513967011,
    83390072131320151908154831281,
    87770609709833776024991924138,
    97234110755111693312479820773,
    119332217159966728226237229890,
    179736315981702064433883588727,
    407748233172238350107850275304,
    2098478828474011932436660412517,
    55581415166113811149459800483533,
    38992368544603139932233054999993551,
]

# sqrt(1.0001^-(2^i)) in Q64.64 for i = 1..18, applied to negative ticks
_NEGATIVE_TICK_RATIOS_X64 = [
    18444899583751176498,
    18443055278223354162,
    18439367220385604838,
    18431993317065449817,
    18417254355718160513,
    18387811781193591352,
    18329067761203520168,
    18212142134806087854,
    17980523815641551639,
    17526086738831147013,
    16651378430235024244,
    15030750278693429944,
    12247334978882834399,
    8131365268884726200,
    3584323654723342297,
    696457651847595233,
    26294789957452057,
    37481735321082,
]


@dataclass
class SwapStep:
    amount_in: int
    amount_out: int
    next_price: int
    fee_amount: int


def _sqrt_price_positive_tick(tick: int) -> int:
    ratio = 79232123823359799118286999567 if tick & 1 else 79228162514264337593543950336
    for i, factor in enumerate(_POSITIVE_TICK_RATIOS_X96, start=1):
        if (tick >> i) & 1:
            ratio = (ratio * factor) >> 96
    return ratio >> 32


def _sqrt_price_negative_tick(tick: int) -> int:
    abs_tick = -tick
    ratio = 18445821805675392311 if abs_tick & 1 else 18446744073709551616
    for i, factor in enumerate(_NEGATIVE_TICK_RATIOS_X64, start=1):
        if (abs_tick >> i) & 1:
            ratio = (ratio * factor) >> 64
    return ratio


def sqrt_price_from_tick_index(tick: int) -> int:
    """Q64.64 square-root price at ``tick``."""
    if tick < MIN_TICK_INDEX or tick > MAX_TICK_INDEX:
        raise SwapError(f"Tick index {tick} out of bounds")
    if tick >= 0:
        return _sqrt_price_positive_tick(tick)
    return _sqrt_price_negative_tick(tick)


def tick_index_from_sqrt_price(sqrt_price: int) -> int:
    """Greatest tick whose square-root price is <= ``sqrt_price``."""
    if sqrt_price <= 0:
        raise SwapError("sqrt_price must be positive")
    lo, hi = MIN_TICK_INDEX, MAX_TICK_INDEX
    while lo < hi:
        mid = (lo + hi + 1) // 2
        if sqrt_price_from_tick_index(mid) <= sqrt_price:
            lo = mid
        else:
            hi = mid - 1
    return lo


def _div_round_up_if(numerator: int, denominator: int, round_up: bool) -> int:
    quotient, remainder = divmod(numerator, denominator)
    if round_up and remainder:
        quotient += 1
    return quotient


def get_amount_delta_a(sqrt_price_0: int, sqrt_price_1: int, liquidity: int, round_up: bool) -> int:
    lower, upper = sorted((sqrt_price_0, sqrt_price_1))
    if lower == 0:
        raise SwapError("sqrt_price must be positive")
    numerator = (liquidity * (upper - lower)) << 64
    return _div_round_up_if(numerator, upper * lower, round_up)


def get_amount_delta_b(sqrt_price_0: int, sqrt_price_1: int, liquidity: int, round_up: bool) -> int:
    lower, upper = sorted((sqrt_price_0, sqrt_price_1))
    product = liquidity * (upper - lower)
    result = product >> 64
    if round_up and product & Q64_MASK:
        result += 1
    return result


def get_next_sqrt_price_from_a_round_up(
    sqrt_price: int, liquidity: int, amount: int, amount_specified_is_input: bool
) -> int:
    if amount == 0:
        return sqrt_price
    product = sqrt_price * amount
    liquidity_x64 = liquidity << 64
    if amount_specified_is_input:
        denominator = liquidity_x64 + product
    else:
        denominator = liquidity_x64 - product
        if denominator <= 0:
            raise SwapError("Output amount exceeds available liquidity")
    price = _div_round_up_if(liquidity_x64 * sqrt_price, denominator, True)
    if price < MIN_SQRT_PRICE_X64 or price > MAX_SQRT_PRICE_X64:
        raise SwapError(f"Next sqrt price {price} out of bounds")
    return price


def get_next_sqrt_price_from_b_round_down(
    sqrt_price: int, liquidity: int, amount: int, amount_specified_is_input: bool
) -> int:
    delta = _div_round_up_if(amount << 64, liquidity, not amount_specified_is_input)
    if amount_specified_is_input:
        return sqrt_price + delta
    if delta > sqrt_price:
        raise SwapError("Output amount exceeds available liquidity")
    return sqrt_price - delta


def get_next_sqrt_price(
    sqrt_price: int, liquidity: int, amount: int, amount_specified_is_input: bool, a_to_b: bool
) -> int:
    if amount_specified_is_input == a_to_b:
        return get_next_sqrt_price_from_a_round_up(sqrt_price, liquidity, amount, amount_specified_is_input)
    return get_next_sqrt_price_from_b_round_down(sqrt_price, liquidity, amount, amount_specified_is_input)


def _amount_fixed_delta(current, target, liquidity, amount_specified_is_input, a_to_b) -> int:
    if a_to_b == amount_specified_is_input:
        return get_amount_delta_a(current, target, liquidity, amount_specified_is_input)
    return get_amount_delta_b(current, target, liquidity, amount_specified_is_input)


def _amount_unfixed_delta(current, target, liquidity, amount_specified_is_input, a_to_b) -> int:
    if a_to_b == amount_specified_is_input:
        return get_amount_delta_b(current, target, liquidity, not amount_specified_is_input)
    return get_amount_delta_a(current, target, liquidity, not amount_specified_is_input)


def compute_swap_step(
    amount_remaining: int,
    fee_rate: int,
    liquidity: int,
    sqrt_price_current: int,
    sqrt_price_target: int,
    amount_specified_is_input: bool,
    a_to_b: bool,
) -> SwapStep:
    """
    Swap within a single liquidity range, stopping at ``sqrt_price_target``
    or where ``amount_remaining`` runs out, whichever comes first.
    """
    amount_fixed_delta = _amount_fixed_delta(
        sqrt_price_current, sqrt_price_target, liquidity, amount_specified_is_input, a_to_b
    )

    amount_calc = amount_remaining
    if amount_specified_is_input:
        amount_calc = amount_remaining * (FEE_RATE_MUL_VALUE - fee_rate) // FEE_RATE_MUL_VALUE

    if amount_calc >= amount_fixed_delta:
        next_price = sqrt_price_target
    else:
        next_price = get_next_sqrt_price(
            sqrt_price_current, liquidity, amount_calc, amount_specified_is_input, a_to_b
        )
    is_max_swap = next_price == sqrt_price_target

    amount_unfixed_delta = _amount_unfixed_delta(
        sqrt_price_current, next_price, liquidity, amount_specified_is_input, a_to_b
    )
    if not is_max_swap:
        amount_fixed_delta = _amount_fixed_delta(
            sqrt_price_current, next_price, liquidity, amount_specified_is_input, a_to_b
        )

    if amount_specified_is_input:
        amount_in, amount_out = amount_fixed_delta, amount_unfixed_delta
    else:
        amount_in, amount_out = amount_unfixed_delta, amount_fixed_delta
        amount_out = min(amount_out, amount_remaining)

    if amount_specified_is_input and not is_max_swap:
        fee_amount = amount_remaining - amount_in
    else:
        fee_amount = _div_round_up_if(amount_in * fee_rate, FEE_RATE_MUL_VALUE - fee_rate, True)

    return SwapStep(
        amount_in=amount_in,
        amount_out=amount_out,
        next_price=next_price,
        fee_amount=fee_amount,
    )
