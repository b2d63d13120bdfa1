"""
Whirlpool swap simulation over up to three tick arrays.

The tick arrays live in fixed slots owned by a SwapTickSequence. The
simulator reaches them only through slot indices, so a crossed tick is
updated in place on exactly one array at a time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from orca_direct.errors import SwapError
from orca_direct.pool_parser import Tick, TickArray, WhirlpoolState
from orca_direct.swap_math import (
    MAX_SQRT_PRICE_X64,
    MAX_TICK_INDEX,
    MIN_SQRT_PRICE_X64,
    MIN_TICK_INDEX,
    PROTOCOL_FEE_RATE_MUL_VALUE,
    TICK_ARRAY_SIZE,
    U64_MAX,
    U128_MAX,
    compute_swap_step,
    sqrt_price_from_tick_index,
    tick_index_from_sqrt_price,
)

logger = logging.getLogger(__name__)

MAX_SWAP_TICK_ARRAYS = 3


@dataclass
class SwapSimulationResult:
    amount_a: int
    amount_b: int
    next_liquidity: int
    next_tick_index: int
    next_sqrt_price: int
    next_fee_growth_global: int
    next_protocol_fee: int
    timestamp: int


def _in_search_range(tick_array: TickArray, tick_index: int, tick_spacing: int, shifted: bool) -> bool:
    lower = tick_array.start_tick_index
    upper = tick_array.start_tick_index + TICK_ARRAY_SIZE * tick_spacing
    if shifted:
        lower -= tick_spacing
        upper -= tick_spacing
    return lower <= tick_index < upper


def _next_init_tick_in_array(
    tick_array: TickArray, tick_index: int, tick_spacing: int, a_to_b: bool
) -> Optional[int]:
    if not _in_search_range(tick_array, tick_index, tick_spacing, not a_to_b):
        raise SwapError(
            f"Tick {tick_index} outside tick array starting at {tick_array.start_tick_index}"
        )
    offset = (tick_index - tick_array.start_tick_index) // tick_spacing
    if not a_to_b:
        offset += 1
    step = -1 if a_to_b else 1
    while 0 <= offset < TICK_ARRAY_SIZE:
        if tick_array.ticks[offset].initialized:
            return tick_array.start_tick_index + offset * tick_spacing
        offset += step
    return None


class SwapTickSequence:
    """Three tick-array slots in traversal order; slot 0 is required."""

    def __init__(self, slots: Sequence[Optional[TickArray]]):
        if len(slots) > MAX_SWAP_TICK_ARRAYS:
            raise SwapError(f"At most {MAX_SWAP_TICK_ARRAYS} tick arrays can be traversed")
        padded = list(slots) + [None] * (MAX_SWAP_TICK_ARRAYS - len(slots))
        if padded[0] is None:
            raise SwapError("First tick array slot is empty")
        self._slots: List[Optional[TickArray]] = padded
        # Trailing empty slots mean no liquidity data past the last array
        self._count = next((i for i, a in enumerate(padded) if a is None), MAX_SWAP_TICK_ARRAYS)

    def __len__(self) -> int:
        return self._count

    @property
    def arrays(self) -> List[TickArray]:
        return list(self._slots[: self._count])

    def _array(self, array_index: int) -> TickArray:
        if array_index >= self._count:
            raise SwapError(f"Swap needs tick array slot {array_index}, none supplied")
        return self._slots[array_index]

    def get_tick(self, array_index: int, tick_index: int, tick_spacing: int) -> Tick:
        tick_array = self._array(array_index)
        if tick_index % tick_spacing != 0 or not _in_search_range(
            tick_array, tick_index, tick_spacing, False
        ):
            raise SwapError(f"Tick {tick_index} is not addressable in slot {array_index}")
        return tick_array.ticks[(tick_index - tick_array.start_tick_index) // tick_spacing]

    def get_next_initialized_tick_index(
        self, tick_index: int, tick_spacing: int, a_to_b: bool, start_array_index: int
    ) -> Tuple[int, int]:
        """
        Returns (array_index, tick_index) of the next initialized tick in the
        swap direction, or the edge of the last supplied array.
        """
        ticks_in_array = TICK_ARRAY_SIZE * tick_spacing
        search_index = tick_index
        array_index = start_array_index
        while True:
            tick_array = self._array(array_index)
            found = _next_init_tick_in_array(tick_array, search_index, tick_spacing, a_to_b)
            if found is not None:
                return array_index, found
            if array_index + 1 == self._count:
                if a_to_b:
                    return array_index, tick_array.start_tick_index
                return array_index, tick_array.start_tick_index + ticks_in_array - 1
            if a_to_b:
                search_index = tick_array.start_tick_index - 1
            else:
                search_index = tick_array.start_tick_index + ticks_in_array - 1
            array_index += 1


def _calculate_fees(
    fee_amount: int,
    protocol_fee_rate: int,
    liquidity: int,
    protocol_fee: int,
    fee_growth_global_input: int,
) -> Tuple[int, int]:
    global_fee = fee_amount
    if protocol_fee_rate > 0:
        delta = fee_amount * protocol_fee_rate // PROTOCOL_FEE_RATE_MUL_VALUE
        global_fee -= delta
        protocol_fee = (protocol_fee + delta) & U64_MAX
    if liquidity > 0:
        fee_growth_global_input = (fee_growth_global_input + (global_fee << 64) // liquidity) & U128_MAX
    return protocol_fee, fee_growth_global_input


def _cross_tick(tick: Tick, a_to_b: bool, liquidity: int, fee_growth_global_a: int, fee_growth_global_b: int) -> int:
    liquidity_net = -tick.liquidity_net if a_to_b else tick.liquidity_net
    next_liquidity = liquidity + liquidity_net
    if next_liquidity < 0:
        raise SwapError("Liquidity underflow while crossing tick")
    tick.fee_growth_outside_a = (fee_growth_global_a - tick.fee_growth_outside_a) & U128_MAX
    tick.fee_growth_outside_b = (fee_growth_global_b - tick.fee_growth_outside_b) & U128_MAX
    return next_liquidity


def _next_sqrt_prices(next_tick_index: int, sqrt_price_limit: int, a_to_b: bool) -> Tuple[int, int]:
    next_tick_index = max(MIN_TICK_INDEX, min(MAX_TICK_INDEX, next_tick_index))
    next_tick_price = sqrt_price_from_tick_index(next_tick_index)
    if a_to_b:
        return next_tick_price, max(next_tick_price, sqrt_price_limit)
    return next_tick_price, min(next_tick_price, sqrt_price_limit)


def swap(
    whirlpool: WhirlpoolState,
    tick_sequence: SwapTickSequence,
    amount: int,
    sqrt_price_limit: int,
    amount_specified_is_input: bool,
    a_to_b: bool,
    timestamp: int,
) -> SwapSimulationResult:
    if amount <= 0:
        raise SwapError("Zero tradable amount")
    if amount > U64_MAX:
        raise SwapError(f"Amount {amount} exceeds u64")
    if sqrt_price_limit < MIN_SQRT_PRICE_X64 or sqrt_price_limit > MAX_SQRT_PRICE_X64:
        raise SwapError(f"Sqrt price limit {sqrt_price_limit} out of bounds")
    if a_to_b and sqrt_price_limit >= whirlpool.sqrt_price:
        raise SwapError("Sqrt price limit must be below the current price for a->b")
    if not a_to_b and sqrt_price_limit <= whirlpool.sqrt_price:
        raise SwapError("Sqrt price limit must be above the current price for b->a")

    tick_spacing = whirlpool.tick_spacing
    amount_remaining = amount
    amount_calculated = 0
    curr_sqrt_price = whirlpool.sqrt_price
    curr_tick_index = whirlpool.tick_current_index
    curr_liquidity = whirlpool.liquidity
    curr_protocol_fee = 0
    curr_array_index = 0
    curr_fee_growth_global_input = (
        whirlpool.fee_growth_global_a if a_to_b else whirlpool.fee_growth_global_b
    )

    while amount_remaining > 0 and curr_sqrt_price != sqrt_price_limit:
        next_array_index, next_tick_index = tick_sequence.get_next_initialized_tick_index(
            curr_tick_index, tick_spacing, a_to_b, curr_array_index
        )
        next_tick_price, sqrt_price_target = _next_sqrt_prices(next_tick_index, sqrt_price_limit, a_to_b)

        step = compute_swap_step(
            amount_remaining,
            whirlpool.fee_rate,
            curr_liquidity,
            curr_sqrt_price,
            sqrt_price_target,
            amount_specified_is_input,
            a_to_b,
        )

        if amount_specified_is_input:
            amount_remaining -= step.amount_in + step.fee_amount
            amount_calculated += step.amount_out
        else:
            amount_remaining -= step.amount_out
            amount_calculated += step.amount_in + step.fee_amount

        curr_protocol_fee, curr_fee_growth_global_input = _calculate_fees(
            step.fee_amount,
            whirlpool.protocol_fee_rate,
            curr_liquidity,
            curr_protocol_fee,
            curr_fee_growth_global_input,
        )

        if step.next_price == next_tick_price:
            try:
                next_tick = tick_sequence.get_tick(next_array_index, next_tick_index, tick_spacing)
            except SwapError:
                # Array edge, not a real tick
                next_tick = None
            if next_tick is not None and next_tick.initialized:
                if a_to_b:
                    fee_growth_a, fee_growth_b = curr_fee_growth_global_input, whirlpool.fee_growth_global_b
                else:
                    fee_growth_a, fee_growth_b = whirlpool.fee_growth_global_a, curr_fee_growth_global_input
                curr_liquidity = _cross_tick(next_tick, a_to_b, curr_liquidity, fee_growth_a, fee_growth_b)
            curr_tick_index = next_tick_index - 1 if a_to_b else next_tick_index
        elif step.next_price != curr_sqrt_price:
            curr_tick_index = tick_index_from_sqrt_price(step.next_price)

        curr_sqrt_price = step.next_price
        curr_array_index = next_array_index

    if a_to_b == amount_specified_is_input:
        amount_a, amount_b = amount - amount_remaining, amount_calculated
    else:
        amount_a, amount_b = amount_calculated, amount - amount_remaining

    if amount_a > U64_MAX or amount_b > U64_MAX:
        raise SwapError("Swap amount exceeds u64")

    logger.debug(
        f"[SWAP] a_to_b={a_to_b} amount_a={amount_a} amount_b={amount_b} "
        f"tick={curr_tick_index} sqrt_price={curr_sqrt_price}"
    )
    return SwapSimulationResult(
        amount_a=amount_a,
        amount_b=amount_b,
        next_liquidity=curr_liquidity,
        next_tick_index=curr_tick_index,
        next_sqrt_price=curr_sqrt_price,
        next_fee_growth_global=curr_fee_growth_global_input,
        next_protocol_fee=curr_protocol_fee,
        timestamp=timestamp,
    )
