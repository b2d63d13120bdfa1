U64_MAX = (1 << 64) - 1


def _as_u64(value: float) -> int:
    # Saturating float -> u64 cast, truncating toward zero
    if value != value or value <= 0:
        return 0
    if value >= U64_MAX:
        return U64_MAX
    return int(value)


def _divide(numerator: float, denominator: float) -> float:
    # IEEE semantics: x / 0.0 is +-inf, 0 / 0.0 is nan
    if denominator == 0.0:
        if numerator == 0.0:
            return float("nan")
        return float("inf") if numerator > 0 else float("-inf")
    return numerator / denominator


def adjust_for_slippage(amount: int, slippage: float, adjust_up: bool = False) -> int:
    """
    Scale ``amount`` by a slippage percentage (denominator fixed at 100).

    adjust_up=False gives amount * 100 / (100 + slippage), the least the
    caller should accept; adjust_up=True gives amount * (100 + slippage) / 100,
    the most the caller should pay.
    """
    if adjust_up:
        return _as_u64(float(amount) * (slippage + 100.0) / 100.0)
    return _as_u64(_divide(float(amount) * 100.0, slippage + 100.0))


def calculate_swap_amounts_from_quote(
    est_amount_in: int,
    est_amount_out: int,
    slippage: float,
    amount_specified_is_input: bool,
) -> int:
    """
    Returns the other-amount threshold for a quoted swap.
    """
    if amount_specified_is_input:
        return adjust_for_slippage(est_amount_out, slippage, adjust_up=False)
    return adjust_for_slippage(est_amount_in, slippage, adjust_up=False)
