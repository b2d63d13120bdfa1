# Trading utilities package
from .config import QuoteConfig
from .slippage import adjust_for_slippage, calculate_swap_amounts_from_quote
from .quote import QuoteResult, WhirlpoolQuoter, get_quote

__all__ = [
    "QuoteConfig",
    "adjust_for_slippage",
    "calculate_swap_amounts_from_quote",
    "QuoteResult",
    "WhirlpoolQuoter",
    "get_quote",
]
