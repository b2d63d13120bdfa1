from .catalog import PoolCatalog, PoolCatalogCache, PoolCatalogEntry, TokenInfo
from .resolver import find_pool
from .pda import get_tick_array_address, get_tick_array_keys, get_whirlpool_address
from .pool_parser import TickArray, WhirlpoolState, parse_tick_array, parse_whirlpool
from .swap_manager import SwapSimulationResult, SwapTickSequence, swap
from .swap_math import MAX_SQRT_PRICE_X64, MIN_SQRT_PRICE_X64

__all__ = [
    "PoolCatalog",
    "PoolCatalogCache",
    "PoolCatalogEntry",
    "TokenInfo",
    "find_pool",
    "get_tick_array_address",
    "get_tick_array_keys",
    "get_whirlpool_address",
    "TickArray",
    "WhirlpoolState",
    "parse_tick_array",
    "parse_whirlpool",
    "SwapSimulationResult",
    "SwapTickSequence",
    "swap",
    "MAX_SQRT_PRICE_X64",
    "MIN_SQRT_PRICE_X64",
]
