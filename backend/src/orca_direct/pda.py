"""
Program-derived addresses for Orca whirlpools.

Tick arrays are located from the pool's current tick: the array holding the
current tick first, then the neighbours in swap direction, stopping early
at the protocol tick bounds.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional

from solders.pubkey import Pubkey

from orca_direct.swap_manager import MAX_SWAP_TICK_ARRAYS
from orca_direct.swap_math import MAX_TICK_INDEX, MIN_TICK_INDEX, TICK_ARRAY_SIZE

logger = logging.getLogger(__name__)

PDA_TICK_ARRAY_SEED = b"tick_array"
PDA_WHIRLPOOL_SEED = b"whirlpool"


def get_tick_array_address(program_id: Pubkey, whirlpool: Pubkey, start_tick_index: int) -> Pubkey:
    seeds = [PDA_TICK_ARRAY_SEED, bytes(whirlpool), str(start_tick_index).encode()]
    address, _ = Pubkey.find_program_address(seeds, program_id)
    return address


def get_whirlpool_address(
    program_id: Pubkey,
    whirlpools_config: Pubkey,
    mint_a: Pubkey,
    mint_b: Pubkey,
    tick_spacing: int,
) -> Pubkey:
    seeds = [
        PDA_WHIRLPOOL_SEED,
        bytes(whirlpools_config),
        bytes(mint_a),
        bytes(mint_b),
        tick_spacing.to_bytes(2, "little"),
    ]
    address, _ = Pubkey.find_program_address(seeds, program_id)
    return address


def min_start_tick_bound(tick_spacing: int) -> int:
    ticks_in_array = TICK_ARRAY_SIZE * tick_spacing
    # Remainder takes the sign of the dividend, as the on-chain SDK computes it
    remainder = int(math.fmod(MIN_TICK_INDEX, ticks_in_array))
    return MIN_TICK_INDEX - (remainder + ticks_in_array)


def get_start_tick_index(tick_index: int, tick_spacing: int, offset: int) -> Optional[int]:
    """
    Start tick of the array ``offset`` arrays away from the one holding
    ``tick_index``, or None when that array falls outside the tick bounds.
    """
    # floor, not truncation: negative ticks belong to the array below zero
    real_index = math.floor(tick_index / tick_spacing / TICK_ARRAY_SIZE)
    start_tick_index = (real_index + offset) * tick_spacing * TICK_ARRAY_SIZE
    logger.debug(
        f"[TICKS] tick_index={tick_index} tick_spacing={tick_spacing} offset={offset} "
        f"real_index={real_index} start_tick_index={start_tick_index}"
    )

    min_tick_index = min_start_tick_bound(tick_spacing)
    if start_tick_index <= min_tick_index:
        logger.warning(f"[TICKS] start_tick_index={start_tick_index} <= min_tick_index={min_tick_index}")
        return None
    if start_tick_index >= MAX_TICK_INDEX:
        logger.warning(f"[TICKS] start_tick_index={start_tick_index} >= max_tick_index={MAX_TICK_INDEX}")
        return None
    return start_tick_index


def get_tick_array_start_indices(tick_current_index: int, tick_spacing: int, a_to_b: bool) -> List[int]:
    # b->a starts from the array holding the tick one spacing ahead
    shift = 0 if a_to_b else tick_spacing
    step = -1 if a_to_b else 1

    start_indices: List[int] = []
    for i in range(MAX_SWAP_TICK_ARRAYS):
        start_tick_index = get_start_tick_index(tick_current_index + shift, tick_spacing, i * step)
        if start_tick_index is None:
            logger.warning(f"[TICKS] Stopping tick array traversal at i={i}")
            break
        start_indices.append(start_tick_index)
    return start_indices


def get_tick_array_keys(
    tick_current_index: int,
    tick_spacing: int,
    a_to_b: bool,
    program_id: Pubkey,
    whirlpool: Pubkey,
) -> List[Pubkey]:
    """Tick-array addresses in traversal order; may hold fewer than three."""
    return [
        get_tick_array_address(program_id, whirlpool, start_tick_index)
        for start_tick_index in get_tick_array_start_indices(tick_current_index, tick_spacing, a_to_b)
    ]
