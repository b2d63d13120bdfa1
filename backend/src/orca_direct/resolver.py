from __future__ import annotations

import logging
from typing import Iterable, Optional, Tuple

from solders.pubkey import Pubkey

from orca_direct.catalog import PoolCatalogEntry
from orca_direct.errors import PoolNotFound

logger = logging.getLogger(__name__)


def find_pool(
    entries: Iterable[PoolCatalogEntry],
    input_mint: Pubkey,
    output_mint: Pubkey,
    tick_spacing: Optional[int] = None,
) -> Tuple[PoolCatalogEntry, bool]:
    """
    First catalog pool trading ``input_mint`` against ``output_mint`` in
    either order, with the swap direction: a_to_b is True when the input is
    the pool's token A. ``tick_spacing`` narrows the match to one fee tier.
    """
    for pool in entries:
        if not pool.has_mints(input_mint, output_mint):
            continue
        if tick_spacing is not None and pool.tick_spacing != tick_spacing:
            continue
        a_to_b = pool.token_a.mint == input_mint
        logger.info(
            f"[QUOTE] Found pool {pool.address} for swap. Mint0={pool.token_a.mint} "
            f"Mint1={pool.token_b.mint} Tick-spacing={pool.tick_spacing} a_to_b={a_to_b}"
        )
        return pool, a_to_b
    raise PoolNotFound(input_mint, output_mint)
