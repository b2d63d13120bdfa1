"""
Single-hop whirlpool quote: resolve the pool from the catalog, read its
state and the tick arrays around the current price, simulate the swap and
apply the slippage threshold.
"""

from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

import aiohttp
from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.core import RPCException
from solders.pubkey import Pubkey

from orca_direct.catalog import PoolCatalogCache
from orca_direct.errors import AccountMissing, NetworkError
from orca_direct.pda import get_tick_array_keys, get_whirlpool_address
from orca_direct.pool_parser import TickArray, WhirlpoolState, parse_tick_array, parse_whirlpool
from orca_direct.resolver import find_pool
from orca_direct.swap_manager import SwapSimulationResult, SwapTickSequence, swap
from orca_direct.swap_math import MAX_SQRT_PRICE_X64, MIN_SQRT_PRICE_X64
from trading.config import QuoteConfig
from trading.slippage import calculate_swap_amounts_from_quote

logger = logging.getLogger(__name__)

SwapSimulator = Callable[..., SwapSimulationResult]


def get_default_sqrt_price_limit(a_to_b: bool) -> int:
    return MIN_SQRT_PRICE_X64 if a_to_b else MAX_SQRT_PRICE_X64


@dataclass
class QuoteResult:
    quote: int
    slippage_adjusted_quote: int
    pool: str
    input_mint: str
    output_mint: str
    a_to_b: bool
    amount_in: int
    amount_out: int
    tick_arrays: List[str] = field(default_factory=list)
    swap: Optional[Dict[str, Any]] = None

    def to_dict(self) -> dict:
        return asdict(self)


class WhirlpoolQuoter:
    def __init__(
        self,
        config: QuoteConfig,
        rpc_client: AsyncClient,
        catalog_cache: PoolCatalogCache,
        simulator: SwapSimulator = swap,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config
        self.rpc = rpc_client
        self.catalog_cache = catalog_cache
        self.simulator = simulator
        self.clock = clock

    async def quote(self) -> QuoteResult:
        cfg = self.config
        amount_specified_is_input = True
        logger.info(f"[QUOTE] Initiating swap. Input={cfg.in_token}. Output={cfg.out_token}")

        entries = await self.catalog_cache.load(cfg.override_cache)
        pool_info, a_to_b = find_pool(entries, cfg.in_token, cfg.out_token, cfg.tick_spacing)

        whirlpool = await self._fetch_whirlpool(pool_info.address)
        self._check_pool_address(pool_info.address, whirlpool)

        keys = get_tick_array_keys(
            whirlpool.tick_current_index,
            whirlpool.tick_spacing,
            a_to_b,
            cfg.whirlpool_program,
            pool_info.address,
        )
        logger.info(f"[TICKS] Tick array keys: {[str(k) for k in keys]}")
        tick_arrays = await self._fetch_tick_arrays(keys)
        logger.info(f"[TICKS] Tick array start indices: {[t.start_tick_index for t in tick_arrays]}")
        tick_sequence = SwapTickSequence(tick_arrays)

        sqrt_price_limit = get_default_sqrt_price_limit(a_to_b)
        timestamp = int(self.clock())
        swap_result = self.simulator(
            whirlpool,
            tick_sequence,
            cfg.amount,
            sqrt_price_limit,
            amount_specified_is_input,
            a_to_b,
            timestamp,
        )
        logger.info(f"[SWAP] Swap update: {swap_result}")

        quote = swap_result.amount_b if a_to_b else swap_result.amount_a
        if a_to_b == amount_specified_is_input:
            amount_in, amount_out = swap_result.amount_a, swap_result.amount_b
        else:
            amount_in, amount_out = swap_result.amount_b, swap_result.amount_a

        slippage_adjusted_quote = calculate_swap_amounts_from_quote(
            amount_in, amount_out, cfg.slippage, amount_specified_is_input
        )
        logger.info(f"[QUOTE] quote={quote} slippage_adjusted_quote={slippage_adjusted_quote}")

        return QuoteResult(
            quote=quote,
            slippage_adjusted_quote=slippage_adjusted_quote,
            pool=str(pool_info.address),
            input_mint=str(cfg.in_token),
            output_mint=str(cfg.out_token),
            a_to_b=a_to_b,
            amount_in=amount_in,
            amount_out=amount_out,
            tick_arrays=[str(k) for k in keys],
            swap=asdict(swap_result),
        )

    async def _fetch_whirlpool(self, address: Pubkey) -> WhirlpoolState:
        try:
            resp = await self.rpc.get_account_info(address)
        except (SolanaRpcException, RPCException) as e:
            raise NetworkError(f"RPC get_account_info({address}) failed: {e}") from e
        if resp.value is None:
            raise AccountMissing(address, "whirlpool")
        return parse_whirlpool(resp.value.data)

    async def _fetch_tick_arrays(self, keys: List[Pubkey]) -> List[TickArray]:
        if not keys:
            return []
        try:
            resp = await self.rpc.get_multiple_accounts(keys)
        except (SolanaRpcException, RPCException) as e:
            raise NetworkError(f"RPC get_multiple_accounts failed: {e}") from e
        tick_arrays = []
        for key, account in zip(keys, resp.value):
            if account is None:
                raise AccountMissing(key, "tick array")
            tick_arrays.append(parse_tick_array(account.data))
        if len(tick_arrays) != len(keys):
            raise AccountMissing(keys[len(tick_arrays)], "tick array")
        return tick_arrays

    def _check_pool_address(self, address: Pubkey, whirlpool: WhirlpoolState):
        derived = get_whirlpool_address(
            self.config.whirlpool_program,
            whirlpool.whirlpools_config,
            whirlpool.token_mint_a,
            whirlpool.token_mint_b,
            whirlpool.tick_spacing,
        )
        if derived != address:
            logger.warning(f"[QUOTE] Pool {address} does not match derived whirlpool address {derived}")


async def get_quote(config: QuoteConfig) -> Tuple[int, int]:
    """Returns ``(quote, slippage_adjusted_quote)``."""
    async with aiohttp.ClientSession() as session, AsyncClient(config.http_url) as rpc_client:
        catalog_cache = PoolCatalogCache(
            cache_dir=config.cache_dir,
            cache_file=config.cache_file,
            endpoint=config.api_endpoint,
            session=session,
        )
        result = await WhirlpoolQuoter(config, rpc_client, catalog_cache).quote()
    return result.quote, result.slippage_adjusted_quote
