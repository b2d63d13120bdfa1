"""
Orca whirlpool catalog: typed pool records plus a file-backed cache of the
public pool-list endpoint.

The cache never expires on its own. It is refreshed only when the caller
asks for an override; a cache file that fails to parse is an error rather
than a reason to hit the network.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiohttp
from solders.pubkey import Pubkey

from orca_direct.errors import CacheDeserializeError, CacheIOError, NetworkError

logger = logging.getLogger(__name__)

ORCA_API_ENDPOINT = "https://api.mainnet.orca.so/v1/whirlpool/list"
CACHE_DIR = "artifacts"
CACHE_FILE = "orca_pools.json"


@dataclass(frozen=True)
class TokenInfo:
    mint: Pubkey
    symbol: str
    decimals: int
    name: str = ""
    whitelisted: bool = False
    pool_token: bool = False
    logo_uri: Optional[str] = None
    coingecko_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenInfo":
        return cls(
            mint=Pubkey.from_string(data["mint"]),
            symbol=data["symbol"],
            decimals=int(data["decimals"]),
            name=data.get("name", ""),
            whitelisted=bool(data.get("whitelisted", False)),
            pool_token=bool(data.get("poolToken", False)),
            logo_uri=data.get("logoURI"),
            coingecko_id=data.get("coingeckoId"),
        )


@dataclass(eq=False)
class PoolCatalogEntry:
    """
    One whirlpool as listed by the catalog service.

    Two entries compare equal when they pair the same token symbols, in
    either order. That can conflate distinct pools (fee tiers, or tokens
    sharing a symbol); resolve by mint when the exact pool matters.
    """

    address: Pubkey
    token_a: TokenInfo
    token_b: TokenInfo
    tick_spacing: int
    whitelisted: bool = False
    price: Optional[float] = None
    lp_fee_rate: Optional[float] = None
    protocol_fee_rate: Optional[float] = None
    whirlpools_config: Optional[Pubkey] = None
    modified_time_ms: Optional[int] = None
    tvl: Optional[float] = None
    # Market statistics, passed through untouched
    stats: Dict[str, Any] = field(default_factory=dict)

    STAT_KEYS = (
        "volume",
        "volumeDenominatedA",
        "volumeDenominatedB",
        "priceRange",
        "feeApr",
        "reward0Apr",
        "reward1Apr",
        "reward2Apr",
        "totalApr",
    )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PoolCatalogEntry":
        config = data.get("whirlpoolsConfig")
        return cls(
            address=Pubkey.from_string(data["address"]),
            token_a=TokenInfo.from_dict(data["tokenA"]),
            token_b=TokenInfo.from_dict(data["tokenB"]),
            tick_spacing=int(data["tickSpacing"]),
            whitelisted=bool(data.get("whitelisted", False)),
            price=data.get("price"),
            lp_fee_rate=data.get("lpFeeRate"),
            protocol_fee_rate=data.get("protocolFeeRate"),
            whirlpools_config=Pubkey.from_string(config) if config else None,
            modified_time_ms=data.get("modifiedTimeMs"),
            tvl=data.get("tvl"),
            stats={k: data[k] for k in cls.STAT_KEYS if data.get(k) is not None},
        )

    @property
    def symbol_pair(self) -> frozenset:
        return frozenset((self.token_a.symbol, self.token_b.symbol))

    def has_mints(self, mint_x: Pubkey, mint_y: Pubkey) -> bool:
        return (self.token_a.mint == mint_x and self.token_b.mint == mint_y) or (
            self.token_a.mint == mint_y and self.token_b.mint == mint_x
        )

    def __eq__(self, other):
        if not isinstance(other, PoolCatalogEntry):
            return NotImplemented
        return self.symbol_pair == other.symbol_pair

    def __hash__(self):
        return hash(self.symbol_pair)


@dataclass
class PoolCatalog:
    entries: List[PoolCatalogEntry]
    has_more: bool
    raw: Dict[str, Any]

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "PoolCatalog":
        """Raises KeyError/TypeError/ValueError on a malformed payload."""
        return cls(
            entries=[PoolCatalogEntry.from_dict(p) for p in payload["whirlpools"]],
            has_more=bool(payload["hasMore"]),
            raw=payload,
        )


class PoolCatalogCache:
    def __init__(
        self,
        cache_dir: str = CACHE_DIR,
        cache_file: str = CACHE_FILE,
        endpoint: str = ORCA_API_ENDPOINT,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.cache_dir = Path(cache_dir)
        self.cache_path = self.cache_dir / cache_file
        self.endpoint = endpoint
        self.session = session

    async def load(self, override: bool = False) -> List[PoolCatalogEntry]:
        return (await self.load_catalog(override)).entries

    async def load_catalog(self, override: bool = False) -> PoolCatalog:
        self._ensure_cache_dir()
        if self.cache_path.exists() and not override:
            catalog = self._read_cache()
            logger.info(f"[CATALOG] Loaded {len(catalog.entries)} pools from {self.cache_path}")
        else:
            catalog = await self._fetch()
            self._write_cache(catalog.raw)
            logger.info(f"[CATALOG] Fetched {len(catalog.entries)} pools from {self.endpoint}")
        if catalog.has_more:
            logger.warning("[CATALOG] Catalog reports more pools; only the first page is used")
        return catalog

    def _ensure_cache_dir(self):
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheIOError(f"Cannot create cache directory {self.cache_dir}: {e}") from e

    def _read_cache(self) -> PoolCatalog:
        try:
            text = self.cache_path.read_text(encoding="utf-8")
        except OSError as e:
            raise CacheIOError(f"Cannot read {self.cache_path}: {e}") from e
        try:
            return PoolCatalog.from_payload(json.loads(text))
        except (ValueError, KeyError, TypeError) as e:
            raise CacheDeserializeError(f"Corrupt catalog cache {self.cache_path}: {e}") from e

    def _write_cache(self, payload: Dict[str, Any]):
        try:
            self.cache_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as e:
            raise CacheIOError(f"Cannot write {self.cache_path}: {e}") from e

    async def _fetch(self) -> PoolCatalog:
        try:
            if self.session is not None:
                payload = await self._get_json(self.session)
            else:
                async with aiohttp.ClientSession() as session:
                    payload = await self._get_json(session)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(f"Catalog fetch from {self.endpoint} failed: {e}") from e
        try:
            return PoolCatalog.from_payload(payload)
        except (ValueError, KeyError, TypeError) as e:
            raise NetworkError(f"Malformed catalog response from {self.endpoint}: {e}") from e

    async def _get_json(self, session) -> Dict[str, Any]:
        async with session.get(self.endpoint) as resp:
            resp.raise_for_status()
            return await resp.json()
