from types import SimpleNamespace

import aiohttp
import pytest
from solders.pubkey import Pubkey

from orca_direct.pda import get_whirlpool_address
from orca_direct.pool_parser import TickArray, WhirlpoolState

SOL_MINT = Pubkey.from_string("So11111111111111111111111111111111111111112")
USDC_MINT = Pubkey.from_string("EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v")
BONK_MINT = Pubkey.from_string("DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263")
WHIRLPOOL_PROGRAM = Pubkey.from_string("whirLbMiicVdio4qvUfM5KAg6Ct8VwpYzGff3uctyCc")
WHIRLPOOLS_CONFIG = Pubkey.from_string("2LecshUwdy9xi7meFgHtFJQNSKk4KdTrcpvaB56dP2NQ")

Q64 = 1 << 64


def _key(n: int) -> Pubkey:
    return Pubkey.from_bytes(bytes([n]) * 32)


def token_dict(mint: Pubkey, symbol: str, decimals: int) -> dict:
    return {
        "mint": str(mint),
        "symbol": symbol,
        "name": symbol.title(),
        "decimals": decimals,
        "logoURI": None,
        "coingeckoId": None,
        "whitelisted": True,
        "poolToken": False,
    }


def pool_dict(address: Pubkey, token_a: dict, token_b: dict, tick_spacing: int = 64) -> dict:
    return {
        "address": str(address),
        "tokenA": token_a,
        "tokenB": token_b,
        "whitelisted": True,
        "tickSpacing": tick_spacing,
        "price": 150.25,
        "lpFeeRate": 0.003,
        "protocolFeeRate": 0.03,
        "whirlpoolsConfig": str(WHIRLPOOLS_CONFIG),
        "modifiedTimeMs": 1700000000000,
        "tvl": 1234567.8,
        "volume": {"day": 1.0, "week": 7.0, "month": 30.0},
        "priceRange": {
            "day": {"min": 1.0, "max": 2.0},
            "week": {"min": 1.0, "max": 2.0},
            "month": {"min": 1.0, "max": 2.0},
        },
    }


class FakeResponse:
    def __init__(self, payload):
        self.payload = payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def raise_for_status(self):
        pass

    async def json(self):
        return self.payload


class FakeSession:
    def __init__(self, payload=None, error=None):
        self.payload = payload
        self.error = error
        self.calls = 0

    def get(self, url):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return FakeResponse(self.payload)


class FakeRpc:
    """Async RPC stand-in serving raw account bytes by address."""

    def __init__(self, accounts=None, error=None, multiple_error=None):
        self.accounts = accounts or {}
        self.error = error
        self.multiple_error = multiple_error
        self.multiple_calls = []

    def _account(self, key):
        data = self.accounts.get(key)
        return None if data is None else SimpleNamespace(data=data)

    async def get_account_info(self, key):
        if self.error is not None:
            raise self.error
        return SimpleNamespace(value=self._account(key))

    async def get_multiple_accounts(self, keys):
        error = self.multiple_error or self.error
        if error is not None:
            raise error
        self.multiple_calls.append(list(keys))
        return SimpleNamespace(value=[self._account(k) for k in keys])


@pytest.fixture
def sol_usdc_pool_address():
    return get_whirlpool_address(WHIRLPOOL_PROGRAM, WHIRLPOOLS_CONFIG, SOL_MINT, USDC_MINT, 64)


@pytest.fixture
def catalog_payload(sol_usdc_pool_address):
    sol = token_dict(SOL_MINT, "SOL", 9)
    usdc = token_dict(USDC_MINT, "USDC", 6)
    bonk = token_dict(BONK_MINT, "BONK", 5)
    return {
        "whirlpools": [
            pool_dict(_key(7), bonk, sol, tick_spacing=128),
            pool_dict(sol_usdc_pool_address, sol, usdc, tick_spacing=64),
            pool_dict(_key(9), sol, usdc, tick_spacing=8),
        ],
        "hasMore": False,
    }


@pytest.fixture
def fake_session(catalog_payload):
    return FakeSession(payload=catalog_payload)


@pytest.fixture
def failing_session():
    return FakeSession(error=aiohttp.ClientConnectionError("connection refused"))


@pytest.fixture
def whirlpool_state():
    return WhirlpoolState(
        whirlpools_config=WHIRLPOOLS_CONFIG,
        whirlpool_bump=255,
        tick_spacing=64,
        fee_rate=0,
        protocol_fee_rate=0,
        liquidity=10**12,
        sqrt_price=Q64,
        tick_current_index=0,
        token_mint_a=SOL_MINT,
        token_vault_a=_key(1),
        token_mint_b=USDC_MINT,
        token_vault_b=_key(2),
    )


@pytest.fixture
def empty_tick_arrays(sol_usdc_pool_address):
    def build(start_indices):
        return [TickArray.empty(start, sol_usdc_pool_address) for start in start_indices]

    return build
