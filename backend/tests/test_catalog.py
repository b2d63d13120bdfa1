import asyncio
import json

import pytest

from conftest import FakeSession, SOL_MINT, USDC_MINT
from orca_direct.catalog import PoolCatalogCache, PoolCatalogEntry
from orca_direct.errors import CacheDeserializeError, NetworkError


def _snapshot(entries):
    return [(str(e.address), str(e.token_a.mint), str(e.token_b.mint), e.tick_spacing, e.stats) for e in entries]


@pytest.mark.asyncio
async def test_first_load_fetches_and_writes_pretty_cache(tmp_path, fake_session, catalog_payload):
    cache = PoolCatalogCache(cache_dir=str(tmp_path / "artifacts"), session=fake_session)
    entries = await cache.load(override=False)

    assert fake_session.calls == 1
    assert len(entries) == 3
    text = cache.cache_path.read_text()
    assert "\n  " in text
    assert json.loads(text) == catalog_payload


@pytest.mark.asyncio
async def test_second_load_reuses_cache_without_network(tmp_path, fake_session):
    cache = PoolCatalogCache(cache_dir=str(tmp_path), session=fake_session)
    first = await cache.load(override=False)
    first_bytes = cache.cache_path.read_bytes()

    offline = PoolCatalogCache(cache_dir=str(tmp_path), session=FakeSession(payload=None))
    second = await offline.load(override=False)

    assert offline.session.calls == 0
    assert _snapshot(second) == _snapshot(first)
    assert cache.cache_path.read_bytes() == first_bytes


@pytest.mark.asyncio
async def test_override_refetches_and_overwrites(tmp_path, catalog_payload):
    cache_path = tmp_path / "orca_pools.json"
    cache_path.write_text(json.dumps({"whirlpools": [], "hasMore": False}))

    session = FakeSession(payload=catalog_payload)
    cache = PoolCatalogCache(cache_dir=str(tmp_path), session=session)
    entries = await cache.load(override=True)

    assert session.calls == 1
    assert len(entries) == 3
    assert json.loads(cache_path.read_text()) == catalog_payload


@pytest.mark.asyncio
async def test_existing_cache_directory_is_not_an_error(tmp_path, fake_session):
    (tmp_path / "artifacts").mkdir()
    cache = PoolCatalogCache(cache_dir=str(tmp_path / "artifacts"), session=fake_session)
    assert len(await cache.load()) == 3


@pytest.mark.asyncio
async def test_corrupt_cache_is_fatal_without_network_fallback(tmp_path, fake_session):
    (tmp_path / "orca_pools.json").write_text('{"whirlpools": [')
    cache = PoolCatalogCache(cache_dir=str(tmp_path), session=fake_session)

    with pytest.raises(CacheDeserializeError):
        await cache.load(override=False)
    assert fake_session.calls == 0


@pytest.mark.asyncio
async def test_cache_with_bad_pubkey_is_deserialize_error(tmp_path, catalog_payload):
    catalog_payload["whirlpools"][0]["address"] = "not-a-pubkey"
    (tmp_path / "orca_pools.json").write_text(json.dumps(catalog_payload))
    cache = PoolCatalogCache(cache_dir=str(tmp_path), session=FakeSession())

    with pytest.raises(CacheDeserializeError):
        await cache.load()


@pytest.mark.asyncio
async def test_fetch_failure_is_network_error(tmp_path, failing_session):
    cache = PoolCatalogCache(cache_dir=str(tmp_path), session=failing_session)

    with pytest.raises(NetworkError):
        await cache.load(override=True)
    assert not cache.cache_path.exists()


@pytest.mark.asyncio
async def test_fetch_timeout_is_network_error(tmp_path):
    cache = PoolCatalogCache(cache_dir=str(tmp_path), session=FakeSession(error=asyncio.TimeoutError()))

    with pytest.raises(NetworkError):
        await cache.load(override=True)
    assert not cache.cache_path.exists()


@pytest.mark.asyncio
async def test_malformed_response_is_network_error(tmp_path):
    cache = PoolCatalogCache(cache_dir=str(tmp_path), session=FakeSession(payload={"pools": []}))

    with pytest.raises(NetworkError):
        await cache.load()


@pytest.mark.asyncio
async def test_catalog_keeps_token_and_market_fields(tmp_path, fake_session):
    cache = PoolCatalogCache(cache_dir=str(tmp_path), session=fake_session)
    catalog = await cache.load_catalog()
    pool = catalog.entries[1]

    assert pool.token_a.mint == SOL_MINT
    assert pool.token_b.mint == USDC_MINT
    assert pool.token_a.decimals == 9
    assert pool.token_b.symbol == "USDC"
    assert pool.lp_fee_rate == 0.003
    assert pool.stats["volume"] == {"day": 1.0, "week": 7.0, "month": 30.0}
    assert "feeApr" not in pool.stats
    assert catalog.has_more is False


def test_entries_compare_by_unordered_symbol_pair(catalog_payload):
    _, sol_usdc, sol_usdc_other_tier = (PoolCatalogEntry.from_dict(p) for p in catalog_payload["whirlpools"])
    swapped = dict(catalog_payload["whirlpools"][1])
    swapped["tokenA"], swapped["tokenB"] = swapped["tokenB"], swapped["tokenA"]

    assert sol_usdc == sol_usdc_other_tier
    assert sol_usdc == PoolCatalogEntry.from_dict(swapped)
    assert len({sol_usdc, sol_usdc_other_tier}) == 1
