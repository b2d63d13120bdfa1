from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import List

from construct import (
    Array,
    Bytes,
    BytesInteger,
    ConstructError,
    Flag,
    Int8ul,
    Int16ul,
    Int32sl,
    Int64ul,
    Struct,
)
from solders.pubkey import Pubkey

from orca_direct.errors import AccountDecodeError
from orca_direct.swap_math import TICK_ARRAY_SIZE

# Anchor accounts: 8-byte discriminator, then borsh (little-endian) fields.

Int128ul = BytesInteger(16, signed=False, swapped=True)
Int128sl = BytesInteger(16, signed=True, swapped=True)
NUM_REWARDS = 3


def account_discriminator(name: str) -> bytes:
    return hashlib.sha256(f"account:{name}".encode()).digest()[:8]


WHIRLPOOL_DISCRIMINATOR = account_discriminator("Whirlpool")
TICK_ARRAY_DISCRIMINATOR = account_discriminator("TickArray")

REWARD_INFO_LAYOUT = Struct(
    "mint" / Bytes(32),
    "vault" / Bytes(32),
    "authority" / Bytes(32),
    "emissions_per_second_x64" / Int128ul,
    "growth_global_x64" / Int128ul,
)

WHIRLPOOL_LAYOUT = Struct(
    "discriminator" / Bytes(8),
    "whirlpools_config" / Bytes(32),
    "whirlpool_bump" / Int8ul,
    "tick_spacing" / Int16ul,
    "tick_spacing_seed" / Bytes(2),
    "fee_rate" / Int16ul,
    "protocol_fee_rate" / Int16ul,
    "liquidity" / Int128ul,
    "sqrt_price" / Int128ul,
    "tick_current_index" / Int32sl,
    "protocol_fee_owed_a" / Int64ul,
    "protocol_fee_owed_b" / Int64ul,
    "token_mint_a" / Bytes(32),
    "token_vault_a" / Bytes(32),
    "fee_growth_global_a" / Int128ul,
    "token_mint_b" / Bytes(32),
    "token_vault_b" / Bytes(32),
    "fee_growth_global_b" / Int128ul,
    "reward_last_updated_timestamp" / Int64ul,
    "reward_infos" / Array(NUM_REWARDS, REWARD_INFO_LAYOUT),
)

TICK_LAYOUT = Struct(
    "initialized" / Flag,
    "liquidity_net" / Int128sl,
    "liquidity_gross" / Int128ul,
    "fee_growth_outside_a" / Int128ul,
    "fee_growth_outside_b" / Int128ul,
    "reward_growths_outside" / Array(NUM_REWARDS, Int128ul),
)

TICK_ARRAY_LAYOUT = Struct(
    "discriminator" / Bytes(8),
    "start_tick_index" / Int32sl,
    "ticks" / Array(TICK_ARRAY_SIZE, TICK_LAYOUT),
    "whirlpool" / Bytes(32),
)


@dataclass
class WhirlpoolRewardInfo:
    mint: Pubkey
    vault: Pubkey
    authority: Pubkey
    emissions_per_second_x64: int = 0
    growth_global_x64: int = 0


@dataclass
class WhirlpoolState:
    whirlpools_config: Pubkey
    whirlpool_bump: int
    tick_spacing: int
    fee_rate: int
    protocol_fee_rate: int
    liquidity: int
    sqrt_price: int
    tick_current_index: int
    token_mint_a: Pubkey
    token_vault_a: Pubkey
    token_mint_b: Pubkey
    token_vault_b: Pubkey
    protocol_fee_owed_a: int = 0
    protocol_fee_owed_b: int = 0
    fee_growth_global_a: int = 0
    fee_growth_global_b: int = 0
    reward_last_updated_timestamp: int = 0
    reward_infos: List[WhirlpoolRewardInfo] = field(default_factory=list)


@dataclass
class Tick:
    initialized: bool = False
    liquidity_net: int = 0
    liquidity_gross: int = 0
    fee_growth_outside_a: int = 0
    fee_growth_outside_b: int = 0
    reward_growths_outside: List[int] = field(default_factory=lambda: [0] * NUM_REWARDS)


@dataclass
class TickArray:
    start_tick_index: int
    ticks: List[Tick]
    whirlpool: Pubkey

    @classmethod
    def empty(cls, start_tick_index: int, whirlpool: Pubkey) -> "TickArray":
        return cls(
            start_tick_index=start_tick_index,
            ticks=[Tick() for _ in range(TICK_ARRAY_SIZE)],
            whirlpool=whirlpool,
        )


def _check_discriminator(parsed, expected: bytes, name: str):
    if bytes(parsed.discriminator) != expected:
        raise AccountDecodeError(f"Account is not a {name} (discriminator mismatch)")


def parse_whirlpool(data: bytes) -> WhirlpoolState:
    try:
        parsed = WHIRLPOOL_LAYOUT.parse(bytes(data))
    except ConstructError as e:
        raise AccountDecodeError(f"Failed to decode Whirlpool account: {e}") from e
    _check_discriminator(parsed, WHIRLPOOL_DISCRIMINATOR, "Whirlpool")
    return WhirlpoolState(
        whirlpools_config=Pubkey.from_bytes(parsed.whirlpools_config),
        whirlpool_bump=int(parsed.whirlpool_bump),
        tick_spacing=int(parsed.tick_spacing),
        fee_rate=int(parsed.fee_rate),
        protocol_fee_rate=int(parsed.protocol_fee_rate),
        liquidity=int(parsed.liquidity),
        sqrt_price=int(parsed.sqrt_price),
        tick_current_index=int(parsed.tick_current_index),
        token_mint_a=Pubkey.from_bytes(parsed.token_mint_a),
        token_vault_a=Pubkey.from_bytes(parsed.token_vault_a),
        token_mint_b=Pubkey.from_bytes(parsed.token_mint_b),
        token_vault_b=Pubkey.from_bytes(parsed.token_vault_b),
        protocol_fee_owed_a=int(parsed.protocol_fee_owed_a),
        protocol_fee_owed_b=int(parsed.protocol_fee_owed_b),
        fee_growth_global_a=int(parsed.fee_growth_global_a),
        fee_growth_global_b=int(parsed.fee_growth_global_b),
        reward_last_updated_timestamp=int(parsed.reward_last_updated_timestamp),
        reward_infos=[
            WhirlpoolRewardInfo(
                mint=Pubkey.from_bytes(r.mint),
                vault=Pubkey.from_bytes(r.vault),
                authority=Pubkey.from_bytes(r.authority),
                emissions_per_second_x64=int(r.emissions_per_second_x64),
                growth_global_x64=int(r.growth_global_x64),
            )
            for r in parsed.reward_infos
        ],
    )


def parse_tick_array(data: bytes) -> TickArray:
    try:
        parsed = TICK_ARRAY_LAYOUT.parse(bytes(data))
    except ConstructError as e:
        raise AccountDecodeError(f"Failed to decode TickArray account: {e}") from e
    _check_discriminator(parsed, TICK_ARRAY_DISCRIMINATOR, "TickArray")
    return TickArray(
        start_tick_index=int(parsed.start_tick_index),
        ticks=[
            Tick(
                initialized=bool(t.initialized),
                liquidity_net=int(t.liquidity_net),
                liquidity_gross=int(t.liquidity_gross),
                fee_growth_outside_a=int(t.fee_growth_outside_a),
                fee_growth_outside_b=int(t.fee_growth_outside_b),
                reward_growths_outside=[int(g) for g in t.reward_growths_outside],
            )
            for t in parsed.ticks
        ],
        whirlpool=Pubkey.from_bytes(parsed.whirlpool),
    )


def build_whirlpool_account(state: WhirlpoolState) -> bytes:
    """Serialize ``state`` back into Whirlpool account bytes."""
    empty_key = bytes(Pubkey.default())
    rewards = [
        dict(
            mint=bytes(r.mint),
            vault=bytes(r.vault),
            authority=bytes(r.authority),
            emissions_per_second_x64=r.emissions_per_second_x64,
            growth_global_x64=r.growth_global_x64,
        )
        for r in state.reward_infos
    ]
    while len(rewards) < NUM_REWARDS:
        rewards.append(
            dict(mint=empty_key, vault=empty_key, authority=empty_key,
                 emissions_per_second_x64=0, growth_global_x64=0)
        )
    return WHIRLPOOL_LAYOUT.build(
        dict(
            discriminator=WHIRLPOOL_DISCRIMINATOR,
            whirlpools_config=bytes(state.whirlpools_config),
            whirlpool_bump=state.whirlpool_bump,
            tick_spacing=state.tick_spacing,
            tick_spacing_seed=state.tick_spacing.to_bytes(2, "little"),
            fee_rate=state.fee_rate,
            protocol_fee_rate=state.protocol_fee_rate,
            liquidity=state.liquidity,
            sqrt_price=state.sqrt_price,
            tick_current_index=state.tick_current_index,
            protocol_fee_owed_a=state.protocol_fee_owed_a,
            protocol_fee_owed_b=state.protocol_fee_owed_b,
            token_mint_a=bytes(state.token_mint_a),
            token_vault_a=bytes(state.token_vault_a),
            fee_growth_global_a=state.fee_growth_global_a,
            token_mint_b=bytes(state.token_mint_b),
            token_vault_b=bytes(state.token_vault_b),
            fee_growth_global_b=state.fee_growth_global_b,
            reward_last_updated_timestamp=state.reward_last_updated_timestamp,
            reward_infos=rewards[:NUM_REWARDS],
        )
    )


def build_tick_array_account(tick_array: TickArray) -> bytes:
    """Serialize ``tick_array`` back into TickArray account bytes."""
    return TICK_ARRAY_LAYOUT.build(
        dict(
            discriminator=TICK_ARRAY_DISCRIMINATOR,
            start_tick_index=tick_array.start_tick_index,
            ticks=[
                dict(
                    initialized=t.initialized,
                    liquidity_net=t.liquidity_net,
                    liquidity_gross=t.liquidity_gross,
                    fee_growth_outside_a=t.fee_growth_outside_a,
                    fee_growth_outside_b=t.fee_growth_outside_b,
                    reward_growths_outside=list(t.reward_growths_outside),
                )
                for t in tick_array.ticks
            ],
            whirlpool=bytes(tick_array.whirlpool),
        )
    )
