"""
Quote configuration, read once from the environment at startup.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from solders.pubkey import Pubkey

from orca_direct.catalog import CACHE_DIR, CACHE_FILE, ORCA_API_ENDPOINT
from orca_direct.errors import ConfigError

U64_MAX = (1 << 64) - 1
TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class QuoteConfig:
    override_cache: bool
    http_url: str
    amount: int
    in_token: Pubkey
    out_token: Pubkey
    whirlpool_program: Pubkey
    slippage: float
    cache_dir: str = CACHE_DIR
    cache_file: str = CACHE_FILE
    api_endpoint: str = ORCA_API_ENDPOINT
    tick_spacing: Optional[int] = None
    log_level: str = "INFO"

    def __post_init__(self):
        if not 0 <= self.amount <= U64_MAX:
            raise ConfigError(f"AMOUNT must fit in u64, got {self.amount}", "AMOUNT")
        if not math.isfinite(self.slippage):
            raise ConfigError(f"SLIPPAGE must be a finite percentage, got {self.slippage}", "SLIPPAGE")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "QuoteConfig":
        env = os.environ if environ is None else environ
        tick_spacing = env.get("TICK_SPACING", "").strip()
        return cls(
            override_cache=_env_bool(env, "OVERRIDE_CACHE"),
            http_url=_required(env, "HTTP_URL"),
            amount=_env_int(env, "AMOUNT"),
            in_token=_env_pubkey(env, "INPUT_TOKEN"),
            out_token=_env_pubkey(env, "OUTPUT_TOKEN"),
            whirlpool_program=_env_pubkey(env, "WHIRLPOOL_PROGRAM_ID"),
            slippage=_env_float(env, "SLIPPAGE"),
            cache_dir=env.get("CACHE_DIR", CACHE_DIR),
            cache_file=env.get("CACHE_FILE", CACHE_FILE),
            api_endpoint=env.get("ORCA_API_ENDPOINT", ORCA_API_ENDPOINT),
            tick_spacing=_parse_int("TICK_SPACING", tick_spacing) if tick_spacing else None,
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )


def _required(env: Mapping[str, str], name: str) -> str:
    value = env.get(name)
    if value is None or not value.strip():
        raise ConfigError(f"{name} is not set", name)
    return value.strip()


def _env_bool(env: Mapping[str, str], name: str) -> bool:
    value = _required(env, name).lower()
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}", name)


def _parse_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {value!r}", name) from None


def _env_int(env: Mapping[str, str], name: str) -> int:
    return _parse_int(name, _required(env, name))


def _env_float(env: Mapping[str, str], name: str) -> float:
    value = _required(env, name)
    try:
        return float(value)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {value!r}", name) from None


def _env_pubkey(env: Mapping[str, str], name: str) -> Pubkey:
    value = _required(env, name)
    try:
        return Pubkey.from_string(value)
    except ValueError:
        raise ConfigError(f"{name} is not a valid base58 public key: {value!r}", name) from None
