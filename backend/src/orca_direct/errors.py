"""
Exception types for the Orca whirlpool quote path.

Every failure that aborts a quote derives from QuoteError so the CLI can
report it with one handler. Running out of tick arrays near the protocol
bounds is not an error; the locator just returns fewer keys.
"""


class QuoteError(Exception):
    """Base exception for quote operations."""
    pass


class ConfigError(QuoteError):
    """Raised when a required setting is missing or malformed."""

    def __init__(self, message: str, key: str = None):
        super().__init__(message)
        self.key = key


class CacheIOError(QuoteError):
    """Raised when the catalog cache directory or file cannot be written."""
    pass


class CacheDeserializeError(QuoteError):
    """Raised when the cached catalog cannot be parsed."""
    pass


class NetworkError(QuoteError):
    """Raised when the catalog service or the RPC node fails."""
    pass


class PoolNotFound(QuoteError):
    """Raised when no catalog pool serves the requested mint pair."""

    def __init__(self, input_mint, output_mint):
        super().__init__(f"No whirlpool found for pair {input_mint}/{output_mint}")
        self.input_mint = input_mint
        self.output_mint = output_mint


class AccountMissing(QuoteError):
    """Raised when a pool or located tick-array address has no account."""

    def __init__(self, address, kind: str = "account"):
        super().__init__(f"No {kind} found at {address}")
        self.address = address
        self.kind = kind


class AccountDecodeError(QuoteError):
    """Raised when account bytes do not match the expected layout."""
    pass


class SwapError(QuoteError):
    """Raised when the swap simulation cannot complete."""
    pass
