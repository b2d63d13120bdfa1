"""
Quote a single-hop Orca whirlpool swap from the settings in the environment
(or a .env file) and print the raw and slippage-adjusted output amounts.
"""

import asyncio
import logging
import sys

from dotenv import load_dotenv

from orca_direct.errors import QuoteError
from trading.config import QuoteConfig
from trading.quote import get_quote

logger = logging.getLogger(__name__)


def main() -> int:
    load_dotenv()
    try:
        config = QuoteConfig.from_env()
    except QuoteError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        quote, slippage_adjusted_quote = asyncio.run(get_quote(config))
    except QuoteError as e:
        logger.error(f"[QUOTE] {type(e).__name__}: {e}")
        print(f"Quote failed: {e}", file=sys.stderr)
        return 1

    print(f"Quote: {quote}")
    print(f"Slippage_adjusted_quote: {slippage_adjusted_quote}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
