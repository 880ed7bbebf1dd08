#!/usr/bin/env python3
"""Signed Context Oracle.

Serves the latest Pyth price and an expiry timestamp as Rain DecimalFloats,
signed with EIP-191 so that orders can verify them on-chain.

Start via Docker or directly with env vars. CLI args take precedence.
"""

import argparse
import logging
import os
import re
import sys

import uvicorn
from web3 import Web3

from .src.ContextSigner import ContextSigner
from .src.errors import KeyUnavailableError
from .src.fetchers import get_available_fetchers, get_fetcher
from .src.OracleService import OracleService
from .src.server import create_app
from .src.TokenPair import TokenPairConfig

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

# Pyth ETH/USD feed.
DEFAULT_FEED_ID = "ff61491a931112ddf1bd8147cd1b641375f79f5825126d665480874634fd0ace"

FEED_ID_PATTERN = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser with environment variable defaults."""
    available_sources = get_available_fetchers()

    parser = argparse.ArgumentParser(
        description="Signed Context Oracle: EIP-191 signed Pyth prices for Rain orders",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Available price sources:
  {', '.join(available_sources)}

Examples:
  # ETH/USD priced in USDC, 5 second expiry
  python -m context_oracle.main \\
      --base-token 0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2 \\
      --quote-token 0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48

Environment variables (CLI args take precedence):
  PORT, HOST, SIGNER_PRIVATE_KEY, PYTH_PRICE_FEED_ID, BASE_TOKEN, QUOTE_TOKEN,
  EXPIRY_SECONDS, PRICE_SOURCE, HERMES_URL, MAX_STALENESS, FETCH_TIMEOUT
""",
    )

    parser.add_argument(
        "-p", "--port",
        type=int,
        help="Port to listen on (default: 3000)",
        default=int(os.environ.get("PORT") or "3000"),
    )

    parser.add_argument(
        "--host",
        type=str,
        help="Address to bind (default: 0.0.0.0)",
        default=os.environ.get("HOST") or "0.0.0.0",
    )

    parser.add_argument(
        "--signer-private-key",
        dest="signer_private_key",
        type=str,
        help="Private key for EIP-191 signing (hex, with or without 0x prefix)",
        default=os.environ.get("SIGNER_PRIVATE_KEY"),
    )

    parser.add_argument(
        "--pyth-price-feed-id",
        dest="feed_id",
        type=str,
        help="Pyth price feed ID; the feed returns base/quote (default: ETH/USD)",
        default=os.environ.get("PYTH_PRICE_FEED_ID") or DEFAULT_FEED_ID,
    )

    parser.add_argument(
        "--base-token",
        dest="base_token",
        type=str,
        help="Base token address, the asset priced by the feed (e.g. WETH)",
        default=os.environ.get("BASE_TOKEN"),
    )

    parser.add_argument(
        "--quote-token",
        dest="quote_token",
        type=str,
        help="Quote token address, the denomination of the feed (e.g. USDC)",
        default=os.environ.get("QUOTE_TOKEN"),
    )

    parser.add_argument(
        "--expiry-seconds",
        dest="expiry_seconds",
        type=int,
        help="Signed context expiry in seconds (default: 5)",
        default=int(os.environ.get("EXPIRY_SECONDS") or "5"),
    )

    parser.add_argument(
        "--price-source",
        dest="price_source",
        type=str,
        help=f"Price source to sign. Available: {', '.join(available_sources)} (default: pyth)",
        default=os.environ.get("PRICE_SOURCE") or "pyth",
    )

    parser.add_argument(
        "--hermes-url",
        dest="hermes_url",
        type=str,
        help="Pyth Hermes base URL (default: https://hermes.pyth.network)",
        default=os.environ.get("HERMES_URL") or "https://hermes.pyth.network",
    )

    parser.add_argument(
        "--max-staleness",
        dest="max_staleness",
        type=int,
        help="Reject prices older than this many seconds (default: 0, disabled)",
        default=int(os.environ.get("MAX_STALENESS") or "0"),
    )

    parser.add_argument(
        "--fetch-timeout",
        dest="fetch_timeout",
        type=float,
        help="Timeout for price feed requests in seconds (default: 10.0)",
        default=float(os.environ.get("FETCH_TIMEOUT") or "10.0"),
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    return parser


def main() -> None:
    """Main entry point for the Signed Context Oracle CLI."""
    parser = build_parser()
    args = parser.parse_args()

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Validate arguments
    available_sources = get_available_fetchers()
    if args.price_source not in available_sources:
        parser.error(
            f"Unknown price source: {args.price_source}. "
            f"Available: {', '.join(available_sources)}"
        )

    if args.expiry_seconds < 1:
        parser.error("--expiry-seconds must be at least 1 second")

    if args.max_staleness < 0:
        parser.error("--max-staleness must not be negative")

    if not FEED_ID_PATTERN.match(args.feed_id):
        parser.error(f"Invalid Pyth price feed ID: {args.feed_id}")

    for option, value in (("--base-token", args.base_token), ("--quote-token", args.quote_token)):
        if not value:
            parser.error(f"{option} is required")
        if not Web3.is_address(value):
            parser.error(f"{option} is not a valid address: {value}")

    try:
        signer = ContextSigner(args.signer_private_key)
    except KeyUnavailableError as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)

    token_pair = TokenPairConfig(args.base_token, args.quote_token)
    fetcher = get_fetcher(
        args.price_source,
        base_url=args.hermes_url,
        timeout=args.fetch_timeout,
        max_staleness=args.max_staleness,
    )
    service = OracleService(
        fetcher=fetcher,
        signer=signer,
        feed_id=args.feed_id,
        expiry_seconds=args.expiry_seconds,
    )

    # Log configuration
    logger.info("=" * 60)
    logger.info("Signed Context Oracle")
    logger.info("=" * 60)
    logger.info(f"Signer:            {signer.signer_address()}")
    logger.info(f"Price Source:      {args.price_source}")
    logger.info(f"Pyth Feed:         {args.feed_id}")
    logger.info(f"Hermes URL:        {args.hermes_url}")
    logger.info(f"Base Token:        {token_pair.base_token}")
    logger.info(f"Quote Token:       {token_pair.quote_token}")
    logger.info(f"Expiry:            {args.expiry_seconds}s")
    logger.info(
        f"Max Staleness:     {args.max_staleness}s"
        if args.max_staleness
        else "Max Staleness:     disabled"
    )
    logger.info(f"Listening on:      {args.host}:{args.port}")
    logger.info("=" * 60)

    app = create_app(service, token_pair)
    try:
        uvicorn.run(app, host=args.host, port=args.port, log_level="debug" if args.verbose else "info")
    except KeyboardInterrupt:
        logger.info("Shutting down...")


if __name__ == "__main__":
    main()
