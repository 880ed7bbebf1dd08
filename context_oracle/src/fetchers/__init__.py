"""
Quote fetchers for external price feeds.

Usage:
    from context_oracle.src.fetchers import get_fetcher, get_available_fetchers

    # Get list of available fetchers
    available = get_available_fetchers()
    # ['pyth']

    # Create a fetcher instance
    fetcher = get_fetcher("pyth", timeout=5.0, max_staleness=60)
    quote = await fetcher.fetch_quote("ff61491a...")
"""

# Import base classes and utilities
from .base import (
    FETCHER_REGISTRY,
    BaseFetcher,
    FetcherError,
    FetcherHTTPError,
    StalePriceError,
    get_available_fetchers,
    get_fetcher,
    register_fetcher,
)

# Import all fetcher implementations to trigger registration
from .pyth import PythFetcher

__all__ = [
    # Base classes
    "BaseFetcher",
    "FetcherError",
    "FetcherHTTPError",
    "StalePriceError",
    # Registry functions
    "register_fetcher",
    "get_fetcher",
    "get_available_fetchers",
    "FETCHER_REGISTRY",
    # Fetcher implementations
    "PythFetcher",
]
