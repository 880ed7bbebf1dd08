"""Base quote fetcher interface and shared HTTP client management.

Quote fetchers inherit from BaseFetcher and implement fetch_quote().
A shared httpx.AsyncClient is reused across requests to avoid connection
overhead.

.. code-block:: python

    @register_fetcher
    class MyFetcher(BaseFetcher):
        name = "myfetcher"

        async def fetch_quote(self, feed_id: str) -> Quote:
            response = await self._get(f"https://api.example.com/{feed_id}")
            data = response.json()
            return Quote(int(data["price"]), int(data["expo"]), int(data["time"]))
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import ClassVar

import httpx

from ..Quote import Quote

logger = logging.getLogger(__name__)


class FetcherError(Exception):
    """Base exception for fetcher errors."""

    pass


class FetcherHTTPError(FetcherError):
    """Raised when HTTP request fails.

    :ivar status_code: HTTP status code from the failed request.
    """

    def __init__(self, status_code: int, message: str):
        """Initialize the HTTP error.

        :param status_code: HTTP status code.
        :param message: Error message from response.
        """
        self.status_code = status_code
        super().__init__(f"HTTP {status_code}: {message}")


class StalePriceError(FetcherError):
    """Raised when the feed's latest price is older than allowed.

    :ivar age: Age of the quote in seconds.
    """

    def __init__(self, age: int, max_staleness: int):
        """Initialize the staleness error.

        :param age: Age of the quote in seconds.
        :param max_staleness: Maximum allowed age in seconds.
        """
        self.age = age
        super().__init__(f"Price is {age}s old (max {max_staleness}s)")


class BaseFetcher(ABC):
    """Abstract base class for quote fetchers.

    Subclasses must implement:
        - name: Class variable identifying the source (e.g., "pyth")
        - fetch_quote(): Async method returning the latest Quote for a feed

    :cvar name: Unique identifier for this fetcher.
    :cvar DEFAULT_TIMEOUT: Default HTTP request timeout in seconds.
    :ivar timeout: Request timeout in seconds.
    :ivar max_staleness: Maximum quote age in seconds, or None to disable.
    """

    # Class-level shared HTTP client
    _shared_client: ClassVar[httpx.AsyncClient | None] = None

    # Fetcher identification
    name: ClassVar[str] = ""

    # Default timeout for HTTP requests (seconds)
    DEFAULT_TIMEOUT = 10.0

    def __init__(
        self,
        timeout: float | None = None,
        max_staleness: int | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize the fetcher.

        :param timeout: Request timeout in seconds (default: 10).
        :param max_staleness: Reject quotes older than this many seconds.
        :param client: Optional client to use instead of the shared one.
        """
        self.timeout = timeout or self.DEFAULT_TIMEOUT
        self.max_staleness = max_staleness or None
        self._client = client

    @classmethod
    def get_shared_client(cls) -> httpx.AsyncClient:
        """Get or create the shared HTTP client.

        :returns: Shared httpx.AsyncClient instance.
        """
        if cls._shared_client is None or cls._shared_client.is_closed:
            cls._shared_client = httpx.AsyncClient(
                timeout=httpx.Timeout(30.0, connect=10.0),
                limits=httpx.Limits(max_connections=50, max_keepalive_connections=20),
                follow_redirects=True,
            )
        return cls._shared_client

    @classmethod
    async def close_shared_client(cls) -> None:
        """Close the shared HTTP client."""
        if cls._shared_client is not None and not cls._shared_client.is_closed:
            await cls._shared_client.aclose()
            cls._shared_client = None

    @abstractmethod
    async def fetch_quote(self, feed_id: str) -> Quote:
        """Fetch the latest quote for a feed.

        :param feed_id: Feed identifier.
        :returns: Latest Quote.
        :raises FetcherError: If no usable quote could be obtained.
        """
        pass

    def check_freshness(self, quote: Quote, now: float | None = None) -> Quote:
        """Reject a quote older than max_staleness.

        :param quote: Quote to check.
        :param now: Current unix time (default: time.time()).
        :returns: The quote, unchanged.
        :raises StalePriceError: If the quote is too old.
        """
        if self.max_staleness is None:
            return quote
        now = time.time() if now is None else now
        age = int(now) - quote.observed_at
        if age > self.max_staleness:
            raise StalePriceError(age, self.max_staleness)
        return quote

    async def _get(
        self,
        url: str,
        *,
        params: dict | None = None,
        headers: dict | None = None,
    ) -> httpx.Response:
        """Make an HTTP GET request.

        :param url: Request URL.
        :param params: Optional query parameters.
        :param headers: Optional request headers.
        :returns: httpx.Response object.
        :raises FetcherHTTPError: On non-2xx response.
        :raises FetcherError: On network/timeout errors.
        """
        client = self._client or self.get_shared_client()
        try:
            response = await client.get(
                url,
                params=params,
                headers=headers,
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            raise FetcherError(f"Request timeout: {e}") from e
        except httpx.RequestError as e:
            raise FetcherError(f"Request failed: {e}") from e

        if not response.is_success:
            logger.debug(
                "HTTP GET %s failed with status %s: %s",
                url,
                response.status_code,
                response.text[:200],
            )
            raise FetcherHTTPError(response.status_code, response.text[:200])
        return response


# Registry of available fetchers (populated by subclass imports)
FETCHER_REGISTRY: dict[str, type[BaseFetcher]] = {}


def register_fetcher(cls: type[BaseFetcher]) -> type[BaseFetcher]:
    """Decorator to register a fetcher class in the global registry.

    :param cls: Fetcher class to register.
    :returns: The registered class (unchanged).
    :raises ValueError: If fetcher has no name defined.
    """
    if not cls.name:
        raise ValueError(f"Fetcher {cls.__name__} must define a 'name' class variable")
    FETCHER_REGISTRY[cls.name] = cls
    return cls


def get_fetcher(name: str, **kwargs) -> BaseFetcher:
    """Get a fetcher instance by name.

    :param name: Fetcher name (e.g., "pyth").
    :param kwargs: Keyword arguments passed to the fetcher constructor.
    :returns: Fetcher instance.
    :raises ValueError: If fetcher name is unknown.
    """
    if name not in FETCHER_REGISTRY:
        available = ", ".join(sorted(FETCHER_REGISTRY.keys()))
        raise ValueError(f"Unknown fetcher '{name}'. Available: {available}")
    return FETCHER_REGISTRY[name](**kwargs)


def get_available_fetchers() -> list[str]:
    """Get list of available fetcher names.

    :returns: Sorted list of registered fetcher names.
    """
    return sorted(FETCHER_REGISTRY.keys())
