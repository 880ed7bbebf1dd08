"""Pyth Hermes fetcher.

Endpoint: https://hermes.pyth.network/v2/updates/price/latest?ids[]=0x{FEED_ID}
Rate Limit: Public endpoint (no key required)
Response: parsed[0].price = {"price": "<int str>", "expo": <int>, "publish_time": <int>}
"""

import logging

from ..Quote import Quote
from .base import BaseFetcher, FetcherError, register_fetcher

logger = logging.getLogger(__name__)


@register_fetcher
class PythFetcher(BaseFetcher):
    """Fetcher for the Pyth Hermes price service.

    Returns the raw integer price and exponent, so no precision is lost
    before encoding.
    """

    name = "pyth"
    BASE_URL = "https://hermes.pyth.network"

    def __init__(self, base_url: str | None = None, **kwargs):
        """Initialize the Pyth fetcher.

        :param base_url: Hermes base URL (default: public endpoint).
        :param kwargs: Passed to BaseFetcher.
        """
        super().__init__(**kwargs)
        self.base_url = (base_url or self.BASE_URL).rstrip("/")

    async def fetch_quote(self, feed_id: str) -> Quote:
        """Fetch the latest price for a Pyth feed.

        :param feed_id: Feed ID as hex, with or without 0x prefix.
        :returns: Latest Quote.
        :raises FetcherError: On HTTP, parse or staleness failures.
        """
        feed_id = feed_id[2:] if feed_id.startswith("0x") else feed_id
        url = f"{self.base_url}/v2/updates/price/latest"

        response = await self._get(url, params={"ids[]": f"0x{feed_id}"})

        try:
            data = response.json()
            feeds = data["parsed"]
            if not feeds:
                raise FetcherError(f"No price feed returned from Hermes for {feed_id}")
            price_info = feeds[0]["price"]
            quote = Quote(
                coefficient=int(price_info["price"]),
                exponent=int(price_info["expo"]),
                observed_at=int(price_info["publish_time"]),
            )
        except (KeyError, IndexError, ValueError, TypeError) as e:
            raise FetcherError(f"Failed to parse Hermes response for {feed_id}: {e}") from e

        logger.debug(
            f"[pyth] {feed_id[:8]}: {quote.coefficient} * 10^{quote.exponent} "
            f"@ {quote.observed_at}"
        )
        return self.check_freshness(quote)
