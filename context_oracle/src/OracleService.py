"""OracleService: Produces freshly signed price context.

Each call runs the full pipeline with no state carried between calls:

    1. Fetch the latest quote from the price feed
    2. Compute expiry = now + expiry_seconds (clock read once)
    3. Encode [price, expiry] as DecimalFloats
    4. Digest with keccak256(abi.encodePacked(context))
    5. Sign the digest with EIP-191
    6. Return the SignedContext

Upstream failures are reported as UpstreamUnavailableError; the service never
retries and never falls back to an older price.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

from .ContextBuilder import SignedContextValues, build_context
from .ContextSigner import ContextSigner, context_digest
from .errors import UpstreamUnavailableError
from .fetchers import BaseFetcher, FetcherError
from .TokenPair import PriceDirection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignedContext:
    """A context array with its signature.

    :ivar signer: Checksum address of the signer.
    :ivar context: (price, expiry) DecimalFloats.
    :ivar signature: 65-byte EIP-191 signature over the context digest.
    """

    signer: str
    context: SignedContextValues
    signature: bytes

    def to_json(self) -> dict[str, Any]:
        """Serialize to the JSON shape consumed by order takers."""
        return {
            "signer": self.signer,
            "context": [value.to_hex() for value in self.context],
            "signature": "0x" + self.signature.hex(),
        }


class OracleService:
    """Orchestrates quote fetching, encoding and signing.

    :ivar fetcher: Price feed collaborator.
    :ivar signer: Context signer holding the process key.
    :ivar feed_id: Feed identifier passed to the fetcher.
    :ivar expiry_seconds: Validity window added to the current time.
    """

    def __init__(
        self,
        fetcher: BaseFetcher,
        signer: ContextSigner,
        feed_id: str,
        expiry_seconds: int = 5,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the oracle service.

        :param fetcher: Quote fetcher for the price feed.
        :param signer: Signer for context digests.
        :param feed_id: Feed identifier.
        :param expiry_seconds: Seconds until the signed context expires (default: 5).
        :param clock: Returns the current unix time (default: time.time).
        :raises ValueError: If expiry_seconds is not positive.
        """
        if expiry_seconds < 1:
            raise ValueError("expiry_seconds must be at least 1")
        self.fetcher = fetcher
        self.signer = signer
        self.feed_id = feed_id
        self.expiry_seconds = expiry_seconds
        self._clock = clock

    def signer_address(self) -> str:
        """Return the address that signs produced contexts."""
        return self.signer.signer_address()

    async def produce(
        self, direction: PriceDirection = PriceDirection.AS_IS
    ) -> SignedContext:
        """Produce a signed context for the current time.

        :param direction: Whether to return the price as-is or inverted.
        :returns: Freshly signed context.
        :raises UpstreamUnavailableError: If the price feed fails.
        :raises InvalidInputError: If the quote cannot be encoded.
        """
        try:
            quote = await self.fetcher.fetch_quote(self.feed_id)
        except FetcherError as e:
            logger.warning(f"Price feed {self.feed_id[:8]} unavailable: {e}")
            raise UpstreamUnavailableError(f"Price feed unavailable: {e}") from e

        now = int(self._clock())
        expiry = now + self.expiry_seconds

        context = build_context(quote, expiry, direction)
        signature = self.signer.sign(context_digest(context))

        logger.debug(
            f"Signed context: price={context[0]} expiry={expiry} "
            f"direction={direction.value} quote_time={quote.observed_at}"
        )
        return SignedContext(
            signer=self.signer.signer_address(),
            context=context,
            signature=signature,
        )
