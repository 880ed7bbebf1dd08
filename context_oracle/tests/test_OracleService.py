"""Unit tests for OracleService."""

import asyncio
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from context_oracle.src.ContextSigner import ContextSigner, context_digest
from context_oracle.src.DecimalFloat import DecimalFloat
from context_oracle.src.errors import OutOfRangeError, UpstreamUnavailableError
from context_oracle.src.fetchers import BaseFetcher, FetcherError, FetcherHTTPError
from context_oracle.src.OracleService import OracleService, SignedContext
from context_oracle.src.Quote import Quote
from context_oracle.src.TokenPair import PriceDirection

TEST_KEY = "ac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
FEED_ID = "ff61491a931112ddf1bd8147cd1b641375f79f5825126d665480874634fd0ace"
NOW = 1700000000.75


class StaticFetcher(BaseFetcher):
    """Fetcher returning a fixed quote or raising a fixed error."""

    name = "static"

    def __init__(self, quote: Quote | None = None, error: Exception | None = None):
        super().__init__()
        self.quote = quote
        self.error = error
        self.calls: list[str] = []

    async def fetch_quote(self, feed_id: str) -> Quote:
        self.calls.append(feed_id)
        if self.error is not None:
            raise self.error
        return self.quote


def make_service(fetcher: BaseFetcher, signer=None, expiry_seconds: int = 5) -> OracleService:
    return OracleService(
        fetcher=fetcher,
        signer=signer or ContextSigner(TEST_KEY),
        feed_id=FEED_ID,
        expiry_seconds=expiry_seconds,
        clock=lambda: NOW,
    )


class TestOracleServiceInit:
    """Test OracleService construction."""

    def test_invalid_expiry(self) -> None:
        """Expiry windows below one second are rejected."""
        with pytest.raises(ValueError, match="expiry_seconds must be at least 1"):
            make_service(StaticFetcher(Quote(1, 0, 0)), expiry_seconds=0)

    def test_signer_address(self) -> None:
        """The service exposes the signer's address."""
        assert make_service(StaticFetcher(Quote(1, 0, 0))).signer_address() == TEST_ADDRESS


class TestOracleServiceProduce:
    """Test the produce pipeline."""

    def test_produce_signed_context(self) -> None:
        """A quote becomes a verifiable signed [price, expiry] context."""
        fetcher = StaticFetcher(Quote(300000000000, -8, 1699999999))
        service = make_service(fetcher)

        result = asyncio.run(service.produce())

        assert isinstance(result, SignedContext)
        assert fetcher.calls == [FEED_ID]
        assert result.signer == TEST_ADDRESS
        assert result.context[0] == DecimalFloat.encode(30000000000000, -10)
        assert result.context[1] == DecimalFloat.encode(1700000005, 0)
        assert len(result.signature) == 65
        assert service.signer.verify(result.context, result.signature)

    def test_expiry_is_now_plus_window(self) -> None:
        """Expiry decodes to exactly T + window with exponent 0."""
        result = asyncio.run(make_service(StaticFetcher(Quote(1, 0, 0))).produce())
        expiry = DecimalFloat.decode(result.context[1].to_bytes())
        assert expiry.coefficient == 1700000005
        assert expiry.exponent == 0

    def test_expiry_at_round_timestamp(self) -> None:
        """A T + window that is a multiple of ten still has exponent 0."""
        service = OracleService(
            fetcher=StaticFetcher(Quote(31, 2, 0)),
            signer=ContextSigner(TEST_KEY),
            feed_id=FEED_ID,
            expiry_seconds=5,
            clock=lambda: 1699999995,
        )
        result = asyncio.run(service.produce())

        price = DecimalFloat.decode(result.context[0].to_hex())
        expiry = DecimalFloat.decode(result.context[1].to_hex())
        assert (price.coefficient, price.exponent) == (3100, 0)
        assert (expiry.coefficient, expiry.exponent) == (1700000000, 0)
        assert result.context[1].to_bytes() == (1700000000).to_bytes(32, "big")
        assert service.signer.verify(result.context, result.signature)

    def test_clock_read_once(self) -> None:
        """The clock is sampled exactly once per request."""
        clock = MagicMock(return_value=NOW)
        service = OracleService(
            fetcher=StaticFetcher(Quote(1, 0, 0)),
            signer=ContextSigner(TEST_KEY),
            feed_id=FEED_ID,
            expiry_seconds=5,
            clock=clock,
        )
        asyncio.run(service.produce())
        assert clock.call_count == 1

    def test_no_caching_between_calls(self) -> None:
        """Every call fetches a fresh quote."""
        fetcher = StaticFetcher(Quote(1, 0, 0))
        service = make_service(fetcher)
        asyncio.run(service.produce())
        fetcher.quote = Quote(2, 0, 0)
        result = asyncio.run(service.produce())
        assert fetcher.calls == [FEED_ID, FEED_ID]
        assert result.context[0] == DecimalFloat.encode(2, 0)

    def test_inverted_direction(self) -> None:
        """INVERTED signs 1 / price."""
        service = make_service(StaticFetcher(Quote(200000000000, -8, 0)))
        result = asyncio.run(service.produce(PriceDirection.INVERTED))
        assert result.context[0].to_decimal() == Decimal("0.0005")
        assert service.signer.verify(result.context, result.signature)

    def test_signature_covers_context_digest(self) -> None:
        """The signer receives the digest of the produced context."""
        signer = MagicMock(wraps=ContextSigner(TEST_KEY))
        service = make_service(StaticFetcher(Quote(310012345678, -8, 0)), signer=signer)
        result = asyncio.run(service.produce())
        signer.sign.assert_called_once_with(context_digest(result.context))

    @pytest.mark.parametrize(
        "error",
        [
            FetcherError("Request timeout"),
            FetcherHTTPError(503, "unavailable"),
        ],
    )
    def test_upstream_failure(self, error: Exception) -> None:
        """Fetcher failures become UpstreamUnavailableError; nothing is signed."""
        signer = MagicMock(wraps=ContextSigner(TEST_KEY))
        service = make_service(StaticFetcher(error=error), signer=signer)

        with pytest.raises(UpstreamUnavailableError) as exc_info:
            asyncio.run(service.produce())

        assert exc_info.value.__cause__ is error
        signer.sign.assert_not_called()

    def test_encoding_error_propagates(self) -> None:
        """Unencodable quotes are not clamped or substituted."""
        signer = MagicMock(wraps=ContextSigner(TEST_KEY))
        service = make_service(StaticFetcher(Quote(1, 2**31, 0)), signer=signer)
        with pytest.raises(OutOfRangeError):
            asyncio.run(service.produce())
        signer.sign.assert_not_called()


class TestSignedContextJson:
    """Test response serialization."""

    def test_to_json_shape(self) -> None:
        """JSON has signer, two 32-byte hex words and a 65-byte hex signature."""
        result = asyncio.run(make_service(StaticFetcher(Quote(310012345678, -8, 0))).produce())
        payload = result.to_json()

        assert set(payload) == {"signer", "context", "signature"}
        assert payload["signer"] == TEST_ADDRESS
        assert len(payload["context"]) == 2
        for word in payload["context"]:
            assert word.startswith("0x")
            assert len(word) == 66
        assert payload["context"][0] == result.context[0].to_hex()
        assert payload["signature"].startswith("0x")
        assert len(payload["signature"]) == 132
