"""Unit tests for TokenPair."""

import pytest
from eth_abi import encode as abi_encode

from context_oracle.src.errors import (
    InvalidInputError,
    InvalidRequestError,
    UnsupportedTokenPairError,
)
from context_oracle.src.TokenPair import (
    ORACLE_REQUEST_TYPES,
    PriceDirection,
    TokenPairConfig,
    decode_oracle_request,
)

WETH = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"
USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
OTHER = "0x6B175474E89094C44Da98b954EedeAC495271d0F"
OWNER = "0x1111111111111111111111111111111111111111"


def encode_request(
    inputs: list[str],
    outputs: list[str],
    input_index: int = 0,
    output_index: int = 0,
) -> bytes:
    """ABI-encode an oracle request for the given IO tokens."""
    order = (
        OWNER,
        (OWNER, OWNER, b"\x01\x02"),
        [(token, 18, 1) for token in inputs],
        [(token, 18, 2) for token in outputs],
        b"\x00" * 32,
    )
    return abi_encode(ORACLE_REQUEST_TYPES, [order, input_index, output_index, OWNER])


class TestTokenPairConfig:
    """Test token pair configuration."""

    def test_checksums_addresses(self) -> None:
        """Addresses are stored in checksum form."""
        pair = TokenPairConfig(WETH.lower(), USDC.lower())
        assert pair.base_token == WETH
        assert pair.quote_token == USDC

    def test_invalid_base(self) -> None:
        """Invalid base address raises ValueError."""
        with pytest.raises(ValueError, match="Invalid base token address"):
            TokenPairConfig("0x1234", USDC)

    def test_invalid_quote(self) -> None:
        """Invalid quote address raises ValueError."""
        with pytest.raises(ValueError, match="Invalid quote token address"):
            TokenPairConfig(WETH, "not-an-address")


class TestPriceDirection:
    """Test price direction routing."""

    def setup_method(self) -> None:
        self.pair = TokenPairConfig(WETH, USDC)

    def test_quote_to_base_is_as_is(self) -> None:
        """Input USDC, output WETH: USDC per WETH."""
        assert self.pair.price_direction(USDC, WETH) is PriceDirection.AS_IS

    def test_base_to_quote_is_inverted(self) -> None:
        """Input WETH, output USDC: WETH per USDC."""
        assert self.pair.price_direction(WETH, USDC) is PriceDirection.INVERTED

    def test_case_insensitive(self) -> None:
        """Lowercase addresses match the configured pair."""
        assert self.pair.price_direction(USDC.lower(), WETH.lower()) is PriceDirection.AS_IS

    @pytest.mark.parametrize(
        "input_token,output_token",
        [(OTHER, WETH), (USDC, OTHER), (WETH, WETH), (USDC, USDC)],
    )
    def test_unsupported_pair(self, input_token: str, output_token: str) -> None:
        """Any other combination is rejected."""
        with pytest.raises(UnsupportedTokenPairError, match="Unsupported token pair"):
            self.pair.price_direction(input_token, output_token)

    def test_unsupported_pair_is_invalid_input(self) -> None:
        """Unsupported pairs are client errors."""
        with pytest.raises(InvalidInputError):
            self.pair.price_direction(OTHER, OTHER)


class TestDecodeOracleRequest:
    """Test ABI decoding of oracle requests."""

    def test_decode_tokens(self) -> None:
        """Input and output tokens come from the indexed IOs."""
        body = encode_request([USDC], [WETH])
        input_token, output_token = decode_oracle_request(body)
        assert input_token.lower() == USDC.lower()
        assert output_token.lower() == WETH.lower()

    def test_decode_uses_indices(self) -> None:
        """Non-zero IO indices select the right entries."""
        body = encode_request([OTHER, WETH], [OTHER, OTHER, USDC], 1, 2)
        input_token, output_token = decode_oracle_request(body)
        assert input_token.lower() == WETH.lower()
        assert output_token.lower() == USDC.lower()

    def test_invalid_body(self) -> None:
        """Garbage bodies raise invalid_body."""
        with pytest.raises(InvalidRequestError) as exc_info:
            decode_oracle_request(b"\x00\x01\x02")
        assert exc_info.value.code == "invalid_body"

    def test_empty_body(self) -> None:
        """Empty bodies raise invalid_body."""
        with pytest.raises(InvalidRequestError) as exc_info:
            decode_oracle_request(b"")
        assert exc_info.value.code == "invalid_body"

    def test_input_index_out_of_range(self) -> None:
        """Input index beyond validInputs raises invalid_index."""
        body = encode_request([USDC], [WETH], input_index=1)
        with pytest.raises(InvalidRequestError, match="input IO index") as exc_info:
            decode_oracle_request(body)
        assert exc_info.value.code == "invalid_index"

    def test_output_index_out_of_range(self) -> None:
        """Output index beyond validOutputs raises invalid_index."""
        body = encode_request([USDC], [WETH], output_index=5)
        with pytest.raises(InvalidRequestError, match="output IO index") as exc_info:
            decode_oracle_request(body)
        assert exc_info.value.code == "invalid_index"
