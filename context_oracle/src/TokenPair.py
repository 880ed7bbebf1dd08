"""TokenPair: Maps an order's input/output tokens onto the configured feed.

The Pyth feed returns the price as base/quote (e.g. ETH/USD ~ 1900). An order
that takes the quote token in and gives the base token out wants that price
as-is ("how many USDC per WETH"). The opposite order wants the inverse.

Oracle requests arrive as the ABI encoding of
``(OrderV4 order, uint256 inputIOIndex, uint256 outputIOIndex, address counterparty)``.

.. code-block:: python

    >>> pair = TokenPairConfig(WETH, USDC)
    >>> pair.price_direction(input_token=USDC, output_token=WETH)
    <PriceDirection.AS_IS: 'as_is'>
"""

from __future__ import annotations

import logging
from enum import Enum

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from web3 import Web3

from .errors import InvalidRequestError, UnsupportedTokenPairError

logger = logging.getLogger(__name__)

# ABI types of OrderV4 and its nested structs.
IO_TYPE = "(address,uint8,uint256)"
EVALUABLE_TYPE = "(address,address,bytes)"
ORDER_TYPE = f"(address,{EVALUABLE_TYPE},{IO_TYPE}[],{IO_TYPE}[],bytes32)"
ORACLE_REQUEST_TYPES = [ORDER_TYPE, "uint256", "uint256", "address"]


class PriceDirection(Enum):
    """Whether the feed price is returned as-is or inverted."""

    AS_IS = "as_is"
    INVERTED = "inverted"


class TokenPairConfig:
    """The base/quote token addresses the feed prices.

    :ivar base_token: Checksum address of the token priced by the feed (e.g. WETH).
    :ivar quote_token: Checksum address of the denomination (e.g. USDC).
    """

    def __init__(self, base_token: str, quote_token: str) -> None:
        """Initialize the token pair.

        :param base_token: Base token address.
        :param quote_token: Quote token address.
        :raises ValueError: If either address is invalid.
        """
        if not Web3.is_address(base_token):
            raise ValueError(f"Invalid base token address: {base_token}")
        if not Web3.is_address(quote_token):
            raise ValueError(f"Invalid quote token address: {quote_token}")
        self.base_token = Web3.to_checksum_address(base_token)
        self.quote_token = Web3.to_checksum_address(quote_token)

    def __repr__(self) -> str:
        """Return a developer-friendly string representation."""
        return f"TokenPairConfig(base={self.base_token}, quote={self.quote_token})"

    def price_direction(self, input_token: str, output_token: str) -> PriceDirection:
        """Determine the price direction for an order's token pair.

        :param input_token: Token the order receives.
        :param output_token: Token the order gives.
        :returns: AS_IS for quote->base orders, INVERTED for base->quote.
        :raises UnsupportedTokenPairError: If the tokens are not the configured pair.
        """
        input_token = Web3.to_checksum_address(input_token)
        output_token = Web3.to_checksum_address(output_token)

        if input_token == self.quote_token and output_token == self.base_token:
            return PriceDirection.AS_IS
        if input_token == self.base_token and output_token == self.quote_token:
            return PriceDirection.INVERTED

        raise UnsupportedTokenPairError(
            f"Unsupported token pair: input {input_token} / output {output_token} "
            f"does not match configured pair (base={self.base_token}, "
            f"quote={self.quote_token})"
        )


def decode_oracle_request(body: bytes) -> tuple[str, str]:
    """Decode an ABI-encoded oracle request into its input/output tokens.

    :param body: ABI encoding of (OrderV4, inputIOIndex, outputIOIndex, counterparty).
    :returns: Tuple of (input_token, output_token) addresses.
    :raises InvalidRequestError: If the body does not decode or an IO index
        is out of range.
    """
    try:
        order, input_index, output_index, _counterparty = abi_decode(
            ORACLE_REQUEST_TYPES, body
        )
    except (DecodingError, ValueError, TypeError) as e:
        raise InvalidRequestError(f"Invalid ABI-encoded body: {e}") from e

    _owner, _evaluable, valid_inputs, valid_outputs, _nonce = order

    if input_index >= len(valid_inputs):
        raise InvalidRequestError(
            f"Invalid input IO index: {input_index} "
            f"(order has {len(valid_inputs)} inputs)",
            code="invalid_index",
        )
    if output_index >= len(valid_outputs):
        raise InvalidRequestError(
            f"Invalid output IO index: {output_index} "
            f"(order has {len(valid_outputs)} outputs)",
            code="invalid_index",
        )

    input_token = valid_inputs[input_index][0]
    output_token = valid_outputs[output_index][0]
    logger.debug(f"Decoded oracle request: input={input_token} output={output_token}")
    return input_token, output_token
