"""ContextBuilder: Assembles the signed context array from a price quote.

Context layout (fixed by the consuming order's calling convention):
    - [0]: price as DecimalFloat
    - [1]: expiry timestamp as DecimalFloat

.. code-block:: python

    >>> price, expiry = build_context(Quote(310012345678, -8, 0), 1700000005)
    >>> str(price), str(expiry)
    ('3.10012345678e3', '1.700000005e9')
"""

from __future__ import annotations

from decimal import Context, DivisionByZero, InvalidOperation, ROUND_HALF_EVEN

from .DecimalFloat import DecimalFloat
from .errors import InvalidInputError
from .Quote import Quote
from .TokenPair import PriceDirection

# Precision used when inverting a price.
INVERSION_PRECISION = 60

_INVERSION_CONTEXT = Context(
    prec=INVERSION_PRECISION,
    rounding=ROUND_HALF_EVEN,
    traps=[DivisionByZero, InvalidOperation],
)

SignedContextValues = tuple[DecimalFloat, DecimalFloat]


def invert_price(price: DecimalFloat) -> DecimalFloat:
    """Return ``1 / price``, rounded to INVERSION_PRECISION significant digits.

    :param price: Price to invert.
    :returns: Inverted price in canonical form.
    :raises InvalidInputError: If price is zero.
    """
    if price.coefficient == 0:
        raise InvalidInputError("Cannot invert a zero price")
    inverted = _INVERSION_CONTEXT.divide(1, price.to_decimal())
    return DecimalFloat.from_decimal(inverted)


def build_context(
    quote: Quote,
    expiry: int,
    direction: PriceDirection = PriceDirection.AS_IS,
) -> SignedContextValues:
    """Build the context array from a quote and expiry timestamp.

    :param quote: Raw price quote from the feed.
    :param expiry: Expiry as whole unix seconds.
    :param direction: Whether to invert the price.
    :returns: Tuple of (price, expiry) DecimalFloats.
    :raises InvalidInputError: If the price or expiry cannot be encoded.
    """
    price = DecimalFloat.encode(quote.coefficient, quote.exponent)
    if direction is PriceDirection.INVERTED:
        price = invert_price(price)

    if isinstance(expiry, int) and not isinstance(expiry, bool) and expiry < 0:
        raise InvalidInputError(f"Expiry must not be negative, got {expiry}")
    expiry_float = DecimalFloat.encode(expiry, 0)

    return price, expiry_float
