"""DecimalFloat: Canonical packed decimal floats for on-chain signed context.

Values are packed into a single ``bytes32`` word using the Rain
``LibDecimalFloat`` layout:

    bits 255..224  exponent     (two's-complement int32)
    bits 223..0    coefficient  (two's-complement int224)

A value is ``coefficient * 10**exponent``. Before packing, the pair is
normalised so that every real value has exactly one packed representation:
trailing zeros of the fractional part are dropped, and a non-negative
exponent is folded into the coefficient so whole numbers always carry
exponent 0. Zero is always ``(0, 0)``.

.. code-block:: python

    >>> DecimalFloat.encode(300000000000, -8) == DecimalFloat.encode(30000000000000, -10)
    True
    >>> DecimalFloat.encode(300000000000, -8)
    DecimalFloat(coefficient=3000, exponent=0)
    >>> DecimalFloat.encode(31, 2)
    DecimalFloat(coefficient=3100, exponent=0)
    >>> DecimalFloat.encode(1700000005, 0).to_hex()
    '0x000000000000000000000000000000000000000000000000000000006553f105'
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from .errors import (
    EncodingInvariantViolation,
    InvalidExponentError,
    InvalidInputError,
    OutOfRangeError,
)

# Packed word layout.
WORD_SIZE = 32
COEFFICIENT_BITS = 224
EXPONENT_BITS = 32

COEFFICIENT_MASK = (1 << COEFFICIENT_BITS) - 1
EXPONENT_MASK = (1 << EXPONENT_BITS) - 1

COEFFICIENT_MIN = -(1 << (COEFFICIENT_BITS - 1))
COEFFICIENT_MAX = (1 << (COEFFICIENT_BITS - 1)) - 1
EXPONENT_MIN = -(1 << (EXPONENT_BITS - 1))
EXPONENT_MAX = (1 << (EXPONENT_BITS - 1)) - 1

# Largest exponent a non-zero coefficient can be scaled by and still fit int224.
MAX_SCALE_EXPONENT = len(str(COEFFICIENT_MAX)) - 1


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _sign_extend(value: int, bits: int) -> int:
    if value & (1 << (bits - 1)):
        return value - (1 << bits)
    return value


def canonicalize(coefficient: int, exponent: int) -> tuple[int, int]:
    """Normalise a decimal pair.

    Fractional trailing zeros are dropped (``300000000000e-8`` becomes
    ``3000e0``) and a positive exponent is scaled into the coefficient
    (``31e2`` becomes ``3100e0``). Integral zeros stay in the coefficient.

    :param coefficient: Signed integer coefficient.
    :param exponent: Power-of-ten exponent.
    :returns: Canonical ``(coefficient, exponent)`` pair.
    """
    if coefficient == 0:
        return 0, 0
    while exponent < 0 and coefficient % 10 == 0:
        coefficient //= 10
        exponent += 1
    if exponent > 0:
        coefficient *= 10**exponent
        exponent = 0
    return coefficient, exponent


def is_canonical(coefficient: int, exponent: int) -> bool:
    """Check a pair is already normalised, without scaling it."""
    if exponent > 0:
        return False
    if coefficient == 0:
        return exponent == 0
    return exponent == 0 or coefficient % 10 != 0


@dataclass(frozen=True)
class DecimalFloat:
    """A decimal float in canonical form.

    Construct with :meth:`encode`, :meth:`decode` or :meth:`from_decimal`;
    the dataclass constructor only accepts pairs that are already canonical.

    :ivar coefficient: Signed coefficient, fits in int224.
    :ivar exponent: Power-of-ten exponent, fits in int32.
    """

    coefficient: int
    exponent: int

    def __post_init__(self) -> None:
        if not _is_int(self.coefficient) or not _is_int(self.exponent):
            raise EncodingInvariantViolation(
                f"DecimalFloat fields must be integers, got "
                f"({self.coefficient!r}, {self.exponent!r})"
            )
        if not is_canonical(self.coefficient, self.exponent):
            raise EncodingInvariantViolation(
                f"Non-canonical DecimalFloat: {self.coefficient}e{self.exponent}"
            )
        if not COEFFICIENT_MIN <= self.coefficient <= COEFFICIENT_MAX:
            raise EncodingInvariantViolation(
                f"Coefficient {self.coefficient} exceeds int{COEFFICIENT_BITS}"
            )
        if not EXPONENT_MIN <= self.exponent <= EXPONENT_MAX:
            raise EncodingInvariantViolation(
                f"Exponent {self.exponent} exceeds int{EXPONENT_BITS}"
            )

    @classmethod
    def encode(cls, coefficient: int, exponent: int) -> DecimalFloat:
        """Encode ``coefficient * 10**exponent`` in canonical form.

        :param coefficient: Signed integer coefficient.
        :param exponent: Signed integer power-of-ten exponent.
        :returns: Canonical DecimalFloat.
        :raises InvalidExponentError: If exponent is not an integer.
        :raises InvalidInputError: If coefficient is not an integer.
        :raises OutOfRangeError: If the canonical pair does not fit the word.
        """
        if not _is_int(exponent):
            raise InvalidExponentError(
                f"Exponent must be an integer, got {type(exponent).__name__}: {exponent!r}"
            )
        if not _is_int(coefficient):
            raise InvalidInputError(
                f"Coefficient must be an integer, got "
                f"{type(coefficient).__name__}: {coefficient!r}"
            )
        if coefficient != 0 and exponent > MAX_SCALE_EXPONENT:
            raise OutOfRangeError(
                f"{coefficient}e{exponent} does not fit in int{COEFFICIENT_BITS}"
            )

        coefficient, exponent = canonicalize(coefficient, exponent)

        if not COEFFICIENT_MIN <= coefficient <= COEFFICIENT_MAX:
            raise OutOfRangeError(
                f"Coefficient {coefficient} does not fit in int{COEFFICIENT_BITS}"
            )
        if not EXPONENT_MIN <= exponent <= EXPONENT_MAX:
            raise OutOfRangeError(
                f"Exponent {exponent} does not fit in int{EXPONENT_BITS}"
            )
        return cls(coefficient, exponent)

    @classmethod
    def decode(cls, packed: bytes | str | int) -> DecimalFloat:
        """Unpack a ``bytes32`` word.

        :param packed: 32 raw bytes, a ``0x``-prefixed 64-digit hex string,
            or an unsigned 256-bit integer.
        :returns: The decoded DecimalFloat.
        :raises InvalidInputError: If the word has the wrong size or format.
        :raises EncodingInvariantViolation: If the word is not canonical.
        """
        if isinstance(packed, str):
            hex_str = packed[2:] if packed.startswith("0x") else packed
            try:
                packed = bytes.fromhex(hex_str)
            except ValueError as e:
                raise InvalidInputError(f"Invalid hex word: {packed!r}") from e

        if isinstance(packed, (bytes, bytearray)):
            if len(packed) != WORD_SIZE:
                raise InvalidInputError(
                    f"Packed DecimalFloat must be {WORD_SIZE} bytes, got {len(packed)}"
                )
            word = int.from_bytes(packed, "big")
        elif _is_int(packed):
            if not 0 <= packed < (1 << (WORD_SIZE * 8)):
                raise OutOfRangeError(f"Packed word {packed} is not a uint256")
            word = packed
        else:
            raise InvalidInputError(
                f"Cannot decode DecimalFloat from {type(packed).__name__}"
            )

        coefficient = _sign_extend(word & COEFFICIENT_MASK, COEFFICIENT_BITS)
        exponent = _sign_extend(word >> COEFFICIENT_BITS, EXPONENT_BITS)
        return cls(coefficient, exponent)

    @classmethod
    def from_decimal(cls, value: Decimal | int | str) -> DecimalFloat:
        """Encode an exact decimal value.

        :param value: Decimal, integer or decimal string (floats are rejected).
        :returns: Canonical DecimalFloat.
        :raises InvalidInputError: If the value is not a finite decimal.
        """
        if isinstance(value, (float, bool)):
            raise InvalidInputError(f"Refusing inexact value {value!r}")
        try:
            value = Decimal(value)
        except ArithmeticError as e:
            raise InvalidInputError(f"Invalid decimal value: {value!r}") from e
        if not value.is_finite():
            raise InvalidInputError(f"Decimal value must be finite, got {value}")

        sign, digits, exponent = value.as_tuple()
        coefficient = int("".join(str(d) for d in digits) or "0")
        if sign:
            coefficient = -coefficient
        return cls.encode(coefficient, exponent)

    def to_int(self) -> int:
        """Return the packed word as an unsigned integer."""
        return ((self.exponent & EXPONENT_MASK) << COEFFICIENT_BITS) | (
            self.coefficient & COEFFICIENT_MASK
        )

    def to_bytes(self) -> bytes:
        """Return the packed 32-byte big-endian word."""
        return self.to_int().to_bytes(WORD_SIZE, "big")

    def to_hex(self) -> str:
        """Return the packed word as a zero-padded ``0x`` hex string."""
        return "0x" + self.to_bytes().hex()

    def to_decimal(self) -> Decimal:
        """Return the exact value as a ``decimal.Decimal``."""
        sign = 1 if self.coefficient < 0 else 0
        digits = tuple(int(d) for d in str(abs(self.coefficient)))
        return Decimal((sign, digits, self.exponent))

    def __str__(self) -> str:
        """Format in scientific notation, e.g. ``3e3``, ``1.7e9``, ``5e-4``."""
        if self.coefficient == 0:
            return "0"
        digits = str(abs(self.coefficient))
        sign = "-" if self.coefficient < 0 else ""
        scale = self.exponent + len(digits) - 1
        digits = digits.rstrip("0")
        mantissa = digits[0] + (f".{digits[1:]}" if len(digits) > 1 else "")
        if scale == 0:
            return f"{sign}{mantissa}"
        return f"{sign}{mantissa}e{scale}"
