"""Quote: A raw price observation from the price feed."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Quote:
    """A price as reported by the feed: ``coefficient * 10**exponent``.

    :ivar coefficient: Signed integer price coefficient.
    :ivar exponent: Power-of-ten exponent (usually negative).
    :ivar observed_at: Unix timestamp at which the feed published the price.
    """

    coefficient: int
    exponent: int
    observed_at: int
