"""Reversed quoting adapter.

Coin-margined contracts are quoted with price and size roles inverted:
holding "long 100 USD of BTC-USD-SWAP at 16000" really means being short
100 USD at 1/16000 BTC per USD. `Reversed` wraps such a quote and yields the
true form before it reaches the merge rule.
"""

from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from typing import Tuple

from ..errors import DivisionByZero, InvalidPrice
from ..numeric import ONE, ZERO, NumberLike, to_exact
from .naive import NaivePosition


def reverse(price: NumberLike, size: NumberLike) -> Tuple[Fraction, Fraction]:
    """Map a (price, size) pair to its reversed form; the map is its own inverse."""
    try:
        p = to_exact(price)
    except ValueError as e:
        raise InvalidPrice(price) from e
    if p == 0:
        raise DivisionByZero()
    return ONE / p, -to_exact(size)


@dataclass(frozen=True)
class Reversed:
    price: NumberLike
    size: NumberLike
    value: NumberLike = ZERO

    def into_naive(self) -> NaivePosition:
        price, size = reverse(self.price, self.size)
        return NaivePosition(price, size, self.value)

    @classmethod
    def from_naive(cls, naive: NaivePosition) -> "Reversed":
        """Read a true-form position back in reversed form."""
        if naive.size == 0:
            return cls(ZERO, ZERO, naive.value)
        price, size = reverse(naive.price, naive.size)
        return cls(price, size, naive.value)
