"""True-form position state and the merge rule.

A `NaivePosition` knows nothing about instruments: it is a running
weighted-average entry `price`, a signed `size` and the realized `value`
accumulated by reductions. Trades and whole positions are folded in with
`+=`, which implements four cases:

1. opening from flat takes the trade as is;
2. adding on the same side re-averages the entry price by size;
3. reducing (or exactly closing) realizes ``closed * (trade - avg) * side``;
4. over-closing realizes the whole old position and opens the remainder on
   the other side at the trade price.

All arithmetic is on `Fraction`, so averaging never rounds.
"""

from __future__ import annotations

from dataclasses import astuple, dataclass
from fractions import Fraction
from typing import Any, Optional

from ..errors import InvalidPrice
from ..numeric import ZERO, NumberLike, sign, to_exact, to_price


@dataclass(eq=False)
class NaivePosition:
    price: Optional[Fraction] = None
    size: Fraction = ZERO
    value: Fraction = ZERO

    def __post_init__(self) -> None:
        self.size = to_exact(self.size)
        self.value = to_exact(self.value)
        if self.size == 0:
            # a flat position has no entry price
            self.price = None
            return
        if self.price is None:
            raise InvalidPrice(None)
        self.price = to_price(self.price)

    @classmethod
    def _raw(cls, price: Optional[Fraction], size: Fraction, value: Fraction) -> "NaivePosition":
        obj = cls.__new__(cls)
        obj.price = price if size != 0 else None
        obj.size = size
        obj.value = value
        return obj

    def copy(self) -> "NaivePosition":
        return NaivePosition._raw(self.price, self.size, self.value)

    def merge(self, price: Optional[NumberLike], size: NumberLike, value: NumberLike = 0) -> "NaivePosition":
        """Apply a trade of `size` at `price` in place."""
        rhs = NaivePosition(price, size, value)
        self._merge(rhs.price, rhs.size, rhs.value)
        return self

    def _merge(self, price: Optional[Fraction], size: Fraction, value: Fraction) -> None:
        if size == 0:
            self.value += value
            return
        if self.size == 0:
            # Opening
            self.price = price
            self.size = size
        elif sign(self.size) == sign(size):
            # Adding to existing in same direction: new avg price
            new_size = self.size + size
            self.price = (self.price * abs(self.size) + price * abs(size)) / abs(new_size)
            self.size = new_size
        else:
            # Reducing / closing / flipping (opposite sign)
            closed = min(abs(self.size), abs(size))
            self.value += closed * (price - self.price) * sign(self.size)
            new_size = self.size + size
            if new_size == 0:
                self.price = None
            elif sign(new_size) != sign(self.size):
                self.price = price
            self.size = new_size
        self.value += value

    def take(self) -> Fraction:
        """Return the realized value and reset it; price and size are kept."""
        value, self.value = self.value, ZERO
        return value

    def is_zero(self) -> bool:
        return self.size == 0 and self.value == 0

    def consumed(self) -> Optional["NaivePosition"]:
        """Equivalent position with the value folded into the price.

        Returns None for a flat position.
        """
        if self.size == 0:
            return None
        return NaivePosition._raw(self.price - self.value / self.size, self.size, ZERO)

    def consume(self) -> None:
        if self.size != 0:
            self.price = self.price - self.value / self.size
            self.value = ZERO

    def converted(self, price: NumberLike) -> "NaivePosition":
        """Equivalent position re-expressed at `price`; the difference moves into value."""
        out = self.copy()
        out.convert(price)
        return out

    def convert(self, price: NumberLike) -> None:
        if self.size == 0:
            return
        target = to_exact(price)
        self.value += (target - self.price) * self.size
        self.price = target

    def closed(self, price: NumberLike) -> Fraction:
        """Value left after closing the whole position at `price`."""
        if self.size == 0:
            return self.value
        mark = to_price(price)
        return self.value + self.size * (mark - self.price)

    def as_tuple(self) -> tuple:
        return astuple(self)

    def __iadd__(self, other: Any) -> "NaivePosition":
        rhs = as_naive_position(other)
        self._merge(rhs.price, rhs.size, rhs.value)
        return self

    def __add__(self, other: Any) -> "NaivePosition":
        out = self.copy()
        out += other
        return out

    def __neg__(self) -> "NaivePosition":
        return NaivePosition._raw(self.price, -self.size, -self.value)

    def __isub__(self, other: Any) -> "NaivePosition":
        self += -as_naive_position(other)
        return self

    def __sub__(self, other: Any) -> "NaivePosition":
        return self + (-as_naive_position(other))

    def __eq__(self, other: Any) -> bool:
        # positions are equal when they are equivalent: same size and the
        # same price once the value is folded in
        try:
            rhs = as_naive_position(other)
        except (TypeError, ValueError, ArithmeticError):
            return NotImplemented
        if self.size != rhs.size:
            return False
        if self.size == 0:
            return self.value == rhs.value
        return self.consumed().price == rhs.consumed().price

    __hash__ = None  # type: ignore[assignment]


def as_naive_position(obj: Any) -> NaivePosition:
    """Coerce a trade-like object into a NaivePosition.

    Accepts a NaivePosition, anything with `into_naive()` (e.g. `Reversed`)
    or `as_naive()` (a `Position`), a `(price, size)` or
    `(price, size, value)` tuple, a bare value, or None for zero.
    """
    if isinstance(obj, NaivePosition):
        return obj
    if obj is None:
        return NaivePosition()
    if hasattr(obj, "into_naive"):
        return obj.into_naive()
    if hasattr(obj, "as_naive"):
        return obj.as_naive()
    if isinstance(obj, tuple):
        if len(obj) == 2:
            return NaivePosition(obj[0], obj[1])
        if len(obj) == 3:
            return NaivePosition(obj[0], obj[1], obj[2])
        raise TypeError(f"expected (price, size) or (price, size, value), got {len(obj)} items")
    return NaivePosition(None, ZERO, to_exact(obj))
