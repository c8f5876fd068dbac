from __future__ import annotations

from fractions import Fraction
from typing import Any, Optional

from ..model.instrument import Instrument
from ..numeric import DEFAULT_PLACES, ONE, NumberLike, format_exact
from .naive import NaivePosition, as_naive_position


class Position:
    """A NaivePosition bound to an instrument.

    The stored state is always the true form. `price()` and `size()` read it
    back the way the exchange shows it, i.e. inverted for reversed-preferred
    instruments; `as_naive()` exposes the stored form.
    """

    def __init__(self, instrument: Instrument, trade: Any = None):
        self.instrument = instrument
        self.naive = as_naive_position(trade).copy()

    def as_naive(self) -> NaivePosition:
        return self.naive

    @property
    def realized(self) -> Fraction:
        return self.naive.value

    def price(self) -> Optional[Fraction]:
        """Average entry price, None when flat."""
        if self.naive.price is None:
            return None
        if self.instrument.reversed_preferred:
            return ONE / self.naive.price
        return self.naive.price

    def size(self) -> Fraction:
        if self.instrument.reversed_preferred:
            return -self.naive.size
        return self.naive.size

    def take(self) -> Fraction:
        return self.naive.take()

    def is_zero(self) -> bool:
        return self.naive.is_zero()

    def closed(self, mark: NumberLike) -> Fraction:
        """Realized value if the position were closed at the quoted `mark`."""
        return self.naive.closed(self.instrument.true_price(mark))

    def merge(self, other: "Position") -> None:
        """Fold `other` into this position, leaving `other` as a zero position."""
        if other.instrument != self.instrument:
            raise ValueError(f"cannot merge {other.instrument} into {self.instrument}")
        rhs, other.naive = other.naive, NaivePosition()
        self.naive += rhs

    def copy(self) -> "Position":
        return Position(self.instrument, self.naive)

    def format(self, places: int = DEFAULT_PLACES) -> str:
        mark = "*" if self.instrument.reversed_preferred else ""
        price = self.price()
        price_text = "Nan" if price is None else format_exact(price, places)
        out = f"({price_text}, {format_exact(self.size(), places)} {self.instrument.base}){mark}"
        value = self.naive.value
        if value != 0:
            op = "-" if value < 0 else "+"
            out += f" {op} {format_exact(abs(value), places)} {self.instrument.quote}"
        return out

    def __str__(self) -> str:
        return self.format()

    def __repr__(self) -> str:
        return f"Position({self.instrument.symbol}, {self.naive!r})"

    def __iadd__(self, trade: Any) -> "Position":
        self.naive += trade
        return self

    def __isub__(self, trade: Any) -> "Position":
        self.naive -= trade
        return self

    def __add__(self, trade: Any) -> "Position":
        out = self.copy()
        out += trade
        return out

    def __neg__(self) -> "Position":
        return Position(self.instrument, -self.naive)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Position):
            return NotImplemented
        return self.instrument == other.instrument and self.naive == other.naive

    __hash__ = None  # type: ignore[assignment]
