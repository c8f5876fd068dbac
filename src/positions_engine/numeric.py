"""Exact number helpers.

Every price, size and value inside the engine is a `fractions.Fraction`.
`Decimal` only shows up at the edges: as an accepted input and as the
display/report form produced by `to_decimal`.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from fractions import Fraction
from typing import Optional, Union

from .errors import InvalidPrice

NumberLike = Union[int, str, Decimal, Fraction]

ZERO = Fraction(0)
ONE = Fraction(1)
DEFAULT_PLACES = 28


def to_exact(value: NumberLike) -> Fraction:
    """Convert `value` to a Fraction without any rounding.

    Floats are refused: they are already rounded before they reach us.
    """
    if isinstance(value, Fraction):
        return value
    if isinstance(value, bool) or isinstance(value, float):
        raise TypeError(f"exact number required, got {type(value).__name__}")
    if isinstance(value, int):
        return Fraction(value)
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValueError(f"non-finite decimal: {value}")
        return Fraction(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            return Fraction(text)
        except ValueError:
            pass
        try:
            dec = Decimal(text)
        except InvalidOperation:
            raise ValueError(f"not a number: {value!r}") from None
        if not dec.is_finite():
            raise ValueError(f"non-finite number: {value!r}")
        return Fraction(dec)
    raise TypeError(f"unsupported number type: {type(value).__name__}")


def to_price(value: NumberLike, symbol: Optional[str] = None) -> Fraction:
    """An exact, finite, strictly positive price; anything else is `InvalidPrice`."""
    try:
        price = to_exact(value)
    except ValueError as e:
        raise InvalidPrice(value, symbol) from e
    if price <= 0:
        raise InvalidPrice(value, symbol)
    return price


def sign(value: Fraction) -> int:
    return (value > 0) - (value < 0)


def to_decimal(value: NumberLike, places: int = DEFAULT_PLACES) -> Decimal:
    """Round half-even to at most `places` fractional digits."""
    exact = to_exact(value)
    if exact.denominator == 1:
        return Decimal(exact.numerator)
    scaled = round(exact * 10 ** places)
    # string construction is exact; arithmetic would use the context precision
    return Decimal(f"{scaled}E-{places}")


def format_exact(value: NumberLike, places: int = DEFAULT_PLACES) -> str:
    text = format(to_decimal(value, places), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        text = "0"
    return text
