from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from fractions import Fraction
from typing import TYPE_CHECKING, Any, Optional

from ..errors import InvalidPair, InvalidSymbol
from ..numeric import ONE, NumberLike, to_price
from .asset import Asset

if TYPE_CHECKING:  # pragma: no cover
    from ..position.position import Position

_KIND_RE = re.compile(r"^[A-Z][A-Z0-9_]*$")


class Category(str, Enum):
    SPOT = "spot"
    DERIVATIVE = "derivative"


@dataclass(frozen=True)
class Instrument:
    """A tradable (base, quote) pair.

    Spot symbols are derived from the pair (`BTC-USDT`); derivative symbols
    carry their kind as a prefix (`SWAP:BTC-USD-SWAP`). Equality, hashing and
    ordering only look at the symbol.

    `reversed_preferred` marks coin-margined contracts whose exchange quote
    is the inverse of the true form: base/quote here are always the true
    form, e.g. `SWAP:BTC-USD-SWAP` has base USD and quote BTC.
    """

    symbol: str
    base: Asset = field(compare=False)
    quote: Asset = field(compare=False)
    category: Category = field(default=Category.SPOT, compare=False)
    kind: Optional[str] = field(default=None, compare=False)
    reversed_preferred: bool = field(default=False, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.symbol, str):
            raise InvalidSymbol(self.symbol, "instrument symbol must be a string")
        for name in ("base", "quote"):
            value = getattr(self, name)
            if isinstance(value, str):
                object.__setattr__(self, name, Asset(value))
        object.__setattr__(self, "category", Category(self.category))
        if self.base == self.quote:
            raise InvalidPair(self.base, self.quote)
        if self.category is Category.SPOT:
            if self.symbol != spot_symbol(self.base, self.quote):
                raise InvalidSymbol(self.symbol, "spot symbol must be BASE-QUOTE")
        else:
            _validate_derivative_symbol(self.symbol)
            if self.kind is None:
                object.__setattr__(self, "kind", self.symbol.partition(":")[0])

    @classmethod
    def spot(cls, base: Asset, quote: Asset) -> "Instrument":
        return cls(spot_symbol(base, quote), base, quote)

    @classmethod
    def derivative(cls, kind: str, name: str, base: Asset, quote: Asset) -> "Instrument":
        kind = str(kind).strip().upper()
        return cls(f"{kind}:{name}", base, quote, Category.DERIVATIVE, kind)

    @classmethod
    def try_new(cls, symbol: str, base: Asset, quote: Asset) -> "Instrument":
        """Build an instrument from a full symbol.

        Prefixed symbols (`KIND:NAME`) are derivatives; anything else must be
        the spot symbol of the pair.
        """
        if not isinstance(symbol, str) or not symbol.strip():
            raise InvalidSymbol(symbol, "empty instrument symbol")
        symbol = symbol.strip()
        if ":" in symbol:
            kind, _, name = symbol.partition(":")
            return cls.derivative(kind, name, base, quote)
        if symbol.upper() != spot_symbol(base, quote):
            raise InvalidSymbol(symbol, f"expected {spot_symbol(base, quote)} or a KIND: prefix")
        return cls.spot(base, quote)

    def prefer_reversed(self, flag: bool = True) -> "Instrument":
        return replace(self, reversed_preferred=bool(flag))

    @property
    def is_derivative(self) -> bool:
        return self.category is Category.DERIVATIVE

    def true_price(self, quoted: NumberLike) -> Fraction:
        """Convert an exchange-quoted price to the true form."""
        price = to_price(quoted, self.symbol)
        return ONE / price if self.reversed_preferred else price

    def position(self, trade: Any = None) -> "Position":
        from ..position.position import Position

        return Position(self, trade)

    def __lt__(self, other: "Instrument") -> bool:
        if not isinstance(other, Instrument):
            return NotImplemented
        return self.symbol < other.symbol

    def __str__(self) -> str:
        return self.symbol


def spot_symbol(base: Asset, quote: Asset) -> str:
    return f"{base}-{quote}"


def _validate_derivative_symbol(symbol: str) -> None:
    kind, sep, name = symbol.partition(":")
    if not sep or not _KIND_RE.match(kind):
        raise InvalidSymbol(symbol, "derivative symbol must look like KIND:NAME")
    if not name or ":" in name or any(ch.isspace() for ch in name):
        raise InvalidSymbol(symbol, "invalid derivative name")
