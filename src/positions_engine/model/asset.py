from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from ..errors import InvalidSymbol
from ..numeric import NumberLike

if TYPE_CHECKING:  # pragma: no cover
    from ..ledger.ledger import Positions

_ASSET_RE = re.compile(r"^[A-Z0-9_.]+$")


@dataclass(frozen=True, order=True)
class Asset:
    """A currency or token, identified by its canonical uppercase symbol."""

    symbol: str

    USD: ClassVar["Asset"]
    USDT: ClassVar["Asset"]
    BTC: ClassVar["Asset"]
    ETH: ClassVar["Asset"]

    def __post_init__(self) -> None:
        if not isinstance(self.symbol, str):
            raise InvalidSymbol(self.symbol, "asset symbol must be a string")
        canonical = self.symbol.strip().upper()
        if not canonical or not _ASSET_RE.match(canonical):
            raise InvalidSymbol(self.symbol, "invalid asset symbol")
        object.__setattr__(self, "symbol", canonical)

    @classmethod
    def parse(cls, text: str) -> "Asset":
        return cls(text)

    def value(self, amount: NumberLike) -> "Positions":
        """A ledger holding `amount` of this asset."""
        from ..ledger.ledger import Positions

        ledger = Positions()
        ledger.apply_value(amount, self)
        return ledger

    def __str__(self) -> str:
        return self.symbol


Asset.USD = Asset("USD")
Asset.USDT = Asset("USDT")
Asset.BTC = Asset("BTC")
Asset.ETH = Asset("ETH")
