"""
Configuration loader for positions-engine.

What it does:
- Reads static settings from `config/config.yaml` (or `$POSITIONS_CONFIG`).
- Declares the instruments a book may trade and the preferred conversion
  instruments (`via`) used when evaluating equity.
- Validates the resulting configuration using Pydantic models.
- Reads a "book" YAML of trades and a price snapshot and replays it into a
  `Positions` ledger.

Where it is used:
- Called by `positions_engine.main` to build the ledger and evaluate it.

Key outputs:
- `Settings` model with root asset, display, ledger and metrics options.
- `Book` holding the replayed ledger and the price snapshot.
"""

import os
import yaml
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator

from ..errors import InvalidSymbol, InvalidTrade
from ..ledger.ledger import Positions
from ..model.asset import Asset
from ..model.instrument import Instrument
from ..numeric import to_exact
from ..position.reversed import Reversed

DEFAULT_CONFIG_PATH = "config/config.yaml"


class DisplayConfig(BaseModel):
    """How exact numbers are rendered."""
    places: int = 28

    @field_validator("places")
    @classmethod
    def non_negative(cls, v):
        if v < 0:
            raise ValueError("display.places must be >= 0")
        return v


class LedgerConfig(BaseModel):
    prune_zero: bool = True


class MetricsConfig(BaseModel):
    enabled: bool = False
    port: int = 8000


class InstrumentConfig(BaseModel):
    symbol: str
    base: str
    quote: str
    reversed: bool = False

    def build(self) -> Instrument:
        return Instrument.try_new(self.symbol, Asset(self.base), Asset(self.quote)).prefer_reversed(self.reversed)


class Settings(BaseModel):
    """Runtime settings assembled from YAML."""
    root: str = "USDT"
    display: DisplayConfig = Field(default_factory=DisplayConfig)
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    instruments: List[InstrumentConfig] = Field(default_factory=list)
    via: List[str] = Field(default_factory=list)

    @field_validator("root")
    @classmethod
    def valid_root(cls, v):
        return Asset(v).symbol

    def root_asset(self) -> Asset:
        return Asset(self.root)

    def instrument_map(self) -> Dict[str, Instrument]:
        return {ic.symbol.strip(): ic.build() for ic in self.instruments}

    def via_instruments(self) -> List[Instrument]:
        known = self.instrument_map()
        out = []
        for symbol in self.via:
            if symbol not in known:
                raise InvalidSymbol(symbol, "`via` names an undeclared instrument")
            out.append(known[symbol])
        return out


@dataclass
class Book:
    ledger: Positions
    prices: Dict[str, Any] = field(default_factory=dict)


def load_settings(path: Optional[str] = None) -> Settings:
    """Load YAML config and return Settings.

    The path defaults to `$POSITIONS_CONFIG`, then `config/config.yaml`.
    """
    path = path or os.getenv("POSITIONS_CONFIG", DEFAULT_CONFIG_PATH)
    with open(path, "r") as f:
        config = yaml.safe_load(f) or {}
    return Settings(**config)


def load_book(path: str, settings: Settings) -> Book:
    """Replay the trades of a book YAML into a fresh ledger.

    Each trade is either `{instrument, price, size[, reversed]}` or
    `{asset, amount}`. Prices are `{symbol: price}` in quoted form.
    """
    with open(path, "r") as f:
        doc = yaml.safe_load(f) or {}
    instruments = settings.instrument_map()
    ledger = Positions(prune_zero=settings.ledger.prune_zero)
    for row, trade in enumerate(doc.get("trades") or [], 1):
        if not isinstance(trade, dict):
            raise InvalidTrade(row, f"expected a mapping, got {trade!r}")
        if "asset" in trade:
            ledger.apply_value(_number(trade, "amount", row), Asset(trade["asset"]))
            continue
        symbol = str(trade.get("instrument", ""))
        if symbol not in instruments:
            raise InvalidSymbol(symbol, "unknown instrument in book")
        inst = instruments[symbol]
        if trade.get("price") is None:
            raise InvalidTrade(row, "missing `price`")
        # the position checks that the price is finite and positive
        price, size = str(trade["price"]), _number(trade, "size", row)
        if trade.get("reversed", False):
            ledger.apply_trade(inst, Reversed(price, size))
        else:
            ledger.apply_trade(inst, (price, size))
    prices = {str(k): str(v) for k, v in (doc.get("prices") or {}).items()}
    return Book(ledger=ledger, prices=prices)


def _number(trade: Dict[str, Any], key: str, row: int):
    if trade.get(key) is None:
        raise InvalidTrade(row, f"missing `{key}`")
    try:
        return to_exact(str(trade[key]))
    except ValueError as e:
        raise InvalidTrade(row, f"`{key}` is not a number: {trade[key]!r}") from e
