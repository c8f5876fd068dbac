from __future__ import annotations

import json
from fractions import Fraction
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ..ledger.ledger import Positions
from ..model.asset import Asset
from ..model.instrument import Category, Instrument
from ..numeric import to_exact
from ..position.naive import NaivePosition
from ..position.position import Position


# ---- exact numbers travel as str(Fraction): "1.5" or "31/480000" ----

def encode_exact(value: Fraction) -> str:
    return str(value)


def _check_exact(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    to_exact(v)
    return v


# ---- models ----

class AssetModel(BaseModel):
    symbol: str


class InstrumentModel(BaseModel):
    symbol: str
    base: str
    quote: str
    category: Literal["spot", "derivative"] = "spot"
    kind: Optional[str] = None
    reversed_preferred: bool = False


class PositionModel(BaseModel):
    instrument: InstrumentModel
    price: Optional[str] = None
    size: str = "0"
    realized: str = "0"

    @field_validator("price", "size", "realized")
    @classmethod
    def exact_number(cls, v):
        return _check_exact(v)


class PositionsModel(BaseModel):
    schema_version: str = "v1"
    prune_zero: bool = True
    balances: Dict[str, str] = Field(default_factory=dict)
    positions: List[PositionModel] = Field(default_factory=list)

    @field_validator("balances")
    @classmethod
    def exact_balances(cls, v):
        for amount in v.values():
            _check_exact(amount)
        return v


# ---- domain <-> model ----

def asset_to_model(asset: Asset) -> AssetModel:
    return AssetModel(symbol=asset.symbol)


def asset_from_model(model: AssetModel) -> Asset:
    return Asset(model.symbol)


def instrument_to_model(inst: Instrument) -> InstrumentModel:
    return InstrumentModel(
        symbol=inst.symbol,
        base=inst.base.symbol,
        quote=inst.quote.symbol,
        category=inst.category.value,
        kind=inst.kind,
        reversed_preferred=inst.reversed_preferred,
    )


def instrument_from_model(model: InstrumentModel) -> Instrument:
    return Instrument(
        model.symbol,
        Asset(model.base),
        Asset(model.quote),
        Category(model.category),
        model.kind,
        model.reversed_preferred,
    )


def position_to_model(pos: Position) -> PositionModel:
    naive = pos.as_naive()
    return PositionModel(
        instrument=instrument_to_model(pos.instrument),
        price=None if naive.price is None else encode_exact(naive.price),
        size=encode_exact(naive.size),
        realized=encode_exact(naive.value),
    )


def position_from_model(model: PositionModel) -> Position:
    naive = NaivePosition(model.price, model.size, model.realized)
    return Position(instrument_from_model(model.instrument), naive)


def positions_to_model(ledger: Positions) -> PositionsModel:
    return PositionsModel(
        prune_zero=ledger.prune_zero,
        balances={asset.symbol: encode_exact(v) for asset, v in ledger.balances.items()},
        positions=[position_to_model(p) for p in ledger.positions.values()],
    )


def positions_from_model(model: PositionsModel) -> Positions:
    ledger = Positions(prune_zero=model.prune_zero)
    for symbol, amount in model.balances.items():
        ledger.apply_value(amount, Asset(symbol))
    for pm in model.positions:
        ledger.insert_position(position_from_model(pm))
    return ledger


def dump_positions(ledger: Positions) -> Dict[str, Any]:
    return positions_to_model(ledger).model_dump()


def positions_to_json(ledger: Positions) -> str:
    return json.dumps(dump_positions(ledger), separators=(",", ":"))


def positions_from_json(text: str) -> Positions:
    return positions_from_model(PositionsModel.model_validate_json(text))
