"""Structural encode/decode of assets, instruments, positions and ledgers."""

from .schema import (
    AssetModel,
    InstrumentModel,
    PositionModel,
    PositionsModel,
    asset_from_model,
    asset_to_model,
    dump_positions,
    instrument_from_model,
    instrument_to_model,
    position_from_model,
    position_to_model,
    positions_from_json,
    positions_from_model,
    positions_to_json,
    positions_to_model,
)

__all__ = [
    "AssetModel",
    "InstrumentModel",
    "PositionModel",
    "PositionsModel",
    "asset_from_model",
    "asset_to_model",
    "dump_positions",
    "instrument_from_model",
    "instrument_to_model",
    "position_from_model",
    "position_to_model",
    "positions_from_json",
    "positions_from_model",
    "positions_to_json",
    "positions_to_model",
]
