"""Position accounting with exact weighted-average cost basis.

Public API:
- Asset, Instrument, Category: identifiers.
- NaivePosition, Position, Reversed: the position algebra.
- Positions: multi-instrument ledger.
- Expr: valuation expression over a ledger snapshot.
- errors: PositionsError and its kinds.
"""

from .errors import (
    AmbiguousPath,
    DivisionByZero,
    InvalidPair,
    InvalidPrice,
    InvalidSymbol,
    InvalidTrade,
    MissingPrice,
    PositionsError,
    Unreachable,
)
from .expr import Expr, Hop, ValueEdge
from .ledger import Positions
from .model import Asset, Category, Instrument
from .position import NaivePosition, Position, Reversed, reverse

__all__ = [
    "AmbiguousPath",
    "Asset",
    "Category",
    "DivisionByZero",
    "Expr",
    "Hop",
    "Instrument",
    "InvalidPair",
    "InvalidPrice",
    "InvalidSymbol",
    "InvalidTrade",
    "MissingPrice",
    "NaivePosition",
    "Position",
    "Positions",
    "PositionsError",
    "Reversed",
    "Unreachable",
    "ValueEdge",
    "reverse",
]
