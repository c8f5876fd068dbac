from __future__ import annotations

from typing import Any, Optional


class PositionsError(Exception):
    """Base class for every error raised by the engine."""
    kind = "error"


class InvalidPrice(PositionsError, ValueError):
    """Raised when a trade or mark price is not strictly positive."""
    kind = "invalid_price"

    def __init__(self, price: Any, symbol: Optional[str] = None):
        self.price = price
        self.symbol = symbol
        where = f" for {symbol}" if symbol else ""
        super().__init__(f"price must be positive{where}, got {price}")


class InvalidPair(PositionsError, ValueError):
    kind = "invalid_pair"

    def __init__(self, base: Any, quote: Any):
        self.base = base
        self.quote = quote
        super().__init__(f"base and quote must differ, got {base}/{quote}")


class InvalidSymbol(PositionsError, ValueError):
    kind = "invalid_symbol"

    def __init__(self, symbol: Any, reason: str = "malformed symbol"):
        self.symbol = symbol
        super().__init__(f"{reason}: {symbol!r}")


class InvalidTrade(PositionsError, ValueError):
    """A book row that cannot be read as a trade or a balance change."""
    kind = "invalid_trade"

    def __init__(self, row: int, reason: str):
        self.row = row
        super().__init__(f"book trade #{row}: {reason}")


class Unreachable(PositionsError, LookupError):
    """No instrument path connects a held asset to the root asset."""
    kind = "unreachable"

    def __init__(self, asset: Any, root: Any):
        self.asset = asset
        self.root = root
        super().__init__(f"no instrument path from {asset} to {root}")


class AmbiguousPath(PositionsError, LookupError):
    """Several instruments connect the same two assets and none is preferred."""
    kind = "ambiguous_path"

    def __init__(self, source: Any, target: Any, candidates: list):
        self.source = source
        self.target = target
        self.candidates = list(candidates)
        names = ", ".join(str(c) for c in self.candidates)
        super().__init__(f"ambiguous conversion {source} -> {target}: {names}; pass one in `via`")


class MissingPrice(PositionsError, LookupError):
    kind = "missing_price"

    def __init__(self, symbol: str):
        self.symbol = symbol
        super().__init__(f"missing price for {symbol}")


class DivisionByZero(PositionsError, ZeroDivisionError):
    kind = "division_by_zero"

    def __init__(self, message: str = "zero price cannot be converted into reversed form"):
        super().__init__(message)
