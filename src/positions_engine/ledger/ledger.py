from __future__ import annotations

import logging
from fractions import Fraction
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Tuple

from ..metrics.ledger import record_realized, record_trade
from ..model.asset import Asset
from ..model.instrument import Instrument
from ..numeric import DEFAULT_PLACES, ZERO, NumberLike, format_exact, to_exact
from ..position.naive import as_naive_position
from ..position.position import Position

if TYPE_CHECKING:  # pragma: no cover
    from ..expr.expr import Expr

log = logging.getLogger("positions_engine.ledger")


class Positions:
    """A multi-instrument ledger.

    Holds one `Position` per instrument plus raw balances per asset.
    Realized value stays inside each position until taken.

    With `prune_zero` entries that net to zero are dropped after each update;
    equality ignores zero entries either way.
    """

    def __init__(self, prune_zero: bool = True):
        self.prune_zero = prune_zero
        self.positions: Dict[Instrument, Position] = {}
        self.balances: Dict[Asset, Fraction] = {}

    # ---- updates ----

    def apply_value(self, amount: NumberLike, asset: Asset) -> Fraction:
        """Add `amount` to the raw balance of `asset`; return the new balance."""
        balance = self.balances.get(asset, ZERO) + to_exact(amount)
        self.balances[asset] = balance
        if self.prune_zero and balance == 0:
            del self.balances[asset]
        return balance

    def apply_trade(self, instrument: Instrument, trade: Any) -> Position:
        """Merge a trade into the position of `instrument` in place.

        `trade` is a `(price, size)` tuple, a `Reversed` quote or a
        NaivePosition. Invalid input raises before the ledger changes.
        """
        rhs = as_naive_position(trade)
        pos = self._get_pos(instrument)
        before = pos.realized
        pos.naive += rhs
        self.positions[instrument] = pos
        realized = pos.realized - before - rhs.value
        log.debug(
            "trade %s price=%s size=%s -> %s",
            instrument.symbol, rhs.price, rhs.size, pos,
        )
        record_trade(instrument.symbol)
        record_realized(instrument.quote.symbol, realized)
        self._prune(instrument)
        return pos

    def insert_position(self, position: Position) -> "Positions":
        """Merge a whole position (including its realized value)."""
        pos = self._get_pos(position.instrument)
        pos.naive += position.naive.copy()
        self.positions[position.instrument] = pos
        self._prune(position.instrument)
        return self

    def take_all(self) -> Dict[Asset, Fraction]:
        """Move every position's realized value into its quote asset's balance."""
        swept: Dict[Asset, Fraction] = {}
        for inst in list(self.positions):
            value = self.positions[inst].take()
            if value != 0:
                swept[inst.quote] = swept.get(inst.quote, ZERO) + value
            self._prune(inst)
        for asset, value in swept.items():
            self.apply_value(value, asset)
        return swept

    def _get_pos(self, instrument: Instrument) -> Position:
        return self.positions.get(instrument, Position(instrument))

    def _prune(self, instrument: Instrument) -> None:
        if self.prune_zero:
            pos = self.positions.get(instrument)
            if pos is not None and pos.is_zero():
                del self.positions[instrument]

    # ---- reads ----

    def get_position(self, instrument: Instrument) -> Optional[Position]:
        return self.positions.get(instrument)

    def get_value(self, asset: Asset) -> Optional[Fraction]:
        return self.balances.get(asset)

    def instruments(self) -> List[Instrument]:
        return list(self.positions)

    def assets(self) -> List[Asset]:
        return list(self.balances)

    def is_empty(self) -> bool:
        return not self._nonzero_positions() and not self._nonzero_balances()

    def _nonzero_positions(self) -> Dict[Instrument, Position]:
        return {inst: p for inst, p in self.positions.items() if not p.is_zero()}

    def _nonzero_balances(self) -> Dict[Asset, Fraction]:
        return {asset: v for asset, v in self.balances.items() if v != 0}

    def as_expr(self, via: Iterable[Instrument] = ()) -> "Expr":
        """Snapshot the ledger as a valuation expression.

        `via` lists extra conversion instruments, in order of preference.
        """
        from ..expr.expr import Expr

        return Expr.from_positions(self, via)

    def copy(self) -> "Positions":
        out = Positions(prune_zero=self.prune_zero)
        out.positions = {inst: p.copy() for inst, p in self.positions.items()}
        out.balances = dict(self.balances)
        return out

    # ---- algebra ----

    def __iadd__(self, other: Any) -> "Positions":
        if isinstance(other, Positions):
            for asset, value in other.balances.items():
                self.apply_value(value, asset)
            for pos in other.positions.values():
                self.insert_position(pos)
        elif isinstance(other, Position):
            self.insert_position(other)
        elif isinstance(other, tuple) and len(other) == 2 and isinstance(other[1], Asset):
            self.apply_value(other[0], other[1])
        else:
            return NotImplemented
        return self

    def __add__(self, other: Any) -> "Positions":
        out = self.copy()
        result = out.__iadd__(other)
        if result is NotImplemented:
            return NotImplemented
        return out

    def __radd__(self, other: Any) -> "Positions":
        # lets sum() start from 0
        if other == 0:
            return self.copy()
        return self.__add__(other)

    def __neg__(self) -> "Positions":
        out = Positions(prune_zero=self.prune_zero)
        out.positions = {inst: -p for inst, p in self.positions.items()}
        out.balances = {asset: -v for asset, v in self.balances.items()}
        return out

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Positions):
            return NotImplemented
        lhs, rhs = self._nonzero_positions(), other._nonzero_positions()
        if lhs.keys() != rhs.keys():
            return False
        if any(lhs[inst] != rhs[inst] for inst in lhs):
            return False
        return self._nonzero_balances() == other._nonzero_balances()

    __hash__ = None  # type: ignore[assignment]

    # ---- display ----

    def format(self, places: int = DEFAULT_PLACES) -> str:
        lines: List[str] = []
        groups: Dict[Asset, List[Tuple[Instrument, Position]]] = {}
        for inst, pos in self._nonzero_positions().items():
            groups.setdefault(inst.quote, []).append((inst, pos))
        assets = list(self._nonzero_balances())
        assets += [a for a in groups if a not in assets]
        for asset in assets:
            value = self.balances.get(asset, ZERO)
            lines.append(f"{asset} => {format_exact(value, places)} {asset}")
            members = groups.get(asset, [])
            for idx, (inst, pos) in enumerate(members):
                branch = "└ " if idx == len(members) - 1 else "├ "
                lines.append(f"{branch}{inst} => {pos.format(places)}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.format()

    def __repr__(self) -> str:
        return f"Positions(positions={len(self.positions)}, balances={len(self.balances)})"
