"""Positions expression: a read-only valuation view of a ledger.

Each nonzero position becomes a `ValueEdge` valued in its instrument's
quote asset; raw balances are value nodes. Evaluation:

1. every position is valued in its quote asset at its own instrument's mark
   (spot: ``realized + size * mark``; derivative: the value left after
   closing, ``realized + size * (mark - avg)``);
2. every held asset's total is converted to the root asset along the
   shortest chain of instruments known to the ledger or listed in `via`.

Prices are keyed by instrument symbol and given in quoted form; reversed
instruments are inverted before use.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from fractions import Fraction
from typing import TYPE_CHECKING, Dict, Iterable, List, Mapping, NamedTuple, Optional, Tuple

from ..errors import AmbiguousPath, MissingPrice, PositionsError, Unreachable
from ..metrics.ledger import record_eval_failure, record_evaluation
from ..model.asset import Asset
from ..model.instrument import Instrument
from ..numeric import DEFAULT_PLACES, ONE, ZERO, NumberLike, format_exact
from ..position.naive import NaivePosition
from ..position.position import Position

if TYPE_CHECKING:  # pragma: no cover
    from ..ledger.ledger import Positions

log = logging.getLogger("positions_engine.expr")


@dataclass(frozen=True)
class ValueEdge:
    """One open (or realized-only) position, in true form."""

    instrument: Instrument
    price: Optional[Fraction]
    size: Fraction
    realized: Fraction

    @property
    def source(self) -> Asset:
        inst = self.instrument
        return inst.base if inst.reversed_preferred else inst.quote

    @property
    def target(self) -> Asset:
        inst = self.instrument
        return inst.quote if inst.reversed_preferred else inst.base

    @property
    def needs_price(self) -> bool:
        return self.size != 0

    def value(self, mark: Fraction) -> Fraction:
        """Value in the quote asset at the true-form `mark`."""
        if self.size == 0:
            return self.realized
        if self.instrument.is_derivative:
            return self.realized + self.size * (mark - self.price)
        return self.realized + self.size * mark

    def format(self, places: int = DEFAULT_PLACES) -> str:
        pos = Position(self.instrument, NaivePosition._raw(self.price, self.size, self.realized))
        return pos.format(places)


class Hop(NamedTuple):
    instrument: Instrument
    source: Asset
    target: Asset


class Expr:
    def __init__(
        self,
        balances: Mapping[Asset, Fraction],
        edges: Iterable[ValueEdge],
        known: Iterable[Instrument] = (),
        via: Iterable[Instrument] = (),
    ):
        self.balances: Dict[Asset, Fraction] = {a: v for a, v in balances.items() if v != 0}
        self.edges: List[ValueEdge] = list(edges)
        self.via: List[Instrument] = list(via)
        self._graph: Dict[Asset, Dict[Asset, List[Instrument]]] = {}
        seen = set()
        for inst in [e.instrument for e in self.edges] + list(known) + self.via:
            if inst in seen:
                continue
            seen.add(inst)
            self._graph.setdefault(inst.base, {}).setdefault(inst.quote, []).append(inst)
            self._graph.setdefault(inst.quote, {}).setdefault(inst.base, []).append(inst)

    @classmethod
    def from_positions(cls, ledger: "Positions", via: Iterable[Instrument] = ()) -> "Expr":
        edges = []
        for inst, pos in ledger.positions.items():
            naive = pos.as_naive()
            if naive.is_zero():
                continue
            edges.append(ValueEdge(inst, naive.price, naive.size, naive.value))
        return cls(ledger.balances, edges, known=ledger.positions.keys(), via=via)

    def held_assets(self) -> List[Asset]:
        held: List[Asset] = list(self.balances)
        for edge in self.edges:
            if edge.instrument.quote not in held:
                held.append(edge.instrument.quote)
        return held

    # ---- path resolution ----

    def _path(self, start: Asset, root: Asset) -> List[Tuple[Asset, Asset]]:
        parents: Dict[Asset, Optional[Asset]] = {start: None}
        queue = deque([start])
        while queue:
            node = queue.popleft()
            if node == root:
                break
            for nxt in sorted(self._graph.get(node, {})):
                if nxt not in parents:
                    parents[nxt] = node
                    queue.append(nxt)
        if root not in parents:
            raise Unreachable(start, root)
        steps: List[Tuple[Asset, Asset]] = []
        node = root
        while parents[node] is not None:
            steps.append((parents[node], node))
            node = parents[node]
        steps.reverse()
        return steps

    def _pick(self, source: Asset, target: Asset) -> Instrument:
        candidates = self._graph[source][target]
        for inst in self.via:
            if inst in candidates:
                return inst
        if len(candidates) == 1:
            return candidates[0]
        raise AmbiguousPath(source, target, candidates)

    def resolve(self, root: Asset) -> Dict[Asset, List[Hop]]:
        """Conversion hops from every held asset to `root`."""
        paths: Dict[Asset, List[Hop]] = {}
        for asset in self.held_assets():
            if asset == root:
                paths[asset] = []
                continue
            paths[asset] = [Hop(self._pick(s, t), s, t) for s, t in self._path(asset, root)]
        return paths

    def instruments(self, root: Asset) -> List[Instrument]:
        """Instruments whose prices are needed to evaluate in `root`."""
        out: List[Instrument] = []
        for edge in self.edges:
            if edge.needs_price and edge.instrument not in out:
                out.append(edge.instrument)
        for hops in self.resolve(root).values():
            for hop in hops:
                if hop.instrument not in out:
                    out.append(hop.instrument)
        return out

    # ---- evaluation ----

    def eval(self, root: Asset, prices: Mapping[str, NumberLike]) -> Fraction:
        """Equity in `root` at the given symbol -> quoted price snapshot."""
        try:
            equity = self._eval(root, prices)
        except PositionsError as e:
            record_eval_failure(e.kind)
            raise
        record_evaluation(root.symbol, equity)
        log.debug("equity %s %s", format_exact(equity, 8), root)
        return equity

    def _eval(self, root: Asset, prices: Mapping[str, NumberLike]) -> Fraction:
        paths = self.resolve(root)
        amounts: Dict[Asset, Fraction] = dict(self.balances)
        for edge in self.edges:
            mark = _mark(edge.instrument, prices) if edge.needs_price else ONE
            quote = edge.instrument.quote
            amounts[quote] = amounts.get(quote, ZERO) + edge.value(mark)
        equity = ZERO
        for asset in self.held_assets():
            amount = amounts.get(asset, ZERO)
            for hop in paths[asset]:
                mark = _mark(hop.instrument, prices)
                if hop.source == hop.instrument.base:
                    amount = amount * mark
                else:
                    amount = amount / mark
            equity += amount
        return equity

    # ---- display ----

    def format(self, places: int = DEFAULT_PLACES) -> str:
        parts = [edge.format(places) for edge in self.edges]
        for asset, value in self.balances.items():
            parts.append(f"{format_exact(value, places)} {asset}")
        if not parts:
            return "0"
        return " + ".join(parts).replace("+ -", "- ")

    def __str__(self) -> str:
        return self.format()


def _mark(instrument: Instrument, prices: Mapping[str, NumberLike]) -> Fraction:
    if instrument.symbol not in prices:
        raise MissingPrice(instrument.symbol)
    return instrument.true_price(prices[instrument.symbol])
