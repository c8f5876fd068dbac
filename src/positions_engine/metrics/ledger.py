from __future__ import annotations

import os
from typing import Optional

from prometheus_client import Counter, Gauge, REGISTRY

_trades_total: Optional[Counter] = None
_realized_total: Optional[Counter] = None
_evaluations_total: Optional[Counter] = None
_eval_failures_total: Optional[Counter] = None
_equity_gauge: Optional[Gauge] = None


class _NoOp:
    def labels(self, *args, **kwargs):
        return self
    def inc(self, *args, **kwargs):
        return None
    def set(self, *args, **kwargs):
        return None


def _existing(name: str):
    # Counters register under several sample names; look both up
    names = getattr(REGISTRY, "_names_to_collectors", {})
    coll = names.get(name) or names.get(f"{name}_total")
    if coll is not None:
        return coll
    for coll in list(getattr(REGISTRY, "_collector_to_names", {}).keys()):  # type: ignore[attr-defined]
        if getattr(coll, "_name", None) == name:
            return coll
    return None


def _safe_counter(name: str, doc: str, labelnames):
    if os.getenv("DISABLE_PROMETHEUS", "0") == "1":
        return _NoOp()
    try:
        return Counter(name, doc, labelnames)
    except ValueError:
        # Already registered (module reloads in tests)
        return _existing(name) or _NoOp()


def _safe_gauge_labels(name: str, doc: str, labelnames):
    if os.getenv("DISABLE_PROMETHEUS", "0") == "1":
        return _NoOp()
    try:
        return Gauge(name, doc, labelnames)
    except ValueError:
        coll = _existing(name)
        if isinstance(coll, Gauge):
            return coll
        return _NoOp()


def get_trades_total():
    global _trades_total
    if _trades_total is None:
        _trades_total = _safe_counter("positions_trades_total", "Trades merged into positions", ["instrument"])
    return _trades_total


def get_realized_total():
    """Counter: positive realized value per quote asset.

    Counters cannot be decremented, so losses are not recorded here.
    """
    global _realized_total
    if _realized_total is None:
        _realized_total = _safe_counter("positions_realized_total", "Realized value", ["asset"])
    return _realized_total


def get_evaluations_total():
    global _evaluations_total
    if _evaluations_total is None:
        _evaluations_total = _safe_counter("positions_evaluations_total", "Equity evaluations", ["root"])
    return _evaluations_total


def get_eval_failures_total():
    global _eval_failures_total
    if _eval_failures_total is None:
        _eval_failures_total = _safe_counter(
            "positions_eval_failures_total", "Failed equity evaluations", ["kind"]
        )
    return _eval_failures_total


def get_equity_gauge():
    """Gauge: last evaluated equity, labeled by root asset."""
    global _equity_gauge
    if _equity_gauge is None:
        _equity_gauge = _safe_gauge_labels("positions_equity", "Evaluated equity", ["root"])
    return _equity_gauge


def record_trade(instrument: str) -> None:
    try:
        get_trades_total().labels(instrument).inc()
    except Exception:
        pass


def record_realized(asset: str, amount) -> None:
    if amount <= 0:
        return
    try:
        get_realized_total().labels(asset).inc(float(amount))
    except Exception:
        pass


def record_evaluation(root: str, equity) -> None:
    try:
        get_evaluations_total().labels(root).inc()
        get_equity_gauge().labels(root).set(float(equity))
    except Exception:
        pass


def record_eval_failure(kind: str) -> None:
    try:
        get_eval_failures_total().labels(kind).inc()
    except Exception:
        pass
