"""Valuation expressions derived from a ledger."""

from .expr import Expr, Hop, ValueEdge

__all__ = ["Expr", "Hop", "ValueEdge"]
