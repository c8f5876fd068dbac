"""Tabular (pandas) snapshots of a ledger."""

from .frame import balances_frame, positions_frame, summary, write_csv

__all__ = ["balances_frame", "positions_frame", "summary", "write_csv"]
