"""Ledger package.

Public API:
- Positions: per-instrument positions plus raw asset balances, with entrywise addition.
"""

from .ledger import Positions  # re-export
