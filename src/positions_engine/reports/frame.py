from __future__ import annotations

import os
from typing import Dict, Tuple

import pandas as pd

from ..ledger.ledger import Positions
from ..numeric import DEFAULT_PLACES, to_decimal

POSITION_COLUMNS = ["instrument", "base", "quote", "reversed", "price", "size", "realized"]
BALANCE_COLUMNS = ["asset", "balance"]


def positions_frame(ledger: Positions, places: int = DEFAULT_PLACES) -> pd.DataFrame:
    """One row per position, in displayed form (Decimal values, object dtype)."""
    rows = []
    for inst, pos in ledger.positions.items():
        price = pos.price()
        rows.append({
            "instrument": inst.symbol,
            "base": inst.base.symbol,
            "quote": inst.quote.symbol,
            "reversed": inst.reversed_preferred,
            "price": None if price is None else to_decimal(price, places),
            "size": to_decimal(pos.size(), places),
            "realized": to_decimal(pos.realized, places),
        })
    return pd.DataFrame(rows, columns=POSITION_COLUMNS)


def balances_frame(ledger: Positions, places: int = DEFAULT_PLACES) -> pd.DataFrame:
    rows = [
        {"asset": asset.symbol, "balance": to_decimal(value, places)}
        for asset, value in ledger.balances.items()
    ]
    return pd.DataFrame(rows, columns=BALANCE_COLUMNS)


def write_csv(ledger: Positions, base_dir: str = "data", places: int = DEFAULT_PLACES) -> Tuple[str, str]:
    os.makedirs(base_dir, exist_ok=True)
    pos_path = os.path.join(base_dir, "positions.csv")
    bal_path = os.path.join(base_dir, "balances.csv")
    positions_frame(ledger, places).to_csv(pos_path, index=False)
    balances_frame(ledger, places).to_csv(bal_path, index=False)
    return pos_path, bal_path


def summary(ledger: Positions) -> Dict[str, int]:
    return {"positions": len(ledger.positions), "balances": len(ledger.balances)}
