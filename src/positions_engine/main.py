"""
Main entrypoint for positions-engine.

What it does:
- Loads settings from `config/config.yaml` (or `--config` / `$POSITIONS_CONFIG`).
- Replays a book of trades (`--book` / `$POSITIONS_BOOK`) into a `Positions` ledger.
- Logs the ledger, the instruments whose prices the root asset needs, and the
  evaluated equity; optionally writes CSV snapshots.

Where it is used:
- Invoked by `python -m positions_engine.main` or the `positions-engine` script.

Key related modules:
- `positions_engine.config.loader.Settings`, `load_settings`, `load_book`
- `positions_engine.expr.Expr`
"""
import argparse
import logging
import os
from typing import List, Optional

from positions_engine.config.loader import load_book, load_settings
from positions_engine.errors import PositionsError
from positions_engine.metrics.core import start_server_safe
from positions_engine.model.asset import Asset
from positions_engine.numeric import format_exact
from positions_engine.reports.frame import summary, write_csv


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    parser = argparse.ArgumentParser(prog="positions-engine")
    parser.add_argument("--config", default=None, help="settings YAML")
    parser.add_argument("--book", default=os.getenv("POSITIONS_BOOK", "config/book.yaml"), help="trades and prices YAML")
    parser.add_argument("--root", default=None, help="root asset override")
    parser.add_argument("--csv-dir", default=None, help="write positions/balances CSV here")
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.config)
        if settings.metrics.enabled:
            start_server_safe(settings.metrics.port)
        places = settings.display.places
        root = Asset(args.root) if args.root else settings.root_asset()
        book = load_book(args.book, settings)
        ledger = book.ledger
        logging.info(f"Ledger {summary(ledger)}:\n{ledger.format(places)}")

        expr = ledger.as_expr(via=settings.via_instruments())
        logging.info(f"Expression: {expr.format(places)}")
        needed = expr.instruments(root)
        logging.info(f"Instruments needed for {root}: {', '.join(i.symbol for i in needed) or '-'}")

        equity = expr.eval(root, book.prices)
        logging.info(f"equity={format_exact(equity, places)} {root}")
        if args.csv_dir:
            paths = write_csv(ledger, args.csv_dir, places)
            logging.info(f"Wrote {paths[0]} and {paths[1]}")
    except PositionsError as e:
        logging.error(f"{e.kind}: {e}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
