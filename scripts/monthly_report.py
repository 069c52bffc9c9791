#!/usr/bin/env python3
"""Print the monthly summary, top categories and budget status."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from finance_tracker import analytics, config, db
from finance_tracker.errors import FinanceTrackerError
from finance_tracker.formatting import format_currency, format_percent, month_label
from finance_tracker.memory_store import load_seed

logger = logging.getLogger("finance_tracker.monthly_report")


def month_arg(value: str) -> date:
    """argparse type for ``YYYY-MM``; returns the first day of that month."""
    try:
        year, month = value.split("-")
        return date(int(year), int(month), 1)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM, got {value!r}")


def import_seed(stores, seed_path: Path) -> int:
    """Copy every record of a JSON seed file into ``stores``."""
    seeded = load_seed(seed_path)
    count = 0
    for section in ('transactions', 'budgets', 'goals', 'accounts'):
        target = getattr(stores, section)
        for record in getattr(seeded, section).list():
            target.create(record)
            count += 1
    return count


def main(db_path: Path, month: date, seed: Optional[Path] = None) -> int:
    with db.Database(db_path) as database:
        stores = db.build_stores(database)
        if seed is not None:
            imported = import_seed(stores, seed)
            logger.info("Imported %d records from %s", imported, seed)

        transactions = stores.transactions.list()
        if not transactions:
            print("No transactions recorded yet.")
            return 0

        summary = analytics.month_summary(transactions, month)
        print(f"Summary for {month_label(month.year, month.month)}")
        print(f"  Income:        {format_currency(summary['income'])}")
        print(f"  Expenses:      {format_currency(summary['expenses'])}")
        print(f"  Net:           {format_currency(summary['net'])}")
        print(f"  Savings rate:  {format_percent(summary['savings_rate'])}")

        top = analytics.top_categories(transactions, month.month, month.year)
        if top:
            print("\nTop categories:")
            for category, amount, share in top:
                print(f"  {category:<20} {format_currency(amount):>12}  {format_percent(share):>5}")

        overview = analytics.budget_overview(stores.budgets.list(), transactions, month.month, month.year)
        if not overview.empty:
            print("\nBudgets:")
            print(overview.to_string(index=False))
            print(f"\n{overview.attrs['over_budget_count']} budget(s) over the limit")
    return 0


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Show the monthly finance summary.')
    parser.add_argument('--db', type=Path, default=config.DB_PATH, help='SQLite database path')
    parser.add_argument('--month', type=month_arg, default=None,
                        help='Month to report as YYYY-MM (default: current)')
    parser.add_argument('--seed', type=Path, default=None, help='JSON seed file to import first')
    args = parser.parse_args()
    config.configure_logging()
    try:
        raise SystemExit(main(args.db, args.month or date.today(), args.seed))
    except FinanceTrackerError as e:
        logger.error("%s", e)
        raise SystemExit(1)
