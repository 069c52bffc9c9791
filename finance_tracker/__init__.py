"""Top‑level package for the Finance Tracker.

The primary modules are:

* ``engine`` – pure filtering and aggregation over transaction snapshots
* ``analytics`` – dashboard, budget, goal and report summaries
* ``db`` – SQLite backed stores with an explicit database lifecycle
* ``memory_store`` – list backed stores seeded from JSON mock data
* ``normalization`` / ``validation`` – boundary parsing of raw input

A typical session opens a database, builds the stores and feeds their
snapshots to the engine:

```python
from datetime import date
from finance_tracker import analytics, db

with db.Database("data/finance.db") as database:
    stores = db.build_stores(database)
    summary = analytics.month_summary(stores.transactions.list(), date.today())
```
"""

from . import analytics  # noqa: F401  # re-exported for convenience
from . import engine  # noqa: F401  # re-exported for convenience
from .errors import FinanceTrackerError, NotFoundError, TransportError, ValidationError
from .models import (
    AmountRange,
    BankAccount,
    Budget,
    BudgetProgress,
    DateRange,
    FilterCriteria,
    Goal,
    Transaction,
)

__all__ = [
    "analytics",
    "engine",
    "AmountRange",
    "BankAccount",
    "Budget",
    "BudgetProgress",
    "DateRange",
    "FilterCriteria",
    "Goal",
    "Transaction",
    "FinanceTrackerError",
    "NotFoundError",
    "TransportError",
    "ValidationError",
]
