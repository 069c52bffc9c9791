"""Canonical in-memory record shapes.

Every store normalises its raw rows into these dataclasses before handing
them to the engine, so the rest of the package only ever deals with one
field naming scheme.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import FrozenSet, Optional

INCOME = 'income'
EXPENSE = 'expense'
ALL_TYPES = 'all'


@dataclass(frozen=True)
class Transaction:
    """A single income or expense event. ``amount`` is always positive."""
    id: int
    amount: float
    type: str  # 'income' or 'expense'
    category: str
    description: str
    date: date
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Budget:
    """Spending ceiling for one category in one calendar month."""
    id: int
    category_id: str
    amount: float
    month: str  # zero padded, "01".."12"
    year: int


@dataclass(frozen=True)
class Goal:
    id: int
    name: str
    target_amount: float
    current_amount: float
    deadline: date
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class BankAccount:
    id: int
    account_name: str
    institution_name: str
    account_number: str
    balance: float  # signed


@dataclass(frozen=True)
class DateRange:
    start: Optional[date] = None
    end: Optional[date] = None

    @property
    def is_active(self) -> bool:
        return self.start is not None or self.end is not None


@dataclass(frozen=True)
class AmountRange:
    min: Optional[float] = None
    max: Optional[float] = None

    @property
    def is_active(self) -> bool:
        return self.min is not None or self.max is not None


@dataclass(frozen=True)
class FilterCriteria:
    """Request-scoped composite filter. The default instance filters nothing."""
    search_term: str = ''
    date_range: DateRange = field(default_factory=DateRange)
    categories: FrozenSet[str] = frozenset()
    amount_range: AmountRange = field(default_factory=AmountRange)
    type_filter: str = ALL_TYPES


@dataclass(frozen=True)
class BudgetProgress:
    spent: float
    remaining: float  # negative when over budget
    progress_pct: float  # capped at 100
    over_budget: bool = False
    overage: float = 0.0
