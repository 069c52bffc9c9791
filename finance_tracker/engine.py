"""Transaction filtering and aggregation engine.

Pure functions that derive filtered views, monthly and category roll-ups
and budget/goal progress from snapshots of canonical records.  Nothing in
this module performs I/O, mutates its inputs or reads the wall clock: any
computation that depends on "the current month" receives the month and
year explicitly.

The record lists are small, but filtering and grouping are expressed as
pandas masks and group-bys so they behave exactly like the frame-based
analytics used for reporting.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

import pandas as pd

from .models import (
    ALL_TYPES,
    EXPENSE,
    INCOME,
    Budget,
    BudgetProgress,
    FilterCriteria,
    Goal,
    Transaction,
)

MonthlyTotals = Dict[str, Dict[str, float]]

_FRAME_COLUMNS = ['type', 'description', 'category', 'amount', 'date']


def _frame(records: Sequence[Transaction]) -> pd.DataFrame:
    """Build a positional frame over ``records`` (row ``i`` is ``records[i]``)."""
    if not records:
        return pd.DataFrame(columns=_FRAME_COLUMNS)
    return pd.DataFrame({
        'type': [t.type for t in records],
        'description': [t.description or '' for t in records],
        'category': [t.category for t in records],
        'amount': pd.to_numeric([t.amount for t in records], errors='coerce'),
        'date': pd.to_datetime([t.date for t in records]),
    })


def _month_number(month: Union[str, int]) -> int:
    number = int(month)
    if not 1 <= number <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month!r}")
    return number


def month_key(year: int, month: Union[str, int]) -> str:
    """Return the ``YYYY-MM`` key used by :func:`monthly_totals`."""
    return f"{int(year):04d}-{_month_number(month):02d}"


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


def apply_filters(transactions: Iterable[Transaction], criteria: FilterCriteria) -> List[Transaction]:
    """Return the transactions matching every active clause of ``criteria``.

    Clauses are combined with AND; the category clause is a membership
    test.  The amount clause compares against ``abs(amount)``.  Both range
    clauses are inclusive and each bound may be left unset independently.
    The input order is preserved.
    """
    records = list(transactions)
    if not records:
        return []

    df = _frame(records)
    mask = pd.Series(True, index=df.index)

    if criteria.type_filter and criteria.type_filter != ALL_TYPES:
        mask &= df['type'] == criteria.type_filter

    if criteria.search_term:
        needle = criteria.search_term.lower()
        mask &= df['description'].astype(str).str.lower().str.contains(needle, regex=False, na=False)

    start, end = criteria.date_range.start, criteria.date_range.end
    if start is not None:
        mask &= df['date'] >= pd.Timestamp(start)
    if end is not None:
        mask &= df['date'] <= pd.Timestamp(end)

    if criteria.categories:
        mask &= df['category'].isin(list(criteria.categories))

    abs_amount = df['amount'].abs()
    if criteria.amount_range.min is not None:
        mask &= abs_amount >= criteria.amount_range.min
    if criteria.amount_range.max is not None:
        mask &= abs_amount <= criteria.amount_range.max

    return [record for record, keep in zip(records, mask.tolist()) if keep]


def count_active_filters(criteria: FilterCriteria) -> int:
    """Number of active optional clauses (search, dates, categories, amounts)."""
    count = 0
    if criteria.search_term:
        count += 1
    if criteria.date_range.is_active:
        count += 1
    if criteria.categories:
        count += 1
    if criteria.amount_range.is_active:
        count += 1
    return count


def transactions_in_month(
    transactions: Iterable[Transaction],
    month: Union[str, int],
    year: int,
) -> List[Transaction]:
    number = _month_number(month)
    return [t for t in transactions if t.date.year == int(year) and t.date.month == number]


def sort_for_display(transactions: Iterable[Transaction]) -> List[Transaction]:
    """Newest first; ties broken by descending id."""
    return sorted(transactions, key=lambda t: (t.date, t.id), reverse=True)


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


def monthly_totals(transactions: Iterable[Transaction]) -> MonthlyTotals:
    """Sum income and expenses per calendar month.

    Keys are ``YYYY-MM`` strings in ascending order and only exist for
    months with at least one transaction.
    """
    df = _frame(list(transactions))
    if df.empty:
        return {}

    df['month_key'] = df['date'].dt.strftime('%Y-%m')
    grouped = df.groupby(['month_key', 'type'])['amount'].sum()

    totals: MonthlyTotals = {}
    for (key, kind), value in grouped.items():
        entry = totals.setdefault(key, {'income': 0.0, 'expenses': 0.0})
        if kind == INCOME:
            entry['income'] += float(value)
        elif kind == EXPENSE:
            entry['expenses'] += float(value)
    return totals


def month_net(entry: Mapping[str, float]) -> float:
    """Net flow of one :func:`monthly_totals` entry."""
    return entry.get('income', 0.0) - entry.get('expenses', 0.0)


def category_totals(
    transactions: Iterable[Transaction],
    month: Union[str, int],
    year: int,
    type: str = EXPENSE,
) -> Dict[str, float]:
    """Sum ``amount`` per category for one month and transaction type."""
    number = _month_number(month)
    df = _frame(list(transactions))
    if df.empty:
        return {}

    in_month = (df['date'].dt.year == int(year)) & (df['date'].dt.month == number)
    selected = df[in_month & (df['type'] == type)]
    if selected.empty:
        return {}

    sums = selected.groupby('category')['amount'].sum()
    return {str(category): float(amount) for category, amount in sums.items()}


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------


def calculate_progress(current: float, target: Optional[float]) -> float:
    """Percentage of ``target`` reached, capped at 100.

    Returns 0 when ``target`` is zero or missing.  The value never exceeds
    100 even when ``current`` is larger than ``target``; callers that need
    the overage compare the raw amounts themselves.
    """
    if not target:
        return 0.0
    return min(current / target * 100, 100.0)


def budget_progress(budget: Budget, spent_by_category: Mapping[str, float]) -> BudgetProgress:
    spent = float(spent_by_category.get(budget.category_id, 0.0))
    remaining = budget.amount - spent
    return BudgetProgress(
        spent=spent,
        remaining=remaining,
        progress_pct=calculate_progress(spent, budget.amount),
        over_budget=spent > budget.amount,
        overage=max(0.0, spent - budget.amount),
    )


def goal_progress(goal: Goal) -> float:
    return calculate_progress(goal.current_amount, goal.target_amount)


def apply_progress_delta(goal: Goal, delta: float) -> Goal:
    """Add a contribution (positive) or withdrawal (negative) to a goal.

    Withdrawals larger than the saved amount clamp the balance to zero.
    """
    return replace(goal, current_amount=max(0.0, goal.current_amount + delta))


def is_goal_complete(goal: Goal) -> bool:
    return goal.current_amount >= goal.target_amount


def days_between(start: date, end: date) -> int:
    return (end - start).days
