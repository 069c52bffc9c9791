"""Dashboard and report summaries built on the engine.

These helpers combine engine primitives into the figures shown on the
overview, budget, goal, account and report screens.  Like the engine,
they never read the clock: every function that depends on "now" takes a
``today`` argument.  Tabular results are returned as pandas DataFrames so
they can be handed straight to a table or chart widget.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from . import engine
from .models import EXPENSE, BankAccount, Budget, DateRange, Goal, Transaction
from .normalization import parse_month

TREND_COLUMNS = ['Month_Label', 'Year', 'Month', 'Income', 'Expenses', 'Net', 'Savings_Rate']
BUDGET_COLUMNS = ['Category', 'Budget', 'Spent', 'Remaining', 'Progress', 'Over_Budget', 'Overage']
TRANSACTION_COLUMNS = ['id', 'Date', 'Description', 'Category', 'Type', 'Amount']

DATE_PRESETS = ('this_month', 'last_month', 'last_3_months', 'this_year')

CENTS = 2


# ---------------------------------------------------------------------------
# Monthly figures
# ---------------------------------------------------------------------------


def month_summary(transactions: Iterable[Transaction], today: date) -> Dict[str, float]:
    """Income, expenses and derived figures for the month containing ``today``."""
    current = engine.transactions_in_month(transactions, today.month, today.year)
    entry = engine.monthly_totals(current).get(
        engine.month_key(today.year, today.month), {'income': 0.0, 'expenses': 0.0}
    )
    income = entry['income']
    expenses = entry['expenses']
    net = engine.month_net(entry)
    return {
        'income': income,
        'expenses': expenses,
        'net': net,
        'savings_rate': (net / income * 100) if income > 0 else 0.0,
        'transaction_count': len(current),
        'daily_average': expenses / today.day,
    }


def trailing_months(today: date, count: int = 6) -> List[Tuple[int, int]]:
    """``(year, month)`` pairs for the last ``count`` months, oldest first."""
    current = pd.Period(year=today.year, month=today.month, freq='M')
    periods = [current - offset for offset in range(count - 1, -1, -1)]
    return [(period.year, period.month) for period in periods]


def monthly_trend(transactions: Iterable[Transaction], today: date, months: int = 6) -> pd.DataFrame:
    """One row per month of the trailing window, zero-filled."""
    totals = engine.monthly_totals(transactions)
    rows = []
    for year, month in trailing_months(today, months):
        label = engine.month_key(year, month)
        entry = totals.get(label, {'income': 0.0, 'expenses': 0.0})
        rows.append({
            'Month_Label': label,
            'Year': year,
            'Month': month,
            'Income': entry['income'],
            'Expenses': entry['expenses'],
            'Net': engine.month_net(entry),
        })

    trend = pd.DataFrame(rows, columns=TREND_COLUMNS[:-1])
    money = ['Income', 'Expenses', 'Net']
    trend[money] = trend[money].astype(float).round(CENTS)
    income = trend['Income'].to_numpy(dtype=float)
    net = trend['Net'].to_numpy(dtype=float)
    with np.errstate(divide='ignore', invalid='ignore'):
        trend['Savings_Rate'] = np.where(income > 0, net / income * 100, 0.0)
    return trend


def average_monthly_expenses(transactions: Iterable[Transaction], today: date, months: int = 6) -> float:
    trend = monthly_trend(transactions, today, months)
    if trend.empty:
        return 0.0
    return float(trend['Expenses'].mean())


def month_over_month_change(current: float, previous: float) -> Optional[float]:
    """Percent change from ``previous`` to ``current``; ``None`` without a baseline."""
    if not previous:
        return None
    return (current - previous) / previous * 100


def top_categories(
    transactions: Iterable[Transaction],
    month: Union[str, int],
    year: int,
    limit: int = 5,
) -> List[Tuple[str, float, float]]:
    """Largest expense categories as ``(category, amount, share_pct)``."""
    totals = engine.category_totals(transactions, month, year, EXPENSE)
    total = sum(totals.values())
    ranked = sorted(totals.items(), key=lambda item: (-item[1], item[0]))[:limit]
    return [
        (category, amount, (amount / total * 100) if total else 0.0)
        for category, amount in ranked
    ]


def category_spending_series(
    transactions: Iterable[Transaction],
    month: Union[str, int],
    year: int,
) -> pd.Series:
    """Expense totals per category, largest first, for a spending chart."""
    totals = engine.category_totals(transactions, month, year, EXPENSE)
    series = pd.Series(totals, dtype=float, name='Amount')
    series.index.name = 'Category'
    return series.sort_values(ascending=False)


# ---------------------------------------------------------------------------
# Budgets, goals and accounts
# ---------------------------------------------------------------------------


def budget_overview(
    budgets: Iterable[Budget],
    transactions: Iterable[Transaction],
    month: Union[str, int],
    year: int,
) -> pd.DataFrame:
    """Per-budget progress for one month.

    Totals are attached to ``DataFrame.attrs``: ``total_budget``,
    ``total_spent`` (all expenses of the month, budgeted or not),
    ``remaining`` and ``over_budget_count``.
    """
    key = parse_month(month)
    if key is None:
        raise ValueError(f"Month must be between 1 and 12, got {month!r}")
    records = list(transactions)
    selected = [b for b in budgets if b.month == key and b.year == int(year)]
    spent = engine.category_totals(records, key, year, EXPENSE)

    rows = []
    for budget in selected:
        progress = engine.budget_progress(budget, spent)
        rows.append({
            'Category': budget.category_id,
            'Budget': budget.amount,
            'Spent': progress.spent,
            'Remaining': progress.remaining,
            'Progress': progress.progress_pct,
            'Over_Budget': progress.over_budget,
            'Overage': progress.overage,
        })

    overview = pd.DataFrame(rows, columns=BUDGET_COLUMNS)
    money = ['Budget', 'Spent', 'Remaining', 'Overage']
    overview[money] = overview[money].astype(float).round(CENTS)
    total_budget = round(float(overview['Budget'].sum()), CENTS) if not overview.empty else 0.0
    total_spent = round(float(sum(spent.values())), CENTS)
    overview.attrs.update({
        'total_budget': total_budget,
        'total_spent': total_spent,
        'remaining': round(total_budget - total_spent, CENTS),
        'over_budget_count': int(overview['Over_Budget'].sum()) if not overview.empty else 0,
    })
    return overview


def days_until_deadline(goal: Goal, today: date) -> int:
    """Days left before the deadline; negative once it has passed."""
    return engine.days_between(today, goal.deadline)


def goal_overview(goals: Iterable[Goal], today: date, urgent_days: int = 30) -> Dict[str, Any]:
    """Totals across goals plus completed/active/urgent counts.

    A goal is urgent when it is still active and its deadline falls within
    ``urgent_days`` of ``today`` (overdue goals count as urgent).
    """
    items = list(goals)
    total_target = sum(g.target_amount for g in items)
    total_saved = sum(g.current_amount for g in items)
    completed = [g for g in items if engine.is_goal_complete(g)]
    active = [g for g in items if not engine.is_goal_complete(g)]
    urgent = [g for g in active if days_until_deadline(g, today) <= urgent_days]
    return {
        'total_target': total_target,
        'total_saved': total_saved,
        'overall_progress': engine.calculate_progress(total_saved, total_target),
        'completed': len(completed),
        'active': len(active),
        'urgent': len(urgent),
    }


def account_overview(accounts: Iterable[BankAccount]) -> Dict[str, Any]:
    items = list(accounts)
    institutions = {a.institution_name for a in items if a.institution_name}
    return {
        'total_balance': sum(a.balance for a in items),
        'institution_count': len(institutions),
        'highest_balance': max((a.balance for a in items), default=0.0),
        'account_count': len(items),
    }


def dashboard_summary(
    transactions: Sequence[Transaction],
    budgets: Iterable[Budget],
    goals: Iterable[Goal],
    today: date,
    recent: int = 5,
) -> Dict[str, Any]:
    """Figures for the overview cards."""
    summary = month_summary(transactions, today)
    month_budgets = [b for b in budgets if b.month == f"{today.month:02d}" and b.year == today.year]
    total_budget = sum(b.amount for b in month_budgets)
    goal_items = list(goals)
    total_target = sum(g.target_amount for g in goal_items)
    total_saved = sum(g.current_amount for g in goal_items)
    return {
        'monthly_income': summary['income'],
        'monthly_expenses': summary['expenses'],
        'total_budget': total_budget,
        'budget_remaining': max(0.0, total_budget - summary['expenses']),
        # Not capped: shows how far past the budget spending went
        'budget_used_pct': (summary['expenses'] / total_budget * 100) if total_budget else 0.0,
        'goal_target': total_target,
        'goal_saved': total_saved,
        'goal_progress_pct': engine.calculate_progress(total_saved, total_target),
        'recent_transactions': engine.sort_for_display(transactions)[:recent],
    }


# ---------------------------------------------------------------------------
# Filters and tables
# ---------------------------------------------------------------------------


def date_preset(name: str, today: date) -> DateRange:
    """Date range for one of :data:`DATE_PRESETS` relative to ``today``."""
    current = pd.Period(year=today.year, month=today.month, freq='M')
    if name == 'this_month':
        return DateRange(current.start_time.date(), current.end_time.date())
    if name == 'last_month':
        previous = current - 1
        return DateRange(previous.start_time.date(), previous.end_time.date())
    if name == 'last_3_months':
        return DateRange((current - 3).start_time.date(), today)
    if name == 'this_year':
        return DateRange(date(today.year, 1, 1), today)
    raise ValueError(f"Unknown date preset '{name}'. Expected one of: {', '.join(DATE_PRESETS)}")


def transactions_frame(transactions: Iterable[Transaction]) -> pd.DataFrame:
    """Tabular view of ``transactions`` in their given order."""
    rows = [
        {
            'id': t.id,
            'Date': pd.Timestamp(t.date),
            'Description': t.description,
            'Category': t.category,
            'Type': t.type,
            'Amount': t.amount,
        }
        for t in transactions
    ]
    return pd.DataFrame(rows, columns=TRANSACTION_COLUMNS)
