"""Form-boundary validation.

Each ``validate_*`` function takes the raw values a user submitted,
collects every problem into a single :class:`ValidationError` and, when
the input is acceptable, returns the parsed values keyed by canonical
field names, ready to be passed to a store's ``create`` or ``update``.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Mapping, Optional, Sequence

from .config import TRANSACTION_TYPES
from .errors import ValidationError
from .normalization import (
    ACCOUNT_FIELDS,
    BUDGET_FIELDS,
    GOAL_FIELDS,
    TRANSACTION_FIELDS,
    parse_amount,
    parse_date,
    parse_int,
    parse_month,
    pick,
)


def _text(raw: Mapping[str, Any], aliases: Sequence[str]) -> str:
    value = pick(raw, aliases)
    return str(value).strip() if value is not None else ''


def _finish(errors: Dict[str, str], cleaned: Dict[str, Any]) -> Dict[str, Any]:
    if errors:
        raise ValidationError("Please fix the errors below", errors)
    return cleaned


def validate_transaction(
    raw: Mapping[str, Any],
    categories: Optional[Sequence[str]] = None,
) -> Dict[str, Any]:
    """Validate a transaction form.

    When ``categories`` is given the category must be one of them.
    """
    errors: Dict[str, str] = {}

    amount = parse_amount(pick(raw, TRANSACTION_FIELDS['amount']))
    if amount is None or amount <= 0:
        errors['amount'] = "Amount must be greater than 0"

    txn_type = _text(raw, TRANSACTION_FIELDS['type']).lower()
    if txn_type not in TRANSACTION_TYPES:
        errors['type'] = "Please select a transaction type"

    category = _text(raw, TRANSACTION_FIELDS['category'])
    if not category:
        errors['category'] = "Please select a category"
    elif categories is not None and category not in categories:
        errors['category'] = f"Unknown category '{category}'"

    description = _text(raw, TRANSACTION_FIELDS['description'])
    if not description:
        errors['description'] = "Description is required"

    txn_date = parse_date(pick(raw, TRANSACTION_FIELDS['date']))
    if txn_date is None:
        errors['date'] = "Date is required"

    return _finish(errors, {
        'amount': amount,
        'type': txn_type,
        'category': category,
        'description': description,
        'date': txn_date,
    })


def validate_budget(
    raw: Mapping[str, Any],
    categories: Optional[Sequence[str]] = None,
) -> Dict[str, Any]:
    errors: Dict[str, str] = {}

    category_id = _text(raw, BUDGET_FIELDS['category_id'])
    if not category_id:
        errors['category_id'] = "Please select a category"
    elif categories is not None and category_id not in categories:
        errors['category_id'] = f"Unknown category '{category_id}'"

    amount = parse_amount(pick(raw, BUDGET_FIELDS['amount']))
    if amount is None or amount <= 0:
        errors['amount'] = "Budget amount must be greater than 0"

    month = parse_month(pick(raw, BUDGET_FIELDS['month']))
    if month is None:
        errors['month'] = "Month must be between 01 and 12"

    year = parse_int(pick(raw, BUDGET_FIELDS['year']))
    if year is None:
        errors['year'] = "Year is required"

    return _finish(errors, {
        'category_id': category_id,
        'amount': amount,
        'month': month,
        'year': year,
    })


def validate_goal(raw: Mapping[str, Any], today: date) -> Dict[str, Any]:
    """Validate a goal form; the deadline must fall strictly after ``today``."""
    errors: Dict[str, str] = {}

    name = _text(raw, GOAL_FIELDS['name'])
    if not name:
        errors['name'] = "Goal name is required"

    target = parse_amount(pick(raw, GOAL_FIELDS['target_amount']))
    if target is None or target <= 0:
        errors['target_amount'] = "Target amount must be greater than 0"

    current_raw = pick(raw, GOAL_FIELDS['current_amount'])
    current = parse_amount(current_raw) if current_raw is not None else 0.0
    if current is None or current < 0:
        errors['current_amount'] = "Current amount cannot be negative"

    deadline_raw = pick(raw, GOAL_FIELDS['deadline'])
    deadline = parse_date(deadline_raw)
    if deadline_raw is None:
        errors['deadline'] = "Deadline is required"
    elif deadline is None:
        errors['deadline'] = "Deadline is not a valid date"
    elif deadline <= today:
        errors['deadline'] = "Deadline must be in the future"

    return _finish(errors, {
        'name': name,
        'target_amount': target,
        'current_amount': current,
        'deadline': deadline,
    })


def validate_account(raw: Mapping[str, Any]) -> Dict[str, Any]:
    errors: Dict[str, str] = {}

    account_name = _text(raw, ACCOUNT_FIELDS['account_name'])
    if not account_name:
        errors['account_name'] = "Account name is required"

    institution_name = _text(raw, ACCOUNT_FIELDS['institution_name'])
    if not institution_name:
        errors['institution_name'] = "Institution name is required"

    account_number = _text(raw, ACCOUNT_FIELDS['account_number'])
    if not account_number:
        errors['account_number'] = "Account number is required"

    balance = parse_amount(pick(raw, ACCOUNT_FIELDS['balance']))
    if balance is None:
        errors['balance'] = "Balance must be a valid number"

    return _finish(errors, {
        'account_name': account_name,
        'institution_name': institution_name,
        'account_number': account_number,
        'balance': balance,
    })
