"""Normalisation of raw store rows into canonical records.

Rows reach the package in several historical shapes: the hosted backend
suffixes every column with ``_c`` (``amount_c``, ``target_amount_c``), the
older mock data used camelCase (``targetAmount``, ``categoryId``) and the
SQLite tables use snake_case.  The functions here resolve those aliases
once, parse amounts and dates, and return the dataclasses from
:mod:`finance_tracker.models`.  Nothing downstream should look at raw
field names.
"""

from __future__ import annotations

from dataclasses import asdict
from datetime import date, datetime
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

import pandas as pd

from .config import TRANSACTION_TYPES
from .errors import ValidationError
from .models import EXPENSE, INCOME, BankAccount, Budget, Goal, Transaction

ID_FIELDS = ('id', 'Id', 'ID')
CREATED_AT_FIELDS = ('created_at_c', 'createdAt', 'created_at', 'CreatedOn')

TRANSACTION_FIELDS: Dict[str, Sequence[str]] = {
    'amount': ('amount_c', 'amount'),
    'type': ('type_c', 'type'),
    'category': ('category_c', 'category'),
    'description': ('description_c', 'description', 'Name'),
    'date': ('date_c', 'date'),
}

BUDGET_FIELDS: Dict[str, Sequence[str]] = {
    'category_id': ('category_id_c', 'categoryId', 'category_id'),
    'amount': ('amount_c', 'amount'),
    'month': ('month_c', 'month'),
    'year': ('year_c', 'year'),
}

GOAL_FIELDS: Dict[str, Sequence[str]] = {
    'name': ('name_c', 'name', 'Name'),
    'target_amount': ('target_amount_c', 'targetAmount', 'target_amount'),
    'current_amount': ('current_amount_c', 'currentAmount', 'current_amount'),
    'deadline': ('deadline_c', 'deadline'),
}

ACCOUNT_FIELDS: Dict[str, Sequence[str]] = {
    'account_name': ('account_name_c', 'accountName', 'account_name', 'Name'),
    'institution_name': ('institution_name_c', 'institutionName', 'institution_name'),
    'account_number': ('account_number_c', 'accountNumber', 'account_number'),
    'balance': ('balance_c', 'balance'),
}

DEFAULT_CATEGORY = 'Other'


# ---------------------------------------------------------------------------
# Scalar parsing
# ---------------------------------------------------------------------------


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def pick(raw: Mapping[str, Any], aliases: Sequence[str]) -> Any:
    """Return the first present, non-empty value among ``aliases``."""
    for name in aliases:
        value = raw.get(name)
        if not _is_missing(value):
            return value
    return None


def parse_amount(value: Any) -> Optional[float]:
    """Convert different textual amount representations into floats."""
    if _is_missing(value):
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        cleaned = value.strip()
        # Handle accounting negatives e.g. (123.45)
        if cleaned.startswith("(") and cleaned.endswith(")"):
            cleaned = f"-{cleaned[1:-1]}"
        # Remove common currency markers
        cleaned = cleaned.replace("$", "").replace(",", "")
        cleaned = cleaned.replace("CR", "").replace("cr", "").strip()
        value = cleaned
    parsed = pd.to_numeric([value], errors='coerce')
    number = parsed[0]
    if pd.isna(number):
        return None
    return float(number)


def parse_date(value: Any) -> Optional[date]:
    if _is_missing(value):
        return None
    if hasattr(value, 'to_pydatetime'):
        value = value.to_pydatetime()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    ts = pd.to_datetime(value, errors='coerce')
    if pd.isna(ts):
        return None
    return ts.date()


def parse_timestamp(value: Any) -> Optional[datetime]:
    if _is_missing(value):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    ts = pd.to_datetime(value, errors='coerce')
    if pd.isna(ts):
        return None
    return ts.to_pydatetime()


def parse_month(value: Any) -> Optional[str]:
    """Return a zero padded ``"01".."12"`` month or ``None``."""
    if _is_missing(value):
        return None
    try:
        number = int(str(value).strip())
    except ValueError:
        return None
    if not 1 <= number <= 12:
        return None
    return f"{number:02d}"


def parse_int(value: Any) -> Optional[int]:
    if _is_missing(value) or isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    if not number.is_integer():
        return None
    return int(number)


def _clean_text(value: Any) -> str:
    if _is_missing(value):
        return ''
    return str(value).strip()


def _resolve_id(raw: Mapping[str, Any], record_id: Optional[int], errors: Dict[str, str]) -> int:
    if record_id is not None:
        return int(record_id)
    parsed = parse_int(pick(raw, ID_FIELDS))
    if parsed is None:
        errors['id'] = "Record id is missing or not an integer"
        return 0
    return parsed


def _raise_if(errors: Dict[str, str], entity: str) -> None:
    if errors:
        raise ValidationError(f"Invalid {entity} record: " + "; ".join(sorted(errors.values())), errors)


# ---------------------------------------------------------------------------
# Record normalisation
# ---------------------------------------------------------------------------


def normalize_transaction(raw: Mapping[str, Any], *, record_id: Optional[int] = None) -> Transaction:
    errors: Dict[str, str] = {}
    rid = _resolve_id(raw, record_id, errors)

    amount = parse_amount(pick(raw, TRANSACTION_FIELDS['amount']))
    if amount is None:
        errors['amount'] = "Amount is missing or not a number"

    txn_type = _clean_text(pick(raw, TRANSACTION_FIELDS['type'])).lower()
    if not txn_type and amount is not None:
        # Signed legacy rows: positive amounts are income
        txn_type = INCOME if amount > 0 else EXPENSE
    if txn_type not in TRANSACTION_TYPES:
        errors['type'] = f"Type must be one of {', '.join(TRANSACTION_TYPES)}"

    txn_date = parse_date(pick(raw, TRANSACTION_FIELDS['date']))
    if txn_date is None:
        errors['date'] = "Date is missing or invalid"

    _raise_if(errors, 'transaction')
    return Transaction(
        id=rid,
        amount=abs(amount),
        type=txn_type,
        category=_clean_text(pick(raw, TRANSACTION_FIELDS['category'])) or DEFAULT_CATEGORY,
        description=_clean_text(pick(raw, TRANSACTION_FIELDS['description'])),
        date=txn_date,
        created_at=parse_timestamp(pick(raw, CREATED_AT_FIELDS)),
    )


def normalize_budget(raw: Mapping[str, Any], *, record_id: Optional[int] = None) -> Budget:
    errors: Dict[str, str] = {}
    rid = _resolve_id(raw, record_id, errors)

    category_id = _clean_text(pick(raw, BUDGET_FIELDS['category_id']))
    if not category_id:
        errors['category_id'] = "Category is required"
    amount = parse_amount(pick(raw, BUDGET_FIELDS['amount']))
    if amount is None:
        errors['amount'] = "Amount is missing or not a number"
    month = parse_month(pick(raw, BUDGET_FIELDS['month']))
    if month is None:
        errors['month'] = "Month must be between 01 and 12"
    year = parse_int(pick(raw, BUDGET_FIELDS['year']))
    if year is None:
        errors['year'] = "Year must be an integer"

    _raise_if(errors, 'budget')
    return Budget(id=rid, category_id=category_id, amount=amount, month=month, year=year)


def normalize_goal(raw: Mapping[str, Any], *, record_id: Optional[int] = None) -> Goal:
    errors: Dict[str, str] = {}
    rid = _resolve_id(raw, record_id, errors)

    name = _clean_text(pick(raw, GOAL_FIELDS['name']))
    if not name:
        errors['name'] = "Goal name is required"
    target = parse_amount(pick(raw, GOAL_FIELDS['target_amount']))
    if target is None:
        errors['target_amount'] = "Target amount is missing or not a number"
    current_raw = pick(raw, GOAL_FIELDS['current_amount'])
    current = parse_amount(current_raw) if current_raw is not None else 0.0
    if current is None:
        errors['current_amount'] = "Current amount is not a number"
    deadline = parse_date(pick(raw, GOAL_FIELDS['deadline']))
    if deadline is None:
        errors['deadline'] = "Deadline is missing or invalid"

    _raise_if(errors, 'goal')
    return Goal(
        id=rid,
        name=name,
        target_amount=target,
        current_amount=max(0.0, current),
        deadline=deadline,
        created_at=parse_timestamp(pick(raw, CREATED_AT_FIELDS)),
    )


def normalize_account(raw: Mapping[str, Any], *, record_id: Optional[int] = None) -> BankAccount:
    errors: Dict[str, str] = {}
    rid = _resolve_id(raw, record_id, errors)

    balance_raw = pick(raw, ACCOUNT_FIELDS['balance'])
    balance = parse_amount(balance_raw) if balance_raw is not None else 0.0
    if balance is None:
        errors['balance'] = "Balance must be a valid number"

    _raise_if(errors, 'account')
    return BankAccount(
        id=rid,
        account_name=_clean_text(pick(raw, ACCOUNT_FIELDS['account_name'])),
        institution_name=_clean_text(pick(raw, ACCOUNT_FIELDS['institution_name'])),
        account_number=_clean_text(pick(raw, ACCOUNT_FIELDS['account_number'])),
        balance=balance,
    )


NORMALIZERS: Dict[str, Callable[..., Any]] = {
    'transactions': normalize_transaction,
    'budgets': normalize_budget,
    'goals': normalize_goal,
    'accounts': normalize_account,
}

FIELD_MAPS: Dict[str, Dict[str, Sequence[str]]] = {
    'transactions': TRANSACTION_FIELDS,
    'budgets': BUDGET_FIELDS,
    'goals': GOAL_FIELDS,
    'accounts': ACCOUNT_FIELDS,
}


def canonicalize(raw: Mapping[str, Any], field_map: Mapping[str, Sequence[str]]) -> Dict[str, Any]:
    """Rename the fields present in ``raw`` to their canonical names.

    Only fields that are present (and non-empty) are returned, which makes
    the result suitable for merging a partial update over a stored record.
    """
    canonical: Dict[str, Any] = {}
    for name, aliases in field_map.items():
        value = pick(raw, aliases)
        if value is not None:
            canonical[name] = value
    created_at = pick(raw, CREATED_AT_FIELDS)
    if created_at is not None:
        canonical['created_at'] = created_at
    return canonical


def to_record_fields(record: Any) -> Dict[str, Any]:
    """Flatten a canonical record into JSON/SQLite friendly values."""
    fields = asdict(record)
    for key, value in fields.items():
        if isinstance(value, (date, datetime)):
            fields[key] = value.isoformat()
    return fields
