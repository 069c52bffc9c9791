from __future__ import annotations

from datetime import date, datetime

import pytest

from finance_tracker import normalization
from finance_tracker.errors import ValidationError
from finance_tracker.models import Budget, Transaction


def test_backend_transaction_row_is_normalized():
    raw = {
        'Id': 7,
        'amount_c': '12.50',
        'type_c': 'expense',
        'category_c': 'Travel',
        'description_c': 'Taxi',
        'date_c': '2024-03-05T00:00:00.000Z',
        'CreatedOn': '2024-03-05T08:15:00',
    }
    txn = normalization.normalize_transaction(raw)
    assert txn == Transaction(
        id=7,
        amount=12.5,
        type='expense',
        category='Travel',
        description='Taxi',
        date=date(2024, 3, 5),
        created_at=datetime(2024, 3, 5, 8, 15),
    )


def test_signed_legacy_amount_infers_type():
    expense = normalization.normalize_transaction({'id': 1, 'amount': -25, 'date': '2024-01-02'})
    income = normalization.normalize_transaction({'id': 2, 'amount': '1,200.00', 'date': '2024-01-03'})
    assert (expense.type, expense.amount) == ('expense', 25)
    assert (income.type, income.amount) == ('income', 1200)
    assert expense.category == normalization.DEFAULT_CATEGORY


def test_transaction_errors_are_collected():
    with pytest.raises(ValidationError) as excinfo:
        normalization.normalize_transaction({'amount': 'lots', 'type': 'transfer'})
    assert set(excinfo.value.errors) == {'id', 'amount', 'type', 'date'}


def test_record_id_overrides_raw_id():
    txn = normalization.normalize_transaction(
        {'id': 'junk', 'amount': 5, 'type': 'income', 'date': '2024-02-01'},
        record_id=42,
    )
    assert txn.id == 42


def test_camel_case_goal():
    raw = {
        'id': '3',
        'name': 'Emergency fund',
        'targetAmount': 1000,
        'currentAmount': 250,
        'deadline': '2025-01-01',
        'createdAt': '2024-01-01T09:30:00',
    }
    goal = normalization.normalize_goal(raw)
    assert goal.id == 3
    assert goal.target_amount == 1000
    assert goal.current_amount == 250
    assert goal.deadline == date(2025, 1, 1)
    assert goal.created_at == datetime(2024, 1, 1, 9, 30)


def test_goal_current_amount_defaults_to_zero():
    goal = normalization.normalize_goal({'id': 1, 'name_c': 'Car', 'target_amount_c': 5000, 'deadline_c': '2026-06-01'})
    assert goal.current_amount == 0


def test_budget_month_and_year_are_normalized():
    budget = normalization.normalize_budget({'id': 1, 'categoryId': 'Food', 'amount': '300', 'month': 3, 'year': '2024'})
    assert budget == Budget(id=1, category_id='Food', amount=300, month='03', year=2024)


def test_budget_bad_month_is_rejected():
    with pytest.raises(ValidationError) as excinfo:
        normalization.normalize_budget({'id': 1, 'category_id': 'Food', 'amount': 10, 'month': '13', 'year': 2024})
    assert set(excinfo.value.errors) == {'month'}


def test_account_balance_defaults_to_zero():
    account = normalization.normalize_account({'id': 1, 'accountName': 'Checking', 'institutionName': 'First Bank'})
    assert account.balance == 0
    assert account.account_name == 'Checking'
    assert account.account_number == ''


@pytest.mark.parametrize('value,expected', [
    ('$1,234.50', 1234.5),
    ('(12.00)', -12.0),
    ('45.10 CR', 45.1),
    (7, 7.0),
    ('abc', None),
    ('', None),
    (None, None),
    (True, None),
])
def test_parse_amount(value, expected):
    assert normalization.parse_amount(value) == expected


@pytest.mark.parametrize('value,expected', [
    ('7', '07'),
    (12, '12'),
    ('03', '03'),
    ('13', None),
    ('0', None),
    ('March', None),
])
def test_parse_month(value, expected):
    assert normalization.parse_month(value) == expected


def test_parse_int():
    assert normalization.parse_int('2024') == 2024
    assert normalization.parse_int(2024.0) == 2024
    assert normalization.parse_int('20.5') is None
    assert normalization.parse_int(False) is None


def test_canonicalize_keeps_present_fields_only():
    canonical = normalization.canonicalize(
        {'amount_c': 10, 'description': 'Lunch', 'category_c': ''},
        normalization.TRANSACTION_FIELDS,
    )
    assert canonical == {'amount': 10, 'description': 'Lunch'}


def test_to_record_fields_formats_dates():
    txn = Transaction(1, 10.0, 'expense', 'Food', 'Lunch', date(2024, 3, 5), datetime(2024, 3, 5, 12, 0))
    fields = normalization.to_record_fields(txn)
    assert fields['date'] == '2024-03-05'
    assert fields['created_at'] == '2024-03-05T12:00:00'
    assert normalization.normalize_transaction(fields) == txn
