from __future__ import annotations

from datetime import date

import pytest

from finance_tracker import validation
from finance_tracker.config import DEFAULT_CATEGORIES
from finance_tracker.errors import FinanceTrackerError, ValidationError

TODAY = date(2024, 6, 1)


def test_valid_transaction_is_cleaned():
    cleaned = validation.validate_transaction({
        'amount': '42.50',
        'type': 'Expense',
        'category': 'Travel',
        'description': '  Train  ',
        'date': '2024-05-30',
    }, DEFAULT_CATEGORIES)
    assert cleaned == {
        'amount': 42.5,
        'type': 'expense',
        'category': 'Travel',
        'description': 'Train',
        'date': date(2024, 5, 30),
    }


def test_empty_transaction_reports_every_field():
    with pytest.raises(ValidationError) as excinfo:
        validation.validate_transaction({})
    assert set(excinfo.value.errors) == {'amount', 'type', 'category', 'description', 'date'}


def test_transaction_amount_must_be_positive():
    form = {'amount': '0', 'type': 'income', 'category': 'Other', 'description': 'x', 'date': '2024-01-01'}
    with pytest.raises(ValidationError) as excinfo:
        validation.validate_transaction(form)
    assert excinfo.value.errors == {'amount': "Amount must be greater than 0"}


def test_transaction_category_checked_against_vocabulary():
    form = {'amount': 5, 'type': 'expense', 'category': 'Crypto', 'description': 'x', 'date': '2024-01-01'}
    assert validation.validate_transaction(form)['category'] == 'Crypto'
    with pytest.raises(ValidationError) as excinfo:
        validation.validate_transaction(form, DEFAULT_CATEGORIES)
    assert set(excinfo.value.errors) == {'category'}


def test_budget_validation():
    cleaned = validation.validate_budget({'category_id': 'Travel', 'amount': 300, 'month': '7', 'year': 2024})
    assert cleaned == {'category_id': 'Travel', 'amount': 300.0, 'month': '07', 'year': 2024}

    with pytest.raises(ValidationError) as excinfo:
        validation.validate_budget({'category_id': '', 'amount': -1, 'month': '13'})
    assert set(excinfo.value.errors) == {'category_id', 'amount', 'month', 'year'}


def test_goal_deadline_must_be_in_the_future():
    form = {'name': 'Trip', 'target_amount': 500, 'current_amount': 0}
    for deadline, message in [
        (None, "Deadline is required"),
        ('not a date', "Deadline is not a valid date"),
        ('2024-06-01', "Deadline must be in the future"),
        ('2024-01-01', "Deadline must be in the future"),
    ]:
        with pytest.raises(ValidationError) as excinfo:
            validation.validate_goal({**form, 'deadline': deadline}, TODAY)
        assert excinfo.value.errors == {'deadline': message}

    cleaned = validation.validate_goal({**form, 'deadline': '2024-06-02'}, TODAY)
    assert cleaned['deadline'] == date(2024, 6, 2)


def test_goal_amounts():
    with pytest.raises(ValidationError) as excinfo:
        validation.validate_goal(
            {'name': 'Trip', 'target_amount': 0, 'current_amount': -5, 'deadline': '2025-01-01'},
            TODAY,
        )
    assert excinfo.value.errors == {
        'target_amount': "Target amount must be greater than 0",
        'current_amount': "Current amount cannot be negative",
    }
    cleaned = validation.validate_goal({'name': 'Trip', 'target_amount': 100, 'deadline': '2025-01-01'}, TODAY)
    assert cleaned['current_amount'] == 0


def test_account_validation():
    form = {'account_name': 'Checking', 'institution_name': 'First Bank', 'account_number': '1234', 'balance': '-20.00'}
    assert validation.validate_account(form)['balance'] == -20.0

    with pytest.raises(ValidationError) as excinfo:
        validation.validate_account({**form, 'balance': 'abc'})
    assert excinfo.value.errors == {'balance': "Balance must be a valid number"}


def test_validation_error_hierarchy():
    with pytest.raises(ValueError):
        validation.validate_account({})
    with pytest.raises(FinanceTrackerError):
        validation.validate_account({})
