from __future__ import annotations

import json
import logging
from datetime import date, datetime

import pytest

from finance_tracker import engine
from finance_tracker.errors import NotFoundError, TransportError
from finance_tracker.memory_store import MemoryBackend, load_seed
from finance_tracker.models import FilterCriteria

NOW = datetime(2024, 3, 1, 12, 0, 0)

SEED = {
    'transactions': [
        {'Id': 3, 'amount_c': 40, 'type_c': 'expense', 'category_c': 'Food', 'description_c': 'Coffee', 'date_c': '2024-03-05'},
        {'amount': 100, 'type': 'income', 'category': 'Salary', 'description': 'Paycheck', 'date': '2024-03-01'},
        {'amount': -20, 'category': 'Food', 'description': 'Lunch', 'date': '2024-04-01'},
    ],
    'budgets': [
        {'id': 1, 'categoryId': 'Food', 'amount': 50, 'month': '03', 'year': 2024},
        {'id': 2, 'categoryId': 'Food', 'amount': 60, 'month': '04', 'year': 2024},
    ],
    'goals': [
        {'id': 1, 'name': 'Trip', 'targetAmount': 500, 'currentAmount': 30, 'deadline': '2025-01-01'},
    ],
}


def _backend():
    return MemoryBackend(SEED, clock=lambda: NOW)


def test_seed_rows_without_ids_are_numbered_after_the_largest():
    backend = _backend()
    by_description = {t.description: t for t in backend.transactions.list()}
    assert by_description['Coffee'].id == 3
    assert by_description['Paycheck'].id == 4
    assert by_description['Lunch'].id == 5
    assert by_description['Lunch'].type == 'expense'
    assert backend.accounts.list() == []


def test_transactions_are_listed_newest_first():
    assert [t.id for t in _backend().transactions.list()] == [5, 3, 4]


def test_crud_round_trip():
    store = _backend().transactions
    created = store.create({'amount': 9, 'type': 'expense', 'category': 'Food', 'description': 'Tea', 'date': '2024-04-02'})
    assert created.id == 6
    assert created.created_at == NOW

    updated = store.update(created.id, {'description_c': 'Green tea'})
    assert updated.description == 'Green tea'
    assert updated.amount == 9
    assert store.get(created.id) == updated

    store.delete(created.id)
    with pytest.raises(NotFoundError):
        store.get(created.id)
    with pytest.raises(NotFoundError):
        store.delete(created.id)


def test_query_matches_engine():
    store = _backend().transactions
    criteria = FilterCriteria(categories=frozenset({'Food'}), search_term='co')
    assert store.query(criteria) == engine.apply_filters(store.list(), criteria)
    assert [t.description for t in store.query(criteria)] == ['Coffee']


def test_list_by_category_and_date_range():
    store = _backend().transactions
    assert [t.id for t in store.list_by_category('Food')] == [5, 3]
    assert [t.id for t in store.list_by_date_range(date(2024, 3, 1), date(2024, 3, 31))] == [3, 4]


def test_budgets_by_month():
    budgets = _backend().budgets
    assert [b.amount for b in budgets.list_by_month(4, 2024)] == [60]
    assert budgets.list_by_month('05', 2024) == []
    assert [b.id for b in budgets.list()] == [2, 1]


def test_goal_update_progress_clamps():
    goals = _backend().goals
    assert goals.update_progress(1, 20).current_amount == 50
    assert goals.update_progress(1, -80).current_amount == 0
    assert goals.get(1).current_amount == 0
    with pytest.raises(NotFoundError):
        goals.update_progress(2, 10)


def test_goal_update_progress_is_logged(caplog):
    goals = _backend().goals
    with caplog.at_level(logging.DEBUG, logger="finance_tracker.memory_store"):
        goals.update_progress(1, 20)
    assert "Goal 1 progress +20.00 -> 50.00" in caplog.text


def test_save_and_load(tmp_path):
    path = tmp_path / "seed" / "seed.json"
    backend = _backend()
    backend.goals.update_progress(1, 70)
    backend.save(path)

    reloaded = load_seed(path)
    assert reloaded.transactions.list() == backend.transactions.list()
    assert reloaded.goals.get(1).current_amount == 100
    assert json.loads(path.read_text())['budgets'][0]['month'] == '04'


def test_missing_seed_file_gives_empty_stores(tmp_path):
    backend = load_seed(tmp_path / "missing.json")
    assert backend.transactions.list() == []
    assert backend.goals.list() == []


@pytest.mark.parametrize('content', ['{not json', '[1, 2, 3]'])
def test_malformed_seed_file_raises_transport_error(tmp_path, content):
    path = tmp_path / "seed.json"
    path.write_text(content)
    with pytest.raises(TransportError):
        load_seed(path)
