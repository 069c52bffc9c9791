"""In-memory stores backed by plain lists, optionally seeded from JSON.

This is the mock-data variant of :mod:`finance_tracker.db`: the same
CRUD surface, no persistence beyond an explicit :meth:`MemoryBackend.save`.
Seed documents look like::

    {"transactions": [...], "budgets": [...], "goals": [...], "accounts": [...]}

with each row in any field shape :mod:`finance_tracker.normalization`
understands.
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from . import engine
from .config import SEED_PATH
from .errors import NotFoundError, TransportError
from .models import BankAccount, Budget, FilterCriteria, Goal, Transaction
from .normalization import (
    FIELD_MAPS,
    ID_FIELDS,
    NORMALIZERS,
    parse_int,
    parse_month,
    pick,
    to_record_fields,
)
from .stores import Clock, Stores, as_mapping, default_clock, merge_update

logger = logging.getLogger(__name__)

SEED_SECTIONS = ('transactions', 'budgets', 'goals', 'accounts')


class InMemoryStore:
    """List-backed CRUD store for one entity type."""

    entity = 'record'
    section = ''

    def __init__(self, records: Sequence[Any] = (), clock: Optional[Clock] = None):
        self._records: List[Any] = list(records)
        self._clock = clock or default_clock
        self._normalize: Callable[..., Any] = NORMALIZERS[self.section]

    def _sort_key(self, record):
        return record.id

    def _sorted(self, records: Sequence[Any]) -> List[Any]:
        return sorted(records, key=self._sort_key)

    def _next_id(self) -> int:
        return max((r.id for r in self._records), default=0) + 1

    def _index(self, record_id: int) -> int:
        for position, record in enumerate(self._records):
            if record.id == int(record_id):
                return position
        raise NotFoundError(self.entity, record_id)

    def list(self) -> List[Any]:
        return self._sorted(self._records)

    def get(self, record_id: int):
        return self._records[self._index(record_id)]

    def create(self, data):
        record = self._normalize(as_mapping(data), record_id=self._next_id())
        if hasattr(record, 'created_at') and record.created_at is None:
            record = replace(record, created_at=self._clock())
        self._records.append(record)
        logger.debug("Created %s %s", self.entity, record.id)
        return record

    def update(self, record_id: int, data):
        position = self._index(record_id)
        merged = merge_update(self._records[position], data, FIELD_MAPS[self.section])
        record = self._normalize(merged, record_id=int(record_id))
        self._records[position] = record
        logger.debug("Updated %s %s", self.entity, record_id)
        return record

    def delete(self, record_id: int) -> None:
        del self._records[self._index(record_id)]
        logger.debug("Deleted %s %s", self.entity, record_id)

    def dump(self) -> List[Dict[str, Any]]:
        return [to_record_fields(record) for record in self._sorted(self._records)]


class InMemoryTransactionStore(InMemoryStore):
    entity = 'transaction'
    section = 'transactions'

    def _sorted(self, records: Sequence[Transaction]) -> List[Transaction]:
        return engine.sort_for_display(records)

    def list_by_category(self, category: str) -> List[Transaction]:
        return [t for t in self.list() if t.category == category]

    def list_by_date_range(self, start_date: date, end_date: date) -> List[Transaction]:
        return [t for t in self.list() if start_date <= t.date <= end_date]

    def query(self, criteria: FilterCriteria) -> List[Transaction]:
        return engine.apply_filters(self.list(), criteria)


class InMemoryBudgetStore(InMemoryStore):
    entity = 'budget'
    section = 'budgets'

    def _sort_key(self, record: Budget):
        return (-record.year, -int(record.month), record.category_id)

    def list_by_month(self, month: Union[str, int], year: int) -> List[Budget]:
        key = parse_month(month)
        return [b for b in self.list() if b.month == key and b.year == int(year)]

    def list_by_category(self, category_id: str) -> List[Budget]:
        return [b for b in self.list() if b.category_id == category_id]


class InMemoryGoalStore(InMemoryStore):
    entity = 'goal'
    section = 'goals'

    def _sort_key(self, record: Goal):
        return (record.deadline, record.id)

    def update_progress(self, record_id: int, delta: float) -> Goal:
        position = self._index(record_id)
        goal = engine.apply_progress_delta(self._records[position], delta)
        self._records[position] = goal
        logger.debug("Goal %s progress %+.2f -> %.2f", record_id, delta, goal.current_amount)
        return goal


class InMemoryAccountStore(InMemoryStore):
    entity = 'account'
    section = 'accounts'

    def _sort_key(self, record: BankAccount):
        return (record.account_name, record.id)


def _seed_records(section: str, rows: Sequence[Mapping[str, Any]]) -> List[Any]:
    """Normalise seed rows, numbering rows without an id after the largest one."""
    normalize = NORMALIZERS[section]
    ids = [parse_int(pick(row, ID_FIELDS)) for row in rows]
    next_id = max((i for i in ids if i is not None), default=0) + 1
    records = []
    for row, row_id in zip(rows, ids):
        if row_id is None:
            row_id = next_id
            next_id += 1
        records.append(normalize(row, record_id=row_id))
    return records


class MemoryBackend(Stores):
    """All four in-memory stores, seeded from a mapping of raw rows."""

    def __init__(self, data: Optional[Mapping[str, Sequence[Mapping[str, Any]]]] = None,
                 clock: Optional[Clock] = None):
        data = data or {}
        records = {section: _seed_records(section, data.get(section) or []) for section in SEED_SECTIONS}
        super().__init__(
            transactions=InMemoryTransactionStore(records['transactions'], clock),
            budgets=InMemoryBudgetStore(records['budgets'], clock),
            goals=InMemoryGoalStore(records['goals'], clock),
            accounts=InMemoryAccountStore(records['accounts'], clock),
        )

    def snapshot(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            'transactions': self.transactions.dump(),
            'budgets': self.budgets.dump(),
            'goals': self.goals.dump(),
            'accounts': self.accounts.dump(),
        }

    def save(self, path: Optional[Path] = None) -> None:
        target = Path(path or SEED_PATH)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open('w', encoding='utf-8') as handle:
                json.dump(self.snapshot(), handle, indent=2, sort_keys=True)
        except OSError as e:
            logger.warning("Could not write seed file %s: %s", target, e)
            raise TransportError(f"Failed to save data to {target}: {e}") from e


def load_seed(path: Optional[Path] = None, clock: Optional[Clock] = None) -> MemoryBackend:
    """Build a :class:`MemoryBackend` from a JSON seed file.

    A missing file yields empty stores.  Unreadable or malformed files raise
    :class:`TransportError`; rows that fail normalisation raise
    :class:`~finance_tracker.errors.ValidationError`.
    """
    target = Path(path or SEED_PATH)
    if not target.exists():
        logger.info("Seed file %s not found, starting with empty stores", target)
        return MemoryBackend(clock=clock)
    try:
        with target.open('r', encoding='utf-8') as handle:
            data = json.load(handle)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Could not read seed file %s: %s", target, e)
        raise TransportError(f"Failed to load seed data from {target}: {e}") from e
    if not isinstance(data, dict):
        raise TransportError(f"Seed file {target} must contain a JSON object")
    return MemoryBackend(data, clock=clock)
