"""Pieces shared by the SQLite and in-memory store implementations.

Both implementations expose the same CRUD shape per entity::

    list() -> [record]          get(id) -> record
    create(data) -> record      update(id, data) -> record
    delete(id) -> None

``data`` may be a canonical record or a mapping in any field shape
accepted by :mod:`finance_tracker.normalization`.
"""

from __future__ import annotations

from dataclasses import dataclass, is_dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Sequence

from .normalization import canonicalize, to_record_fields

Clock = Callable[[], datetime]


def default_clock() -> datetime:
    return datetime.now().replace(microsecond=0)


def as_mapping(data: Any) -> Mapping[str, Any]:
    if is_dataclass(data) and not isinstance(data, type):
        return to_record_fields(data)
    return data


def merge_update(
    current: Any,
    changes: Any,
    field_map: Mapping[str, Sequence[str]],
) -> Dict[str, Any]:
    """Overlay ``changes`` on the stored ``current`` record.

    ``changes`` may use any alias; absent or empty fields keep their stored
    value.  The id and creation timestamp never change through an update.
    """
    merged = to_record_fields(current)
    updates = canonicalize(as_mapping(changes), field_map)
    updates.pop('created_at', None)
    merged.update(updates)
    return merged


@dataclass
class Stores:
    """The four entity stores a caller needs to feed the engine."""
    transactions: Any
    budgets: Any
    goals: Any
    accounts: Any
