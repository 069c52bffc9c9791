"""SQLite persistence for transactions, budgets, goals and bank accounts.

A :class:`Database` owns one connection with an explicit lifecycle
(``open()`` at start-up, ``close()`` at shutdown).  The per-entity stores
are constructed around an injected database; nothing in this module opens
a connection at import time.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

import pandas as pd

from . import engine
from .config import DB_PATH
from .errors import NotFoundError, TransportError
from .models import ALL_TYPES, BankAccount, Budget, FilterCriteria, Goal, Transaction
from .normalization import (
    ACCOUNT_FIELDS,
    BUDGET_FIELDS,
    GOAL_FIELDS,
    TRANSACTION_FIELDS,
    normalize_account,
    normalize_budget,
    normalize_goal,
    normalize_transaction,
    parse_month,
    to_record_fields,
)
from .stores import Clock, Stores, as_mapping, default_clock, merge_update

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS transactions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    amount REAL NOT NULL,
    type TEXT NOT NULL,
    category TEXT,
    description TEXT,
    date TEXT NOT NULL,
    created_at TEXT
);

CREATE INDEX IF NOT EXISTS ix_txn_date ON transactions (date);
CREATE INDEX IF NOT EXISTS ix_txn_category ON transactions (category);

CREATE TABLE IF NOT EXISTS budgets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    category_id TEXT NOT NULL,
    amount REAL NOT NULL,
    month TEXT NOT NULL,
    year INTEGER NOT NULL
);

CREATE INDEX IF NOT EXISTS ix_budget_period ON budgets (year, month);

CREATE TABLE IF NOT EXISTS goals (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    target_amount REAL NOT NULL,
    current_amount REAL NOT NULL DEFAULT 0,
    deadline TEXT NOT NULL,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS accounts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    account_name TEXT,
    institution_name TEXT,
    account_number TEXT,
    balance REAL NOT NULL DEFAULT 0
);
"""


class Database:
    """SQLite connection with an explicit open/close lifecycle."""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = str(path) if path is not None else str(DB_PATH)
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def open(self) -> 'Database':
        if self._conn is not None:
            return self
        try:
            if self.path != ':memory:':
                Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.path)
            conn.row_factory = sqlite3.Row
            conn.executescript(SCHEMA_SQL)
            conn.commit()
        except (sqlite3.Error, OSError) as e:
            logger.warning("Could not open database %s: %s", self.path, e)
            raise TransportError(f"Could not open database {self.path}: {e}") from e
        self._conn = conn
        logger.debug("Opened database %s", self.path)
        return self

    def close(self) -> None:
        if self._conn is None:
            return
        self._conn.close()
        self._conn = None
        logger.debug("Closed database %s", self.path)

    def __enter__(self) -> 'Database':
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _require(self) -> sqlite3.Connection:
        if self._conn is None:
            raise TransportError(f"Database {self.path} is not open")
        return self._conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Yield the connection; commit on success, roll back on any error."""
        conn = self._require()
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.warning("Database operation failed on %s: %s", self.path, e)
            raise TransportError(f"Database operation failed: {e}") from e
        except Exception:
            conn.rollback()
            raise

    def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        with self.transaction() as conn:
            rows = conn.execute(sql, list(params)).fetchall()
        return [dict(row) for row in rows]

    def read_frame(self, sql: str, params: Sequence[Any] = ()) -> pd.DataFrame:
        conn = self._require()
        try:
            return pd.read_sql_query(sql, conn, params=list(params))
        except (sqlite3.Error, pd.errors.DatabaseError) as e:
            raise TransportError(f"Database query failed: {e}") from e


class _SqliteStore:
    """CRUD over one table; subclasses set the table and record shape."""

    entity = 'record'
    table = ''
    columns: Sequence[str] = ()
    order_by = 'id ASC'
    field_map: Dict[str, Sequence[str]] = {}

    def __init__(self, database: Database, clock: Optional[Clock] = None):
        self.database = database
        self._clock = clock or default_clock

    def _normalize(self, raw, record_id: Optional[int] = None):
        raise NotImplementedError

    def _select(self, where: str = '', params: Sequence[Any] = ()) -> List[Any]:
        sql = f"SELECT id, {', '.join(self.columns)} FROM {self.table}"
        if where:
            sql += f" WHERE {where}"
        sql += f" ORDER BY {self.order_by}"
        return [self._normalize(row) for row in self.database.fetch_all(sql, params)]

    def list(self) -> List[Any]:
        return self._select()

    def get(self, record_id: int):
        rows = self._select("id = ?", [int(record_id)])
        if not rows:
            raise NotFoundError(self.entity, record_id)
        return rows[0]

    def create(self, data):
        record = self._normalize(as_mapping(data), record_id=0)
        if 'created_at' in self.columns and getattr(record, 'created_at', None) is None:
            record = replace(record, created_at=self._clock())
        fields = to_record_fields(record)
        values = [fields[column] for column in self.columns]
        placeholders = ", ".join("?" for _ in self.columns)
        sql = f"INSERT INTO {self.table} ({', '.join(self.columns)}) VALUES ({placeholders})"
        with self.database.transaction() as conn:
            cursor = conn.execute(sql, values)
            new_id = cursor.lastrowid
        logger.debug("Created %s %s", self.entity, new_id)
        return replace(record, id=new_id)

    def update(self, record_id: int, data):
        current = self.get(record_id)
        record = self._normalize(merge_update(current, data, self.field_map), record_id=int(record_id))
        self._write(record)
        logger.debug("Updated %s %s", self.entity, record_id)
        return record

    def _write(self, record) -> None:
        fields = to_record_fields(record)
        assignments = ", ".join(f"{column} = ?" for column in self.columns)
        values = [fields[column] for column in self.columns] + [record.id]
        with self.database.transaction() as conn:
            cursor = conn.execute(f"UPDATE {self.table} SET {assignments} WHERE id = ?", values)
            if cursor.rowcount == 0:
                raise NotFoundError(self.entity, record.id)

    def delete(self, record_id: int) -> None:
        with self.database.transaction() as conn:
            cursor = conn.execute(f"DELETE FROM {self.table} WHERE id = ?", (int(record_id),))
            if cursor.rowcount == 0:
                raise NotFoundError(self.entity, record_id)
        logger.debug("Deleted %s %s", self.entity, record_id)


class TransactionStore(_SqliteStore):
    entity = 'transaction'
    table = 'transactions'
    columns = ('amount', 'type', 'category', 'description', 'date', 'created_at')
    order_by = 'date DESC, id DESC'
    field_map = TRANSACTION_FIELDS

    def _normalize(self, raw, record_id: Optional[int] = None) -> Transaction:
        return normalize_transaction(raw, record_id=record_id)

    def list_by_category(self, category: str) -> List[Transaction]:
        return self._select("category = ?", [category])

    def list_by_date_range(self, start_date: date, end_date: date) -> List[Transaction]:
        return self._select("date >= ? AND date <= ?", [start_date.isoformat(), end_date.isoformat()])

    def query(self, criteria: FilterCriteria) -> List[Transaction]:
        """Fetch the transactions matching ``criteria``, newest first.

        Date, category and type clauses narrow the SQL query; the engine
        then applies the full criteria so results match
        :func:`engine.apply_filters` exactly.
        """
        where: List[str] = []
        params: List[Any] = []

        if criteria.date_range.start is not None:
            where.append("date >= ?")
            params.append(criteria.date_range.start.isoformat())
        if criteria.date_range.end is not None:
            where.append("date <= ?")
            params.append(criteria.date_range.end.isoformat())
        if criteria.categories:
            categories = sorted(criteria.categories)
            where.append("category IN ({})".format(",".join("?" for _ in categories)))
            params.extend(categories)
        if criteria.type_filter and criteria.type_filter != ALL_TYPES:
            where.append("type = ?")
            params.append(criteria.type_filter)

        rows = self._select(" AND ".join(where), params)
        return engine.apply_filters(rows, criteria)

    def frame(self) -> pd.DataFrame:
        sql = (
            "SELECT id, date AS 'Date', description AS 'Description', category AS 'Category', "
            "type AS 'Type', amount AS 'Amount' FROM transactions ORDER BY date DESC, id DESC"
        )
        df = self.database.read_frame(sql)
        if not df.empty:
            df['Date'] = pd.to_datetime(df['Date'])
        return df


class BudgetStore(_SqliteStore):
    entity = 'budget'
    table = 'budgets'
    columns = ('category_id', 'amount', 'month', 'year')
    order_by = 'year DESC, month DESC, category_id ASC'
    field_map = BUDGET_FIELDS

    def _normalize(self, raw, record_id: Optional[int] = None) -> Budget:
        return normalize_budget(raw, record_id=record_id)

    def list_by_month(self, month: Union[str, int], year: int) -> List[Budget]:
        return self._select("month = ? AND year = ?", [parse_month(month), int(year)])

    def list_by_category(self, category_id: str) -> List[Budget]:
        return self._select("category_id = ?", [category_id])


class GoalStore(_SqliteStore):
    entity = 'goal'
    table = 'goals'
    columns = ('name', 'target_amount', 'current_amount', 'deadline', 'created_at')
    order_by = 'deadline ASC, id ASC'
    field_map = GOAL_FIELDS

    def _normalize(self, raw, record_id: Optional[int] = None) -> Goal:
        return normalize_goal(raw, record_id=record_id)

    def update_progress(self, record_id: int, delta: float) -> Goal:
        """Add ``delta`` to the saved amount, clamping at zero."""
        goal = engine.apply_progress_delta(self.get(record_id), delta)
        self._write(goal)
        logger.debug("Goal %s progress %+.2f -> %.2f", record_id, delta, goal.current_amount)
        return goal


class AccountStore(_SqliteStore):
    entity = 'account'
    table = 'accounts'
    columns = ('account_name', 'institution_name', 'account_number', 'balance')
    order_by = 'account_name ASC, id ASC'
    field_map = ACCOUNT_FIELDS

    def _normalize(self, raw, record_id: Optional[int] = None) -> BankAccount:
        return normalize_account(raw, record_id=record_id)


def build_stores(database: Database, clock: Optional[Clock] = None) -> Stores:
    """Construct the four stores around an (opened) database."""
    return Stores(
        transactions=TransactionStore(database, clock),
        budgets=BudgetStore(database, clock),
        goals=GoalStore(database, clock),
        accounts=AccountStore(database, clock),
    )
