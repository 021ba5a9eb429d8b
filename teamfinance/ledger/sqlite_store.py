"""Mini README: SQLite-backed ledger store built on aiosqlite.

Structure:
    * SCHEMA_STATEMENTS - DDL for accounts, ledger entries and immutability triggers.
    * create_connection - opens a WAL-mode connection in autocommit mode.
    * SQLiteLedgerStore - ``LedgerStore`` implementation with explicit transactions.

Every account transaction runs inside ``BEGIN IMMEDIATE`` so the balance
update and the ledger insert commit or roll back together. A single
connection is shared, so an asyncio lock serialises access to it; SQLite
allows one writer at a time anyway. Triggers reject UPDATE and DELETE on
ledger entries, keeping the table append-only even for ad-hoc SQL.
"""

from __future__ import annotations

import asyncio
import json
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional

import aiosqlite

from ..logging_utils import get_logger
from .errors import AccountNotFound, EntryNotFound
from .models import Account, AccountKind, Direction, LedgerEntry, ReferenceType
from .store import JoinedEntry, LedgerSession, LedgerStore

LOGGER = get_logger(__name__)

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS accounts (
        account_id TEXT PRIMARY KEY,
        owner_id TEXT NOT NULL,
        kind TEXT NOT NULL CHECK (kind IN ('bank', 'wallet')),
        name TEXT NOT NULL,
        details TEXT NOT NULL DEFAULT '{}',
        balance REAL NOT NULL DEFAULT 0,
        opening_balance REAL NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS ledger_entries (
        seq INTEGER PRIMARY KEY AUTOINCREMENT,
        entry_id TEXT NOT NULL UNIQUE,
        user_id TEXT NOT NULL,
        account_id TEXT NOT NULL REFERENCES accounts(account_id),
        direction TEXT NOT NULL CHECK (direction IN ('credit', 'debit')),
        amount REAL NOT NULL CHECK (amount >= 0),
        delta REAL NOT NULL,
        balance_after REAL NOT NULL,
        ref_type TEXT NOT NULL,
        ref_id TEXT,
        remark TEXT,
        created_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_ledger_entries_created ON ledger_entries (created_at)",
    "CREATE INDEX IF NOT EXISTS idx_ledger_entries_account ON ledger_entries (account_id, created_at)",
    """
    CREATE TRIGGER IF NOT EXISTS ledger_entries_no_update
    BEFORE UPDATE ON ledger_entries
    BEGIN
        SELECT RAISE(ABORT, 'ledger entries are immutable');
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS ledger_entries_no_delete
    BEFORE DELETE ON ledger_entries
    BEGIN
        SELECT RAISE(ABORT, 'ledger entries are immutable');
    END
    """,
)

_ENTRY_COLUMNS = (
    "e.entry_id, e.user_id, e.account_id, e.direction, e.amount, e.delta, "
    "e.balance_after, e.ref_type, e.ref_id, e.remark, e.created_at"
)
_ACCOUNT_COLUMNS = (
    "a.account_id AS a_account_id, a.owner_id AS a_owner_id, a.kind AS a_kind, "
    "a.name AS a_name, a.details AS a_details, a.balance AS a_balance, "
    "a.opening_balance AS a_opening_balance, a.created_at AS a_created_at"
)


def _to_db_timestamp(value: datetime) -> str:
    """Normalise to UTC with fixed precision so text comparison orders correctly."""

    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _from_db_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value)


async def create_connection(db_path: Path | str) -> aiosqlite.Connection:
    """Open a WAL-mode connection with explicit transaction control."""

    db_path_str = str(db_path)
    if db_path_str != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path_str, isolation_level=None)
    conn.row_factory = aiosqlite.Row
    await conn.execute("PRAGMA journal_mode=WAL")
    await conn.execute("PRAGMA busy_timeout=30000")
    await conn.execute("PRAGMA foreign_keys=ON")
    LOGGER.info("Opened SQLite ledger database %s", db_path_str)
    return conn


class _SQLiteSession(LedgerSession):
    def __init__(self, conn: aiosqlite.Connection, account_id: str) -> None:
        self._conn = conn
        self.account_id = account_id

    async def increment_balance(self, delta: float) -> float:
        cursor = await self._conn.execute(
            "UPDATE accounts SET balance = balance + ? WHERE account_id = ?",
            (delta, self.account_id),
        )
        if cursor.rowcount == 0:
            raise AccountNotFound(self.account_id)
        cursor = await self._conn.execute(
            "SELECT balance FROM accounts WHERE account_id = ?", (self.account_id,)
        )
        row = await cursor.fetchone()
        return float(row["balance"])

    async def insert_entry(self, entry: LedgerEntry) -> None:
        if entry.account_id != self.account_id:
            raise ValueError(
                f"Entry for account {entry.account_id} inserted in transaction for {self.account_id}"
            )
        await self._conn.execute(
            """
            INSERT INTO ledger_entries (
                entry_id, user_id, account_id, direction, amount, delta,
                balance_after, ref_type, ref_id, remark, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                entry.entry_id,
                entry.user_id,
                entry.account_id,
                entry.direction.value,
                entry.amount,
                entry.delta,
                entry.balance_after,
                entry.ref_type.value,
                entry.ref_id,
                entry.remark,
                _to_db_timestamp(entry.created_at),
            ),
        )


class SQLiteLedgerStore(LedgerStore):
    """Persist accounts and ledger entries in a single SQLite database."""

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = db_path
        self._conn: Optional[aiosqlite.Connection] = None
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    async def connect(self) -> None:
        if self._conn is not None:
            return
        self._conn = await create_connection(self.db_path)
        for statement in SCHEMA_STATEMENTS:
            await self._conn.execute(statement)

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            LOGGER.info("Closed SQLite ledger database %s", self.db_path)

    @property
    def conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Ledger store is not connected")
        return self._conn

    async def _fetchone(self, sql: str, parameters: tuple = ()) -> Optional[aiosqlite.Row]:
        async with self._lock:
            cursor = await self.conn.execute(sql, parameters)
            return await cursor.fetchone()

    async def _fetchall(self, sql: str, parameters: tuple = ()) -> List[aiosqlite.Row]:
        async with self._lock:
            cursor = await self.conn.execute(sql, parameters)
            return list(await cursor.fetchall())

    async def create_account(self, account: Account) -> Account:
        async with self._lock:
            await self.conn.execute(
                """
                INSERT INTO accounts (
                    account_id, owner_id, kind, name, details, balance,
                    opening_balance, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    account.account_id,
                    account.owner_id,
                    account.kind.value,
                    account.name,
                    json.dumps(account.details),
                    account.balance,
                    account.opening_balance,
                    _to_db_timestamp(account.created_at),
                ),
            )
        LOGGER.info("Created %s account %s (%s)", account.kind.value, account.account_id, account.name)
        return await self.get_account(account.account_id)

    async def get_account(self, account_id: str) -> Account:
        row = await self._fetchone(
            f"SELECT {_ACCOUNT_COLUMNS} FROM accounts a WHERE a.account_id = ?", (account_id,)
        )
        if row is None:
            raise AccountNotFound(account_id)
        return _account_from_row(row)

    async def list_accounts(self, owner_id: Optional[str] = None) -> List[Account]:
        sql = f"SELECT {_ACCOUNT_COLUMNS} FROM accounts a"
        parameters: tuple = ()
        if owner_id is not None:
            sql += " WHERE a.owner_id = ?"
            parameters = (owner_id,)
        rows = await self._fetchall(sql + " ORDER BY a.created_at, a.rowid", parameters)
        return [_account_from_row(row) for row in rows]

    async def update_account(
        self,
        account_id: str,
        *,
        name: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> Account:
        assignments: List[str] = []
        parameters: List[Any] = []
        if name is not None:
            assignments.append("name = ?")
            parameters.append(name)
        if details is not None:
            assignments.append("details = ?")
            parameters.append(json.dumps(details))
        if assignments:
            async with self._lock:
                cursor = await self.conn.execute(
                    f"UPDATE accounts SET {', '.join(assignments)} WHERE account_id = ?",
                    (*parameters, account_id),
                )
                if cursor.rowcount == 0:
                    raise AccountNotFound(account_id)
        return await self.get_account(account_id)

    @asynccontextmanager
    async def transaction(self, account_id: str) -> AsyncIterator[LedgerSession]:
        async with self._lock:
            await self.conn.execute("BEGIN IMMEDIATE")
            try:
                yield _SQLiteSession(self.conn, account_id)
            except BaseException:
                await self.conn.execute("ROLLBACK")
                LOGGER.warning("Rolled back transaction on account %s", account_id)
                raise
            try:
                await self.conn.execute("COMMIT")
            except Exception:
                await self.conn.execute("ROLLBACK")
                raise

    async def get_entry(self, entry_id: str) -> LedgerEntry:
        row = await self._fetchone(
            f"SELECT {_ENTRY_COLUMNS} FROM ledger_entries e WHERE e.entry_id = ?", (entry_id,)
        )
        if row is None:
            raise EntryNotFound(entry_id)
        return _entry_from_row(row)

    async def query_entries(
        self,
        *,
        account_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[JoinedEntry]:
        clauses: List[str] = []
        parameters: List[Any] = []
        if account_id is not None:
            clauses.append("e.account_id = ?")
            parameters.append(account_id)
        if start is not None:
            clauses.append("e.created_at >= ?")
            parameters.append(_to_db_timestamp(start))
        if end is not None:
            clauses.append("e.created_at <= ?")
            parameters.append(_to_db_timestamp(end))
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = await self._fetchall(
            f"SELECT {_ENTRY_COLUMNS}, {_ACCOUNT_COLUMNS} FROM ledger_entries e"
            f" JOIN accounts a ON a.account_id = e.account_id{where}"
            " ORDER BY e.created_at DESC, e.seq DESC",
            tuple(parameters),
        )
        return [(_entry_from_row(row), _account_from_row(row)) for row in rows]


def _account_from_row(row: aiosqlite.Row) -> Account:
    return Account(
        account_id=row["a_account_id"],
        owner_id=row["a_owner_id"],
        kind=AccountKind(row["a_kind"]),
        name=row["a_name"],
        details=json.loads(row["a_details"] or "{}"),
        balance=float(row["a_balance"]),
        opening_balance=float(row["a_opening_balance"]),
        created_at=_from_db_timestamp(row["a_created_at"]),
    )


def _entry_from_row(row: aiosqlite.Row) -> LedgerEntry:
    return LedgerEntry(
        entry_id=row["entry_id"],
        user_id=row["user_id"],
        account_id=row["account_id"],
        direction=Direction(row["direction"]),
        amount=float(row["amount"]),
        delta=float(row["delta"]),
        balance_after=float(row["balance_after"]),
        ref_type=ReferenceType(row["ref_type"]),
        ref_id=row["ref_id"],
        remark=row["remark"],
        created_at=_from_db_timestamp(row["created_at"]),
    )
