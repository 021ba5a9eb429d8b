"""Mini README: Storage contracts for accounts and ledger entries.

Structure:
    * LedgerSession - write handle scoped to one account inside a transaction.
    * LedgerStore - abstract store consumed by the poster, reports and accounts.
    * InMemoryLedgerStore - dictionary-backed store for tests and demos.

A store is always constructed explicitly and passed in; nothing in the
package keeps a module-level connection. ``transaction(account_id)`` is the
only way to touch a balance: it serialises writers per account, yields a
session offering atomic increment-and-fetch plus insert-one, and rolls both
effects back together when the block raises.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections import defaultdict
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import datetime
from typing import Any, AsyncContextManager, AsyncIterator, Dict, Iterable, List, Optional, Tuple

from ..logging_utils import get_logger
from .errors import AccountNotFound, EntryNotFound
from .models import Account, LedgerEntry

LOGGER = get_logger(__name__)

JoinedEntry = Tuple[LedgerEntry, Account]


def _copy_account(account: Account) -> Account:
    return replace(account, details=dict(account.details))


class LedgerSession(ABC):
    """Write operations available while an account transaction is open."""

    account_id: str

    @abstractmethod
    async def increment_balance(self, delta: float) -> float:
        """Add ``delta`` to the account balance and return the new balance."""

    @abstractmethod
    async def insert_entry(self, entry: LedgerEntry) -> None:
        """Append one immutable ledger entry."""


class LedgerStore(ABC):
    """Abstract persistence layer for accounts and the ledger."""

    async def connect(self) -> None:
        """Open underlying resources. In-memory stores have nothing to open."""

    async def close(self) -> None:
        """Release underlying resources."""

    async def __aenter__(self) -> "LedgerStore":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @abstractmethod
    async def create_account(self, account: Account) -> Account:
        """Persist a new account and return the stored copy."""

    @abstractmethod
    async def get_account(self, account_id: str) -> Account:
        """Return an account or raise ``AccountNotFound``."""

    @abstractmethod
    async def list_accounts(self, owner_id: Optional[str] = None) -> List[Account]:
        """Return accounts ordered by creation time, optionally for one owner."""

    @abstractmethod
    async def update_account(
        self,
        account_id: str,
        *,
        name: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> Account:
        """Change descriptive fields. Balances are never writable here."""

    @abstractmethod
    def transaction(self, account_id: str) -> AsyncContextManager[LedgerSession]:
        """Async context manager yielding a ``LedgerSession`` for one account."""

    @abstractmethod
    async def get_entry(self, entry_id: str) -> LedgerEntry:
        """Return a ledger entry or raise ``EntryNotFound``."""

    @abstractmethod
    async def query_entries(
        self,
        *,
        account_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[JoinedEntry]:
        """Return entries joined with their account, newest first.

        ``start`` and ``end`` are inclusive bounds on ``created_at``. Entries
        sharing a timestamp are ordered by reverse insertion so the result is
        stable across calls.
        """


class _InMemorySession(LedgerSession):
    """Session that records undo steps so a failed block leaves no trace."""

    def __init__(self, store: "InMemoryLedgerStore", account_id: str) -> None:
        self._store = store
        self.account_id = account_id
        self._balance_before: Optional[float] = None
        self._inserted: List[LedgerEntry] = []

    async def increment_balance(self, delta: float) -> float:
        account = self._store._accounts.get(self.account_id)
        if account is None:
            raise AccountNotFound(self.account_id)
        if self._balance_before is None:
            self._balance_before = account.balance
        account.balance += delta
        # yield to the loop like a real store round trip
        await asyncio.sleep(0)
        return account.balance

    async def insert_entry(self, entry: LedgerEntry) -> None:
        if entry.account_id != self.account_id:
            raise ValueError(
                f"Entry for account {entry.account_id} inserted in transaction for {self.account_id}"
            )
        await asyncio.sleep(0)
        self._store._append(entry)
        self._inserted.append(entry)

    def rollback(self) -> None:
        account = self._store._accounts.get(self.account_id)
        if account is not None and self._balance_before is not None:
            account.balance = self._balance_before
        for entry in self._inserted:
            self._store._discard(entry)
        LOGGER.warning(
            "Rolled back transaction on account %s (%s entries discarded)",
            self.account_id,
            len(self._inserted),
        )


class InMemoryLedgerStore(LedgerStore):
    """Keep accounts and entries in process memory with per-account locks."""

    def __init__(
        self,
        accounts: Optional[Iterable[Account]] = None,
        entries: Optional[Iterable[LedgerEntry]] = None,
    ) -> None:
        self._accounts: Dict[str, Account] = {}
        self._entries: List[LedgerEntry] = []
        self._entry_index: Dict[str, LedgerEntry] = {}
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        for account in accounts or []:
            self._register_account(account)
        for entry in entries or []:
            self._append(entry)
        LOGGER.debug(
            "In-memory ledger store initialised with %s accounts and %s entries",
            len(self._accounts),
            len(self._entries),
        )

    def _register_account(self, account: Account) -> Account:
        if account.account_id in self._accounts:
            raise ValueError(f"Account {account.account_id} already exists.")
        stored = _copy_account(account)
        self._accounts[account.account_id] = stored
        return stored

    def _append(self, entry: LedgerEntry) -> None:
        if entry.entry_id in self._entry_index:
            raise ValueError(f"Ledger entry {entry.entry_id} already exists.")
        self._entries.append(entry)
        self._entry_index[entry.entry_id] = entry

    def _discard(self, entry: LedgerEntry) -> None:
        self._entries.remove(entry)
        self._entry_index.pop(entry.entry_id, None)

    async def create_account(self, account: Account) -> Account:
        stored = self._register_account(account)
        LOGGER.info("Created %s account %s (%s)", stored.kind.value, stored.account_id, stored.name)
        return _copy_account(stored)

    async def get_account(self, account_id: str) -> Account:
        account = self._accounts.get(account_id)
        if account is None:
            raise AccountNotFound(account_id)
        return _copy_account(account)

    async def list_accounts(self, owner_id: Optional[str] = None) -> List[Account]:
        accounts = [
            _copy_account(account)
            for account in self._accounts.values()
            if owner_id is None or account.owner_id == owner_id
        ]
        return sorted(accounts, key=lambda account: account.created_at)

    async def update_account(
        self,
        account_id: str,
        *,
        name: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> Account:
        account = self._accounts.get(account_id)
        if account is None:
            raise AccountNotFound(account_id)
        if name is not None:
            account.name = name
        if details is not None:
            account.details = dict(details)
        return _copy_account(account)

    @asynccontextmanager
    async def transaction(self, account_id: str) -> AsyncIterator[LedgerSession]:
        if account_id not in self._accounts:
            raise AccountNotFound(account_id)
        async with self._locks[account_id]:
            session = _InMemorySession(self, account_id)
            try:
                yield session
            except BaseException:
                session.rollback()
                raise

    async def get_entry(self, entry_id: str) -> LedgerEntry:
        entry = self._entry_index.get(entry_id)
        if entry is None:
            raise EntryNotFound(entry_id)
        return entry

    async def query_entries(
        self,
        *,
        account_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[JoinedEntry]:
        selected = [
            (position, entry)
            for position, entry in enumerate(self._entries)
            if (account_id is None or entry.account_id == account_id)
            and (start is None or entry.created_at >= start)
            and (end is None or entry.created_at <= end)
        ]
        selected.sort(key=lambda item: (item[1].created_at, item[0]), reverse=True)
        return [(entry, _copy_account(self._accounts[entry.account_id])) for _, entry in selected]
