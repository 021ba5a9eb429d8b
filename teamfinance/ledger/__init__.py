"""Mini README: Account ledger package for Team Finance.

This package owns every write to account balances. ``LedgerPoster`` turns a
money movement into a balance update plus an immutable ``LedgerEntry``;
``AccountService`` manages descriptive account data; ``LedgerReconciler``
replays the ledger to detect drift. Stores are passed in explicitly: the
in-memory store backs tests and demos, the SQLite store backs the service.
"""

from .accounts import AccountService, AccountStatement
from .errors import (
    AccountNotFound,
    EntryNotFound,
    InvalidAccount,
    InvalidAmount,
    InvalidDirection,
    InvalidReference,
    InvalidTransfer,
    LedgerError,
    QueryFailure,
    RenderFailure,
)
from .models import Account, AccountKind, Direction, LedgerEntry, ReferenceType
from .poster import LedgerPoster, coerce_amount
from .reconciliation import Discrepancy, LedgerReconciler, ReconciliationReport
from .sqlite_store import SQLiteLedgerStore
from .store import InMemoryLedgerStore, LedgerSession, LedgerStore

__all__ = [
    "Account",
    "AccountKind",
    "AccountNotFound",
    "AccountService",
    "AccountStatement",
    "Direction",
    "Discrepancy",
    "EntryNotFound",
    "InMemoryLedgerStore",
    "InvalidAccount",
    "InvalidAmount",
    "InvalidDirection",
    "InvalidReference",
    "InvalidTransfer",
    "LedgerEntry",
    "LedgerError",
    "LedgerPoster",
    "LedgerReconciler",
    "LedgerSession",
    "LedgerStore",
    "QueryFailure",
    "ReconciliationReport",
    "ReferenceType",
    "RenderFailure",
    "SQLiteLedgerStore",
    "coerce_amount",
]
