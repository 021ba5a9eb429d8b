"""Mini README: Exception hierarchy shared by the ledger and report packages.

Every error derives from ``LedgerError`` so the web layer can map the whole
family with one handler. Input problems also subclass ``ValueError`` and
missing records subclass ``LookupError`` so plain Python callers can catch
them the usual way.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for ledger, account and report failures."""


class InvalidAmount(LedgerError, ValueError):
    """Amount is zero, non-numeric, NaN or infinite."""


class InvalidDirection(LedgerError, ValueError):
    """Direction is neither credit nor debit."""


class InvalidReference(LedgerError, ValueError):
    """Reference type is not one of the supported business reasons."""


class InvalidTransfer(LedgerError, ValueError):
    """Transfer legs point at the same account."""


class InvalidAccount(LedgerError, ValueError):
    """Account kind or name is not acceptable."""


class AccountNotFound(LedgerError, LookupError):
    """The referenced account does not exist (or is not visible to the caller)."""

    def __init__(self, account_id: str) -> None:
        super().__init__(f"Account {account_id} not found")
        self.account_id = account_id


class EntryNotFound(LedgerError, LookupError):
    """The referenced ledger entry does not exist."""

    def __init__(self, entry_id: str) -> None:
        super().__init__(f"Ledger entry {entry_id} not found")
        self.entry_id = entry_id


class QueryFailure(LedgerError):
    """The store failed while reading entries for a report."""


class RenderFailure(LedgerError):
    """A report encoder failed after the query succeeded."""
