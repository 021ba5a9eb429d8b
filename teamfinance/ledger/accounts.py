"""Mini README: Account management on top of the ledger store.

Structure:
    * AccountStatement - an account plus its entries, newest first.
    * AccountService - create, list, update and read statements.

Balances are deliberately absent from every write path here; only the
ledger poster moves money. An opening balance is fixed at creation and is
the base the reconciler starts from.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..logging_utils import get_logger
from .errors import AccountNotFound, EntryNotFound, InvalidAccount, InvalidAmount
from .models import Account, AccountKind, LedgerEntry, new_identifier, utcnow
from .store import LedgerStore

LOGGER = get_logger(__name__)


@dataclass(slots=True)
class AccountStatement:
    """Account snapshot with the entries selected for the statement."""

    account: Account
    entries: List[LedgerEntry]

    def as_dict(self) -> Dict[str, object]:
        return {
            "account": self.account.as_dict(),
            "entries": [entry.as_dict() for entry in self.entries],
        }


class AccountService:
    """Descriptive account operations scoped to the calling owner."""

    def __init__(self, store: LedgerStore) -> None:
        self._store = store

    async def create_account(
        self,
        owner_id: str,
        kind: "AccountKind | str",
        name: str,
        details: Optional[Dict[str, Any]] = None,
        opening_balance: float = 0.0,
    ) -> Account:
        """Create a bank or wallet account with an optional opening balance."""

        if not name or not name.strip():
            raise InvalidAccount("Account name is required.")
        try:
            parsed_kind = AccountKind.from_str(kind) if not isinstance(kind, AccountKind) else kind
        except ValueError as error:
            raise InvalidAccount(str(error)) from error
        try:
            opening = float(opening_balance)
        except (TypeError, ValueError, OverflowError) as error:
            raise InvalidAmount(f"Opening balance must be numeric, got {opening_balance!r}") from error
        if math.isnan(opening) or math.isinf(opening):
            raise InvalidAmount("Opening balance must be finite")
        account = Account(
            account_id=new_identifier("acc"),
            owner_id=owner_id,
            kind=parsed_kind,
            name=name.strip(),
            details=dict(details or {}),
            balance=opening,
            opening_balance=opening,
            created_at=utcnow(),
        )
        return await self._store.create_account(account)

    async def list_accounts(self, owner_id: Optional[str] = None) -> List[Account]:
        return await self._store.list_accounts(owner_id)

    async def get_account(self, account_id: str, owner_id: Optional[str] = None) -> Account:
        """Fetch an account, hiding accounts owned by someone else."""

        account = await self._store.get_account(account_id)
        if owner_id is not None and account.owner_id != owner_id:
            raise AccountNotFound(account_id)
        return account

    async def get_entry(self, entry_id: str, owner_id: Optional[str] = None) -> LedgerEntry:
        """Fetch a ledger entry, hiding entries on accounts owned by someone else."""

        entry = await self._store.get_entry(entry_id)
        if owner_id is not None:
            account = await self._store.get_account(entry.account_id)
            if account.owner_id != owner_id:
                raise EntryNotFound(entry_id)
        return entry

    async def update_account(
        self,
        account_id: str,
        owner_id: str,
        *,
        name: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> Account:
        """Rename an account or replace its details blob."""

        await self.get_account(account_id, owner_id)
        if name is not None and not name.strip():
            raise InvalidAccount("Account name cannot be blank.")
        updated = await self._store.update_account(
            account_id,
            name=name.strip() if name is not None else None,
            details=details,
        )
        LOGGER.info("Updated account %s", account_id)
        return updated

    async def statement(
        self,
        account_id: str,
        owner_id: Optional[str] = None,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> AccountStatement:
        """Return the account and its entries within the optional bounds."""

        account = await self.get_account(account_id, owner_id)
        joined = await self._store.query_entries(account_id=account_id, start=start, end=end)
        return AccountStatement(account=account, entries=[entry for entry, _ in joined])
