"""Mini README: Shared fixtures for the Team Finance test-suite.

Structure:
    * store / accounts / poster - fresh in-memory ledger wiring per test.
    * wallet / bank - accounts owned by ``user_1`` with zero opening balance.
    * make_entry - build ledger entries with explicit timestamps for seeding.
    * StepClock - deterministic clock advancing one second per call.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import pytest
import pytest_asyncio

from teamfinance.ledger import (
    Account,
    AccountKind,
    AccountService,
    Direction,
    InMemoryLedgerStore,
    LedgerEntry,
    LedgerPoster,
    ReferenceType,
)


class StepClock:
    """Clock returning ``start``, ``start + step``, ... on successive calls."""

    def __init__(self, start: datetime, step: timedelta = timedelta(seconds=1)) -> None:
        self._current = start
        self._step = step

    def __call__(self) -> datetime:
        value = self._current
        self._current += self._step
        return value


@pytest.fixture
def store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore()


@pytest.fixture
def accounts(store: InMemoryLedgerStore) -> AccountService:
    return AccountService(store)


@pytest.fixture
def poster(store: InMemoryLedgerStore) -> LedgerPoster:
    return LedgerPoster(store)


@pytest_asyncio.fixture
async def wallet(accounts: AccountService) -> Account:
    return await accounts.create_account("user_1", "wallet", "Team Wallet")


@pytest_asyncio.fixture
async def bank(accounts: AccountService) -> Account:
    return await accounts.create_account("user_1", "bank", "HDFC Current")


@pytest.fixture
def make_account() -> Callable[..., Account]:
    def _make(
        account_id: str,
        name: str = "Operations",
        kind: AccountKind = AccountKind.BANK,
        balance: float = 0.0,
        opening_balance: float = 0.0,
    ) -> Account:
        return Account(
            account_id=account_id,
            owner_id="user_1",
            kind=kind,
            name=name,
            balance=balance,
            opening_balance=opening_balance,
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )

    return _make


@pytest.fixture
def make_entry() -> Callable[..., LedgerEntry]:
    def _make(
        entry_id: str,
        account_id: str,
        created_at: datetime,
        amount: float = 10.0,
        direction: Direction = Direction.CREDIT,
        balance_after: float = 0.0,
        remark: Optional[str] = None,
        ref_type: ReferenceType = ReferenceType.MANUAL,
    ) -> LedgerEntry:
        return LedgerEntry(
            entry_id=entry_id,
            user_id="user_1",
            account_id=account_id,
            direction=direction,
            amount=amount,
            delta=direction.signed(amount),
            balance_after=balance_after,
            ref_type=ref_type,
            remark=remark,
            created_at=created_at,
        )

    return _make


@pytest.fixture
def clock() -> StepClock:
    return StepClock(datetime(2024, 3, 5, 9, 0, tzinfo=timezone.utc))
