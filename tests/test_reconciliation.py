"""Mini README: Tests for the ledger reconciler."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from teamfinance.ledger import Direction, InMemoryLedgerStore, LedgerReconciler


@pytest.mark.asyncio
async def test_posted_ledger_is_consistent(accounts, poster, store) -> None:
    wallet = await accounts.create_account("user_1", "wallet", "Wallet", opening_balance=50)
    bank = await accounts.create_account("user_1", "bank", "Bank")
    await poster.post_entry("user_1", wallet.account_id, "credit", 100, "payment")
    await poster.transfer("user_1", wallet.account_id, bank.account_id, 30)

    report = await LedgerReconciler(store).reconcile()

    assert report.is_consistent
    assert report.accounts_checked == 2
    assert report.entries_checked == 3
    assert report.as_dict()["discrepancies"] == []


@pytest.mark.asyncio
async def test_drifted_balance_and_broken_chain_are_reported(make_account, make_entry) -> None:
    start = datetime(2024, 3, 5, tzinfo=timezone.utc)
    store = InMemoryLedgerStore(
        accounts=[make_account("acc_ops", balance=999.0)],
        entries=[
            make_entry("txn_1", "acc_ops", start, amount=100, balance_after=100),
            make_entry(
                "txn_2",
                "acc_ops",
                start + timedelta(minutes=1),
                amount=40,
                direction=Direction.DEBIT,
                balance_after=75,
            ),
        ],
    )

    report = await LedgerReconciler(store).reconcile()

    kinds = {(item.kind, item.entry_id) for item in report.discrepancies}
    assert kinds == {("chain", "txn_2"), ("balance", None)}
    chain = next(item for item in report.discrepancies if item.kind == "chain")
    assert chain.expected == pytest.approx(60)
    assert chain.actual == pytest.approx(75)
    assert not report.is_consistent


@pytest.mark.asyncio
async def test_reconcile_can_be_scoped_to_owner(accounts, store) -> None:
    await accounts.create_account("user_1", "wallet", "Mine")
    await accounts.create_account("user_2", "wallet", "Theirs")

    report = await LedgerReconciler(store).reconcile("user_2")

    assert report.accounts_checked == 1
