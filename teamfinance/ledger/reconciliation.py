"""Mini README: Consistency checks between balances and the ledger.

Structure:
    * Discrepancy - one detected mismatch.
    * ReconciliationReport - summary returned to the CLI and web layer.
    * LedgerReconciler - replays every account's entries in creation order.

The reconciler is the recovery path for the poster: it recomputes each
entry's expected ``balance_after`` from the opening balance and the deltas,
checks the sign invariant, and compares the stored account balance with the
last snapshot. It only reads; fixes are posted as reversal entries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..logging_utils import get_logger
from .models import Account, Direction, LedgerEntry
from .store import LedgerStore

LOGGER = get_logger(__name__)

TOLERANCE = 1e-6


@dataclass(slots=True)
class Discrepancy:
    """Single mismatch found while replaying the ledger."""

    account_id: str
    kind: str
    expected: float
    actual: float
    entry_id: Optional[str] = None

    def as_dict(self) -> Dict[str, object]:
        return {
            "account_id": self.account_id,
            "entry_id": self.entry_id,
            "kind": self.kind,
            "expected": self.expected,
            "actual": self.actual,
        }


@dataclass(slots=True)
class ReconciliationReport:
    accounts_checked: int = 0
    entries_checked: int = 0
    discrepancies: List[Discrepancy] = field(default_factory=list)

    @property
    def is_consistent(self) -> bool:
        return not self.discrepancies

    def as_dict(self) -> Dict[str, object]:
        return {
            "accounts_checked": self.accounts_checked,
            "entries_checked": self.entries_checked,
            "is_consistent": self.is_consistent,
            "discrepancies": [item.as_dict() for item in self.discrepancies],
        }


def _differs(expected: float, actual: float) -> bool:
    return abs(expected - actual) > TOLERANCE


class LedgerReconciler:
    """Replay the ledger and report balances that drifted from their entries."""

    def __init__(self, store: LedgerStore) -> None:
        self._store = store

    async def reconcile(self, owner_id: Optional[str] = None) -> ReconciliationReport:
        report = ReconciliationReport()
        for account in await self._store.list_accounts(owner_id):
            joined = await self._store.query_entries(account_id=account.account_id)
            entries = [entry for entry, _ in reversed(joined)]
            LOGGER.debug("Checking account %s with %s entries", account.account_id, len(entries))
            report.discrepancies.extend(self._check_account(account, entries))
            report.accounts_checked += 1
            report.entries_checked += len(entries)

        for discrepancy in report.discrepancies:
            LOGGER.warning(
                "Ledger discrepancy on account %s (%s): expected %.2f, found %.2f [entry %s]",
                discrepancy.account_id,
                discrepancy.kind,
                discrepancy.expected,
                discrepancy.actual,
                discrepancy.entry_id or "-",
            )
        LOGGER.info(
            "Reconciled %s accounts / %s entries: %s discrepancies",
            report.accounts_checked,
            report.entries_checked,
            len(report.discrepancies),
        )
        return report

    @staticmethod
    def _check_account(account: Account, entries: List[LedgerEntry]) -> List[Discrepancy]:
        """Check one account's entries, oldest first."""

        found: List[Discrepancy] = []
        running = account.opening_balance
        for entry in entries:
            expected_delta = entry.amount if entry.direction is Direction.CREDIT else -entry.amount
            if entry.amount < 0 or _differs(expected_delta, entry.delta):
                found.append(
                    Discrepancy(account.account_id, "sign", expected_delta, entry.delta, entry.entry_id)
                )
            running += entry.delta
            if _differs(running, entry.balance_after):
                found.append(
                    Discrepancy(account.account_id, "chain", running, entry.balance_after, entry.entry_id)
                )
                # continue from the recorded snapshot so one break is reported once
                running = entry.balance_after

        latest = entries[-1].balance_after if entries else account.opening_balance
        if _differs(latest, account.balance):
            found.append(Discrepancy(account.account_id, "balance", latest, account.balance))
        return found
