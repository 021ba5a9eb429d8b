"""Mini README: Shared report query for ledger exports.

Structure:
    * parse_report_date - lenient calendar date parsing (bad input -> None).
    * ReportFilter - optional account and inclusive calendar date bounds.
    * ReportRow - one projected, display-ready ledger line.
    * fetch_report_rows - the single query every renderer consumes.

Date bounds are whole days in the report time zone: the start bound is the
first microsecond of ``start_date`` and the end bound the last microsecond of
``end_date``. A bound that does not parse is dropped instead of failing the
request, so ``startDate=not-a-date&endDate=2024-03-05`` still produces a
report limited by the end date.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timezone, tzinfo
from typing import Dict, List, Optional, Tuple

from ..ledger.errors import LedgerError, QueryFailure
from ..ledger.models import Account, LedgerEntry
from ..ledger.store import LedgerStore
from ..logging_utils import get_logger

LOGGER = get_logger(__name__)


def parse_report_date(value: Optional[object]) -> Optional[date]:
    """Parse ``YYYY-MM-DD`` (or an ISO datetime) and return ``None`` when it fails."""

    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        LOGGER.warning("Ignoring unparseable report date %r", value)
        return None


@dataclass(frozen=True, slots=True)
class ReportFilter:
    """Optional account restriction plus inclusive calendar-day bounds."""

    account_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    requested_start: Optional[str] = None
    requested_end: Optional[str] = None

    @classmethod
    def from_params(
        cls,
        account_id: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> "ReportFilter":
        """Build a filter from raw query parameters, dropping bad dates."""

        return cls(
            account_id=account_id or None,
            start_date=parse_report_date(start_date),
            end_date=parse_report_date(end_date),
            requested_start=start_date or None,
            requested_end=end_date or None,
        )

    def bounds(self, tz: tzinfo = timezone.utc) -> Tuple[Optional[datetime], Optional[datetime]]:
        """Return inclusive (start, end) datetimes for the calendar bounds in ``tz``."""

        start = datetime.combine(self.start_date, time.min, tzinfo=tz) if self.start_date else None
        end = datetime.combine(self.end_date, time.max, tzinfo=tz) if self.end_date else None
        return start, end

    @property
    def period_requested(self) -> bool:
        return bool(self.requested_start or self.requested_end)


@dataclass(frozen=True, slots=True)
class ReportRow:
    """Display projection of one ledger entry joined with its account."""

    date: str
    time: str
    account_name: str
    account_kind: str
    direction: str
    amount: float
    delta: float
    balance_after: float
    ref_type: str
    remark: str

    @classmethod
    def from_joined(cls, entry: LedgerEntry, account: Account, tz: tzinfo) -> "ReportRow":
        local = entry.created_at.astimezone(tz)
        return cls(
            date=local.strftime("%Y-%m-%d"),
            time=local.strftime("%H:%M:%S"),
            account_name=account.name or "",
            account_kind=account.kind.value,
            direction=entry.direction.value,
            amount=entry.amount,
            delta=entry.delta,
            balance_after=entry.balance_after,
            ref_type=entry.ref_type.value,
            remark=entry.remark or "",
        )

    def as_dict(self) -> Dict[str, object]:
        return {
            "date": self.date,
            "time": self.time,
            "account_name": self.account_name,
            "account_kind": self.account_kind,
            "direction": self.direction,
            "amount": self.amount,
            "delta": self.delta,
            "balance_after": self.balance_after,
            "ref_type": self.ref_type,
            "remark": self.remark,
        }


async def fetch_report_rows(
    store: LedgerStore, report_filter: ReportFilter, tz: tzinfo = timezone.utc
) -> List[ReportRow]:
    """Run the report query once and project it into rows, newest first."""

    start, end = report_filter.bounds(tz)
    try:
        joined = await store.query_entries(
            account_id=report_filter.account_id, start=start, end=end
        )
    except LedgerError:
        raise
    except Exception as error:
        LOGGER.exception("Report query failed for %s", report_filter)
        raise QueryFailure(f"Report query failed: {error}") from error
    LOGGER.debug(
        "Report query account=%s start=%s end=%s returned %s entries",
        report_filter.account_id,
        start,
        end,
        len(joined),
    )
    return [ReportRow.from_joined(entry, account, tz) for entry, account in joined]
