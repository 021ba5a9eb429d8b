"""Mini README: Tests for the shared report query.

Covers calendar-day bounds (inclusive to the last millisecond of the end
date), lenient handling of malformed dates, newest-first ordering with a
stable tie-break, account filtering and query failure mapping.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from teamfinance.ledger import InMemoryLedgerStore, QueryFailure
from teamfinance.reports import ReportFilter, fetch_report_rows, parse_report_date

UTC = timezone.utc
IST = timezone(timedelta(hours=5, minutes=30))


@pytest.fixture
def seeded_store(make_account, make_entry) -> InMemoryLedgerStore:
    operations = make_account("acc_ops", name="Operations")
    petty = make_account("acc_petty", name="Petty Cash")
    entries = [
        make_entry("txn_before", "acc_ops", datetime(2024, 3, 4, 23, 59, 59, 999999, tzinfo=UTC)),
        make_entry("txn_midnight", "acc_ops", datetime(2024, 3, 5, 0, 0, tzinfo=UTC)),
        make_entry("txn_noon", "acc_petty", datetime(2024, 3, 5, 12, 0, tzinfo=UTC)),
        make_entry("txn_last_ms", "acc_ops", datetime(2024, 3, 5, 23, 59, 59, 999000, tzinfo=UTC)),
        make_entry("txn_next_day", "acc_ops", datetime(2024, 3, 6, 0, 0, tzinfo=UTC)),
    ]
    return InMemoryLedgerStore(accounts=[operations, petty], entries=entries)


async def _ids(store: InMemoryLedgerStore, report_filter: ReportFilter, tz=UTC):
    """Entry ids selected by the filter bounds, in report order."""

    start, end = report_filter.bounds(tz)
    joined = await store.query_entries(account_id=report_filter.account_id, start=start, end=end)
    return [entry.entry_id for entry, _ in joined]


def test_parse_report_date_is_lenient() -> None:
    assert parse_report_date("2024-03-05") == date(2024, 3, 5)
    assert parse_report_date("2024-03-05T10:00:00Z") == date(2024, 3, 5)
    assert parse_report_date("not-a-date") is None
    assert parse_report_date("") is None
    assert parse_report_date(None) is None


def test_filter_bounds_cover_whole_days() -> None:
    start, end = ReportFilter.from_params(None, "2024-03-05", "2024-03-05").bounds(UTC)
    assert start == datetime(2024, 3, 5, 0, 0, tzinfo=UTC)
    assert end == datetime(2024, 3, 5, 23, 59, 59, 999999, tzinfo=UTC)


@pytest.mark.asyncio
async def test_end_date_includes_last_millisecond_and_excludes_next_day(seeded_store) -> None:
    ids = await _ids(seeded_store, ReportFilter.from_params(None, None, "2024-03-05"))
    assert "txn_last_ms" in ids
    assert "txn_next_day" not in ids


@pytest.mark.asyncio
async def test_start_date_excludes_previous_day(seeded_store) -> None:
    ids = await _ids(seeded_store, ReportFilter.from_params(None, "2024-03-05", None))
    assert "txn_before" not in ids
    assert "txn_midnight" in ids


@pytest.mark.asyncio
async def test_malformed_start_date_is_ignored(seeded_store) -> None:
    """A bad start bound is dropped; the valid end bound still applies."""

    report_filter = ReportFilter.from_params(None, "not-a-date", "2024-03-05")
    assert report_filter.start_date is None
    assert report_filter.requested_start == "not-a-date"

    ids = await _ids(seeded_store, report_filter)
    assert ids == ["txn_last_ms", "txn_noon", "txn_midnight", "txn_before"]


@pytest.mark.asyncio
async def test_rows_are_newest_first_and_projected(seeded_store) -> None:
    rows = await fetch_report_rows(seeded_store, ReportFilter())
    assert [(row.date, row.time) for row in rows] == [
        ("2024-03-06", "00:00:00"),
        ("2024-03-05", "23:59:59"),
        ("2024-03-05", "12:00:00"),
        ("2024-03-05", "00:00:00"),
        ("2024-03-04", "23:59:59"),
    ]
    assert rows[2].account_name == "Petty Cash"
    assert rows[2].account_kind == "bank"
    assert rows[2].direction == "credit"
    assert rows[2].remark == ""


@pytest.mark.asyncio
async def test_account_filter(seeded_store) -> None:
    rows = await fetch_report_rows(seeded_store, ReportFilter.from_params("acc_petty"))
    assert [row.account_name for row in rows] == ["Petty Cash"]


@pytest.mark.asyncio
async def test_equal_timestamps_keep_reverse_insertion_order(make_account, make_entry) -> None:
    moment = datetime(2024, 3, 5, 9, 0, tzinfo=UTC)
    store = InMemoryLedgerStore(
        accounts=[make_account("acc_ops")],
        entries=[make_entry(f"txn_{i}", "acc_ops", moment, remark=str(i)) for i in range(3)],
    )
    first = await fetch_report_rows(store, ReportFilter())
    second = await fetch_report_rows(store, ReportFilter())
    assert [row.remark for row in first] == ["2", "1", "0"]
    assert first == second


@pytest.mark.asyncio
async def test_report_time_zone_shifts_day_bounds(seeded_store) -> None:
    """In IST the 5th ends at 18:29:59.999999 UTC, so the late entry moves out."""

    rows = await fetch_report_rows(
        seeded_store, ReportFilter.from_params(None, "2024-03-05", "2024-03-05"), IST
    )
    assert [(row.date, row.time) for row in rows] == [
        ("2024-03-05", "17:30:00"),
        ("2024-03-05", "05:30:00"),
        ("2024-03-05", "05:29:59"),
    ]


@pytest.mark.asyncio
async def test_store_failure_becomes_query_failure() -> None:
    class BrokenStore(InMemoryLedgerStore):
        async def query_entries(self, **kwargs):
            raise RuntimeError("connection reset")

    with pytest.raises(QueryFailure, match="connection reset"):
        await fetch_report_rows(BrokenStore(), ReportFilter())
