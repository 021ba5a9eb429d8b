"""Mini README: Tests for report encoders and the report generator.

Structure:
    * formatting helpers - plain numbers and en-IN grouping.
    * CSV - header order and faithful quoting of awkward remarks.
    * Excel - styled header, widths, number formats, no Account Type column.
    * PDF - valid document and deterministic pagination.
    * ReportGenerator - filenames, media types and failure mapping.
"""

from __future__ import annotations

import csv
import io
from datetime import datetime, timezone

import pytest
from openpyxl import load_workbook

from teamfinance.ledger import InMemoryLedgerStore, RenderFailure
from teamfinance.reports import RENDERERS, ReportFilter, ReportGenerator, ReportRow
from teamfinance.reports.formatting import currency, group_indian, plain_number
from teamfinance.reports.renderers import (
    CSV_HEADERS,
    ReportContext,
    ReportRenderer,
    layout_rows,
)

GENERATED_AT = datetime(2024, 3, 5, 18, 30, tzinfo=timezone.utc)


def _row(remark: str = "Client payment", amount: float = 100.0, delta: float = 100.0) -> ReportRow:
    return ReportRow(
        date="2024-03-05",
        time="10:15:00",
        account_name="Operations",
        account_kind="bank",
        direction="credit" if delta >= 0 else "debit",
        amount=amount,
        delta=delta,
        balance_after=1234567.5,
        ref_type="payment",
        remark=remark,
    )


def _context(**overrides) -> ReportContext:
    values = {"title": "Account Transaction Report", "generated_at": GENERATED_AT}
    values.update(overrides)
    return ReportContext(**values)


def test_plain_number_and_indian_grouping() -> None:
    assert plain_number(100.0) == "100"
    assert plain_number(-12.5) == "-12.5"
    assert plain_number(-0.0) == "0"
    assert group_indian(1234567.5) == "12,34,567.5"
    assert group_indian(-123456) == "-1,23,456"
    assert group_indian(999) == "999"
    assert currency(2500, "Rs. ") == "Rs. 2,500"


def test_period_label_marks_open_bounds() -> None:
    context = _context(requested_start="2024-03-01")
    assert context.period_requested
    assert context.period_label == "Period: 2024-03-01 to All"
    assert not _context().period_requested


def test_registry_lists_builtin_formats() -> None:
    assert set(RENDERERS.available_formats()) >= {"csv", "excel", "pdf"}
    with pytest.raises(KeyError):
        RENDERERS.create("docx")


def test_csv_round_trips_commas_and_quotes() -> None:
    remark = 'Paid "Acme, Inc."\nsecond line'
    content = RENDERERS.create("csv").render([_row(remark, 12.5, -12.5)], _context())

    parsed = list(csv.reader(io.StringIO(content.decode("utf-8"), newline="")))
    assert tuple(parsed[0]) == CSV_HEADERS
    assert parsed[1] == [
        "2024-03-05",
        "10:15:00",
        "Operations",
        "bank",
        "debit",
        "12.5",
        "-12.5",
        "1234567.5",
        "payment",
        remark,
    ]


def test_csv_with_no_rows_has_only_header() -> None:
    content = RENDERERS.create("csv").render([], _context())
    assert content.decode("utf-8").splitlines() == [",".join(CSV_HEADERS)]


def test_excel_layout_and_styles() -> None:
    content = RENDERERS.create("excel").render([_row(), _row("Refund", 40.0, -40.0)], _context())
    worksheet = load_workbook(io.BytesIO(content)).active

    assert worksheet.title == "Account Report"
    headers = [cell.value for cell in worksheet[1]]
    assert headers == [
        "Date",
        "Time",
        "Account",
        "Type",
        "Amount",
        "Delta",
        "Balance After",
        "Reference",
        "Remark",
    ]
    assert "Account Type" not in headers
    header = worksheet["A1"]
    assert header.font.bold
    assert header.font.color.rgb == "FFFFFFFF"
    assert header.fill.fill_type == "solid"
    assert header.fill.start_color.rgb == "FF6F42C1"
    assert worksheet.column_dimensions["A"].width == 12
    assert worksheet.column_dimensions["I"].width == 40
    assert worksheet["E2"].value == 100
    assert worksheet["E2"].number_format == "#,##0.00"
    assert worksheet["F3"].value == -40
    assert worksheet["I3"].value == "Refund"
    assert worksheet.max_row == 3


def test_pdf_is_a_valid_document() -> None:
    rows = [_row("x" * 80) for _ in range(75)]
    content = RENDERERS.create("pdf").render(rows, _context(requested_end="2024-03-05"))
    assert content.startswith(b"%PDF")
    assert content.rstrip().endswith(b"%%EOF")


def test_layout_rows_breaks_pages_below_threshold() -> None:
    pages = layout_rows(60, 200)
    assert [len(page) for page in pages] == [25, 33, 2]
    assert pages[0][0] == (0, 220)
    assert pages[0][-1] == (24, 700)
    assert pages[1][0] == (25, 50)


def test_layout_rows_leaves_room_for_repeated_header() -> None:
    pages = layout_rows(60, 200, repeat_header=True)
    assert [len(page) for page in pages] == [25, 32, 3]
    assert pages[1][0] == (25, 70)


def test_layout_rows_empty_table() -> None:
    assert layout_rows(0, 200) == [[]]


@pytest.mark.asyncio
async def test_generator_names_and_types_documents(make_account, make_entry) -> None:
    store = InMemoryLedgerStore(
        accounts=[make_account("acc_ops")],
        entries=[make_entry("txn_1", "acc_ops", datetime(2024, 3, 4, tzinfo=timezone.utc))],
    )
    generator = ReportGenerator(store, clock=lambda: GENERATED_AT)

    csv_document = await generator.generate("csv")
    excel_document = await generator.generate("EXCEL", ReportFilter.from_params("acc_ops"))
    pdf_document = await generator.generate("pdf")

    assert csv_document.filename == "account-report-2024-03-05.csv"
    assert csv_document.media_type == "text/csv"
    assert excel_document.filename.endswith(".xlsx")
    assert excel_document.media_type.startswith("application/vnd.openxmlformats")
    assert pdf_document.media_type == "application/pdf"
    assert len(csv_document.content.decode("utf-8").splitlines()) == 2


@pytest.mark.asyncio
async def test_generator_rejects_unknown_format_before_querying() -> None:
    class ExplodingStore(InMemoryLedgerStore):
        async def query_entries(self, **kwargs):
            raise AssertionError("store should not be queried")

    with pytest.raises(KeyError):
        await ReportGenerator(ExplodingStore()).generate("docx")


@pytest.mark.asyncio
async def test_renderer_errors_become_render_failure(monkeypatch) -> None:
    class BrokenRenderer(ReportRenderer):
        format_name = "broken"

        def render(self, rows, context) -> bytes:
            raise RuntimeError("font missing")

    monkeypatch.setitem(RENDERERS._renderers, "broken", BrokenRenderer)

    with pytest.raises(RenderFailure, match="font missing"):
        await ReportGenerator(InMemoryLedgerStore()).generate("broken")
