"""Mini README: Comma-separated export of the account report.

Columns are fixed: Date, Time, Account, Account Type, Type, Amount, Delta,
Balance After, Reference Type, Remark. Quoting follows the ``csv`` module's
standard dialect so commas, quotes and newlines inside remarks survive a
round trip through any CSV reader.
"""

from __future__ import annotations

import csv
import io
from typing import Sequence

from ..formatting import plain_number
from ..query import ReportRow
from .base import RENDERERS, ReportContext, ReportRenderer

CSV_HEADERS = (
    "Date",
    "Time",
    "Account",
    "Account Type",
    "Type",
    "Amount",
    "Delta",
    "Balance After",
    "Reference Type",
    "Remark",
)


@RENDERERS.register
class CSVReportRenderer(ReportRenderer):
    format_name = "csv"
    extension = "csv"
    media_type = "text/csv"

    def render(self, rows: Sequence[ReportRow], context: ReportContext) -> bytes:
        buffer = io.StringIO(newline="")
        writer = csv.writer(buffer)
        writer.writerow(CSV_HEADERS)
        for row in rows:
            writer.writerow(
                [
                    row.date,
                    row.time,
                    row.account_name,
                    row.account_kind,
                    row.direction,
                    plain_number(row.amount),
                    plain_number(row.delta),
                    plain_number(row.balance_after),
                    row.ref_type,
                    row.remark,
                ]
            )
        return buffer.getvalue().encode("utf-8")
