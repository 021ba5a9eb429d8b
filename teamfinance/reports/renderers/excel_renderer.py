"""Mini README: Spreadsheet (xlsx) export of the account report.

Structure:
    * EXCEL_COLUMNS - header, width and number format per column.
    * ExcelReportRenderer - writes one ``Account Report`` sheet with openpyxl.

The sheet intentionally has no Account Type column, unlike the CSV export.
Numeric columns use ``#,##0.00`` and the header row is bold white text on a
solid purple fill.
"""

from __future__ import annotations

import io
from typing import Optional, Sequence, Tuple

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from ..query import ReportRow
from .base import RENDERERS, ReportContext, ReportRenderer

NUMBER_FORMAT = "#,##0.00"
HEADER_FILL = PatternFill(fill_type="solid", start_color="FF6F42C1", end_color="FF6F42C1")
HEADER_FONT = Font(bold=True, color="FFFFFFFF")

# (header, width, number format)
EXCEL_COLUMNS: Tuple[Tuple[str, int, Optional[str]], ...] = (
    ("Date", 12, None),
    ("Time", 10, None),
    ("Account", 20, None),
    ("Type", 10, None),
    ("Amount", 12, NUMBER_FORMAT),
    ("Delta", 12, NUMBER_FORMAT),
    ("Balance After", 15, NUMBER_FORMAT),
    ("Reference", 12, None),
    ("Remark", 40, None),
)


@RENDERERS.register
class ExcelReportRenderer(ReportRenderer):
    format_name = "excel"
    extension = "xlsx"
    media_type = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

    sheet_title = "Account Report"

    def render(self, rows: Sequence[ReportRow], context: ReportContext) -> bytes:
        workbook = Workbook()
        worksheet = workbook.active
        worksheet.title = self.sheet_title

        worksheet.append([header for header, _, _ in EXCEL_COLUMNS])
        for index, (_, width, _) in enumerate(EXCEL_COLUMNS, start=1):
            worksheet.column_dimensions[get_column_letter(index)].width = width
        for cell in worksheet[1]:
            cell.font = HEADER_FONT
            cell.fill = HEADER_FILL

        for row in rows:
            worksheet.append(
                [
                    row.date,
                    row.time,
                    row.account_name,
                    row.direction,
                    row.amount,
                    row.delta,
                    row.balance_after,
                    row.ref_type,
                    row.remark,
                ]
            )
            for cell, (_, _, number_format) in zip(worksheet[worksheet.max_row], EXCEL_COLUMNS):
                if number_format:
                    cell.number_format = number_format

        buffer = io.BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()
