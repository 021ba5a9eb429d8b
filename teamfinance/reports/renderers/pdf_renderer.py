"""Mini README: Paginated PDF export of the account report.

Structure:
    * layout_rows - assign table rows to pages and vertical offsets.
    * PDFReportRenderer - draws title, period, summary and table with reportlab.

Coordinates are measured from the top of the page (``y`` grows downwards)
and converted to reportlab's bottom-left origin when drawing. A row that
would start below ``PAGE_BREAK_Y`` moves to a new page whose cursor resets
to ``PAGE_TOP_Y``. The table header is drawn on the first page only unless
``ReportContext.repeat_header`` is set.
"""

from __future__ import annotations

import io
from typing import List, Sequence, Tuple

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from ...logging_utils import get_logger
from ..formatting import currency
from ..query import ReportRow
from .base import RENDERERS, ReportContext, ReportRenderer

LOGGER = get_logger(__name__)

MARGIN = 50
ROW_HEIGHT = 20
PAGE_TOP_Y = 50
PAGE_BREAK_Y = 750 - 50
ACCOUNT_CHARS = 20
REMARK_CHARS = 30

# (label, x, width, align)
TABLE_COLUMNS = (
    ("Date", 50, 50, "left"),
    ("Account", 100, 80, "left"),
    ("Type", 180, 50, "left"),
    ("Amount", 230, 70, "right"),
    ("Balance", 300, 80, "right"),
    ("Remark", 380, 120, "left"),
)


def layout_rows(
    row_count: int, table_top: float, *, repeat_header: bool = False
) -> List[List[Tuple[int, float]]]:
    """Return pages of ``(row_index, y)`` placements for the table body.

    The header occupies ``table_top`` on the first page, so the first body row
    starts one row height below it.
    """

    pages: List[List[Tuple[int, float]]] = [[]]
    y = table_top + ROW_HEIGHT
    for index in range(row_count):
        if y > PAGE_BREAK_Y:
            pages.append([])
            y = PAGE_TOP_Y + (ROW_HEIGHT if repeat_header else 0)
        pages[-1].append((index, y))
        y += ROW_HEIGHT
    return pages


@RENDERERS.register
class PDFReportRenderer(ReportRenderer):
    format_name = "pdf"
    extension = "pdf"
    media_type = "application/pdf"

    def __init__(self) -> None:
        self._page_width, self._page_height = A4

    def _text(
        self,
        pdf: canvas.Canvas,
        text: str,
        x: float,
        y: float,
        size: float,
        *,
        width: float = 0,
        align: str = "left",
    ) -> None:
        baseline = self._page_height - y - size
        if align == "right":
            pdf.drawRightString(x + width, baseline, text)
        elif align == "center":
            pdf.drawCentredString(self._page_width / 2, baseline, text)
        else:
            pdf.drawString(x, baseline, text)

    def _header(self, pdf: canvas.Canvas, y: float) -> None:
        pdf.setFont("Helvetica-Bold", 9)
        for label, x, width, align in TABLE_COLUMNS:
            self._text(pdf, label, x, y, 9, width=width, align=align)
        line_y = self._page_height - (y + ROW_HEIGHT)
        pdf.line(MARGIN, line_y, self._page_width - 45, line_y)
        pdf.setFont("Helvetica", 8)

    def _intro(self, pdf: canvas.Canvas, row_count: int, context: ReportContext) -> float:
        """Draw title, generation time, period and summary; return the table top."""

        y = float(MARGIN)
        pdf.setFont("Helvetica-Bold", 24)
        self._text(pdf, context.title, 0, y, 24, align="center")
        y += 24 * 1.2 + 6

        pdf.setFont("Helvetica", 10)
        pdf.setFillColor(colors.gray)
        generated = context.generated_at.strftime("%Y-%m-%d %H:%M")
        self._text(pdf, f"Generated on: {generated}", 0, y, 10, align="center")
        y += 12
        if context.period_requested:
            self._text(pdf, context.period_label, 0, y, 10, align="center")
            y += 12
        y += 12
        pdf.setFillColor(colors.black)

        pdf.setFont("Helvetica-Bold", 14)
        self._text(pdf, "Summary", MARGIN, y, 14)
        y += 14 * 1.2 + 4
        pdf.setFont("Helvetica", 11)
        self._text(pdf, f"Total Transactions: {row_count}", MARGIN, y, 11)
        y += 11 * 1.2 + 12
        return y

    def render(self, rows: Sequence[ReportRow], context: ReportContext) -> bytes:
        buffer = io.BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=A4)
        pdf.setTitle(context.title)

        table_top = self._intro(pdf, len(rows), context)
        self._header(pdf, table_top)
        pages = layout_rows(len(rows), table_top, repeat_header=context.repeat_header)
        for page_number, placements in enumerate(pages):
            if page_number:
                pdf.showPage()
                pdf.setFont("Helvetica", 8)
                if context.repeat_header:
                    self._header(pdf, PAGE_TOP_Y)
            for index, y in placements:
                row = rows[index]
                values = (
                    row.date,
                    row.account_name[:ACCOUNT_CHARS],
                    row.direction,
                    currency(row.amount, context.currency_symbol),
                    currency(row.balance_after, context.currency_symbol),
                    row.remark[:REMARK_CHARS].replace("\n", " "),
                )
                for value, (_, x, width, align) in zip(values, TABLE_COLUMNS):
                    self._text(pdf, value, x, y, 8, width=width, align=align)

        pdf.save()
        LOGGER.debug("Rendered PDF report with %s rows over %s pages", len(rows), len(pages))
        return buffer.getvalue()
