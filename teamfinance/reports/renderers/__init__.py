"""Mini README: Report encoders.

Importing this package registers the built-in CSV, Excel and PDF renderers
with ``RENDERERS`` so the generator can look them up by format name.
"""

from .base import RENDERERS, ReportContext, ReportRenderer, ReportRendererRegistry
from .csv_renderer import CSV_HEADERS, CSVReportRenderer
from .excel_renderer import EXCEL_COLUMNS, ExcelReportRenderer
from .pdf_renderer import PDFReportRenderer, layout_rows

__all__ = [
    "CSV_HEADERS",
    "CSVReportRenderer",
    "EXCEL_COLUMNS",
    "ExcelReportRenderer",
    "PDFReportRenderer",
    "RENDERERS",
    "ReportContext",
    "ReportRenderer",
    "ReportRendererRegistry",
    "layout_rows",
]
