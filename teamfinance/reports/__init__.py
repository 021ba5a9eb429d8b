"""Mini README: Account report generation for Team Finance.

One filtered, newest-first query over the ledger feeds three encoders:
CSV, Excel (xlsx) and PDF. ``ReportGenerator`` owns the query and wraps
failures so callers either receive a complete ``ReportDocument`` or an error.
"""

from .generator import REPORT_TITLE, ReportDocument, ReportGenerator
from .query import ReportFilter, ReportRow, fetch_report_rows, parse_report_date
from .renderers import RENDERERS

__all__ = [
    "RENDERERS",
    "REPORT_TITLE",
    "ReportDocument",
    "ReportFilter",
    "ReportGenerator",
    "ReportRow",
    "fetch_report_rows",
    "parse_report_date",
]
