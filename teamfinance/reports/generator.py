"""Mini README: Report generator tying the shared query to the renderers.

Structure:
    * ReportDocument - encoded payload with filename and media type.
    * ReportGenerator - queries once, renders once, never emits partial output.

``generate`` awaits the store query, then renders synchronously. A failing
query surfaces as ``QueryFailure`` and a failing encoder as ``RenderFailure``;
in both cases no document is returned, so callers can never ship a
truncated file.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Callable, List, Optional, Sequence

from ..configuration import TeamFinanceSettings
from ..ledger.errors import RenderFailure
from ..ledger.models import utcnow
from ..ledger.store import LedgerStore
from ..logging_utils import get_logger
from .query import ReportFilter, ReportRow, fetch_report_rows
from .renderers import RENDERERS, ReportContext, ReportRenderer

LOGGER = get_logger(__name__)

REPORT_TITLE = "Account Transaction Report"


@dataclass(frozen=True, slots=True)
class ReportDocument:
    """Fully materialised report ready to be sent or written to disk."""

    content: bytes
    filename: str
    media_type: str


class ReportGenerator:
    """Produce CSV, Excel or PDF account reports from one filtered query."""

    def __init__(
        self,
        store: LedgerStore,
        *,
        tz: tzinfo = timezone.utc,
        currency_symbol: str = "Rs. ",
        repeat_pdf_header: bool = False,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._tz = tz
        self._currency_symbol = currency_symbol
        self._repeat_pdf_header = repeat_pdf_header
        self._clock = clock

    @classmethod
    def from_settings(cls, store: LedgerStore, settings: TeamFinanceSettings) -> "ReportGenerator":
        return cls(
            store,
            tz=settings.report_tzinfo,
            currency_symbol=settings.currency_symbol,
            repeat_pdf_header=settings.pdf_repeat_header,
        )

    async def fetch_rows(self, report_filter: ReportFilter) -> List[ReportRow]:
        return await fetch_report_rows(self._store, report_filter, self._tz)

    def render(
        self, report_format: str, rows: Sequence[ReportRow], report_filter: ReportFilter
    ) -> ReportDocument:
        """Encode already fetched rows; raises ``KeyError`` for unknown formats."""

        renderer: ReportRenderer = RENDERERS.create(report_format)
        generated_at = self._clock().astimezone(self._tz)
        context = ReportContext(
            title=REPORT_TITLE,
            generated_at=generated_at,
            requested_start=report_filter.requested_start,
            requested_end=report_filter.requested_end,
            currency_symbol=self._currency_symbol,
            repeat_header=self._repeat_pdf_header,
        )
        try:
            content = renderer.render(rows, context)
        except Exception as error:
            LOGGER.exception("Rendering %s report failed", renderer.format_name)
            raise RenderFailure(f"Could not render {renderer.format_name} report: {error}") from error

        filename = f"account-report-{generated_at.date().isoformat()}.{renderer.extension}"
        LOGGER.info(
            "Generated %s report %s (%s rows, %s bytes)",
            renderer.format_name,
            filename,
            len(rows),
            len(content),
        )
        return ReportDocument(content=content, filename=filename, media_type=renderer.media_type)

    async def generate(
        self, report_format: str, report_filter: Optional[ReportFilter] = None
    ) -> ReportDocument:
        report_filter = report_filter or ReportFilter()
        # resolve the renderer before touching the store
        RENDERERS.create(report_format)
        rows = await self.fetch_rows(report_filter)
        return self.render(report_format, rows, report_filter)
