"""Mini README: Renderer abstractions and registry for report encodings.

Structure:
    * ReportContext - metadata printed alongside the rows (title, period).
    * ReportRenderer - abstract encoder turning rows into a byte payload.
    * ReportRendererRegistry - maps format identifiers to renderer classes.

Renderers are pure: they receive the already filtered and sorted rows and
never query the store themselves, so every encoding of one request shows
exactly the same data.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, Optional, Sequence, Type

from ...logging_utils import get_logger
from ..query import ReportRow

LOGGER = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ReportContext:
    """Request-level details shared by every renderer."""

    title: str
    generated_at: datetime
    requested_start: Optional[str] = None
    requested_end: Optional[str] = None
    currency_symbol: str = "Rs. "
    repeat_header: bool = False

    @property
    def period_requested(self) -> bool:
        return bool(self.requested_start or self.requested_end)

    @property
    def period_label(self) -> str:
        return f"Period: {self.requested_start or 'All'} to {self.requested_end or 'All'}"


class ReportRenderer(ABC):
    """Base interface for report encoders."""

    format_name: str = "generic"
    extension: str = "bin"
    media_type: str = "application/octet-stream"

    @abstractmethod
    def render(self, rows: Sequence[ReportRow], context: ReportContext) -> bytes:
        """Encode the rows into a fully materialised payload."""


class ReportRendererRegistry:
    """Simple registry for mapping format identifiers to renderer classes."""

    def __init__(self) -> None:
        self._renderers: Dict[str, Type[ReportRenderer]] = {}

    def register(self, renderer: Type[ReportRenderer]) -> Type[ReportRenderer]:
        """Register a renderer class; usable as a class decorator."""

        identifier = renderer.format_name.lower()
        LOGGER.debug("Registering report renderer '%s'", identifier)
        self._renderers[identifier] = renderer
        return renderer

    def available_formats(self) -> Iterable[str]:
        return sorted(self._renderers.keys())

    def create(self, identifier: str) -> ReportRenderer:
        """Instantiate the renderer registered for ``identifier``."""

        renderer_cls = self._renderers.get(identifier.strip().lower())
        if not renderer_cls:
            raise KeyError(f"Unknown report format '{identifier}'")
        return renderer_cls()


RENDERERS = ReportRendererRegistry()
