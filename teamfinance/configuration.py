"""Mini README: Centralised configuration models and helpers for Team Finance.

Structure:
    * TeamFinanceSettings - Pydantic model describing runtime configuration.
    * get_settings - cached accessor for environment-aware settings.
    * resolve_timezone - turn the configured report zone name into a tzinfo.

Usage:
    Import ``get_settings`` to choose the ledger store backend, locate the
    SQLite database, pick the report time zone and tune report rendering. The
    configuration is cached so validation runs once per process.
"""

from __future__ import annotations

import logging
from datetime import timezone, tzinfo
from functools import lru_cache
from pathlib import Path
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, validator
from pydantic_settings import BaseSettings


def resolve_timezone(name: str) -> tzinfo:
    """Return a tzinfo for ``name``, short-circuiting UTC so no tz database is needed."""

    if name.strip().upper() in {"UTC", "Z", "GMT"}:
        return timezone.utc
    return ZoneInfo(name.strip())


class TeamFinanceSettings(BaseSettings):
    """Runtime configuration for the Team Finance backend."""

    environment: str = Field(
        "development",
        description="Environment label controlling debug toggles and logging levels.",
    )
    store_backend: Literal["memory", "sqlite"] = Field(
        "sqlite",
        description="Ledger store implementation used by the web application.",
    )
    database_path: Path = Field(
        Path("data/teamfinance.db"),
        description="SQLite database file used when the sqlite backend is selected.",
    )
    interface_host: str = Field(
        "0.0.0.0",
        description="Network interface for the web service to bind to.",
    )
    interface_port: int = Field(
        8000,
        description="Default port the web service exposes.",
        ge=1,
        le=65535,
    )
    report_timezone: str = Field(
        "UTC",
        description="Time zone used for report date bounds and rendered dates.",
    )
    currency_symbol: str = Field(
        "Rs. ",
        description=(
            "Prefix printed before amounts in PDF reports. The built-in PDF fonts"
            " cannot draw the rupee sign, so an ASCII prefix is the default."
        ),
    )
    pdf_repeat_header: bool = Field(
        False,
        description="Repeat the PDF table header on every page instead of only the first.",
    )
    log_level: str = Field(
        "INFO",
        description="Root logging level for the service and the CLI (DEBUG, INFO, WARNING, ...).",
    )

    class Config:
        env_prefix = "TEAMFINANCE_"
        env_file = ".env"
        case_sensitive = False

    @validator("database_path", pre=True)
    def _expand_path(cls, value: str | Path) -> Path:
        """Expand user directories and make sure the parent folder exists."""

        path = Path(value).expanduser().resolve()
        path.parent.mkdir(parents=True, exist_ok=True)
        return path

    @validator("log_level")
    def _check_log_level(cls, value: str) -> str:
        """Normalise the level name and reject names logging does not know."""

        name = value.strip().upper()
        if not isinstance(logging.getLevelName(name), int):
            raise ValueError(f"Unknown log level: {value}")
        return name

    @validator("report_timezone")
    def _check_timezone(cls, value: str) -> str:
        """Reject zone names the tz database does not know."""

        try:
            resolve_timezone(value)
        except (ZoneInfoNotFoundError, ValueError) as error:
            raise ValueError(f"Unknown report time zone: {value}") from error
        return value

    @property
    def report_tzinfo(self) -> tzinfo:
        return resolve_timezone(self.report_timezone)


@lru_cache()
def get_settings() -> TeamFinanceSettings:
    """Return cached settings, ensuring consistent configuration across modules."""

    return TeamFinanceSettings()
