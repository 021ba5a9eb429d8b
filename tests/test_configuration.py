"""Mini README: Tests for settings loading and the command line entry point."""

from __future__ import annotations

from datetime import timezone
from pathlib import Path

import pytest
from pydantic import ValidationError
from typer.testing import CliRunner

from teamfinance.configuration import TeamFinanceSettings, get_settings, resolve_timezone
from teamfinance_centre import cli


@pytest.fixture
def memory_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.setenv("TEAMFINANCE_STORE_BACKEND", "memory")
    monkeypatch.setenv("TEAMFINANCE_DATABASE_PATH", str(tmp_path / "data" / "ledger.db"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_environment_overrides_defaults(memory_env, tmp_path: Path) -> None:
    settings = get_settings()
    assert settings.store_backend == "memory"
    assert settings.database_path == (tmp_path / "data" / "ledger.db").resolve()
    assert settings.database_path.parent.is_dir()
    assert settings.report_tzinfo is timezone.utc


def test_unknown_time_zone_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValidationError):
        TeamFinanceSettings(database_path=tmp_path / "x.db", report_timezone="Mars/Olympus")


def test_resolve_timezone_short_circuits_utc() -> None:
    assert resolve_timezone("utc") is timezone.utc


def test_cli_export_writes_report(memory_env, tmp_path: Path) -> None:
    result = CliRunner().invoke(
        cli, ["export", "--format", "csv", "--output-dir", str(tmp_path / "out")]
    )

    assert result.exit_code == 0, result.output
    written = list((tmp_path / "out").glob("account-report-*.csv"))
    assert len(written) == 1
    assert written[0].read_text(encoding="utf-8").startswith("Date,Time,Account")


def test_cli_export_rejects_unknown_format(memory_env) -> None:
    result = CliRunner().invoke(cli, ["export", "--format", "docx"])
    assert result.exit_code != 0


def test_cli_reconcile_on_empty_ledger(memory_env) -> None:
    result = CliRunner().invoke(cli, ["reconcile"])
    assert result.exit_code == 0, result.output
    assert "0 discrepancies" in result.output


def test_log_level_is_normalised_and_validated(tmp_path: Path) -> None:
    settings = TeamFinanceSettings(database_path=tmp_path / "x.db", log_level="debug")
    assert settings.log_level == "DEBUG"
    with pytest.raises(ValidationError):
        TeamFinanceSettings(database_path=tmp_path / "x.db", log_level="chatty")
