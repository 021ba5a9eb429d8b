"""Mini README: Entry point CLI for the Team Finance backend.

This script exposes a Typer CLI that starts the FastAPI service, checks the
ledger for balance drift and exports account reports to disk. All commands
read settings from ``TEAMFINANCE_*`` environment variables (or ``.env``) and
share the same store builder as the web application.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
import uvicorn

from teamfinance.configuration import get_settings
from teamfinance.interface import build_store
from teamfinance.ledger import LedgerError, LedgerReconciler
from teamfinance.logging_utils import set_log_level
from teamfinance.reports import RENDERERS, ReportFilter, ReportGenerator

cli = typer.Typer(help="Run and maintain the Team Finance ledger service.")


@cli.command()
def run(
    host: str = typer.Option(None, help="Host interface to bind."),
    port: int = typer.Option(None, help="Port to listen on."),
    production: bool = typer.Option(
        False, help="Use production server settings (disable auto-reload)."
    ),
) -> None:
    """Start the FastAPI application using uvicorn."""

    settings = get_settings()
    effective_host = host or settings.interface_host
    effective_port = port or settings.interface_port
    set_log_level(settings.log_level)

    # 0.0.0.0 is a bind address, not something a browser can open
    browser_host = "127.0.0.1" if effective_host in {"0.0.0.0", "::"} else effective_host
    typer.echo(
        f"Starting Team Finance on {effective_host}:{effective_port} "
        f"({settings.store_backend} store).\n"
        f"Open your browser at http://{browser_host}:{effective_port}"
    )
    uvicorn.run(
        "teamfinance.interface.web_app:create_application",
        host=effective_host,
        port=effective_port,
        factory=True,
        reload=not production,
        log_level=settings.log_level.lower(),
    )


@cli.command()
def reconcile(
    verbose: bool = typer.Option(False, help="Log every account that was checked."),
) -> None:
    """Compare account balances with the ledger and exit non-zero on drift."""

    set_log_level("DEBUG" if verbose else get_settings().log_level)

    async def _reconcile() -> bool:
        async with build_store(get_settings()) as store:
            report = await LedgerReconciler(store).reconcile()
        typer.echo(
            f"Checked {report.accounts_checked} accounts and {report.entries_checked} entries: "
            f"{len(report.discrepancies)} discrepancies."
        )
        for item in report.discrepancies:
            typer.echo(
                f"  {item.account_id} [{item.kind}] expected {item.expected:.2f} "
                f"found {item.actual:.2f} (entry {item.entry_id or '-'})"
            )
        return report.is_consistent

    if not asyncio.run(_reconcile()):
        raise typer.Exit(code=1)


@cli.command()
def export(
    report_format: str = typer.Option("csv", "--format", help="csv, excel or pdf."),
    account_id: Optional[str] = typer.Option(None, help="Restrict to one account."),
    start_date: Optional[str] = typer.Option(None, help="Inclusive start date (YYYY-MM-DD)."),
    end_date: Optional[str] = typer.Option(None, help="Inclusive end date (YYYY-MM-DD)."),
    output_dir: Path = typer.Option(Path("."), help="Directory to write the report into."),
) -> None:
    """Write an account report to disk."""

    settings = get_settings()
    set_log_level(settings.log_level)
    if report_format.lower() not in RENDERERS.available_formats():
        raise typer.BadParameter(
            f"Unknown format '{report_format}'. Choose from {', '.join(RENDERERS.available_formats())}."
        )

    async def _export() -> Path:
        async with build_store(settings) as store:
            generator = ReportGenerator.from_settings(store, settings)
            document = await generator.generate(
                report_format.lower(), ReportFilter.from_params(account_id, start_date, end_date)
            )
        output_dir.mkdir(parents=True, exist_ok=True)
        destination = output_dir / document.filename
        destination.write_bytes(document.content)
        return destination

    try:
        destination = asyncio.run(_export())
    except LedgerError as error:
        typer.echo(f"Export failed: {error}", err=True)
        raise typer.Exit(code=1) from error
    typer.echo(f"Wrote {destination}")


if __name__ == "__main__":
    cli()
