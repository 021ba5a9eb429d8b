"""Mini README: FastAPI service for accounts, ledger postings and reports.

Structure:
    * build_store - choose the ledger store backend from settings.
    * create_application - application factory wiring routes and templates.

The caller's identity arrives in the ``X-User-Id`` header from the upstream
auth layer. Ledger failures are translated by one exception handler into
``{"error": ...}`` responses: bad input 400, unknown records 404, query or
render failures 500. Report downloads are fully rendered before the response
starts, so a failure never produces a truncated file.
"""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI, Form, Header, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response
from fastapi.templating import Jinja2Templates

from ..configuration import TeamFinanceSettings, get_settings
from ..ledger import (
    AccountService,
    InMemoryLedgerStore,
    InvalidAccount,
    LedgerError,
    LedgerPoster,
    LedgerReconciler,
    LedgerStore,
    SQLiteLedgerStore,
)
from ..logging_utils import get_logger, set_log_level
from ..reports import ReportFilter, ReportGenerator

LOGGER = get_logger(__name__)

RECENT_ENTRY_LIMIT = 10


def build_store(settings: TeamFinanceSettings) -> LedgerStore:
    """Return the ledger store selected by ``store_backend``."""

    if settings.store_backend == "memory":
        return InMemoryLedgerStore()
    return SQLiteLedgerStore(settings.database_path)


def _status_for(error: LedgerError) -> int:
    if isinstance(error, LookupError):
        return 404
    if isinstance(error, ValueError):
        return 400
    return 500


def _parse_details(details: Optional[str]) -> Optional[Dict[str, Any]]:
    if details is None or not details.strip():
        return None
    try:
        parsed = json.loads(details)
    except json.JSONDecodeError as error:
        raise InvalidAccount("details must be a JSON object") from error
    if not isinstance(parsed, dict):
        raise InvalidAccount("details must be a JSON object")
    return parsed


def create_application(
    store: Optional[LedgerStore] = None,
    settings: Optional[TeamFinanceSettings] = None,
) -> FastAPI:
    """Create the FastAPI application with routes and dependencies."""

    settings = settings or get_settings()
    set_log_level(settings.log_level)
    if store is None:
        store = build_store(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        await store.connect()
        LOGGER.info("Team Finance service started (%s store)", type(store).__name__)
        try:
            yield
        finally:
            await store.close()

    app = FastAPI(title="Team Finance", version="0.1.0", lifespan=lifespan)
    templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))

    poster = LedgerPoster(store)
    accounts = AccountService(store)
    reports = ReportGenerator.from_settings(store, settings)
    reconciler = LedgerReconciler(store)
    app.state.store = store

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, error: LedgerError) -> JSONResponse:
        status_code = _status_for(error)
        if status_code >= 500:
            LOGGER.error("%s %s failed: %s", request.method, request.url.path, error)
        else:
            LOGGER.info("%s %s rejected: %s", request.method, request.url.path, error)
        return JSONResponse({"error": str(error)}, status_code=status_code)

    @app.get("/", response_class=HTMLResponse)
    async def dashboard(request: Request) -> HTMLResponse:
        """Render balances and the most recent ledger entries."""

        all_accounts = await accounts.list_accounts()
        recent = (await reports.fetch_rows(ReportFilter()))[:RECENT_ENTRY_LIMIT]
        LOGGER.debug("Rendering dashboard with %s accounts", len(all_accounts))
        return templates.TemplateResponse(
            request,
            "dashboard.html",
            {
                "accounts": all_accounts,
                "recent_rows": recent,
                "total_balance": sum(account.balance for account in all_accounts),
            },
        )

    @app.post("/accounts", status_code=201)
    async def create_account(
        kind: str = Form(...),
        name: str = Form(...),
        opening_balance: float = Form(0.0),
        details: Optional[str] = Form(None),
        user_id: str = Header(..., alias="X-User-Id"),
    ) -> JSONResponse:
        """Create a bank or wallet account for the caller."""

        account = await accounts.create_account(
            user_id, kind, name, details=_parse_details(details), opening_balance=opening_balance
        )
        return JSONResponse({"account": account.as_dict()}, status_code=201)

    @app.get("/accounts")
    async def list_accounts(user_id: str = Header(..., alias="X-User-Id")) -> JSONResponse:
        owned = await accounts.list_accounts(user_id)
        return JSONResponse({"accounts": [account.as_dict() for account in owned]})

    @app.put("/accounts/{account_id}")
    async def update_account(
        account_id: str,
        name: Optional[str] = Form(None),
        details: Optional[str] = Form(None),
        user_id: str = Header(..., alias="X-User-Id"),
    ) -> JSONResponse:
        """Rename an account or replace its details."""

        account = await accounts.update_account(
            account_id, user_id, name=name, details=_parse_details(details)
        )
        return JSONResponse({"account": account.as_dict()})

    @app.get("/accounts/{account_id}/statement")
    async def account_statement(
        account_id: str,
        start_date: Optional[str] = Query(None, alias="startDate"),
        end_date: Optional[str] = Query(None, alias="endDate"),
        user_id: str = Header(..., alias="X-User-Id"),
    ) -> JSONResponse:
        """Return an account with its entries, newest first."""

        start, end = ReportFilter.from_params(account_id, start_date, end_date).bounds(
            settings.report_tzinfo
        )
        statement = await accounts.statement(account_id, user_id, start=start, end=end)
        return JSONResponse(statement.as_dict())

    @app.post("/ledger/entries", status_code=201)
    async def post_entry(
        account_id: str = Form(...),
        direction: str = Form(...),
        amount: str = Form(...),
        ref_type: str = Form("manual"),
        ref_id: Optional[str] = Form(None),
        remark: Optional[str] = Form(None),
        user_id: str = Header(..., alias="X-User-Id"),
    ) -> JSONResponse:
        """Post one credit or debit against an account."""

        await accounts.get_account(account_id, user_id)
        entry = await poster.post_entry(
            user_id, account_id, direction, amount, ref_type, ref_id=ref_id, remark=remark
        )
        return JSONResponse({"entry": entry.as_dict()}, status_code=201)

    @app.post("/ledger/transfers", status_code=201)
    async def transfer(
        source_account_id: str = Form(...),
        target_account_id: str = Form(...),
        amount: str = Form(...),
        remark: Optional[str] = Form(None),
        user_id: str = Header(..., alias="X-User-Id"),
    ) -> JSONResponse:
        """Move money between two accounts."""

        await accounts.get_account(source_account_id, user_id)
        await accounts.get_account(target_account_id, user_id)
        debit, credit = await poster.transfer(
            user_id, source_account_id, target_account_id, amount, remark=remark
        )
        return JSONResponse(
            {"debit": debit.as_dict(), "credit": credit.as_dict()}, status_code=201
        )

    @app.post("/ledger/entries/{entry_id}/reversal", status_code=201)
    async def reverse_entry(
        entry_id: str,
        remark: Optional[str] = Form(None),
        user_id: str = Header(..., alias="X-User-Id"),
    ) -> JSONResponse:
        """Correct an entry by posting its opposite."""

        await accounts.get_entry(entry_id, user_id)
        reversal = await poster.reverse_entry(user_id, entry_id, remark=remark)
        return JSONResponse({"entry": reversal.as_dict()}, status_code=201)

    @app.get("/ledger/reconciliation")
    async def reconciliation() -> JSONResponse:
        report = await reconciler.reconcile()
        return JSONResponse(report.as_dict())

    async def _report_response(
        report_format: str,
        account_id: Optional[str],
        start_date: Optional[str],
        end_date: Optional[str],
    ) -> Response:
        report_filter = ReportFilter.from_params(account_id, start_date, end_date)
        document = await reports.generate(report_format, report_filter)
        return Response(
            content=document.content,
            media_type=document.media_type,
            headers={"Content-Disposition": f'attachment; filename="{document.filename}"'},
        )

    @app.get("/reports/account/csv")
    async def account_report_csv(
        account_id: Optional[str] = Query(None, alias="accountId"),
        start_date: Optional[str] = Query(None, alias="startDate"),
        end_date: Optional[str] = Query(None, alias="endDate"),
    ) -> Response:
        return await _report_response("csv", account_id, start_date, end_date)

    @app.get("/reports/account/excel")
    async def account_report_excel(
        account_id: Optional[str] = Query(None, alias="accountId"),
        start_date: Optional[str] = Query(None, alias="startDate"),
        end_date: Optional[str] = Query(None, alias="endDate"),
    ) -> Response:
        return await _report_response("excel", account_id, start_date, end_date)

    @app.get("/reports/account/pdf")
    async def account_report_pdf(
        account_id: Optional[str] = Query(None, alias="accountId"),
        start_date: Optional[str] = Query(None, alias="startDate"),
        end_date: Optional[str] = Query(None, alias="endDate"),
    ) -> Response:
        return await _report_response("pdf", account_id, start_date, end_date)

    return app
