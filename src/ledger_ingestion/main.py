"""
Ledger Ingestion Service accepts hand-maintained finance spreadsheets, previews the
records it can extract from them, and imports a confirmed preview into a dashboard.
"""

import asyncio
import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, File, Form, Header, Query, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
from typing_extensions import Literal

from .errors import ImportRejected
from .importer import ImportOrchestrator, PreviewHandle, TransactionPage, UploadedDocument
from .models import (
    DuplicateCandidate,
    ImportOptions,
    ImportResult,
    ImportSummary,
    ParsedDebtor,
    ParsedInstallment,
    ParsedRecurring,
    ParsedTransaction,
    RowError,
)
from .observability import bind_request_context, ensure_request_id, reset_request_context, setup_telemetry
from .persistence import LedgerRepository, get_session, init_db
from .preview_cache import PreviewCache, run_sweeper
from .settings import load_ingestion_settings
from .templates import CSV_MEDIA_TYPE, TEMPLATE_BASENAME, XLSX_MEDIA_TYPE, build_csv_template, build_xlsx_template

logger = logging.getLogger(__name__)

SERVICE_NAME = "ledger-ingestion-service"

app = FastAPI(title="Ledger Ingestion Service")
setup_telemetry(app, service_name=SERVICE_NAME)
app.state.settings = load_ingestion_settings()
app.state.preview_cache = PreviewCache(app.state.settings.preview_ttl_seconds)
app.state.sweeper_task = None


class TransactionModel(BaseModel):
    date: date
    due_date: Optional[date] = None
    entry_type: str
    flow_type: str
    cost_center: Optional[str] = None
    category: str
    subcategory: Optional[str] = None
    description: str
    amount: float
    payment_method: Optional[str] = None
    institution: Optional[str] = None
    card_brand: Optional[str] = None
    installment_number: int = 0
    installment_total: int = 0
    notes: Optional[str] = None
    is_third_party: bool = False
    third_party_name: Optional[str] = None
    source_tab: str
    source_row: int


class InstallmentModel(BaseModel):
    description: str
    installment_total: int
    total_amount: float
    installment_amount: float
    monthly_amounts: Dict[str, float] = Field(default_factory=dict)
    category: Optional[str] = None
    cost_center: Optional[str] = None
    payment_method: Optional[str] = None
    institution: Optional[str] = None
    year: Optional[int] = None
    month: Optional[str] = None
    day: Optional[int] = None
    source_row: int


class DebtorModel(BaseModel):
    name: str
    description: str
    amount: float
    date: Optional[date] = None
    source_row: int


class RecurringModel(BaseModel):
    description: str
    amount: float
    category: Optional[str] = None
    frequency: str
    source_row: int


class DuplicateModel(BaseModel):
    transaction: TransactionModel
    existing_id: str
    existing_description: str
    existing_date: date
    existing_amount: float


class RowErrorModel(BaseModel):
    row: int
    tab: str
    message: str
    data: Optional[Dict[str, Any]] = None


class MonthTotalsModel(BaseModel):
    income: float
    expense: float
    count: int


class SummaryModel(BaseModel):
    total_transactions: int
    total_income: float
    total_expense: float
    by_month: Dict[str, MonthTotalsModel] = Field(default_factory=dict)
    installments_count: int
    debtors_count: int
    recurring_count: int
    reference_totals: Optional[Dict[str, Dict[str, float]]] = None


class ImportPreviewResponseModel(BaseModel):
    preview_id: str
    expires_in_seconds: float
    summary: SummaryModel
    transactions: List[TransactionModel] = Field(default_factory=list)
    total_transactions: int
    has_more: bool
    installments: List[InstallmentModel] = Field(default_factory=list)
    debtors: List[DebtorModel] = Field(default_factory=list)
    recurring: List[RecurringModel] = Field(default_factory=list)
    duplicates: List[DuplicateModel] = Field(default_factory=list)
    errors: List[RowErrorModel] = Field(default_factory=list)


class TransactionPageModel(BaseModel):
    transactions: List[TransactionModel] = Field(default_factory=list)
    page: int
    limit: int
    total: int
    has_more: bool


class ConfirmImportRequest(BaseModel):
    preview_id: str
    dashboard_id: str
    skip_duplicates: bool = False
    selected_indices: Optional[List[int]] = None


class ImportResultModel(BaseModel):
    imported: int
    skipped: int
    errors: List[str] = Field(default_factory=list)
    duplicates_found: Optional[int] = None


def error_response(status_code: int, error_code: str, details: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error_code, "details": details},
    )


def get_orchestrator(db: Session = Depends(get_session)) -> ImportOrchestrator:
    return ImportOrchestrator(
        repository=LedgerRepository(db),
        cache=app.state.preview_cache,
        settings=app.state.settings,
    )


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    request_id = ensure_request_id(request)
    token = bind_request_context(request_id)
    try:
        response = await call_next(request)
        response.headers.setdefault("x-request-id", request_id)
        return response
    finally:
        reset_request_context(token)


@app.exception_handler(ImportRejected)
async def import_rejected_handler(request: Request, exc: ImportRejected) -> JSONResponse:
    logger.warning(
        {
            "event": "import_rejected",
            "request_id": getattr(request.state, "request_id", None),
            "error": exc.error_code,
            "path": request.url.path,
        }
    )
    return error_response(exc.status_code, exc.error_code, str(exc))


@app.on_event("startup")
async def on_startup() -> None:
    """Create tables and start evicting expired previews."""
    init_db()
    app.state.sweeper_task = asyncio.create_task(
        run_sweeper(app.state.preview_cache, app.state.settings.preview_sweep_seconds)
    )


@app.on_event("shutdown")
async def on_shutdown() -> None:
    task = app.state.sweeper_task
    if task is not None:
        task.cancel()
        app.state.sweeper_task = None


@app.get("/health")
def health_check() -> dict:
    """Report overall service health for uptime probes and orchestrators."""
    return {"status": "ok", "service": SERVICE_NAME}


@app.post("/imports/preview", response_model=ImportPreviewResponseModel)
async def preview_import(
    file: UploadFile = File(...),
    dashboard_id: str = Form(...),
    user_id: str = Header(..., alias="x-user-id"),
    orchestrator: ImportOrchestrator = Depends(get_orchestrator),
) -> ImportPreviewResponseModel:
    """
    Parse an uploaded .xlsx or .csv file and cache the result for confirmation.
    Returns the summary, the first page of transactions and every other record kind.
    """
    document = await _read_upload(file)
    handle = await run_in_threadpool(orchestrator.preview, document, dashboard_id, user_id)
    return _preview_to_response(handle, app.state.settings.preview_page_size)


@app.post("/imports/confirm", response_model=ImportResultModel, response_model_exclude_none=True)
def confirm_import(
    payload: ConfirmImportRequest,
    user_id: str = Header(..., alias="x-user-id"),
    orchestrator: ImportOrchestrator = Depends(get_orchestrator),
) -> ImportResultModel:
    """Import a cached preview; the preview id cannot be reused afterwards."""
    options = ImportOptions(
        dashboard_id=payload.dashboard_id,
        user_id=user_id,
        skip_duplicates=payload.skip_duplicates,
        selected_indices=payload.selected_indices,
    )
    return _result_to_model(orchestrator.confirm(payload.preview_id, options))


@app.post("/imports", response_model=ImportResultModel)
async def quick_import(
    file: UploadFile = File(...),
    dashboard_id: str = Form(...),
    user_id: str = Header(..., alias="x-user-id"),
    orchestrator: ImportOrchestrator = Depends(get_orchestrator),
) -> ImportResultModel:
    """Parse and import in one step, skipping anything that looks like a duplicate."""
    document = await _read_upload(file)
    options = ImportOptions(dashboard_id=dashboard_id, user_id=user_id, skip_duplicates=True)
    result = await run_in_threadpool(orchestrator.quick_import, document, options)
    return _result_to_model(result)


@app.get("/imports/preview/{preview_id}/transactions", response_model=TransactionPageModel)
def preview_transactions(
    preview_id: str,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=500),
    orchestrator: ImportOrchestrator = Depends(get_orchestrator),
) -> TransactionPageModel:
    return _page_to_model(orchestrator.page_transactions(preview_id, page, limit))


@app.get("/imports/template")
def download_template(format: Literal["xlsx", "csv"] = Query("xlsx")) -> Response:
    if format == "csv":
        content, media_type = build_csv_template(), CSV_MEDIA_TYPE
    else:
        content, media_type = build_xlsx_template(), XLSX_MEDIA_TYPE
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{TEMPLATE_BASENAME}.{format}"'},
    )


async def _read_upload(file: UploadFile) -> UploadedDocument:
    return UploadedDocument(
        content=await file.read(),
        filename=file.filename,
        content_type=file.content_type,
    )


def _preview_to_response(handle: PreviewHandle, page_size: int) -> ImportPreviewResponseModel:
    preview = handle.preview
    return ImportPreviewResponseModel(
        preview_id=handle.preview_id,
        expires_in_seconds=handle.expires_in_seconds,
        summary=_summary_to_model(preview.summary),
        transactions=[_transaction_to_model(t) for t in preview.transactions[:page_size]],
        total_transactions=len(preview.transactions),
        has_more=len(preview.transactions) > page_size,
        installments=[_installment_to_model(item) for item in preview.installments],
        debtors=[_debtor_to_model(item) for item in preview.debtors],
        recurring=[_recurring_to_model(item) for item in preview.recurring],
        duplicates=[_duplicate_to_model(item) for item in preview.duplicates],
        errors=[_row_error_to_model(item) for item in preview.errors],
    )


def _summary_to_model(summary: ImportSummary) -> SummaryModel:
    reference = None
    if summary.reference_totals is not None:
        reference = {kind: _floats(values) for kind, values in summary.reference_totals.items()}
    return SummaryModel(
        total_transactions=summary.total_transactions,
        total_income=float(summary.total_income),
        total_expense=float(summary.total_expense),
        by_month={
            month: MonthTotalsModel(income=float(totals.income), expense=float(totals.expense), count=totals.count)
            for month, totals in summary.by_month.items()
        },
        installments_count=summary.installments_count,
        debtors_count=summary.debtors_count,
        recurring_count=summary.recurring_count,
        reference_totals=reference,
    )


def _transaction_to_model(transaction: ParsedTransaction) -> TransactionModel:
    return TransactionModel(
        date=transaction.date,
        due_date=transaction.due_date,
        entry_type=transaction.entry_type.value,
        flow_type=transaction.flow_type.value,
        cost_center=transaction.cost_center.value if transaction.cost_center else None,
        category=transaction.category,
        subcategory=transaction.subcategory,
        description=transaction.description,
        amount=float(transaction.amount),
        payment_method=transaction.payment_method,
        institution=transaction.institution,
        card_brand=transaction.card_brand,
        installment_number=transaction.installment_number,
        installment_total=transaction.installment_total,
        notes=transaction.notes,
        is_third_party=transaction.is_third_party,
        third_party_name=transaction.third_party_name,
        source_tab=transaction.source_tab,
        source_row=transaction.source_row,
    )


def _installment_to_model(installment: ParsedInstallment) -> InstallmentModel:
    return InstallmentModel(
        description=installment.description,
        installment_total=installment.installment_total,
        total_amount=float(installment.total_amount),
        installment_amount=float(installment.installment_amount),
        monthly_amounts=_floats(installment.monthly_amounts),
        category=installment.category,
        cost_center=installment.cost_center.value if installment.cost_center else None,
        payment_method=installment.payment_method,
        institution=installment.institution,
        year=installment.year,
        month=installment.month,
        day=installment.day,
        source_row=installment.source_row,
    )


def _debtor_to_model(debtor: ParsedDebtor) -> DebtorModel:
    return DebtorModel(
        name=debtor.name,
        description=debtor.description,
        amount=float(debtor.amount),
        date=debtor.date,
        source_row=debtor.source_row,
    )


def _recurring_to_model(recurring: ParsedRecurring) -> RecurringModel:
    return RecurringModel(
        description=recurring.description,
        amount=float(recurring.amount),
        category=recurring.category,
        frequency=recurring.frequency.value,
        source_row=recurring.source_row,
    )


def _duplicate_to_model(candidate: DuplicateCandidate) -> DuplicateModel:
    return DuplicateModel(
        transaction=_transaction_to_model(candidate.transaction),
        existing_id=candidate.existing_id,
        existing_description=candidate.existing_description,
        existing_date=candidate.existing_date,
        existing_amount=float(candidate.existing_amount),
    )


def _row_error_to_model(error: RowError) -> RowErrorModel:
    return RowErrorModel(row=error.row, tab=error.tab, message=error.message, data=error.data)


def _page_to_model(page: TransactionPage) -> TransactionPageModel:
    return TransactionPageModel(
        transactions=[_transaction_to_model(t) for t in page.transactions],
        page=page.page,
        limit=page.limit,
        total=page.total,
        has_more=page.has_more,
    )


def _result_to_model(result: ImportResult) -> ImportResultModel:
    return ImportResultModel(
        imported=result.imported,
        skipped=result.skipped,
        errors=list(result.errors),
        duplicates_found=result.duplicates_found,
    )


def _floats(values: Dict[str, Decimal]) -> Dict[str, float]:
    return {key: float(value) for key, value in values.items()}
