"""
Two-phase import: parse an upload into a cached preview, then confirm it into the ledger.

The preview phase never writes ledger records; it only parses, flags duplicates
and stores the result under an opaque key. Confirm consumes that key exactly once
and persists item by item, so one failing record never aborts the rest.
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Callable, Optional
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError

from .duplicates import DuplicatePolicy, detect_duplicates
from .errors import EmptyUpload, PreviewExpired, ScopeAccessDenied, UnsupportedFileType, UploadTooLarge
from .models import (
    EntryType,
    FlowType,
    ImportOptions,
    ImportPreview,
    ImportResult,
    ParsedDebtor,
    ParsedInstallment,
    ParsedRecurring,
    ParsedTransaction,
)
from .observability import hash_payload
from .parsers import parse_csv_to_preview, parse_xlsx_to_preview
from .parsers.tabs import MONTH_NAMES
from .persistence import LedgerRepository
from .preview_cache import PreviewCache
from .settings import IngestionSettings

logger = logging.getLogger(__name__)

CSV_CONTENT_TYPES = {
    "text/csv",
    "application/csv",
    "text/plain",
}
XLSX_CONTENT_TYPES = {
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-excel",
}

INSTALLMENT_CATEGORY = "Installments"
DEBTOR_CATEGORY = "Debtors"
RECURRING_CATEGORY = "Fixed Expense"
STATUS_NOT_APPLICABLE = "N/A"
STATUS_PENDING = "Pending"


class DocumentKind(str, Enum):
    CSV = "csv"
    XLSX = "xlsx"


@dataclass(frozen=True, slots=True)
class UploadedDocument:
    content: bytes
    filename: Optional[str] = None
    content_type: Optional[str] = None


@dataclass(slots=True)
class PreviewHandle:
    preview_id: str
    preview: ImportPreview
    expires_in_seconds: float


@dataclass(slots=True)
class TransactionPage:
    transactions: list[ParsedTransaction] = field(default_factory=list)
    page: int = 1
    limit: int = 0
    total: int = 0
    has_more: bool = False


def determine_document_kind(document: UploadedDocument) -> DocumentKind:
    content_type = (document.content_type or "").split(";", 1)[0].strip().lower()
    filename = (document.filename or "").lower()

    if filename.endswith(".csv"):
        return DocumentKind.CSV
    if filename.endswith(".xlsx"):
        return DocumentKind.XLSX
    if content_type in CSV_CONTENT_TYPES:
        return DocumentKind.CSV
    if content_type in XLSX_CONTENT_TYPES:
        return DocumentKind.XLSX
    raise UnsupportedFileType(f"Only .xlsx and .csv uploads are supported (got '{document.filename or content_type}').")


def parse_document(document: UploadedDocument, max_upload_bytes: int) -> ImportPreview:
    """Validate the upload envelope, then hand the bytes to the matching parser."""

    kind = determine_document_kind(document)
    if not document.content:
        raise EmptyUpload("Uploaded file is empty.")
    if len(document.content) > max_upload_bytes:
        raise UploadTooLarge(f"Uploaded file exceeds the {max_upload_bytes} byte limit.")

    if kind is DocumentKind.CSV:
        return parse_csv_to_preview(document.content)
    return parse_xlsx_to_preview(document.content)


class ImportOrchestrator:
    """Owns the preview cache entries and the confirm-time expansion into ledger records."""

    def __init__(
        self,
        repository: LedgerRepository,
        cache: PreviewCache,
        settings: IngestionSettings,
        today: Callable[[], date] = date.today,
    ):
        self._repository = repository
        self._cache = cache
        self._settings = settings
        self._today = today
        self._duplicate_policy = DuplicatePolicy(
            amount_tolerance=settings.duplicate_amount_tolerance,
            day_window=settings.duplicate_day_window,
        )

    def preview(self, document: UploadedDocument, dashboard_id: str, user_id: str) -> PreviewHandle:
        self._require_scope(dashboard_id, user_id)
        preview = self._parse_and_flag(document, dashboard_id)

        preview_id = self._cache.new_key()
        self._cache.put(preview_id, preview)
        details = self._preview_details(document, preview)
        self._repository.record_event(
            action="import_preview",
            dashboard_id=dashboard_id,
            user_id=user_id,
            preview_id=preview_id,
            details=details,
        )
        logger.info({"event": "import_preview", "preview_id": preview_id, "dashboard_id": dashboard_id, **details})
        return PreviewHandle(preview_id=preview_id, preview=preview, expires_in_seconds=self._cache.ttl_seconds)

    def page_transactions(self, preview_id: str, page: int = 1, limit: Optional[int] = None) -> TransactionPage:
        preview = self._cache.get(preview_id)
        if preview is None:
            logger.info({"event": "preview_expired", "preview_id": preview_id, "operation": "page"})
            raise PreviewExpired("Preview not found or expired. Upload the file again.")

        page = max(1, page)
        limit = max(1, limit or self._settings.preview_page_size)
        start = (page - 1) * limit
        window = preview.transactions[start : start + limit]
        total = len(preview.transactions)
        return TransactionPage(
            transactions=list(window),
            page=page,
            limit=limit,
            total=total,
            has_more=start + limit < total,
        )

    def confirm(self, preview_id: str, options: ImportOptions) -> ImportResult:
        """
        Persist a cached preview and drop it from the cache.

        Raises PreviewExpired when the key is unknown, expired or already consumed,
        and ScopeAccessDenied when the caller cannot write to the dashboard. Neither
        case performs any ledger writes.
        """

        if self._cache.get(preview_id) is None:
            logger.info({"event": "preview_expired", "preview_id": preview_id, "operation": "confirm"})
            raise PreviewExpired("Preview not found or expired. Upload the file again.")

        self._require_scope(options.dashboard_id, options.user_id)

        preview = self._cache.take(preview_id)
        if preview is None:
            logger.info({"event": "preview_expired", "preview_id": preview_id, "operation": "confirm"})
            raise PreviewExpired("Preview not found or expired. Upload the file again.")

        result = self.import_preview(preview, options)
        self._record_result("import_confirm", options, result, preview_id=preview_id)
        return result

    def quick_import(self, document: UploadedDocument, options: ImportOptions) -> ImportResult:
        """Parse, flag duplicates and import in one call; duplicates are always skipped."""

        self._require_scope(options.dashboard_id, options.user_id)
        preview = self._parse_and_flag(document, options.dashboard_id)

        result = self.import_preview(preview, replace(options, skip_duplicates=True))
        result.duplicates_found = len(preview.duplicates)
        self._record_result("import_quick", options, result, file_digest=hash_payload(document.content))
        return result

    def import_preview(self, preview: ImportPreview, options: ImportOptions) -> ImportResult:
        """
        Expand a preview into ledger records, one persistence call per record.

        Order: selected transactions (minus flagged duplicates when skipping), then
        one transaction per populated installment month, then debtors, then
        recurring schedules. A record that fails to persist, or whose fields cannot
        form a valid date, is collected into `ImportResult.errors` and the loop
        moves on.
        """

        result = ImportResult()
        duplicate_keys = {candidate.transaction.identity for candidate in preview.duplicates}

        selected = preview.transactions
        if options.selected_indices is not None:
            wanted = set(options.selected_indices)
            selected = [t for index, t in enumerate(preview.transactions) if index in wanted]

        for transaction in selected:
            if options.skip_duplicates and transaction.identity in duplicate_keys:
                result.skipped += 1
                continue
            self._persist(
                result,
                f'row {transaction.source_row} ({transaction.source_tab}) "{transaction.description}"',
                lambda t=transaction: self._repository.create_transaction(**self._transaction_fields(t, options)),
            )

        for installment in preview.installments:
            self._import_installment(installment, options, result)

        for debtor in preview.debtors:
            self._persist(
                result,
                f'debtor "{debtor.name}" (row {debtor.source_row})',
                lambda d=debtor: self._repository.create_transaction(**self._debtor_fields(d, options)),
            )

        for recurring in preview.recurring:
            self._persist(
                result,
                f'fixed expense "{recurring.description}" (row {recurring.source_row})',
                lambda r=recurring: self._repository.create_recurring_schedule(**self._recurring_fields(r, options)),
            )
        return result

    def _import_installment(self, installment: ParsedInstallment, options: ImportOptions, result: ImportResult) -> None:
        group_id = str(uuid4())
        sequence = 1
        for month, amount in installment.monthly_amounts.items():
            if amount <= 0 or month not in MONTH_NAMES:
                continue
            persisted = self._persist(
                result,
                f'installment "{installment.description}" {month} (row {installment.source_row})',
                lambda: self._repository.create_transaction(
                    **self._installment_fields(installment, month, amount, sequence, group_id, options)
                ),
            )
            if persisted:
                sequence += 1

    def _persist(self, result: ImportResult, label: str, create: Callable[[], str]) -> bool:
        try:
            create()
        except (SQLAlchemyError, ValueError, OverflowError) as exc:
            self._repository.rollback()
            logger.warning({"event": "import_item_failed", "item": label, "error": str(exc)})
            result.errors.append(f"Failed to import {label}: {exc}")
            return False
        result.imported += 1
        return True

    def _parse_and_flag(self, document: UploadedDocument, dashboard_id: str) -> ImportPreview:
        preview = parse_document(document, self._settings.max_upload_bytes)
        preview.duplicates = detect_duplicates(
            preview.transactions,
            dashboard_id,
            self._repository,
            self._duplicate_policy,
        )
        return preview

    def _require_scope(self, dashboard_id: str, user_id: str) -> None:
        if not self._repository.user_can_write(dashboard_id, user_id):
            logger.warning({"event": "dashboard_access_denied", "dashboard_id": dashboard_id, "user_id": user_id})
            raise ScopeAccessDenied("Dashboard not found or you do not have write access to it.")

    def _record_result(
        self,
        action: str,
        options: ImportOptions,
        result: ImportResult,
        *,
        preview_id: str | None = None,
        file_digest: str | None = None,
    ) -> None:
        details: dict[str, object] = {
            "imported": result.imported,
            "skipped": result.skipped,
            "error_count": len(result.errors),
        }
        if result.duplicates_found is not None:
            details["duplicates_found"] = result.duplicates_found
        if file_digest:
            details["file_digest"] = file_digest
        self._repository.record_event(
            action=action,
            dashboard_id=options.dashboard_id,
            user_id=options.user_id,
            preview_id=preview_id,
            details=details,
        )
        logger.info({"event": action, "dashboard_id": options.dashboard_id, "preview_id": preview_id, **details})

    @staticmethod
    def _preview_details(document: UploadedDocument, preview: ImportPreview) -> dict[str, object]:
        return {
            "file_digest": hash_payload(document.content),
            "size_bytes": len(document.content),
            "transactions": len(preview.transactions),
            "installments": len(preview.installments),
            "debtors": len(preview.debtors),
            "recurring": len(preview.recurring),
            "duplicates": len(preview.duplicates),
            "errors": len(preview.errors),
        }

    @staticmethod
    def _transaction_fields(transaction: ParsedTransaction, options: ImportOptions) -> dict[str, object]:
        return {
            "dashboard_id": options.dashboard_id,
            "user_id": options.user_id,
            "date": transaction.date,
            "due_date": transaction.due_date,
            "entry_type": transaction.entry_type.value,
            "flow_type": transaction.flow_type.value,
            "cost_center": transaction.cost_center.value if transaction.cost_center else None,
            "category": transaction.category,
            "subcategory": transaction.subcategory,
            "description": transaction.description,
            "amount": transaction.amount,
            "payment_method": transaction.payment_method,
            "institution": transaction.institution,
            "card_brand": transaction.card_brand,
            "installment_number": transaction.installment_number,
            "installment_total": transaction.installment_total,
            "installment_status": STATUS_NOT_APPLICABLE,
            "notes": transaction.notes,
            "is_third_party": transaction.is_third_party,
            "third_party_name": transaction.third_party_name,
            "source_tab": transaction.source_tab,
            "source_row": transaction.source_row,
        }

    def _installment_fields(
        self,
        installment: ParsedInstallment,
        month: str,
        amount: Decimal,
        sequence: int,
        group_id: str,
        options: ImportOptions,
    ) -> dict[str, object]:
        month_number = MONTH_NAMES.index(month) + 1
        year = installment.year or self._today().year
        day = min(installment.day or 1, calendar.monthrange(year, month_number)[1])
        return {
            "dashboard_id": options.dashboard_id,
            "user_id": options.user_id,
            "date": date(year, month_number, day),
            "entry_type": EntryType.EXPENSE.value,
            "flow_type": FlowType.VARIABLE.value,
            "cost_center": installment.cost_center.value if installment.cost_center else None,
            "category": installment.category or INSTALLMENT_CATEGORY,
            "description": installment.description,
            "amount": amount,
            "payment_method": installment.payment_method,
            "institution": installment.institution,
            "installment_number": sequence,
            "installment_total": installment.installment_total,
            "installment_status": STATUS_PENDING,
            "installment_group_id": group_id,
            "source_row": installment.source_row,
        }

    def _debtor_fields(self, debtor: ParsedDebtor, options: ImportOptions) -> dict[str, object]:
        return {
            "dashboard_id": options.dashboard_id,
            "user_id": options.user_id,
            "date": debtor.date or self._today(),
            "entry_type": EntryType.EXPENSE.value,
            "flow_type": FlowType.VARIABLE.value,
            "category": DEBTOR_CATEGORY,
            "description": debtor.description or f"Debt from {debtor.name}",
            "amount": debtor.amount,
            "installment_status": STATUS_NOT_APPLICABLE,
            "is_third_party": True,
            "third_party_name": debtor.name,
            "third_party_description": debtor.description or None,
            "source_row": debtor.source_row,
        }

    def _recurring_fields(self, recurring: ParsedRecurring, options: ImportOptions) -> dict[str, object]:
        today = self._today()
        return {
            "dashboard_id": options.dashboard_id,
            "user_id": options.user_id,
            "entry_type": EntryType.EXPENSE.value,
            "flow_type": FlowType.FIXED.value,
            "category": recurring.category or RECURRING_CATEGORY,
            "description": recurring.description,
            "amount": recurring.amount,
            "frequency": recurring.frequency.value,
            "interval": 1,
            "start_date": today,
            "next_date": today,
        }
