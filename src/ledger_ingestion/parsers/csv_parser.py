from __future__ import annotations

import csv
import logging
from io import StringIO
from typing import Dict, Iterable, Optional

from ..errors import UnreadableDocument
from ..models.records import EntryType, FlowType, ImportPreview, ParsedTransaction, RowError
from .aggregation import summarize_preview
from .cells import ZERO, fold_text, parse_currency, parse_date
from .normalizers import normalize_cost_center, normalize_payment_method
from .policy import DELIMITED_FIELD_POLICY, reject_row

logger = logging.getLogger(__name__)

CSV_TAB = "CSV"
DEFAULT_CATEGORY = "Other"

DateHeaders = ("data", "date")
DescriptionHeaders = ("descricao", "description")
ValueHeaders = ("valor", "value", "amount")
CategoryHeaders = ("categoria", "category")
TypeHeaders = ("tipo", "type")
PaymentHeaders = ("meio pg", "meio", "meio pagamento", "payment", "payment method")
CostCenterHeaders = ("centro de custo", "cost center", "importantes")
IncomeTypeMarkers = ("receita", "income")


def parse_csv_to_preview(file_bytes: bytes) -> ImportPreview:
    """
    Parse a flat delimited upload (one transaction per line) into an ImportPreview.

    Headers are matched by name, not position. Unlike workbook tabs, a row without
    a usable date or description is reported as an error.
    """

    text_buffer = _decode_bytes(file_bytes)
    first_line = text_buffer.split("\n", 1)[0]
    delimiter = ";" if ";" in first_line else ","

    preview = ImportPreview()
    try:
        reader = csv.DictReader(StringIO(text_buffer), delimiter=delimiter)
        # Physical line number; blank and delimiter-only lines still count.
        records = [(reader.line_num, record) for record in reader if _has_content(record)]
    except csv.Error as exc:
        raise UnreadableDocument(f"Delimited file could not be read: {exc}") from exc

    for row_number, record in records:
        raw_record = {key: value for key, value in record.items() if key is not None}
        try:
            outcome = _transaction_from_record(_normalize_record(raw_record), row_number, raw_record)
        except Exception as exc:  # noqa: BLE001 - keep going with the next line
            logger.warning({"event": "import_row_failed", "tab": CSV_TAB, "row": row_number, "error": str(exc)})
            preview.errors.append(RowError(row=row_number, tab=CSV_TAB, message=str(exc), data=raw_record))
            continue
        if isinstance(outcome, RowError):
            preview.errors.append(outcome)
        elif outcome is not None:
            preview.transactions.append(outcome)

    preview.summary = summarize_preview(preview)
    return preview


def _transaction_from_record(
    record: Dict[str, str], row_number: int, raw_record: Dict[str, str]
) -> ParsedTransaction | RowError | None:
    transaction_date = parse_date(_find_value(record, DateHeaders))
    description = _find_value(record, DescriptionHeaders) or ""
    amount = parse_currency(_find_value(record, ValueHeaders))

    missing = []
    if transaction_date is None:
        missing.append("date")
    if not description:
        missing.append("description")
    if amount <= ZERO:
        missing.append("amount")
    if missing:
        return reject_row(DELIMITED_FIELD_POLICY, CSV_TAB, row_number, missing, data=raw_record)

    entry_type_label = fold_text(_find_value(record, TypeHeaders) or "")
    entry_type = (
        EntryType.INCOME if any(marker in entry_type_label for marker in IncomeTypeMarkers) else EntryType.EXPENSE
    )
    payment = normalize_payment_method(_find_value(record, PaymentHeaders))

    return ParsedTransaction(
        date=transaction_date,
        entry_type=entry_type,
        flow_type=FlowType.VARIABLE,
        description=description,
        amount=amount,
        source_tab=CSV_TAB,
        source_row=row_number,
        category=_find_value(record, CategoryHeaders) or DEFAULT_CATEGORY,
        cost_center=normalize_cost_center(_find_value(record, CostCenterHeaders)),
        payment_method=payment.method,
        institution=payment.institution,
    )


def _decode_bytes(file_bytes: bytes) -> str:
    for encoding in ("utf-8-sig", "latin-1"):
        try:
            return file_bytes.decode(encoding)
        except UnicodeDecodeError:
            continue
    # latin-1 accepts any byte sequence; this line is only reached for exotic inputs.
    return file_bytes.decode("utf-8", errors="ignore")


def _has_content(record: Dict[str, Optional[str]]) -> bool:
    return any(value.strip() for value in record.values() if isinstance(value, str))


def _normalize_record(record: Dict[str, Optional[str]]) -> Dict[str, str]:
    normalized: Dict[str, str] = {}
    for key, value in record.items():
        normalized[fold_text(key)] = value.strip() if isinstance(value, str) else ""
    return normalized


def _find_value(record: Dict[str, str], candidates: Iterable[str]) -> Optional[str]:
    for candidate in candidates:
        value = record.get(candidate)
        if value:
            return value
    return None
