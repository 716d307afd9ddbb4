from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import asdict
from datetime import date
from decimal import Decimal

from ..models.records import CostCenter, EntryType, FlowType, ParsedTransaction, RowError, TabResult
from .cells import ZERO, cell_date_value, cell_text, fold_text, parse_currency, parse_date
from .columns import DATE_HEADERS, MonthlyColumns, detect_monthly_columns, find_monthly_data_start
from .grid import SheetGrid
from .normalizers import normalize_cost_center, normalize_payment_method
from .policy import WORKSHEET_FIELD_POLICY, reject_row

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "Other"
INCOME_CATEGORY = "Salary"
INCOME_DESCRIPTION = "Income"
DEBTOR_CATEGORIES = frozenset({"debtors", "devedores"})
_FOOTER_MARKERS = ("total", "balance", "saldo")

RowBuilder = Callable[[SheetGrid, MonthlyColumns, str, int], "ParsedTransaction | RowError | None"]


def parse_monthly_tab(grid: SheetGrid, tab_name: str) -> TabResult:
    """
    Extract expense rows, and the income sub-section when present, from a month tab.

    Separator, subtotal and footer rows are dropped without an error. Rows whose
    category is "Debtors" are left to the debtor tab so they are not counted twice.
    """

    result = TabResult()
    columns = detect_monthly_columns(grid)
    data_start = find_monthly_data_start(grid, columns)

    if columns.has_expenses:
        _scan(grid, columns, tab_name, data_start, _expense_from_row, result)
    if columns.has_income:
        _scan(grid, columns, tab_name, data_start, _income_from_row, result)

    logger.debug(
        {
            "event": "monthly_tab_parsed",
            "tab": tab_name,
            "columns": asdict(columns),
            "data_start_row": data_start,
            "transactions": len(result.transactions),
        }
    )
    return result


def _scan(
    grid: SheetGrid,
    columns: MonthlyColumns,
    tab_name: str,
    data_start: int,
    build: RowBuilder,
    result: TabResult,
) -> None:
    for row in grid.iter_rows(data_start):
        try:
            outcome = build(grid, columns, tab_name, row)
        except Exception as exc:  # noqa: BLE001 - one unreadable row must not sink the tab
            logger.warning({"event": "import_row_failed", "tab": tab_name, "row": row, "error": str(exc)})
            result.errors.append(RowError(row=row, tab=tab_name, message=f"Failed to read row: {exc}"))
            continue
        if isinstance(outcome, RowError):
            result.errors.append(outcome)
        elif outcome is not None:
            result.transactions.append(outcome)


def _expense_from_row(
    grid: SheetGrid, columns: MonthlyColumns, tab_name: str, row: int
) -> ParsedTransaction | RowError | None:
    raw_date = cell_date_value(grid.value(row, columns.date))
    raw_value = grid.value(row, columns.value)
    if raw_date is None or not cell_text(raw_value) or _is_label_row(raw_date):
        return None

    description_column = columns.description or columns.category or columns.date + 4
    description = cell_text(grid.value(row, description_column))
    if "total" in fold_text(description):
        return None

    transaction_date = parse_date(raw_date)
    amount = parse_currency(raw_value)
    missing = _missing_fields(transaction_date, description, amount)
    if missing:
        return reject_row(WORKSHEET_FIELD_POLICY, tab_name, row, missing)

    category = cell_text(grid.value(row, columns.category)) if columns.category else ""
    if fold_text(category) in DEBTOR_CATEGORIES:
        return None

    cost_center = _resolve_cost_center(grid, columns, row)
    payment = normalize_payment_method(grid.value(row, columns.payment_method)) if columns.payment_method else None

    return ParsedTransaction(
        date=transaction_date,
        entry_type=EntryType.EXPENSE,
        flow_type=FlowType.FIXED if cost_center is CostCenter.FIXED_EXPENSE else FlowType.VARIABLE,
        description=description,
        amount=amount,
        source_tab=tab_name,
        source_row=row,
        category=category or DEFAULT_CATEGORY,
        cost_center=cost_center,
        payment_method=payment.method if payment else None,
        institution=payment.institution if payment else None,
    )


def _income_from_row(
    grid: SheetGrid, columns: MonthlyColumns, tab_name: str, row: int
) -> ParsedTransaction | RowError | None:
    raw_date = cell_date_value(grid.value(row, columns.income_date))
    raw_value = grid.value(row, columns.income_value)
    if raw_date is None or not cell_text(raw_value) or _is_label_row(raw_date):
        return None

    if columns.income_description:
        description = cell_text(grid.value(row, columns.income_description))
    else:
        description = INCOME_DESCRIPTION

    transaction_date = parse_date(raw_date)
    amount = parse_currency(raw_value)
    missing = _missing_fields(transaction_date, description, amount)
    if missing:
        return reject_row(WORKSHEET_FIELD_POLICY, tab_name, row, missing)

    return ParsedTransaction(
        date=transaction_date,
        entry_type=EntryType.INCOME,
        flow_type=FlowType.VARIABLE,
        description=description,
        amount=amount,
        source_tab=tab_name,
        source_row=row,
        category=INCOME_CATEGORY,
    )


def _is_label_row(raw_date: object) -> bool:
    # Header repeats and "Total"/"Balance" footers sit in the date column.
    if not isinstance(raw_date, str):
        return False
    folded = fold_text(raw_date)
    return folded in DATE_HEADERS or any(marker in folded for marker in _FOOTER_MARKERS)


def _missing_fields(transaction_date: date | None, description: str, amount: Decimal) -> list[str]:
    missing = []
    if transaction_date is None:
        missing.append("date")
    if not description:
        missing.append("description")
    if amount <= ZERO:
        missing.append("amount")
    return missing


def _resolve_cost_center(grid: SheetGrid, columns: MonthlyColumns, row: int) -> CostCenter | None:
    if columns.cost_center:
        return normalize_cost_center(grid.value(row, columns.cost_center))
    if columns.important:
        return normalize_cost_center(grid.value(row, columns.important))
    return None
