from __future__ import annotations

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from ..models.records import ParsedInstallment, RowError, TabResult
from .cells import ZERO, cell_text, parse_count, parse_currency
from .columns import InstallmentColumns, detect_installment_columns, find_installment_data_start
from .grid import SheetGrid
from .normalizers import normalize_cost_center, normalize_payment_method

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def parse_installments_tab(grid: SheetGrid, tab_name: str) -> TabResult:
    """
    Read installment plans, one per row, with the amounts observed in each month column.

    The month-by-month mapping is what gets imported later, not a schedule rebuilt
    from the total, because real plans drift from the nominal installment value.
    """

    result = TabResult()
    columns = detect_installment_columns(grid)
    if columns.description is None:
        logger.info({"event": "installment_tab_without_description", "tab": tab_name})
        return result

    for row in grid.iter_rows(find_installment_data_start(grid)):
        try:
            installment = _installment_from_row(grid, columns, row)
        except Exception as exc:  # noqa: BLE001 - keep reading the remaining plans
            logger.warning({"event": "import_row_failed", "tab": tab_name, "row": row, "error": str(exc)})
            result.errors.append(RowError(row=row, tab=tab_name, message=f"Failed to read installment: {exc}"))
            continue
        if installment is not None:
            result.installments.append(installment)
    return result


def _installment_from_row(grid: SheetGrid, columns: InstallmentColumns, row: int) -> ParsedInstallment | None:
    description = cell_text(grid.value(row, columns.description))
    if not description:
        return None

    total_amount = _amount(grid, row, columns.total_value)
    installment_value = _amount(grid, row, columns.installment_value)
    if total_amount == ZERO and installment_value == ZERO:
        return None

    count = parse_count(grid.value(row, columns.count)) if columns.count else 0
    if installment_value == ZERO:
        installment_value = (total_amount / count).quantize(CENTS, ROUND_HALF_UP) if count > 0 else total_amount

    payment = normalize_payment_method(grid.value(row, columns.payment_method)) if columns.payment_method else None

    return ParsedInstallment(
        description=description,
        installment_total=count,
        total_amount=total_amount,
        installment_amount=installment_value,
        source_row=row,
        monthly_amounts=_monthly_amounts(grid, row, columns.month_columns),
        category=(cell_text(grid.value(row, columns.category)) or None) if columns.category else None,
        cost_center=normalize_cost_center(grid.value(row, columns.cost_center)) if columns.cost_center else None,
        payment_method=payment.method if payment else None,
        institution=payment.institution if payment else None,
        year=_positive_int(grid.value(row, columns.year)) if columns.year else None,
        month=(cell_text(grid.value(row, columns.month)) or None) if columns.month else None,
        day=_day_of_month(grid.value(row, columns.day)) if columns.day else None,
    )


def _monthly_amounts(grid: SheetGrid, row: int, month_columns: tuple[tuple[int, str], ...]) -> dict[str, Decimal]:
    amounts: dict[str, Decimal] = {}
    for column, month in month_columns:
        value = parse_currency(grid.value(row, column))
        if value > ZERO:
            amounts.setdefault(month, value)
    return amounts


def _amount(grid: SheetGrid, row: int, column: int | None) -> Decimal:
    if column is None:
        return ZERO
    return parse_currency(grid.value(row, column))


def _positive_int(value: Any) -> int | None:
    return parse_count(value) or None


def _day_of_month(value: Any) -> int | None:
    # The "day" column is sometimes a full date.
    if isinstance(value, date):
        return value.day
    day = parse_count(value)
    return day if 1 <= day <= 31 else None
