from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from .cells import ZERO, cell_text, fold_text, parse_currency
from .grid import SheetGrid
from .tabs import full_month_number, month_key

_SECTION_LABELS = {
    "entrada": "income",
    "income": "income",
    "saida": "expense",
    "expenses": "expense",
    "outflow": "expense",
    "saldo": "balance",
    "balance": "balance",
}
_INCOME_TOTAL_MARKERS = ("renda mensal total", "total income")
_EXPENSE_TOTAL_MARKERS = ("total saidas", "total expenses")


@dataclass(slots=True)
class SummaryTabData:
    """Reference figures from the summary tab. Nothing here becomes a record."""

    income_by_source: dict[str, dict[str, Decimal]] = field(default_factory=dict)
    expense_by_category: dict[str, dict[str, Decimal]] = field(default_factory=dict)
    income_totals: dict[str, Decimal] = field(default_factory=dict)
    expense_totals: dict[str, Decimal] = field(default_factory=dict)

    def reference_totals(self) -> dict[str, dict[str, Decimal]]:
        return {"income": dict(self.income_totals), "expense": dict(self.expense_totals)}


def parse_summary_tab(grid: SheetGrid) -> SummaryTabData:
    """
    Walk the income / expense / balance sections of the summary tab.

    Row labels sit in the first or second column; month columns are discovered
    from any row whose cells are full month names.
    """

    data = SummaryTabData()
    section = ""
    month_columns: dict[int, str] = {}

    for row in grid.iter_rows():
        first = cell_text(grid.value(row, 1))
        second = cell_text(grid.value(row, 2))
        marker = _SECTION_LABELS.get(fold_text(second)) or _SECTION_LABELS.get(fold_text(first))
        if marker:
            section = marker
            continue

        header_months = _month_headers(grid, row)
        if header_months:
            month_columns.update(header_months)
            continue

        label = second or first
        if not label or not month_columns:
            continue
        folded = fold_text(label)

        if section == "income":
            if any(total in folded for total in _INCOME_TOTAL_MARKERS):
                data.income_totals.update(_row_values(grid, row, month_columns, keep_zero=True))
            else:
                data.income_by_source[label] = _row_values(grid, row, month_columns)
        elif section == "expense":
            if any(total in folded for total in _EXPENSE_TOTAL_MARKERS):
                data.expense_totals.update(_row_values(grid, row, month_columns, keep_zero=True))
            else:
                data.expense_by_category[label] = _row_values(grid, row, month_columns)
    return data


def _month_headers(grid: SheetGrid, row: int) -> dict[int, str]:
    headers: dict[int, str] = {}
    for column in range(1, grid.max_column + 1):
        month = full_month_number(grid.value(row, column))
        if month is not None:
            headers[column] = month_key(month)
    return headers


def _row_values(grid: SheetGrid, row: int, month_columns: dict[int, str], keep_zero: bool = False) -> dict[str, Decimal]:
    values: dict[str, Decimal] = {}
    for column, month in month_columns.items():
        amount = parse_currency(grid.value(row, column))
        if keep_zero or amount > ZERO:
            values[month] = amount
    return values
