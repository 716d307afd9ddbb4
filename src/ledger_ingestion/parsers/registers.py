"""Parsers for the single-header-row register tabs: debtors and fixed expenses."""

from __future__ import annotations

import logging

from ..models.records import Frequency, ParsedDebtor, ParsedRecurring, RowError, TabResult
from .cells import ZERO, cell_date_value, cell_text, parse_currency, parse_date
from .columns import detect_header_row, header_in
from .grid import SheetGrid

logger = logging.getLogger(__name__)

_DESCRIPTION = frozenset({"description", "descricao"})
_AMOUNT = frozenset({"value", "amount", "valor", "quantia"})

DEBTOR_HEADERS = (
    ("name", header_in({"name", "nome", "debtor", "devedor"})),
    ("description", header_in(_DESCRIPTION | {"reason", "motivo"})),
    ("amount", header_in(_AMOUNT)),
    ("date", header_in({"date", "data"})),
)

RECURRING_HEADERS = (
    ("description", header_in(_DESCRIPTION | {"expense", "despesa"})),
    ("amount", header_in(_AMOUNT | {"monthly value", "monthly amount", "valor mensal"})),
    ("category", header_in({"category", "categoria"})),
)


def parse_debtors_tab(grid: SheetGrid, tab_name: str) -> TabResult:
    result = TabResult()
    columns = detect_header_row(grid, DEBTOR_HEADERS)

    for row in grid.iter_rows(2):
        try:
            name = cell_text(grid.value(row, columns["name"])) if "name" in columns else ""
            amount = parse_currency(grid.value(row, columns["amount"])) if "amount" in columns else ZERO
            if not name or amount == ZERO:
                continue
            description = cell_text(grid.value(row, columns["description"])) if "description" in columns else ""
            debtor_date = parse_date(cell_date_value(grid.value(row, columns["date"]))) if "date" in columns else None
        except Exception as exc:  # noqa: BLE001
            logger.warning({"event": "import_row_failed", "tab": tab_name, "row": row, "error": str(exc)})
            result.errors.append(RowError(row=row, tab=tab_name, message=f"Failed to read debtor: {exc}"))
            continue

        result.debtors.append(
            ParsedDebtor(name=name, description=description, amount=amount, source_row=row, date=debtor_date)
        )
    return result


def parse_recurring_tab(grid: SheetGrid, tab_name: str) -> TabResult:
    """Fixed expenses become monthly schedules; richer cadences are set up after import."""

    result = TabResult()
    columns = detect_header_row(grid, RECURRING_HEADERS)

    for row in grid.iter_rows(2):
        try:
            description = cell_text(grid.value(row, columns["description"])) if "description" in columns else ""
            amount = parse_currency(grid.value(row, columns["amount"])) if "amount" in columns else ZERO
            if not description or amount == ZERO:
                continue
            category = cell_text(grid.value(row, columns["category"])) if "category" in columns else ""
        except Exception as exc:  # noqa: BLE001
            logger.warning({"event": "import_row_failed", "tab": tab_name, "row": row, "error": str(exc)})
            result.errors.append(RowError(row=row, tab=tab_name, message=f"Failed to read fixed expense: {exc}"))
            continue

        result.recurring.append(
            ParsedRecurring(
                description=description,
                amount=amount,
                source_row=row,
                category=category or None,
                frequency=Frequency.MONTHLY,
            )
        )
    return result
