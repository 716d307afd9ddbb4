"""
Header-scanning heuristics that locate semantic columns in loosely laid out tabs.

Detection is a pure function of the grid: it returns an immutable column map and
never touches row iteration. Each target column is claimed by the first matching
header in row-major scan order; later matches for the same target are ignored.
Tie-break corrections run afterwards as named rules in `MONTHLY_POST_DETECTION_RULES`.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace

from .cells import cell_text, fold_text
from .grid import SheetGrid
from .tabs import full_month_number, month_key

HEADER_SCAN_ROWS = 5
HEADER_SCAN_COLUMNS = 20
INCOME_HEADER_WINDOW = 6
INSTALLMENT_HEADER_ROWS = 3
DEFAULT_MONTHLY_DATA_START = 3
DEFAULT_INSTALLMENT_DATA_START = 2

DATE_HEADERS = frozenset({"date", "data"})
DESCRIPTION_HEADERS = frozenset({"description", "descricao"})
VALUE_HEADERS = frozenset({"value", "amount", "valor"})
CATEGORY_HEADERS = frozenset({"category", "categoria"})
PAYMENT_HEADERS = frozenset({"payment", "payment method", "meio pg", "meio", "pagamento", "meio pagamento"})
IMPORTANT_HEADERS = frozenset({"important", "importantes", "importancia", "flagged"})
INCOME_SECTION_HEADERS = frozenset({"income", "incomes", "receita", "receitas"})

HeaderMatcher = Callable[[str], bool]


def header_in(candidates: Iterable[str]) -> HeaderMatcher:
    accepted = frozenset(candidates)
    return lambda header: header in accepted


def _is_cost_center(header: str) -> bool:
    return ("cost" in header and "center" in header) or ("centro" in header and "custo" in header)


@dataclass(frozen=True, slots=True)
class MonthlyColumns:
    """1-based column indices for a monthly ledger tab; None means not found."""

    date: int | None = None
    cost_center: int | None = None
    important: int | None = None
    category: int | None = None
    description: int | None = None
    payment_method: int | None = None
    value: int | None = None
    income_date: int | None = None
    income_description: int | None = None
    income_value: int | None = None

    @property
    def has_expenses(self) -> bool:
        return self.date is not None and self.value is not None

    @property
    def has_income(self) -> bool:
        return self.income_date is not None and self.income_value is not None


EXPENSE_HEADER_MATCHERS: tuple[tuple[str, HeaderMatcher], ...] = (
    ("date", header_in(DATE_HEADERS)),
    ("cost_center", _is_cost_center),
    ("important", header_in(IMPORTANT_HEADERS)),
    ("category", header_in(CATEGORY_HEADERS)),
    ("description", header_in(DESCRIPTION_HEADERS)),
    ("payment_method", header_in(PAYMENT_HEADERS)),
    ("value", header_in(VALUE_HEADERS)),
)

INCOME_HEADER_MATCHERS: tuple[tuple[str, HeaderMatcher], ...] = (
    ("income_date", header_in(DATE_HEADERS)),
    ("income_description", header_in(DESCRIPTION_HEADERS)),
    ("income_value", header_in(VALUE_HEADERS)),
)


def discard_income_left_of_expenses(columns: MonthlyColumns) -> MonthlyColumns:
    """The income section must sit strictly to the right of the expense value column."""

    if columns.value is None or columns.income_date is None:
        return columns
    if columns.income_date > columns.value:
        return columns
    return replace(columns, income_date=None, income_description=None, income_value=None)


MONTHLY_POST_DETECTION_RULES: tuple[Callable[[MonthlyColumns], MonthlyColumns], ...] = (
    discard_income_left_of_expenses,
)


def detect_monthly_columns(grid: SheetGrid) -> MonthlyColumns:
    claimed: dict[str, int] = {}
    for row in range(1, HEADER_SCAN_ROWS + 1):
        for column in range(1, HEADER_SCAN_COLUMNS + 1):
            header = _header(grid, row, column)
            if not header:
                continue
            _claim(claimed, EXPENSE_HEADER_MATCHERS, header, column)
            if header in INCOME_SECTION_HEADERS:
                # Income sub-headers live on the next row, starting under the label.
                for income_column in range(column, column + INCOME_HEADER_WINDOW):
                    sub_header = _header(grid, row + 1, income_column)
                    if sub_header:
                        _claim(claimed, INCOME_HEADER_MATCHERS, sub_header, income_column)

    columns = MonthlyColumns(**claimed)
    for rule in MONTHLY_POST_DETECTION_RULES:
        columns = rule(columns)
    return columns


def find_monthly_data_start(grid: SheetGrid, columns: MonthlyColumns) -> int:
    """First data row: the row after the one whose date column reads "Date"."""

    if columns.date is None:
        return DEFAULT_MONTHLY_DATA_START
    for row in range(1, HEADER_SCAN_ROWS + 1):
        if _header(grid, row, columns.date) in DATE_HEADERS:
            return row + 1
    return DEFAULT_MONTHLY_DATA_START


@dataclass(frozen=True, slots=True)
class InstallmentColumns:
    year: int | None = None
    month: int | None = None
    day: int | None = None
    description: int | None = None
    count: int | None = None
    total_value: int | None = None
    installment_value: int | None = None
    category: int | None = None
    cost_center: int | None = None
    payment_method: int | None = None
    # (column, canonical month) for every column headed by a full month name, left to right.
    month_columns: tuple[tuple[int, str], ...] = ()


INSTALLMENT_HEADER_MATCHERS: tuple[tuple[str, HeaderMatcher], ...] = (
    ("year", header_in({"year", "ano"})),
    ("month", header_in({"month", "mes"})),
    ("day", header_in({"day", "dia", "date", "data"})),
    ("description", header_in(DESCRIPTION_HEADERS)),
    ("count", header_in({"installments", "total installments", "q. prcl", "parcelas", "total parcelas", "qtd"})),
    ("total_value", header_in({"total", "total value", "valor total"})),
    ("installment_value", header_in({"installment", "installment value", "parcela", "vlr parcela", "valor parcela"})),
    ("category", header_in(CATEGORY_HEADERS)),
    ("cost_center", _is_cost_center),
    ("payment_method", header_in(PAYMENT_HEADERS)),
)

_INSTALLMENT_HEADER_ROW_MARKERS = frozenset({"description", "descricao", "total"})


def detect_installment_columns(grid: SheetGrid) -> InstallmentColumns:
    """
    Locate installment plan columns in the first rows, plus the month columns.

    Each month column is labelled by its own header, so a run that starts in
    February or skips a month is still read correctly.
    """

    claimed: dict[str, int] = {}
    months: dict[int, str] = {}
    for row in range(1, INSTALLMENT_HEADER_ROWS + 1):
        for column in range(1, grid.max_column + 1):
            header = _header(grid, row, column)
            if not header:
                continue
            _claim(claimed, INSTALLMENT_HEADER_MATCHERS, header, column)
            month = full_month_number(header)
            if month is not None and column not in months:
                months[column] = month_key(month)

    return InstallmentColumns(month_columns=tuple(sorted(months.items())), **claimed)


def find_installment_data_start(grid: SheetGrid) -> int:
    for row in range(1, INSTALLMENT_HEADER_ROWS + 1):
        headers = {_header(grid, row, column) for column in range(1, grid.max_column + 1)}
        if headers & _INSTALLMENT_HEADER_ROW_MARKERS:
            return row + 1
    return DEFAULT_INSTALLMENT_DATA_START


def detect_header_row(grid: SheetGrid, matchers: Iterable[tuple[str, HeaderMatcher]]) -> dict[str, int]:
    """Exact-match columns on the first row only, as used by the debtor and fixed-expense tabs."""

    matchers = tuple(matchers)
    claimed: dict[str, int] = {}
    for column in range(1, grid.max_column + 1):
        header = _header(grid, 1, column)
        if header:
            _claim(claimed, matchers, header, column)
    return claimed


def _claim(claimed: dict[str, int], matchers: Iterable[tuple[str, HeaderMatcher]], header: str, column: int) -> None:
    for target, matches in matchers:
        if target not in claimed and matches(header):
            claimed[target] = column


def _header(grid: SheetGrid, row: int, column: int) -> str:
    return fold_text(cell_text(grid.value(row, column)))
