"""Downloadable starter files whose layout the parsers in this package recognise."""

from __future__ import annotations

from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.datavalidation import DataValidation
from openpyxl.worksheet.worksheet import Worksheet

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
CSV_MEDIA_TYPE = "text/csv; charset=utf-8"
TEMPLATE_BASENAME = "import_template"

MONTH_EXPENSE_HEADERS = ("Date", "Cost Center", "Category", "Description", "Payment", "Value")
MONTH_INCOME_HEADERS = ("Date", "Description", "Value")
MONTH_EXAMPLE = ("21/01/2026", "Essential", "Groceries", "Supermarket", "Nubank", "150,00")
MONTH_INCOME_EXAMPLE = ("05/01/2026", "Salary", "5.000,00")
INCOME_COLUMN = len(MONTH_EXPENSE_HEADERS) + 2

INSTALLMENT_HEADERS = (
    "Year",
    "Day",
    "Description",
    "Installments",
    "Total Value",
    "Installment Value",
    "Category",
    "Payment",
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
INSTALLMENT_EXAMPLE = (2026, 10, "Phone", 12, "1.800,00", "150,00", "Electronics", "Nubank") + ("150,00",) * 12

DEBTOR_HEADERS = ("Name", "Description", "Amount", "Date")
DEBTOR_EXAMPLE = ("John", "Loan", "500,00", "15/01/2026")

RECURRING_HEADERS = ("Description", "Category", "Monthly Value", "Payment")
RECURRING_EXAMPLES = (
    ("Internet", "Home", "120,00", "Debit"),
    ("Rent", "Housing", "1500,00", "Transfer"),
)

COST_CENTER_CHOICES = '"Essential,Non-essential,Fixed Expense"'
COLUMN_WIDTH = 20


def build_xlsx_template() -> bytes:
    """Workbook with one sample tab per record kind: monthly ledger, installments, debtors and fixed expenses."""

    workbook = Workbook()
    month = workbook.active
    month.title = "JAN"
    month.cell(row=1, column=INCOME_COLUMN, value="Income").font = Font(bold=True)
    _write_headers(month, MONTH_EXPENSE_HEADERS, row=2)
    _write_headers(month, MONTH_INCOME_HEADERS, row=2, first_column=INCOME_COLUMN)
    _write_row(month, MONTH_EXAMPLE, row=3)
    _write_row(month, MONTH_INCOME_EXAMPLE, row=3, first_column=INCOME_COLUMN)

    cost_center = DataValidation(type="list", formula1=COST_CENTER_CHOICES, allow_blank=True)
    month.add_data_validation(cost_center)
    cost_center.add("B3:B500")

    installments = workbook.create_sheet("INSTALLMENTS")
    _write_headers(installments, INSTALLMENT_HEADERS)
    _write_row(installments, INSTALLMENT_EXAMPLE, row=2)

    debtors = workbook.create_sheet("DEBTORS")
    _write_headers(debtors, DEBTOR_HEADERS)
    _write_row(debtors, DEBTOR_EXAMPLE, row=2)

    fixed = workbook.create_sheet("FIXED EXPENSES")
    _write_headers(fixed, RECURRING_HEADERS)
    for offset, example in enumerate(RECURRING_EXAMPLES):
        _write_row(fixed, example, row=2 + offset)

    for sheet in workbook.worksheets:
        for column in range(1, sheet.max_column + 1):
            sheet.column_dimensions[get_column_letter(column)].width = COLUMN_WIDTH

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def build_csv_template() -> bytes:
    """Semicolon-delimited monthly ledger with a BOM so spreadsheet apps pick UTF-8."""

    headers = MONTH_EXPENSE_HEADERS[:4] + ("Type",) + MONTH_EXPENSE_HEADERS[4:]
    example = MONTH_EXAMPLE[:4] + ("Expense",) + MONTH_EXAMPLE[4:]
    content = "\ufeff" + ";".join(headers) + "\n" + ";".join(example) + "\n"
    return content.encode("utf-8")


def _write_headers(sheet: Worksheet, headers, row: int = 1, first_column: int = 1) -> None:
    for offset, header in enumerate(headers):
        sheet.cell(row=row, column=first_column + offset, value=header).font = Font(bold=True)


def _write_row(sheet: Worksheet, values, row: int, first_column: int = 1) -> None:
    for offset, value in enumerate(values):
        sheet.cell(row=row, column=first_column + offset, value=value)
