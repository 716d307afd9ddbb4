from decimal import Decimal

import pytest

from ledger_ingestion.errors import UnreadableDocument
from ledger_ingestion.parsers import xlsx_parser
from ledger_ingestion.parsers.grid import SheetGrid
from ledger_ingestion.parsers.summary_tab import parse_summary_tab
from ledger_ingestion.parsers.tabs import TabKind
from ledger_ingestion.parsers.xlsx_parser import parse_xlsx_to_preview

MONTH_ROWS = [
    (None,) * 7 + ("Income",),
    ("Date", "Cost Center", "Category", "Description", "Payment", "Value", None, "Date", "Description", "Value"),
    ("21/01/2026", "Essential", "Groceries", "Supermarket", "Nubank", "150,00", None, "05/01/2026", "Salary", "5.000,00"),
    ("22/01/2026", "Non-essential", "Leisure", "Cinema", "PIX", "40,00"),
]
INSTALLMENT_ROWS = [
    ("Description", "Installments", "Total Value", "January", "February", "March", "April", "May", "June", "July", "August", "September", "October", "November", "December"),
    ("Phone", 12, "1.800,00", 150, 150),
]
DEBTOR_ROWS = [("Name", "Description", "Amount", "Date"), ("John", "Loan", "500,00", "15/01/2026")]
RECURRING_ROWS = [("Description", "Category", "Monthly Value"), ("Internet", "Home", "120,00")]
SUMMARY_ROWS = [
    (None, "INCOME"),
    (None, None, "January", "February"),
    (None, "Salary", "5.000,00", "5.000,00"),
    (None, "Total income", "5.000,00", "5.200,00"),
    (None, "EXPENSES"),
    (None, "Groceries", "150,00", "0"),
    (None, "Total expenses", "190,00", "0"),
]


def test_workbook_tabs_are_routed_and_summarised(build_xlsx):
    file_bytes = build_xlsx(
        {
            "JAN": MONTH_ROWS,
            "INSTALLMENTS": INSTALLMENT_ROWS,
            "DEBTORS": DEBTOR_ROWS,
            "FIXED EXPENSES": RECURRING_ROWS,
            "Notes": [("anything", "goes")],
            "GERAL": SUMMARY_ROWS,
        }
    )

    preview = parse_xlsx_to_preview(file_bytes)

    assert preview.errors == []
    assert [t.description for t in preview.transactions] == ["Supermarket", "Cinema", "Salary"]
    assert len(preview.installments) == 1
    assert len(preview.debtors) == 1
    assert len(preview.recurring) == 1

    summary = preview.summary
    assert summary.total_transactions == 3
    assert summary.total_income == Decimal("5000.00")
    assert summary.total_expense == Decimal("190.00")
    assert (summary.installments_count, summary.debtors_count, summary.recurring_count) == (1, 1, 1)
    january = summary.by_month["JANUARY"]
    assert (january.income, january.expense, january.count) == (Decimal("5000.00"), Decimal("190.00"), 3)
    assert summary.by_month["FEBRUARY"].count == 0
    assert summary.reference_totals == {
        "income": {"JANUARY": Decimal("5000.00"), "FEBRUARY": Decimal("5200.00")},
        "expense": {"JANUARY": Decimal("190.00"), "FEBRUARY": Decimal("0")},
    }


def test_empty_and_unknown_tabs_produce_an_empty_preview(build_xlsx):
    preview = parse_xlsx_to_preview(build_xlsx({"Cover": [("My finances",)], "JAN": []}))

    assert preview.transactions == []
    assert preview.errors == []
    assert preview.summary.total_transactions == 0
    assert preview.summary.reference_totals is None


def test_failing_tab_is_reported_and_other_tabs_survive(build_xlsx, monkeypatch):
    def broken_parser(grid, tab_name):
        raise RuntimeError("layout not understood")

    monkeypatch.setitem(xlsx_parser.RECORD_PARSERS, TabKind.DEBTORS, broken_parser)
    file_bytes = build_xlsx({"JAN": MONTH_ROWS, "DEBTORS": DEBTOR_ROWS})

    preview = parse_xlsx_to_preview(file_bytes)

    assert len(preview.transactions) == 3
    assert len(preview.errors) == 1
    error = preview.errors[0]
    assert (error.row, error.tab) == (0, "DEBTORS")
    assert error.message == "Failed to process tab: layout not understood"


def test_unreadable_container_is_rejected():
    with pytest.raises(UnreadableDocument):
        parse_xlsx_to_preview(b"definitely not a zip archive")


def test_summary_tab_sections_and_totals():
    data = parse_summary_tab(SheetGrid.from_rows("GERAL", SUMMARY_ROWS))

    assert data.income_by_source == {"Salary": {"JANUARY": Decimal("5000.00"), "FEBRUARY": Decimal("5000.00")}}
    assert data.expense_by_category == {"Groceries": {"JANUARY": Decimal("150.00")}}
    assert data.income_totals["FEBRUARY"] == Decimal("5200.00")
    assert data.expense_totals == {"JANUARY": Decimal("190.00"), "FEBRUARY": Decimal("0")}


def test_portuguese_summary_labels():
    rows = [
        ("ENTRADA",),
        (None, None, "Janeiro"),
        (None, "Renda mensal total", "3.000,00"),
        ("SAÍDA",),
        (None, "Total saídas", "1.000,00"),
    ]

    data = parse_summary_tab(SheetGrid.from_rows("GERAL", rows))

    assert data.reference_totals() == {
        "income": {"JANUARY": Decimal("3000.00")},
        "expense": {"JANUARY": Decimal("1000.00")},
    }
