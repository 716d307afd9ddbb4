from datetime import date, datetime
from decimal import Decimal

from ledger_ingestion.models import CostCenter, EntryType, FlowType
from ledger_ingestion.parsers import monthly
from ledger_ingestion.parsers.grid import SheetGrid
from ledger_ingestion.parsers.monthly import parse_monthly_tab

HEADER = ("Date", "Cost Center", "Category", "Description", "Payment", "Value")


def test_single_expense_row_becomes_transaction():
    grid = SheetGrid.from_rows(
        "JAN",
        [HEADER, ("21/01/2026", "Essential", "Groceries", "Supermarket", "Nubank", "150,00")],
    )

    result = parse_monthly_tab(grid, "JAN")

    assert result.errors == []
    assert len(result.transactions) == 1
    transaction = result.transactions[0]
    assert transaction.date == date(2026, 1, 21)
    assert transaction.amount == Decimal("150.00")
    assert transaction.entry_type is EntryType.EXPENSE
    assert transaction.flow_type is FlowType.VARIABLE
    assert transaction.cost_center is CostCenter.ESSENTIAL
    assert transaction.category == "Groceries"
    assert transaction.description == "Supermarket"
    assert transaction.payment_method == "Credit Card"
    assert transaction.institution == "Nubank"
    assert (transaction.source_tab, transaction.source_row) == ("JAN", 2)


def test_structurally_ordinary_rows_are_dropped_without_errors():
    grid = SheetGrid.from_rows(
        "JAN",
        [
            HEADER,
            ("22/01/2026", "Essential", "Food", "Bakery", "Cash", "0,00"),
            ("23/01/2026", "Essential", "Food", "", "Cash", "10,00"),
            ("24/01/2026", "Essential", "Food", "Subtotal food", "Cash", "10,00"),
            ("not a date", "Essential", "Food", "Mystery", "Cash", "10,00"),
            (None, None, None, "Orphan value", None, "5,00"),
            ("25/01/2026", "Essential", "Food", "No value", "Cash", None),
            ("Total", None, None, None, None, "160,00"),
            ("Saldo", None, None, None, None, "40,00"),
            ("Date", None, None, None, None, "Value"),
        ],
    )

    result = parse_monthly_tab(grid, "JAN")

    assert result.transactions == []
    assert result.errors == []


def test_debtor_rows_are_left_to_the_debtor_tab():
    grid = SheetGrid.from_rows(
        "JAN",
        [
            HEADER,
            ("24/01/2026", "Non-essential", "Debtors", "Loan to John", "PIX", "50,00"),
            ("24/01/2026", "Non-essential", "Devedores", "Loan to Mary", "PIX", "30,00"),
        ],
    )

    assert parse_monthly_tab(grid, "JAN").transactions == []


def test_fixed_expense_cost_center_sets_fixed_flow():
    grid = SheetGrid.from_rows(
        "JAN",
        [HEADER, ("05/01/2026", "Despesa Fixa", "Housing", "Rent", "Transferência", "1.500,00")],
    )

    transaction = parse_monthly_tab(grid, "JAN").transactions[0]

    assert transaction.flow_type is FlowType.FIXED
    assert transaction.cost_center is CostCenter.FIXED_EXPENSE
    assert transaction.amount == Decimal("1500.00")
    assert transaction.payment_method == "Transfer"
    assert transaction.institution is None


def test_native_date_and_numeric_cells():
    grid = SheetGrid.from_rows(
        "FEB",
        [HEADER, (datetime(2026, 2, 3), None, None, "Pharmacy", None, 99.9)],
    )

    transaction = parse_monthly_tab(grid, "FEB").transactions[0]

    assert transaction.date == date(2026, 2, 3)
    assert transaction.amount == Decimal("99.9")
    assert transaction.category == "Other"
    assert transaction.cost_center is None
    assert transaction.payment_method is None


def test_important_column_is_used_when_no_cost_center_column():
    grid = SheetGrid.from_rows(
        "JAN",
        [
            ("Data", "Importantes", "Categoria", "Descrição", "Meio Pg", "Valor"),
            ("10/01/2026", "Não essencial", "Lazer", "Cinema", "Débito", "45,00"),
        ],
    )

    transaction = parse_monthly_tab(grid, "JAN").transactions[0]

    assert transaction.cost_center is CostCenter.NON_ESSENTIAL
    assert transaction.payment_method == "Debit"


def test_income_section_is_scanned_independently():
    grid = SheetGrid.from_rows(
        "JAN",
        [
            (None,) * 7 + ("Income",),
            HEADER + (None, "Date", "Description", "Value"),
            ("21/01/2026", "Essential", "Groceries", "Supermarket", "Nubank", "150,00", None, "05/01/2026", "Salary", "5.000,00"),
            (None,) * 7 + ("10/01/2026", "", "100,00"),
            (None,) * 7 + ("Total", None, "5.100,00"),
        ],
    )

    result = parse_monthly_tab(grid, "JAN")

    assert [t.entry_type for t in result.transactions] == [EntryType.EXPENSE, EntryType.INCOME]
    income = result.transactions[1]
    assert income.description == "Salary"
    assert income.category == "Salary"
    assert income.amount == Decimal("5000.00")
    assert income.date == date(2026, 1, 5)
    assert income.source_row == 3
    assert result.errors == []


def test_unexpected_row_failure_is_reported_and_scan_continues(monkeypatch):
    original = monthly.normalize_payment_method

    def explode(value):
        if value == "Broken":
            raise RuntimeError("boom")
        return original(value)

    monkeypatch.setattr(monthly, "normalize_payment_method", explode)
    grid = SheetGrid.from_rows(
        "JAN",
        [
            HEADER,
            ("21/01/2026", "Essential", "Groceries", "Supermarket", "Broken", "150,00"),
            ("22/01/2026", "Essential", "Groceries", "Bakery", "Cash", "12,00"),
        ],
    )

    result = parse_monthly_tab(grid, "JAN")

    assert [t.description for t in result.transactions] == ["Bakery"]
    assert len(result.errors) == 1
    assert (result.errors[0].row, result.errors[0].tab) == (2, "JAN")
    assert "boom" in result.errors[0].message
