from ledger_ingestion.parsers.columns import (
    MonthlyColumns,
    detect_installment_columns,
    detect_monthly_columns,
    discard_income_left_of_expenses,
    find_installment_data_start,
    find_monthly_data_start,
)
from ledger_ingestion.parsers.grid import SheetGrid

EXPENSE_HEADER = ("Date", "Cost Center", "Category", "Description", "Payment", "Value")


def test_detects_expense_columns_from_header_row():
    grid = SheetGrid.from_rows("JAN", [EXPENSE_HEADER])

    columns = detect_monthly_columns(grid)

    assert columns == MonthlyColumns(date=1, cost_center=2, category=3, description=4, payment_method=5, value=6)
    assert columns.has_expenses
    assert not columns.has_income


def test_detection_is_idempotent():
    grid = SheetGrid.from_rows(
        "JAN",
        [
            (None,) * 7 + ("Income",),
            EXPENSE_HEADER + (None, "Date", "Description", "Value"),
        ],
    )

    assert detect_monthly_columns(grid) == detect_monthly_columns(grid)


def test_first_match_wins_in_row_major_scan_order():
    grid = SheetGrid.from_rows(
        "JAN",
        [
            ("Data", None, "Valor"),
            (None, "Date", None, "Amount"),
        ],
    )

    columns = detect_monthly_columns(grid)

    assert columns.date == 1
    assert columns.value == 3


def test_first_match_wins_within_a_row():
    grid = SheetGrid.from_rows("JAN", [("Value", "Date", "Amount")])

    assert detect_monthly_columns(grid).value == 1


def test_portuguese_headers_and_important_column():
    grid = SheetGrid.from_rows(
        "JAN",
        [("Data", "Importantes", "Categoria", "Descrição", "Meio Pg", "Valor")],
    )

    columns = detect_monthly_columns(grid)

    assert columns == MonthlyColumns(date=1, important=2, category=3, description=4, payment_method=5, value=6)


def test_income_section_is_read_from_the_row_below_its_label():
    grid = SheetGrid.from_rows(
        "JAN",
        [
            (None,) * 7 + ("Income",),
            EXPENSE_HEADER + (None, "Date", "Description", "Value"),
        ],
    )

    columns = detect_monthly_columns(grid)

    assert (columns.income_date, columns.income_description, columns.income_value) == (8, 9, 10)
    assert columns.has_income
    assert find_monthly_data_start(grid, columns) == 3


def test_income_section_left_of_expense_value_is_discarded():
    grid = SheetGrid.from_rows(
        "JAN",
        [
            ("Receitas",),
            ("Data", "Descrição", "Valor"),
        ],
    )

    columns = detect_monthly_columns(grid)

    assert (columns.date, columns.description, columns.value) == (1, 2, 3)
    assert not columns.has_income
    assert columns.income_description is None


def test_discard_rule_only_drops_income_at_or_before_value_column():
    misplaced = MonthlyColumns(date=1, value=6, income_date=6, income_value=7)
    valid = MonthlyColumns(date=1, value=6, income_date=8, income_value=10)

    assert discard_income_left_of_expenses(misplaced).income_date is None
    assert discard_income_left_of_expenses(misplaced).income_value is None
    assert discard_income_left_of_expenses(valid) == valid


def test_headers_outside_scan_window_are_ignored():
    rows = [()] * 5 + [EXPENSE_HEADER]
    grid = SheetGrid.from_rows("JAN", rows)

    columns = detect_monthly_columns(grid)

    assert columns.date is None
    assert not columns.has_expenses


def test_installment_columns_and_month_run():
    months = ("January", "February", "March", "April", "May", "June", "July", "August", "September", "October", "November", "December")
    grid = SheetGrid.from_rows(
        "INSTALLMENTS",
        [("Year", "Day", "Descrição", "Parcelas", "Valor Total", "Valor Parcela", "Categoria", "Centro de Custo", "Meio Pg") + months],
    )

    columns = detect_installment_columns(grid)

    assert (columns.year, columns.day, columns.description, columns.count) == (1, 2, 3, 4)
    assert (columns.total_value, columns.installment_value, columns.category) == (5, 6, 7)
    assert (columns.cost_center, columns.payment_method) == (8, 9)
    assert columns.month_columns[0] == (10, "JANUARY")
    assert columns.month_columns[-1] == (21, "DECEMBER")
    assert find_installment_data_start(grid) == 2
