import pytest

from ledger_ingestion.parsers.tabs import TabKind, classify_tab, month_key, month_number


@pytest.mark.parametrize(
    "name, expected",
    [
        ("JAN", TabKind.MONTHLY),
        ("Fev", TabKind.MONTHLY),
        ("MARÇO", TabKind.MONTHLY),
        ("december", TabKind.MONTHLY),
        (" SET ", TabKind.MONTHLY),
        ("PARCELAMENTOS", TabKind.INSTALLMENTS),
        ("Installments", TabKind.INSTALLMENTS),
        ("Payment plan", TabKind.INSTALLMENTS),
        ("DEVEDORES", TabKind.DEBTORS),
        ("Debtors", TabKind.DEBTORS),
        ("D. FIXA", TabKind.RECURRING),
        ("FIXED EXPENSES", TabKind.RECURRING),
        ("GERAL", TabKind.SUMMARY),
        ("Summary", TabKind.SUMMARY),
    ],
)
def test_classify_tab_routes_by_name(name, expected):
    assert classify_tab(name) is expected


@pytest.mark.parametrize("name", ["Charts", "Notes", "Summary 2025", "", "   "])
def test_unrecognised_tabs_are_skipped(name):
    assert classify_tab(name) is None


def test_month_helpers_accept_both_languages():
    assert month_number("OUT") == 10
    assert month_number("outubro") == 10
    assert month_number("October") == 10
    assert month_number("Octo") is None
    assert month_key(1) == "JANUARY"
    assert month_key(12) == "DECEMBER"
