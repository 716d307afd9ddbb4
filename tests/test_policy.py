from ledger_ingestion.parsers.policy import (
    DELIMITED_FIELD_POLICY,
    WORKSHEET_FIELD_POLICY,
    FieldAction,
    reject_row,
    resolve_missing,
)


def test_worksheet_policy_drops_every_core_field():
    assert resolve_missing(WORKSHEET_FIELD_POLICY, ["date"]) is FieldAction.DROP
    assert resolve_missing(WORKSHEET_FIELD_POLICY, ["description", "amount"]) is FieldAction.DROP
    assert reject_row(WORKSHEET_FIELD_POLICY, "JAN", 4, ["date"]) is None


def test_delimited_policy_reports_date_and_description_but_drops_amount():
    assert resolve_missing(DELIMITED_FIELD_POLICY, ["amount"]) is FieldAction.DROP
    assert resolve_missing(DELIMITED_FIELD_POLICY, ["amount", "date"]) is FieldAction.REPORT

    error = reject_row(DELIMITED_FIELD_POLICY, "CSV", 3, ["date", "description"], data={"data": ""})

    assert error is not None
    assert (error.row, error.tab) == (3, "CSV")
    assert error.message == "Missing or invalid date, description"
    assert error.data == {"data": ""}


def test_nothing_missing_resolves_to_none():
    assert resolve_missing(DELIMITED_FIELD_POLICY, []) is None
    assert reject_row(DELIMITED_FIELD_POLICY, "CSV", 2, []) is None


def test_fields_outside_the_policy_are_dropped():
    assert resolve_missing(DELIMITED_FIELD_POLICY, ["notes"]) is FieldAction.DROP
