from datetime import date, datetime, timezone
from decimal import Decimal

from ledger_ingestion.duplicates import DuplicatePolicy, detect_duplicates
from ledger_ingestion.models import EntryType, FlowType, ParsedTransaction
from ledger_ingestion.persistence import Transaction


def _parsed(description: str, amount: str, day: date, row: int = 2) -> ParsedTransaction:
    return ParsedTransaction(
        date=day,
        entry_type=EntryType.EXPENSE,
        flow_type=FlowType.VARIABLE,
        description=description,
        amount=Decimal(amount),
        source_tab="JAN",
        source_row=row,
    )


def _store(repository, amount: str, day: date, dashboard_id: str = "dash-1", description: str = "Market") -> str:
    return repository.create_transaction(
        dashboard_id=dashboard_id,
        user_id="user-1",
        date=day,
        entry_type="Expense",
        flow_type="Variable",
        category="Food",
        description=description,
        amount=Decimal(amount),
    )


class RecordingLookup:
    def __init__(self, records=()):
        self.records = list(records)
        self.calls = []

    def list_transactions_between(self, dashboard_id, start, end):
        self.calls.append((dashboard_id, start, end))
        return self.records


def test_amount_within_one_percent_on_same_day_is_flagged(repository):
    existing_id = _store(repository, "99.50", date(2026, 1, 15))
    near = _parsed("Supermarket", "100.00", date(2026, 1, 15), row=2)
    far = _parsed("Electronics", "150.00", date(2026, 1, 15), row=3)

    duplicates = detect_duplicates([near, far], "dash-1", repository)

    assert len(duplicates) == 1
    duplicate = duplicates[0]
    assert duplicate.transaction is near
    assert duplicate.existing_id == existing_id
    assert duplicate.existing_description == "Market"
    assert duplicate.existing_date == date(2026, 1, 15)
    assert duplicate.existing_amount == Decimal("99.50")


def test_other_days_are_not_matched_by_default(repository):
    _store(repository, "100.00", date(2026, 1, 14))

    assert detect_duplicates([_parsed("Market", "100.00", date(2026, 1, 15))], "dash-1", repository) == []


def test_day_window_widens_the_match(repository):
    _store(repository, "100.00", date(2026, 1, 14))
    policy = DuplicatePolicy(day_window=1)

    duplicates = detect_duplicates([_parsed("Market", "100.00", date(2026, 1, 15))], "dash-1", repository, policy)

    assert len(duplicates) == 1


def test_other_dashboards_are_never_consulted(repository):
    _store(repository, "100.00", date(2026, 1, 15), dashboard_id="dash-2")

    assert detect_duplicates([_parsed("Market", "100.00", date(2026, 1, 15))], "dash-1", repository) == []


def test_soft_deleted_records_are_ignored(repository, db_session):
    existing_id = _store(repository, "100.00", date(2026, 1, 15))
    record = db_session.get(Transaction, existing_id)
    record.deleted_at = datetime(2026, 1, 20, tzinfo=timezone.utc)
    db_session.commit()

    assert detect_duplicates([_parsed("Market", "100.00", date(2026, 1, 15))], "dash-1", repository) == []


def test_one_candidate_per_transaction(repository):
    _store(repository, "100.00", date(2026, 1, 15), description="First")
    _store(repository, "100.50", date(2026, 1, 15), description="Second")

    duplicates = detect_duplicates([_parsed("Market", "100.00", date(2026, 1, 15))], "dash-1", repository)

    assert len(duplicates) == 1


def test_single_range_query_covers_all_transactions():
    lookup = RecordingLookup()
    transactions = [
        _parsed("A", "10.00", date(2026, 1, 20)),
        _parsed("B", "10.00", date(2026, 1, 3)),
        _parsed("C", "10.00", date(2026, 2, 1)),
    ]

    detect_duplicates(transactions, "dash-1", lookup, DuplicatePolicy(day_window=2))

    assert lookup.calls == [("dash-1", date(2026, 1, 1), date(2026, 2, 3))]


def test_empty_input_skips_the_query():
    lookup = RecordingLookup()

    assert detect_duplicates([], "dash-1", lookup) == []
    assert lookup.calls == []


def test_amount_band_scales_with_tolerance():
    policy = DuplicatePolicy(amount_tolerance=Decimal("0.05"))

    assert policy.amount_band(Decimal("200")) == (Decimal("190.00"), Decimal("210.00"))
