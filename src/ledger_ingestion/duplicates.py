"""Flag freshly parsed transactions that plausibly already exist in the ledger."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Protocol, Sequence

from .models import DuplicateCandidate, ParsedTransaction

logger = logging.getLogger(__name__)


class StoredTransaction(Protocol):
    id: str
    description: str
    date: date
    amount: Decimal


class TransactionLookup(Protocol):
    def list_transactions_between(self, dashboard_id: str, start: date, end: date) -> Sequence[StoredTransaction]: ...


@dataclass(frozen=True, slots=True)
class DuplicatePolicy:
    """Match band: same day (widened by `day_window`) and amount within +/- `amount_tolerance`."""

    amount_tolerance: Decimal = Decimal("0.01")
    day_window: int = 0

    def amount_band(self, amount: Decimal) -> tuple[Decimal, Decimal]:
        return amount * (1 - self.amount_tolerance), amount * (1 + self.amount_tolerance)

    def day_band(self, day: date) -> tuple[date, date]:
        window = timedelta(days=self.day_window)
        return day - window, day + window


def detect_duplicates(
    transactions: Sequence[ParsedTransaction],
    dashboard_id: str,
    repository: TransactionLookup,
    policy: DuplicatePolicy | None = None,
) -> list[DuplicateCandidate]:
    """
    Pair each transaction with the first stored record in the same dashboard that
    falls inside the policy's day and amount band.

    Stored records are fetched with one range query covering every candidate, then
    matched in memory. At most one candidate is reported per transaction.
    """

    if not transactions:
        return []
    policy = policy or DuplicatePolicy()

    earliest = policy.day_band(min(t.date for t in transactions))[0]
    latest = policy.day_band(max(t.date for t in transactions))[1]
    stored = repository.list_transactions_between(dashboard_id, earliest, latest)

    by_day: dict[date, list[StoredTransaction]] = defaultdict(list)
    for record in stored:
        by_day[record.date].append(record)

    duplicates: list[DuplicateCandidate] = []
    for transaction in transactions:
        match = _first_match(transaction, by_day, policy)
        if match is None:
            continue
        duplicates.append(
            DuplicateCandidate(
                transaction=transaction,
                existing_id=match.id,
                existing_description=match.description,
                existing_date=match.date,
                existing_amount=Decimal(match.amount),
            )
        )

    logger.info(
        {
            "event": "duplicate_scan",
            "dashboard_id": dashboard_id,
            "candidates": len(transactions),
            "stored_in_range": len(stored),
            "duplicates": len(duplicates),
        }
    )
    return duplicates


def _first_match(
    transaction: ParsedTransaction,
    by_day: dict[date, list[StoredTransaction]],
    policy: DuplicatePolicy,
) -> StoredTransaction | None:
    low, high = policy.amount_band(transaction.amount)
    start, end = policy.day_band(transaction.date)
    day = start
    while day <= end:
        for record in by_day.get(day, ()):
            if low <= Decimal(record.amount) <= high:
                return record
        day += timedelta(days=1)
    return None
