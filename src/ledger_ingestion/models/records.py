from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any


class EntryType(str, Enum):
    INCOME = "Income"
    EXPENSE = "Expense"


class FlowType(str, Enum):
    FIXED = "Fixed"
    VARIABLE = "Variable"


class CostCenter(str, Enum):
    """Coarse spending classification, orthogonal to category."""

    ESSENTIAL = "Essential"
    NON_ESSENTIAL = "Non-essential"
    FIXED_EXPENSE = "Fixed Expense"


class Frequency(str, Enum):
    MONTHLY = "MONTHLY"
    WEEKLY = "WEEKLY"
    YEARLY = "YEARLY"


@dataclass(slots=True)
class ParsedTransaction:
    """One financial movement extracted from a ledger tab or delimited file."""

    date: date
    entry_type: EntryType
    flow_type: FlowType
    description: str
    amount: Decimal
    source_tab: str
    source_row: int
    category: str = "Other"
    cost_center: CostCenter | None = None
    due_date: date | None = None
    subcategory: str | None = None
    payment_method: str | None = None
    institution: str | None = None
    card_brand: str | None = None
    installment_number: int = 0
    installment_total: int = 0
    notes: str | None = None
    is_third_party: bool = False
    third_party_name: str | None = None

    @property
    def identity(self) -> tuple[str, int, EntryType]:
        # Expense and income sections share row numbers on monthly tabs.
        return (self.source_tab, self.source_row, self.entry_type)


@dataclass(slots=True)
class ParsedInstallment:
    """A multi-month purchase plan and the amounts actually charged per month."""

    description: str
    installment_total: int
    total_amount: Decimal
    installment_amount: Decimal
    source_row: int
    monthly_amounts: dict[str, Decimal] = field(default_factory=dict)
    category: str | None = None
    cost_center: CostCenter | None = None
    payment_method: str | None = None
    institution: str | None = None
    year: int | None = None
    month: str | None = None
    day: int | None = None


@dataclass(slots=True)
class ParsedDebtor:
    name: str
    description: str
    amount: Decimal
    source_row: int
    date: date | None = None


@dataclass(slots=True)
class ParsedRecurring:
    description: str
    amount: Decimal
    source_row: int
    category: str | None = None
    frequency: Frequency = Frequency.MONTHLY


@dataclass(slots=True)
class RowError:
    row: int
    tab: str
    message: str
    data: dict[str, Any] | None = None


@dataclass(slots=True)
class DuplicateCandidate:
    transaction: ParsedTransaction
    existing_id: str
    existing_description: str
    existing_date: date
    existing_amount: Decimal


@dataclass(slots=True)
class MonthTotals:
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")
    count: int = 0


@dataclass(slots=True)
class ImportSummary:
    total_transactions: int = 0
    total_income: Decimal = Decimal("0")
    total_expense: Decimal = Decimal("0")
    by_month: dict[str, MonthTotals] = field(default_factory=dict)
    installments_count: int = 0
    debtors_count: int = 0
    recurring_count: int = 0
    # Monthly totals copied from the summary tab, for reference only.
    reference_totals: dict[str, dict[str, Decimal]] | None = None


@dataclass(slots=True)
class ImportPreview:
    """Aggregate result of one ingestion run, held in the preview cache until confirmed."""

    summary: ImportSummary = field(default_factory=ImportSummary)
    transactions: list[ParsedTransaction] = field(default_factory=list)
    installments: list[ParsedInstallment] = field(default_factory=list)
    debtors: list[ParsedDebtor] = field(default_factory=list)
    recurring: list[ParsedRecurring] = field(default_factory=list)
    duplicates: list[DuplicateCandidate] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)


@dataclass(slots=True)
class TabResult:
    """Records and row errors produced by parsing a single worksheet."""

    transactions: list[ParsedTransaction] = field(default_factory=list)
    installments: list[ParsedInstallment] = field(default_factory=list)
    debtors: list[ParsedDebtor] = field(default_factory=list)
    recurring: list[ParsedRecurring] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)

    def merge_into(self, preview: ImportPreview) -> None:
        preview.transactions.extend(self.transactions)
        preview.installments.extend(self.installments)
        preview.debtors.extend(self.debtors)
        preview.recurring.extend(self.recurring)
        preview.errors.extend(self.errors)


@dataclass(slots=True)
class ImportOptions:
    dashboard_id: str
    user_id: str
    skip_duplicates: bool = False
    selected_indices: list[int] | None = None


@dataclass(slots=True)
class ImportResult:
    imported: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)
    duplicates_found: int | None = None
