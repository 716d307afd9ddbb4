"""Route worksheets to a parser by looking only at the tab name."""

from __future__ import annotations

from enum import Enum

from .cells import fold_text

# Canonical month keys used in summaries and installment schedules.
MONTH_NAMES = (
    "JANUARY",
    "FEBRUARY",
    "MARCH",
    "APRIL",
    "MAY",
    "JUNE",
    "JULY",
    "AUGUST",
    "SEPTEMBER",
    "OCTOBER",
    "NOVEMBER",
    "DECEMBER",
)

_MONTH_ABBREVIATIONS = {
    "jan": 1,
    "feb": 2,
    "fev": 2,
    "mar": 3,
    "apr": 4,
    "abr": 4,
    "may": 5,
    "mai": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "ago": 8,
    "sep": 9,
    "set": 9,
    "oct": 10,
    "out": 10,
    "nov": 11,
    "dec": 12,
    "dez": 12,
}

_FULL_MONTH_NAMES = {
    "january": 1,
    "february": 2,
    "march": 3,
    "april": 4,
    "may": 5,
    "june": 6,
    "july": 7,
    "august": 8,
    "september": 9,
    "october": 10,
    "november": 11,
    "december": 12,
    "janeiro": 1,
    "fevereiro": 2,
    "marco": 3,
    "abril": 4,
    "maio": 5,
    "junho": 6,
    "julho": 7,
    "agosto": 8,
    "setembro": 9,
    "outubro": 10,
    "novembro": 11,
    "dezembro": 12,
}

_INSTALLMENT_MARKERS = ("installment", "plan", "parcela")
_DEBTOR_MARKERS = ("debtor", "devedor")
_RECURRING_MARKERS = ("fixed", "fixa")
_SUMMARY_NAMES = frozenset({"summary", "geral"})


class TabKind(str, Enum):
    MONTHLY = "monthly"
    INSTALLMENTS = "installments"
    DEBTORS = "debtors"
    RECURRING = "recurring"
    SUMMARY = "summary"


def full_month_number(label: object) -> int | None:
    """Month number (1-12) for a full month name in English or Portuguese."""

    return _FULL_MONTH_NAMES.get(fold_text(label))


def month_number(label: object) -> int | None:
    """Month number for a 3-letter abbreviation or a full month name."""

    folded = fold_text(label)
    return _MONTH_ABBREVIATIONS.get(folded) or _FULL_MONTH_NAMES.get(folded)


def month_key(month: int) -> str:
    return MONTH_NAMES[month - 1]


def classify_tab(name: str) -> TabKind | None:
    """
    Decide which parser owns a worksheet; None means the tab is skipped.

    Unknown tabs (charts, notes, decorative covers) are ignored rather than
    rejected so new tabs in a user's workbook never break the import.
    """

    folded = fold_text(name)
    if not folded:
        return None
    if month_number(folded) is not None:
        return TabKind.MONTHLY
    if any(marker in folded for marker in _INSTALLMENT_MARKERS):
        return TabKind.INSTALLMENTS
    if any(marker in folded for marker in _DEBTOR_MARKERS):
        return TabKind.DEBTORS
    if any(marker in folded for marker in _RECURRING_MARKERS):
        return TabKind.RECURRING
    if folded in _SUMMARY_NAMES:
        return TabKind.SUMMARY
    return None
