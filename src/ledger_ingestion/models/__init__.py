"""Typed records produced by the spreadsheet parsers."""

from .records import (
    CostCenter,
    DuplicateCandidate,
    EntryType,
    FlowType,
    Frequency,
    ImportOptions,
    ImportPreview,
    ImportResult,
    ImportSummary,
    MonthTotals,
    ParsedDebtor,
    ParsedInstallment,
    ParsedRecurring,
    ParsedTransaction,
    RowError,
    TabResult,
)

__all__ = [
    "CostCenter",
    "DuplicateCandidate",
    "EntryType",
    "FlowType",
    "Frequency",
    "ImportOptions",
    "ImportPreview",
    "ImportResult",
    "ImportSummary",
    "MonthTotals",
    "ParsedDebtor",
    "ParsedInstallment",
    "ParsedRecurring",
    "ParsedTransaction",
    "RowError",
    "TabResult",
]
