from __future__ import annotations

from decimal import Decimal

from ..models.records import EntryType, ImportPreview, ImportSummary, MonthTotals
from .tabs import month_key


def summarize_preview(
    preview: ImportPreview,
    reference_totals: dict[str, dict[str, Decimal]] | None = None,
) -> ImportSummary:
    """
    Compute totals and the per-month breakdown for a freshly parsed preview.

    Args:
        preview: Preview whose record lists are complete.
        reference_totals: Optional monthly totals from the summary tab; their months
            are seeded into `by_month` with zero counts so the UI can show them.
    Returns:
        A new ImportSummary; the preview itself is not modified.
    """

    summary = ImportSummary(
        total_transactions=len(preview.transactions),
        installments_count=len(preview.installments),
        debtors_count=len(preview.debtors),
        recurring_count=len(preview.recurring),
        reference_totals=reference_totals,
    )

    if reference_totals:
        for month in (*reference_totals.get("income", {}), *reference_totals.get("expense", {})):
            summary.by_month.setdefault(month, MonthTotals())

    for transaction in preview.transactions:
        bucket = summary.by_month.setdefault(month_key(transaction.date.month), MonthTotals())
        bucket.count += 1
        if transaction.entry_type is EntryType.INCOME:
            summary.total_income += transaction.amount
            bucket.income += transaction.amount
        else:
            summary.total_expense += transaction.amount
            bucket.expense += transaction.amount
    return summary
