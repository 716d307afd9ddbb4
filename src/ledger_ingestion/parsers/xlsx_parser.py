from __future__ import annotations

import logging
from collections.abc import Callable
from io import BytesIO
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from ..errors import UnreadableDocument
from ..models.records import ImportPreview, RowError, TabResult
from .aggregation import summarize_preview
from .grid import SheetGrid
from .installments import parse_installments_tab
from .monthly import parse_monthly_tab
from .registers import parse_debtors_tab, parse_recurring_tab
from .summary_tab import parse_summary_tab
from .tabs import TabKind, classify_tab

logger = logging.getLogger(__name__)

RECORD_PARSERS: dict[TabKind, Callable[[SheetGrid, str], TabResult]] = {
    TabKind.MONTHLY: parse_monthly_tab,
    TabKind.INSTALLMENTS: parse_installments_tab,
    TabKind.DEBTORS: parse_debtors_tab,
    TabKind.RECURRING: parse_recurring_tab,
}


def parse_xlsx_to_preview(file_bytes: bytes) -> ImportPreview:
    """
    Parse every recognised tab of a workbook upload into an ImportPreview.

    Tabs are routed by name; unrecognised tabs are skipped. A tab that blows up
    is reported as a row-0 error for that tab and the rest of the workbook is
    still processed. Raises UnreadableDocument when the container itself cannot
    be opened.
    """

    try:
        workbook = load_workbook(BytesIO(file_bytes), data_only=True, rich_text=True)
    except (InvalidFileException, BadZipFile, KeyError, OSError, ValueError) as exc:
        raise UnreadableDocument(f"Workbook could not be opened: {exc}") from exc

    preview = ImportPreview()
    reference_totals = None
    skipped_tabs: list[str] = []

    for worksheet in workbook.worksheets:
        tab_name = worksheet.title.strip()
        kind = classify_tab(tab_name)
        if kind is None:
            skipped_tabs.append(tab_name)
            continue

        try:
            grid = SheetGrid.from_worksheet(worksheet)
            if grid.is_empty():
                continue
            if kind is TabKind.SUMMARY:
                reference_totals = parse_summary_tab(grid).reference_totals()
            else:
                RECORD_PARSERS[kind](grid, tab_name).merge_into(preview)
        except Exception as exc:  # noqa: BLE001 - one broken tab must not hide the others
            logger.exception({"event": "import_tab_failed", "tab": tab_name, "kind": kind.value})
            preview.errors.append(RowError(row=0, tab=tab_name, message=f"Failed to process tab: {exc}"))

    if skipped_tabs:
        logger.info({"event": "import_tabs_skipped", "tabs": skipped_tabs})

    preview.summary = summarize_preview(preview, reference_totals)
    return preview
