"""Turn uploaded workbooks and delimited files into ImportPreview records."""

from .csv_parser import parse_csv_to_preview
from .xlsx_parser import parse_xlsx_to_preview

__all__ = ["parse_csv_to_preview", "parse_xlsx_to_preview"]
