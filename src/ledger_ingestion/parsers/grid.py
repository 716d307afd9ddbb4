from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class SheetGrid:
    """
    Read-only rows-of-cells view of one worksheet, addressed 1-based like Excel.

    Parsers work against this instead of openpyxl objects so the extraction
    heuristics can be exercised with plain lists in tests.
    """

    name: str
    rows: tuple[tuple[Any, ...], ...]

    @classmethod
    def from_rows(cls, name: str, rows: Sequence[Sequence[Any]]) -> "SheetGrid":
        return cls(name=name, rows=tuple(tuple(row) for row in rows))

    @classmethod
    def from_worksheet(cls, worksheet: Any) -> "SheetGrid":
        return cls.from_rows(worksheet.title, list(worksheet.iter_rows(values_only=True)))

    @property
    def max_row(self) -> int:
        return len(self.rows)

    @property
    def max_column(self) -> int:
        return max((len(row) for row in self.rows), default=0)

    def is_empty(self) -> bool:
        return not any(_has_content(value) for row in self.rows for value in row)

    def value(self, row: int, column: int) -> Any:
        if row < 1 or column < 1 or row > self.max_row:
            return None
        cells = self.rows[row - 1]
        if column > len(cells):
            return None
        return cells[column - 1]

    def iter_rows(self, start: int = 1) -> Iterator[int]:
        """Yield row numbers from `start` onwards, skipping rows with no content."""

        for row_number in range(max(start, 1), self.max_row + 1):
            if any(_has_content(value) for value in self.rows[row_number - 1]):
                yield row_number


def _has_content(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    return True
