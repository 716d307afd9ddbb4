"""
What happens to a row whose core field is missing or unusable.

Hand-maintained workbooks are full of separator, subtotal and footer rows, so the
worksheet path drops such rows silently. Delimited files are expected to be
uniformly well-formed, so a missing date or description there is reported.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import Enum
from types import MappingProxyType
from typing import Any

from ..models.records import RowError


class FieldAction(str, Enum):
    DROP = "drop"
    REPORT = "report"


WORKSHEET_FIELD_POLICY: Mapping[str, FieldAction] = MappingProxyType(
    {
        "date": FieldAction.DROP,
        "description": FieldAction.DROP,
        "amount": FieldAction.DROP,
    }
)

DELIMITED_FIELD_POLICY: Mapping[str, FieldAction] = MappingProxyType(
    {
        "date": FieldAction.REPORT,
        "description": FieldAction.REPORT,
        "amount": FieldAction.DROP,
    }
)


def resolve_missing(policy: Mapping[str, FieldAction], missing: Iterable[str]) -> FieldAction | None:
    """
    Collapse the actions for every missing field into one outcome for the row.

    Returns None when nothing is missing; REPORT wins over DROP. Fields absent from
    the policy are dropped.
    """

    actions = {policy.get(field_name, FieldAction.DROP) for field_name in missing}
    if not actions:
        return None
    if FieldAction.REPORT in actions:
        return FieldAction.REPORT
    return FieldAction.DROP


def reject_row(
    policy: Mapping[str, FieldAction],
    tab: str,
    row: int,
    missing: list[str],
    data: dict[str, Any] | None = None,
) -> RowError | None:
    """Return the RowError to record for a rejected row, or None when it is dropped silently."""

    if resolve_missing(policy, missing) is FieldAction.REPORT:
        return RowError(row=row, tab=tab, message=f"Missing or invalid {', '.join(missing)}", data=data)
    return None
