"""Ledger data access helpers used by the import pipeline."""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Any
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from .models import Dashboard, DashboardMember, ImportAuditEvent, RecurringSchedule, Transaction


class MemberStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class LedgerRepository:
    """Thin repository that encapsulates persistence operations."""

    def __init__(self, db: Session):
        self._db = db

    def user_can_write(self, dashboard_id: str, user_id: str) -> bool:
        """Owners always may write; members only once their membership is approved."""
        dashboard = self._db.get(Dashboard, dashboard_id)
        if dashboard is None:
            return False
        if dashboard.owner_id == user_id:
            return True
        membership = self._db.scalar(
            select(DashboardMember.id).where(
                DashboardMember.dashboard_id == dashboard_id,
                DashboardMember.user_id == user_id,
                DashboardMember.status == MemberStatus.APPROVED.value,
            )
        )
        return membership is not None

    def list_transactions_between(self, dashboard_id: str, start: dt.date, end: dt.date) -> list[Transaction]:
        """Non-deleted transactions of one dashboard whose date falls in [start, end]."""
        return list(
            self._db.scalars(
                select(Transaction)
                .where(
                    Transaction.dashboard_id == dashboard_id,
                    Transaction.deleted_at.is_(None),
                    Transaction.date >= start,
                    Transaction.date <= end,
                )
                .order_by(Transaction.date, Transaction.created_at)
            )
        )

    def create_transaction(self, **fields: Any) -> str:
        record = Transaction(id=str(uuid4()), **fields)
        self._db.add(record)
        self._db.commit()
        return record.id

    def create_recurring_schedule(self, **fields: Any) -> str:
        record = RecurringSchedule(id=str(uuid4()), **fields)
        self._db.add(record)
        self._db.commit()
        return record.id

    def rollback(self) -> None:
        self._db.rollback()

    def record_event(
        self,
        *,
        action: str,
        dashboard_id: str,
        user_id: str,
        preview_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        event = ImportAuditEvent(
            dashboard_id=dashboard_id,
            user_id=user_id,
            action=action,
            preview_id=preview_id,
            details=details,
        )
        self._db.add(event)
        self._db.commit()
