"""SQLAlchemy models for ledger records, recurring schedules and import audit events."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, Date, DateTime, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

MONEY = Numeric(14, 2)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


class Dashboard(Base):
    """A ledger scope; every stored record belongs to exactly one dashboard."""

    __tablename__ = "dashboards"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)

    members: Mapped[List["DashboardMember"]] = relationship(
        back_populates="dashboard",
        cascade="all, delete-orphan",
    )


class DashboardMember(Base):
    """Grants a non-owner access to a dashboard once the membership is approved."""

    __tablename__ = "dashboard_members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    dashboard_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("dashboards.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(16), default="PENDING", nullable=False)

    dashboard: Mapped["Dashboard"] = relationship(back_populates="members")


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    dashboard_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("dashboards.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)

    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    due_date: Mapped[Optional[dt.date]] = mapped_column(Date, nullable=True)
    entry_type: Mapped[str] = mapped_column(String(16), nullable=False)
    flow_type: Mapped[str] = mapped_column(String(16), nullable=False)
    cost_center: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    category: Mapped[str] = mapped_column(String(128), nullable=False)
    subcategory: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    description: Mapped[str] = mapped_column(String(512), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    payment_method: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    institution: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    card_brand: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    installment_number: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    installment_total: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    installment_group_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    installment_status: Mapped[str] = mapped_column(String(16), default="N/A", nullable=False)

    is_third_party: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    third_party_name: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    third_party_description: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    source_tab: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    source_row: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    deleted_at: Mapped[Optional[dt.datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class RecurringSchedule(Base):
    """A rule that generates future transactions; imported from the fixed-expenses tab."""

    __tablename__ = "recurring_schedules"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    dashboard_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("dashboards.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    entry_type: Mapped[str] = mapped_column(String(16), nullable=False)
    flow_type: Mapped[str] = mapped_column(String(16), nullable=False)
    category: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str] = mapped_column(String(512), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    frequency: Mapped[str] = mapped_column(String(16), nullable=False)
    interval: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    start_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    next_date: Mapped[dt.date] = mapped_column(Date, nullable=False)

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


class ImportAuditEvent(Base):
    """Tracks previews and confirmations for later troubleshooting."""

    __tablename__ = "import_audit_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    dashboard_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    action: Mapped[str] = mapped_column(String(64), nullable=False)
    preview_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    details: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
