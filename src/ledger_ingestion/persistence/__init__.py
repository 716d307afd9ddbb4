"""Persistence primitives for the ingestion service."""

from .database import (
    DB_URL_ENV_VAR,
    DEFAULT_DB_FILENAME,
    DEFAULT_DB_PATH,
    SessionLocal,
    get_database_url,
    get_engine,
    get_session,
    init_db,
)
from .models import Base, Dashboard, DashboardMember, ImportAuditEvent, RecurringSchedule, Transaction
from .repository import LedgerRepository, MemberStatus

__all__ = [
    "Base",
    "DB_URL_ENV_VAR",
    "DEFAULT_DB_FILENAME",
    "DEFAULT_DB_PATH",
    "Dashboard",
    "DashboardMember",
    "ImportAuditEvent",
    "LedgerRepository",
    "MemberStatus",
    "RecurringSchedule",
    "SessionLocal",
    "Transaction",
    "get_database_url",
    "get_engine",
    "get_session",
    "init_db",
]
