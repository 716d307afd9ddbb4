"""Pytest configuration for the ingestion service tests.

Puts the src directory on sys.path so the suite runs without an editable install,
and provides an in-memory ledger database plus workbook builders.
"""

import sys
from io import BytesIO
from pathlib import Path

import pytest
from openpyxl import Workbook
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

SERVICE_SRC = Path(__file__).resolve().parents[1] / "src"
if str(SERVICE_SRC) not in sys.path:
    sys.path.insert(0, str(SERVICE_SRC))

from ledger_ingestion.persistence import Base, Dashboard, LedgerRepository  # noqa: E402


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def db_session(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture
def repository(db_session) -> LedgerRepository:
    """Repository over two dashboards: dash-1 owned by user-1, dash-2 owned by user-2."""
    db_session.add_all(
        [
            Dashboard(id="dash-1", owner_id="user-1", name="Household"),
            Dashboard(id="dash-2", owner_id="user-2", name="Side business"),
        ]
    )
    db_session.commit()
    return LedgerRepository(db_session)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def build_xlsx():
    """Return a builder that turns {sheet title: rows} into workbook bytes."""

    def _build(sheets):
        workbook = Workbook()
        workbook.remove(workbook.active)
        for title, rows in sheets.items():
            sheet = workbook.create_sheet(title)
            for row in rows:
                sheet.append(list(row))
        buffer = BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()

    return _build
