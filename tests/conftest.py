"""Shared fixtures: in-memory SQL database, stores, sample tickets, a fake analyzer."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from app.db import Base, build_session_factory
from app.models import CustomerState  # noqa: F401
from app.schemas.ticket import AgentReplyAnalysis, TicketStatus
from app.stores.local import LocalTicketStore
from app.stores.remote import RemoteTicketStore
from app.stores.smart import SmartTicketStore
from tests.fixtures.ticket_fixtures import build_ticket


@pytest.fixture(scope="function")
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture(scope="function")
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def now():
    return datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_analyzer():
    """Analyzer double; tests set analyze/analyze_agent_reply return values."""
    analyzer = AsyncMock()
    analyzer.analyze = AsyncMock()
    analyzer.analyze_agent_reply = AsyncMock(return_value=AgentReplyAnalysis())
    return analyzer


@pytest.fixture(scope="function")
def setup_tickets():
    """Two customers, three tickets; Jane has an old and a recent ticket."""
    base = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)
    return [
        build_ticket("email:jane@example.com", "t-jane-new", base, message_count=2),
        build_ticket(
            "email:jane@example.com",
            "t-jane-old",
            base - timedelta(days=30),
            status=TicketStatus.RESOLVED,
        ),
        build_ticket("email:omar@example.com", "t-omar", base - timedelta(days=2)),
    ]


@pytest.fixture(scope="function")
def local_store(tmp_path):
    return LocalTicketStore(
        tmp_path / "tickets.json", legacy_path=tmp_path / "issues_v1.json"
    )


@pytest.fixture(scope="function")
def remote_store(session_factory):
    return RemoteTicketStore(session_factory)


@pytest.fixture(scope="function")
def smart_store(local_store, remote_store):
    return SmartTicketStore(local_store, remote_store)
