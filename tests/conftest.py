import itertools
import os
from datetime import datetime, timezone
from decimal import Decimal

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-only-jwt-secret-for-ticketing-ledger")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from src.api.dependencies import get_session_factory
from src.application.auth_service import issue_token
from src.application.seat_ledger import SeatLedger
from src.domain.roles import UserRole
from src.infrastructure.db.models import Base
from src.infrastructure.db.session import build_engine, build_session_factory, get_db_session
from src.infrastructure.repositories.event_repository import EventRepository
from src.infrastructure.repositories.user_repository import UserRepository
from src.main import app

_mobiles = itertools.count(1)


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'ticketing.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def ledger(session_factory):
    return SeatLedger(session_factory, max_attempts=3, retry_delay_seconds=0.01)


@pytest.fixture
def client(session_factory):
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session_factory):
    def _make(role: UserRole = UserRole.EXPLORER, name: str = "Test User"):
        with get_db_session(session_factory) as db:
            user = UserRepository(db).create_user(
                name=name,
                mobile=f"8{next(_mobiles):09d}",
                role=role,
                email=None,
                password_hash="not-a-real-hash",
            )
            db.flush()
        return user

    return _make


@pytest.fixture
def make_event(session_factory, make_user):
    def _make(
        total_seats: int = 10,
        ticket_price: str = "20.00",
        organizer_id: str | None = None,
        title: str = "Launch Party",
    ):
        if organizer_id is None:
            organizer_id = make_user(role=UserRole.ORGANIZER).id
        with get_db_session(session_factory) as db:
            event = EventRepository(db).create_event(
                organizer_id=organizer_id,
                title=title,
                location="Main Hall",
                event_date=datetime(2031, 6, 1, 19, 0, tzinfo=timezone.utc),
                ticket_price=Decimal(ticket_price),
                total_seats=total_seats,
            )
            db.flush()
        return event

    return _make


@pytest.fixture
def seat_state(session_factory):
    """Returns (available_seats, confirmed_seats, total_seats) for an event."""

    def _state(event_id: str) -> tuple[int, int, int]:
        with get_db_session(session_factory) as db:
            repo = EventRepository(db)
            event = repo.get_by_id(event_id)
            return event.available_seats, repo.confirmed_seat_count(event_id), event.total_seats

    return _state


@pytest.fixture
def auth_headers():
    def _headers(user) -> dict:
        return {"Authorization": f"Bearer {issue_token(user.id, user.role)}"}

    return _headers


class FlakySessionFactory:
    """Fails the first `failures` session checkouts like a locked database."""

    def __init__(self, inner, failures: int):
        self.inner = inner
        self.failures = failures
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.failures > 0:
            self.failures -= 1
            raise OperationalError("UPDATE events", {}, Exception("database is locked"))
        return self.inner()


@pytest.fixture
def flaky_session_factory(session_factory):
    def _make(failures: int) -> FlakySessionFactory:
        return FlakySessionFactory(session_factory, failures)

    return _make
