import os
from datetime import datetime, timedelta

# Keep test runs from writing a log file into the checkout
os.environ.setdefault("LOG_FILE", "")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import regdesk.models  # noqa: F401  (registers tables on Base.metadata)
from regdesk.db.base import Base
from regdesk.schemas import RegistrationRequest
from regdesk.services.approval import ApprovalEngine
from regdesk.services.errors import NotifierFailure
from regdesk.services.record_store import RecordStore
from regdesk.services.registration import RegistrationWorkflow
from regdesk.services.sessions import SessionManager

GROUPS = ["Khana", "Gokana", "Tai", "Eleme"]


class FakeClock:
    def __init__(self, start: datetime = datetime(2025, 3, 1, 9, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class RecordingNotifier:
    """Collects sent messages; kinds in ``failing`` or addresses in ``failing_addresses`` raise."""

    def __init__(self):
        self.sent = []
        self.failing = set()
        self.failing_addresses = set()
        self.closed = False

    def send(self, address, kind, data):
        if kind in self.failing or address in self.failing_addresses:
            raise NotifierFailure(address, "mail API unavailable")
        self.sent.append((address, kind, dict(data)))

    def codes_sent(self):
        return [data["code"] for _, _, data in self.sent if "code" in data]

    def close(self):
        self.closed = True


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(db):
    return RecordStore(db)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def workflow(store, notifier, clock):
    return RegistrationWorkflow(store, notifier, groups=GROUPS, clock=clock)


@pytest.fixture
def engine(store, notifier, clock):
    return ApprovalEngine(store, notifier, groups=GROUPS, clock=clock, time_window_seconds=60)


@pytest.fixture
def sessions(store, clock):
    return SessionManager(store, clock=clock, ttl_hours=24)


def _registration(**overrides) -> RegistrationRequest:
    fields = {
        "full_name": "Ada Obi",
        "email": "a@b.com",
        "phone": "08030000000",
        "community": "Bori",
        "lga": "Khana",
        "age_range": "25-34",
        "occupation": "Teacher",
        "reason": "To represent my community",
        "attendance_mode": "In person",
    }
    fields.update(overrides)
    return RegistrationRequest(**fields)


@pytest.fixture
def make_registration():
    return _registration
