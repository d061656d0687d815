"""Shared test configuration."""

import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure the project root is in the path so imports work
project_root = Path(__file__).parent.parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from backend.config.settings import Settings
from backend.database.models import Base
from backend.services.factory import build_services
from backend.services.listing_index import InMemoryListingIndex, ListingRecord
from backend.services.notification_sink import InMemoryNotificationSink


class FakeClock:
    """Controllable stand-in for datetime.utcnow."""

    def __init__(self, start: datetime = datetime(2026, 3, 2, 9, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


def make_listing(listing_id: str, **overrides) -> ListingRecord:
    data = {
        "id": listing_id,
        "title": f"Porsche 911 {listing_id}",
        "brand": "Porsche",
        "price": 100,
        "year": 2022,
        "mileage": 10000,
        "fuel_type": "Petrol",
        "transmission": "Automatic",
        "location": "Colombo",
        "condition": "Used",
    }
    data.update(overrides)
    return ListingRecord(**data)


@pytest.fixture
def test_session():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    return TestSession


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def index():
    return InMemoryListingIndex()


@pytest.fixture
def sink():
    return InMemoryNotificationSink()


@pytest.fixture
def services(test_session, index, sink, clock):
    settings = Settings(scheduler_max_workers=1)
    return build_services(test_session, index=index, sink=sink, settings=settings, clock=clock)
