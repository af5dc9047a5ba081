"""
Test configuration and shared fixtures for the practice scheduling test suite.

Each test gets its own in-memory SQLite database created from the model
metadata, so tests are isolated without transaction tricks.
"""

import pytest
from datetime import date, timedelta
from typing import Generator

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from core.database import Base, enable_sqlite_write_locking, get_db

# Import all models to ensure they're registered with SQLAlchemy before any relationships are resolved
import models  # noqa: F401
from main import app
from models.provider import Provider
from services.availability_settings_service import AvailabilitySettingsService
from shared_types.availability import BookingPolicy, DayRule, TimeInterval, WeeklyTemplate
from utils.datetime_utils import practice_today


TEST_DATABASE_URL = "sqlite://"


@pytest.fixture(scope="function")
def db_engine():
    """
    Create a fresh in-memory database for one test.

    StaticPool keeps a single connection so every session, including the
    ones FastAPI opens through the dependency override, sees the same data.
    """
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    enable_sqlite_write_locking(engine)
    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Provide a database session bound to the per-test database."""
    TestingSession = sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False)
    session = TestingSession()

    yield session

    session.close()


@pytest.fixture
def test_provider(db_session: Session) -> Provider:
    """Create a provider with the default Monday-Friday 09:00-17:00 schedule."""
    return AvailabilitySettingsService.create_provider(db_session, "Dr. Test", "dr.test@example.com")


@pytest.fixture
def today() -> date:
    return practice_today()


@pytest.fixture
def next_monday(today: date) -> date:
    """The first Monday strictly after today."""
    return today + timedelta(days=7 - today.weekday())


@pytest.fixture
def default_policy() -> BookingPolicy:
    """Session 60, buffer 15, max 8 per day, 90-day horizon."""
    return BookingPolicy()


@pytest.fixture
def monday_template() -> WeeklyTemplate:
    """Template open only on Monday, 09:00-17:00, no breaks."""
    return WeeklyTemplate.from_rules(
        DayRule.from_intervals(0, [TimeInterval.from_strings("09:00", "17:00")]) if weekday == 0
        else DayRule.unavailable(weekday)
        for weekday in range(7)
    )


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """
    TestClient whose requests share the test's database session.

    The lifespan is not entered, so the application never touches DATABASE_URL.
    """
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides = {}
