"""Shared test fixtures."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from datetime import date, datetime
from decimal import Decimal
import uuid

from budgeting.config import settings
from budgeting.database import Base
from budgeting.dependencies import get_db
from budgeting.main import app
from budgeting.models.user import User
from budgeting.models.income_source import IncomeSource, PayFrequency
from budgeting.models.expense import Expense, RecurrenceFrequency


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test using in-memory SQLite."""
    # Use StaticPool to ensure all connections use the same in-memory database
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    Base.metadata.create_all(bind=engine)

    # Create session
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def client(db_session, monkeypatch):
    """Create a test client with database override and no background processors."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    monkeypatch.setattr(settings, "scheduler_enabled", False)
    monkeypatch.setattr(settings, "auto_create_tables", False)

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def sample_user(db_session):
    """Create a sample user."""
    user = User(id="u1", email="alex@example.com", display_name="Alex")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def other_user(db_session):
    """Create a second user."""
    user = User(id="u2", email="sam@example.com", display_name="Sam")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def sample_income_source(db_session, sample_user):
    """Monthly salary due on 2024-01-01."""
    source = IncomeSource(
        id=str(uuid.uuid4()),
        user_id=sample_user.id,
        source="Salary",
        amount=Decimal("1000.00"),
        currency="USD",
        frequency=PayFrequency.monthly.value,
        next_pay_at=date(2024, 1, 1),
        anchor_day=1,
        active=True,
        notes="Acme Corp",
        created_at=datetime(2023, 12, 1),
        updated_at=datetime(2023, 12, 1),
    )
    db_session.add(source)
    db_session.commit()
    db_session.refresh(source)
    return source


@pytest.fixture
def sample_recurring_expense(db_session, sample_user):
    """Monthly rent template due on 2024-01-31."""
    expense = Expense(
        id=str(uuid.uuid4()),
        user_id=sample_user.id,
        source="Rent",
        amount=Decimal("850.00"),
        currency="USD",
        notes="Flat 4B",
        is_recurring=True,
        recurrence_frequency=RecurrenceFrequency.monthly.value,
        next_occurrence_date=date(2024, 1, 31),
        anchor_day=31,
        created_at=datetime(2024, 1, 1),
        updated_at=datetime(2024, 1, 1),
    )
    db_session.add(expense)
    db_session.commit()
    db_session.refresh(expense)
    return expense


@pytest.fixture
def make_income_source(db_session):
    """Factory adding an income source with sensible defaults."""
    def _make(user_id, **overrides):
        values = dict(
            id=str(uuid.uuid4()),
            user_id=user_id,
            source="Freelance",
            amount=Decimal("250.00"),
            currency="USD",
            frequency=PayFrequency.weekly.value,
            next_pay_at=date(2024, 1, 1),
            active=True,
        )
        values.update(overrides)
        values.setdefault("anchor_day", values["next_pay_at"].day)
        source = IncomeSource(**values)
        db_session.add(source)
        db_session.commit()
        db_session.refresh(source)
        return source
    return _make


@pytest.fixture
def make_recurring_expense(db_session):
    """Factory adding a recurring expense template with sensible defaults."""
    def _make(user_id, **overrides):
        values = dict(
            id=str(uuid.uuid4()),
            user_id=user_id,
            source="Streaming",
            amount=Decimal("15.99"),
            currency="USD",
            is_recurring=True,
            recurrence_frequency=RecurrenceFrequency.monthly.value,
            next_occurrence_date=date(2024, 1, 1),
        )
        values.update(overrides)
        values.setdefault("anchor_day", values["next_occurrence_date"].day)
        expense = Expense(**values)
        db_session.add(expense)
        db_session.commit()
        db_session.refresh(expense)
        return expense
    return _make
