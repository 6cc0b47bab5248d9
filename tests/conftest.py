"""Pytest fixtures for testing"""

import os

# Point the app's engine at SQLite before any application module is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import uuid
import pytest
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Callable, Generator, List, Optional
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from mailcenter_pricing.api.main import create_app
from mailcenter_pricing.infrastructure.database.models import Account, Base, Recipient
from mailcenter_pricing.infrastructure.database.session import get_db
from mailcenter_pricing.domain.models import (
    RateConfiguration,
    RateConfigurationDraft,
    RecipientType,
    RenewalPeriod,
)


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def rates() -> RateConfiguration:
    """Standard configuration: $17/month base, $2 slots, $4 business fee, free minors"""
    return RateConfiguration(
        id=uuid.uuid4(),
        start_date=date(2024, 1, 1),
        end_date=None,
        base_rate_3mo=Decimal("51.00"),
        base_rate_6mo=Decimal("102.00"),
        base_rate_12mo=Decimal("204.00"),
        rate_4th_adult=Decimal("2.00"),
        rate_5th_adult=Decimal("2.00"),
        rate_6th_adult=Decimal("2.00"),
        rate_7th_adult=Decimal("2.00"),
        business_account_fee=Decimal("4.00"),
        minor_recipient_fee=Decimal("0.00"),
        key_deposit=Decimal("5.00"),
    )


@pytest.fixture
def make_draft() -> Callable[..., RateConfigurationDraft]:
    """Factory for rate drafts matching the standard configuration"""

    def _make(start_date: date = date(2024, 1, 1), **overrides) -> RateConfigurationDraft:
        values = dict(
            start_date=start_date,
            base_monthly_rate=Decimal("17.00"),
            rate_4th_adult=Decimal("2.00"),
            rate_5th_adult=Decimal("2.00"),
            rate_6th_adult=Decimal("2.00"),
            rate_7th_adult=Decimal("2.00"),
            business_account_fee=Decimal("4.00"),
            minor_recipient_fee=Decimal("0.00"),
            key_deposit=Decimal("5.00"),
            notes=None,
        )
        values.update(overrides)
        return RateConfigurationDraft(**values)

    return _make


@pytest.fixture
def make_account(db: Session) -> Callable[..., Account]:
    """
    Factory that persists an account with recipients.

    Recipients are (type, first_name, birthdate) tuples; created_at is spaced a
    minute apart so recipient order is deterministic.
    """

    def _make(
        recipients: List[tuple],
        renewal_period: RenewalPeriod = RenewalPeriod.THREE_MONTH,
        current_rate: Decimal = Decimal("17.00"),
        start_date: date = date(2024, 2, 1),
        last_renewal_date: Optional[date] = None,
        rate_override: bool = False,
        status: str = "ACTIVE",
        mailbox_number: int = 101,
    ) -> Account:
        account = Account(
            mailbox_number=mailbox_number,
            status=status,
            renewal_period=renewal_period,
            start_date=start_date,
            last_renewal_date=last_renewal_date,
            current_rate=current_rate,
            rate_override=rate_override,
        )
        created = datetime(2024, 1, 1, 9, 0, 0)
        for index, (recipient_type, first_name, birthdate) in enumerate(recipients):
            account.recipients.append(
                Recipient(
                    recipient_type=recipient_type,
                    first_name=first_name if recipient_type == RecipientType.PERSON else None,
                    last_name="Doe" if recipient_type == RecipientType.PERSON else None,
                    business_name=first_name if recipient_type == RecipientType.BUSINESS else None,
                    birthdate=birthdate,
                    created_at=created + timedelta(minutes=index),
                )
            )
        db.add(account)
        db.commit()
        return account

    return _make
