"""SQLAlchemy ORM models for rate history and the account data pricing reads"""

import uuid
from sqlalchemy import (
    Column,
    String,
    Boolean,
    DateTime,
    Date,
    Integer,
    ForeignKey,
    Numeric,
    Text,
    Uuid,
    Enum,
    CheckConstraint,
    Index,
    text,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

from mailcenter_pricing.domain.models import RecipientType, RenewalPeriod

Base = declarative_base()

MONEY = Numeric(10, 2)


class RateHistory(Base):
    """Effective-dated rate configuration. end_date NULL marks the current row."""

    __tablename__ = "rate_history"
    __table_args__ = (
        CheckConstraint("end_date IS NULL OR end_date >= start_date", name="ck_rate_history_range"),
        # At most one open (current) row; a second concurrent create fails here
        Index(
            "uq_rate_history_current",
            text("(end_date IS NULL)"),
            unique=True,
            postgresql_where=text("end_date IS NULL"),
            sqlite_where=text("end_date IS NULL"),
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    start_date = Column(Date, nullable=False, index=True)
    end_date = Column(Date, nullable=True, index=True)
    base_rate_3mo = Column(MONEY, nullable=False)
    base_rate_6mo = Column(MONEY, nullable=False)
    base_rate_12mo = Column(MONEY, nullable=False)
    rate_4th_adult = Column(MONEY, nullable=False)
    rate_5th_adult = Column(MONEY, nullable=False)
    rate_6th_adult = Column(MONEY, nullable=False)
    rate_7th_adult = Column(MONEY, nullable=False)
    business_account_fee = Column(MONEY, nullable=False)
    minor_recipient_fee = Column(MONEY, nullable=False)
    key_deposit = Column(MONEY, nullable=False)
    notes = Column(Text, nullable=True)
    created_by = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Account(Base):
    """Mailbox rental account (owned by account management, read here)"""

    __tablename__ = "account"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    mailbox_number = Column(Integer, nullable=False, index=True)
    status = Column(String(16), nullable=False, default="ACTIVE")
    renewal_period = Column(Enum(RenewalPeriod, native_enum=False), nullable=False)
    start_date = Column(Date, nullable=False)
    last_renewal_date = Column(Date, nullable=True)
    current_rate = Column(MONEY, nullable=False)
    rate_override = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    recipients = relationship("Recipient", back_populates="account", cascade="all, delete-orphan")


class Recipient(Base):
    """Person or business receiving mail at an account's mailbox"""

    __tablename__ = "recipient"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    account_id = Column(Uuid, ForeignKey("account.id", ondelete="CASCADE"), nullable=False, index=True)
    recipient_type = Column(Enum(RecipientType, native_enum=False), nullable=False)
    first_name = Column(Text, nullable=True)
    last_name = Column(Text, nullable=True)
    business_name = Column(Text, nullable=True)
    birthdate = Column(Date, nullable=True)
    removed_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    account = relationship("Account", back_populates="recipients")

    @property
    def display_name(self) -> str:
        if self.recipient_type == RecipientType.BUSINESS:
            return self.business_name or "Unknown Business"
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) or "Unknown"
