"""Data access layer for rate history and account recipients"""

import uuid
from datetime import date
from typing import List, Optional, Tuple
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from mailcenter_pricing.infrastructure.database.models import Account, RateHistory, Recipient
from mailcenter_pricing.domain.exceptions import (
    AccountNotFoundError,
    InvalidRateConfigurationError,
    RateConfigurationConflictError,
    RateConfigurationNotFoundError,
    RateNotConfiguredError,
)
from mailcenter_pricing.domain.models import (
    RateConfiguration,
    RateConfigurationDraft,
    RecipientSnapshot,
    RecipientType,
    RenewalPeriod,
)
from mailcenter_pricing.domain.rates import (
    closing_date_for,
    ensure_follows,
    ensure_mutable,
    is_mutable,
    period_base_rates,
    validate_draft,
)


def to_rate_configuration(row: RateHistory) -> RateConfiguration:
    """Map ORM row to immutable domain snapshot"""
    return RateConfiguration(
        id=row.id,
        start_date=row.start_date,
        end_date=row.end_date,
        base_rate_3mo=row.base_rate_3mo,
        base_rate_6mo=row.base_rate_6mo,
        base_rate_12mo=row.base_rate_12mo,
        rate_4th_adult=row.rate_4th_adult,
        rate_5th_adult=row.rate_5th_adult,
        rate_6th_adult=row.rate_6th_adult,
        rate_7th_adult=row.rate_7th_adult,
        business_account_fee=row.business_account_fee,
        minor_recipient_fee=row.minor_recipient_fee,
        key_deposit=row.key_deposit,
        notes=row.notes,
        created_by=row.created_by,
        created_at=row.created_at,
    )


def _apply_draft(row: RateHistory, draft: RateConfigurationDraft) -> None:
    period_rates = period_base_rates(draft.base_monthly_rate)
    row.start_date = draft.start_date
    row.base_rate_3mo = period_rates[RenewalPeriod.THREE_MONTH]
    row.base_rate_6mo = period_rates[RenewalPeriod.SIX_MONTH]
    row.base_rate_12mo = period_rates[RenewalPeriod.TWELVE_MONTH]
    row.rate_4th_adult = draft.rate_4th_adult
    row.rate_5th_adult = draft.rate_5th_adult
    row.rate_6th_adult = draft.rate_6th_adult
    row.rate_7th_adult = draft.rate_7th_adult
    row.business_account_fee = draft.business_account_fee
    row.minor_recipient_fee = draft.minor_recipient_fee
    row.key_deposit = draft.key_deposit
    row.notes = draft.notes


class RateRepository:
    """
    Repository for effective-dated rate configurations.

    Write methods only flush; the caller commits once so that closing the
    previous current row and writing the new one land in a single transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def _current_row(self, for_update: bool = False) -> Optional[RateHistory]:
        query = self.db.query(RateHistory).filter(RateHistory.end_date.is_(None))
        if for_update:
            query = query.with_for_update()
        return query.order_by(RateHistory.start_date.desc()).first()

    def _row(self, rate_id: uuid.UUID) -> RateHistory:
        row = self.db.get(RateHistory, rate_id)
        if row is None:
            raise RateConfigurationNotFoundError(f"Pricing configuration {rate_id} not found")
        return row

    def _predecessor_row(self, start_date: date, exclude_id: Optional[uuid.UUID] = None) -> Optional[RateHistory]:
        query = self.db.query(RateHistory).filter(RateHistory.start_date < start_date)
        if exclude_id is not None:
            query = query.filter(RateHistory.id != exclude_id)
        return query.order_by(RateHistory.start_date.desc()).first()

    def get_current(self) -> RateConfiguration:
        """Configuration with no end date"""
        row = self._current_row()
        if row is None:
            raise RateNotConfiguredError()
        return to_rate_configuration(row)

    def get_effective_at(self, day: date) -> RateConfiguration:
        """Configuration whose [start_date, end_date] range contains day"""
        row = (
            self.db.query(RateHistory)
            .filter(RateHistory.start_date <= day)
            .filter((RateHistory.end_date.is_(None)) | (RateHistory.end_date >= day))
            .order_by(RateHistory.start_date.desc())
            .first()
        )
        if row is None:
            raise RateNotConfiguredError(day)
        return to_rate_configuration(row)

    def get_by_id(self, rate_id: uuid.UUID) -> RateConfiguration:
        return to_rate_configuration(self._row(rate_id))

    def list_all(self) -> List[RateConfiguration]:
        rows = self.db.query(RateHistory).order_by(RateHistory.start_date.asc()).all()
        return [to_rate_configuration(r) for r in rows]

    def get_history(self, page: int = 1, limit: int = 20) -> Tuple[List[RateConfiguration], int]:
        """Newest-first page of configurations plus total count"""
        total = self.db.query(RateHistory).count()
        rows = (
            self.db.query(RateHistory)
            .order_by(RateHistory.start_date.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return [to_rate_configuration(r) for r in rows], total

    def create(self, draft: RateConfigurationDraft, created_by: Optional[str] = None) -> RateConfiguration:
        """Close the current configuration the day before draft.start_date and open a new one"""
        validate_draft(draft)

        current = self._current_row(for_update=True)
        if current is not None:
            ensure_follows(draft.start_date, to_rate_configuration(current))
            current.end_date = closing_date_for(draft.start_date)

        row = RateHistory(end_date=None, created_by=created_by)
        _apply_draft(row, draft)
        self.db.add(row)
        try:
            self.db.flush()  # Get ID and surface constraint errors before commit
        except IntegrityError as e:
            raise RateConfigurationConflictError(
                "Another pricing configuration was opened concurrently; retry the request"
            ) from e
        return to_rate_configuration(row)

    def replace(self, rate_id: uuid.UUID, draft: RateConfigurationDraft, today: date) -> RateConfiguration:
        """Rewrite a configuration that has not started yet"""
        validate_draft(draft)

        row = self._row(rate_id)
        ensure_mutable(to_rate_configuration(row), today, "edit")
        if not is_mutable(draft.start_date, today):
            raise InvalidRateConfigurationError("start_date", "must be in the future")

        predecessor = self._predecessor_row(row.start_date, exclude_id=row.id)
        if predecessor is not None:
            ensure_follows(draft.start_date, to_rate_configuration(predecessor))

        successor = (
            self.db.query(RateHistory)
            .filter(RateHistory.start_date > row.start_date)
            .order_by(RateHistory.start_date.asc())
            .first()
        )
        if successor is not None and draft.start_date >= successor.start_date:
            raise InvalidRateConfigurationError(
                "start_date",
                f"must be before {successor.start_date.isoformat()}, the start of the next configuration",
            )

        _apply_draft(row, draft)
        if predecessor is not None:
            # Keep ranges contiguous when the start date moves
            predecessor.end_date = closing_date_for(draft.start_date)

        self.db.flush()
        return to_rate_configuration(row)

    def delete(self, rate_id: uuid.UUID, today: date) -> None:
        """Remove a future configuration, re-opening its predecessor if it was current"""
        row = self._row(rate_id)
        ensure_mutable(to_rate_configuration(row), today, "delete")

        predecessor = self._predecessor_row(row.start_date, exclude_id=row.id)
        end_date = row.end_date

        # Delete before re-opening so two open rows never coexist
        self.db.delete(row)
        self.db.flush()

        if predecessor is not None:
            predecessor.end_date = end_date
            self.db.flush()


class AccountRepository:
    """Read-only access to account and recipient data owned by account management"""

    def __init__(self, db: Session):
        self.db = db

    def get_account(self, account_id: uuid.UUID) -> Account:
        account = self.db.get(Account, account_id)
        if account is None:
            raise AccountNotFoundError(f"Account {account_id} not found")
        return account

    def get_accounts_by_status(self, statuses: List[str]) -> List[Account]:
        return (
            self.db.query(Account)
            .filter(Account.status.in_(statuses))
            .order_by(Account.mailbox_number.asc())
            .all()
        )

    def get_active_recipients(self, account_id: uuid.UUID) -> List[RecipientSnapshot]:
        """Snapshots of recipients not yet removed, in the order they were added"""
        rows = (
            self.db.query(Recipient)
            .filter(Recipient.account_id == account_id)
            .filter(Recipient.removed_date.is_(None))
            .order_by(Recipient.created_at.asc(), Recipient.id.asc())
            .all()
        )
        return [to_recipient_snapshot(r) for r in rows]


def to_recipient_snapshot(row: Recipient) -> RecipientSnapshot:
    return RecipientSnapshot(
        recipient_type=RecipientType(row.recipient_type),
        birthdate=row.birthdate,
        id=str(row.id),
        name=row.display_name,
    )
