"""Integration tests for effective-dated rate history storage"""

import threading
import pytest
from datetime import date
from decimal import Decimal
from sqlalchemy.orm import Session, sessionmaker
from mailcenter_pricing.domain.exceptions import (
    InvalidRateConfigurationError,
    RateConfigurationConflictError,
    RateConfigurationLockedError,
    RateConfigurationNotFoundError,
    RateNotConfiguredError,
)
from mailcenter_pricing.infrastructure.database.models import RateHistory
from mailcenter_pricing.infrastructure.database.repositories import RateRepository
from mailcenter_pricing.infrastructure.database.session import transaction


TODAY = date(2024, 3, 1)


def current_rows(db: Session):
    return db.query(RateHistory).filter(RateHistory.end_date.is_(None)).all()


def test_create_first_configuration(db: Session, make_draft):
    repo = RateRepository(db)
    config = repo.create(make_draft(date(2024, 1, 1)), created_by="manager-1")
    db.commit()

    assert config.is_current
    assert config.base_rate_3mo == Decimal("51.00")
    assert config.base_rate_6mo == Decimal("102.00")
    assert config.base_rate_12mo == Decimal("204.00")
    assert config.created_by == "manager-1"
    assert repo.get_current().id == config.id


def test_create_closes_previous_current(db: Session, make_draft):
    repo = RateRepository(db)
    first = repo.create(make_draft(date(2024, 1, 1)))
    second = repo.create(make_draft(date(2024, 7, 1), base_monthly_rate=Decimal("20.00")))
    db.commit()

    assert repo.get_by_id(first.id).end_date == date(2024, 6, 30)
    assert repo.get_current().id == second.id
    assert len(current_rows(db)) == 1


def test_create_must_start_after_current(db: Session, make_draft):
    repo = RateRepository(db)
    repo.create(make_draft(date(2024, 1, 1)))
    db.commit()

    with pytest.raises(InvalidRateConfigurationError) as exc_info:
        repo.create(make_draft(date(2024, 1, 1)))
    assert exc_info.value.field == "start_date"


def test_invalid_draft_never_written(db: Session, make_draft):
    repo = RateRepository(db)
    with pytest.raises(InvalidRateConfigurationError):
        repo.create(make_draft(rate_4th_adult=Decimal("-2.00")))

    assert db.query(RateHistory).count() == 0


def test_effective_at(db: Session, make_draft):
    repo = RateRepository(db)
    first = repo.create(make_draft(date(2024, 1, 1)))
    second = repo.create(make_draft(date(2024, 7, 1), base_monthly_rate=Decimal("20.00")))
    db.commit()

    assert repo.get_effective_at(date(2024, 6, 30)).id == first.id
    assert repo.get_effective_at(date(2024, 7, 1)).id == second.id
    assert repo.get_effective_at(date(2030, 1, 1)).id == second.id

    with pytest.raises(RateNotConfiguredError):
        repo.get_effective_at(date(2023, 12, 31))


def test_no_current_configuration(db: Session):
    with pytest.raises(RateNotConfiguredError):
        RateRepository(db).get_current()


def test_history_newest_first(db: Session, make_draft):
    repo = RateRepository(db)
    for start in (date(2023, 1, 1), date(2023, 7, 1), date(2024, 1, 1)):
        repo.create(make_draft(start))
    db.commit()

    page, total = repo.get_history(page=1, limit=2)
    assert total == 3
    assert [c.start_date for c in page] == [date(2024, 1, 1), date(2023, 7, 1)]

    page, _ = repo.get_history(page=2, limit=2)
    assert [c.start_date for c in page] == [date(2023, 1, 1)]


def test_replace_future_configuration(db: Session, make_draft):
    repo = RateRepository(db)
    first = repo.create(make_draft(date(2024, 1, 1)))
    future = repo.create(make_draft(date(2024, 7, 1)))
    db.commit()

    updated = repo.replace(future.id, make_draft(date(2024, 8, 1), base_monthly_rate=Decimal("20.00")), TODAY)
    db.commit()

    assert updated.id == future.id
    assert updated.start_date == date(2024, 8, 1)
    assert updated.base_rate_3mo == Decimal("60.00")
    assert repo.get_by_id(first.id).end_date == date(2024, 7, 31)


def test_replace_started_configuration_locked(db: Session, make_draft):
    repo = RateRepository(db)
    current = repo.create(make_draft(date(2024, 1, 1)))
    db.commit()

    with pytest.raises(RateConfigurationLockedError):
        repo.replace(current.id, make_draft(date(2024, 6, 1)), TODAY)


def test_replace_cannot_move_into_past(db: Session, make_draft):
    repo = RateRepository(db)
    repo.create(make_draft(date(2024, 1, 1)))
    future = repo.create(make_draft(date(2024, 7, 1)))
    db.commit()

    with pytest.raises(InvalidRateConfigurationError) as exc_info:
        repo.replace(future.id, make_draft(date(2024, 2, 1)), TODAY)
    assert exc_info.value.field == "start_date"


def test_delete_future_reopens_previous(db: Session, make_draft):
    repo = RateRepository(db)
    first = repo.create(make_draft(date(2024, 1, 1)))
    future = repo.create(make_draft(date(2024, 7, 1)))
    db.commit()

    repo.delete(future.id, TODAY)
    db.commit()

    assert repo.get_current().id == first.id
    assert repo.get_by_id(first.id).end_date is None
    with pytest.raises(RateConfigurationNotFoundError):
        repo.get_by_id(future.id)


def test_delete_started_configuration_locked(db: Session, make_draft):
    repo = RateRepository(db)
    current = repo.create(make_draft(date(2024, 1, 1)))
    db.commit()

    with pytest.raises(RateConfigurationLockedError):
        repo.delete(current.id, TODAY)


def test_failed_create_keeps_previous_open(db: Session, make_draft, monkeypatch):
    """A flush failure after closing the current row rolls the close back too"""
    repo = RateRepository(db)
    first = repo.create(make_draft(date(2024, 1, 1)))
    db.commit()

    def failing_flush(*args, **kwargs):
        raise RuntimeError("connection lost")

    monkeypatch.setattr(db, "flush", failing_flush)
    with pytest.raises(RuntimeError):
        with transaction(db):
            repo.create(make_draft(date(2024, 7, 1)))
    monkeypatch.undo()

    assert repo.get_by_id(first.id).end_date is None
    assert db.query(RateHistory).count() == 1


def test_second_open_row_rejected(db: Session, make_draft, monkeypatch):
    """A writer that missed the current row cannot open a second one"""
    repo = RateRepository(db)
    first = repo.create(make_draft(date(2024, 1, 1)))
    db.commit()

    monkeypatch.setattr(RateRepository, "_current_row", lambda self, for_update=False: None)
    with pytest.raises(RateConfigurationConflictError):
        with transaction(db):
            repo.create(make_draft(date(2024, 7, 1)))
    monkeypatch.undo()

    assert [row.id for row in current_rows(db)] == [first.id]
    assert db.query(RateHistory).count() == 1


def test_concurrent_creates_leave_one_open_row(db: Session, make_draft, monkeypatch):
    """Two sessions that both read the same current row: one wins, one conflicts"""
    RateRepository(db).create(make_draft(date(2024, 1, 1)))
    db.commit()

    SessionForThread = sessionmaker(autocommit=False, autoflush=False, bind=db.get_bind())
    both_read = threading.Barrier(2, timeout=10)
    read_current_row = RateRepository._current_row

    def current_row_then_wait(self, for_update=False):
        row = read_current_row(self, for_update=for_update)
        if for_update:
            both_read.wait()
        return row

    monkeypatch.setattr(RateRepository, "_current_row", current_row_then_wait)

    errors = []

    def open_configuration(start_date):
        session = SessionForThread()
        try:
            with transaction(session):
                RateRepository(session).create(make_draft(start_date))
        except Exception as e:
            errors.append(e)
        finally:
            session.close()

    threads = [
        threading.Thread(target=open_configuration, args=(date(2024, 7, 1),)),
        threading.Thread(target=open_configuration, args=(date(2024, 8, 1),)),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(current_rows(db)) == 1
    assert len(errors) == 1
    assert isinstance(errors[0], RateConfigurationConflictError)
    assert db.query(RateHistory).count() == 2
