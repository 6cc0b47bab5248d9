"""Rate catalogue rules - validation, effective dating and period rate derivation"""

from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, Optional

from mailcenter_pricing.domain.exceptions import (
    InvalidRateConfigurationError,
    RateConfigurationLockedError,
    RateNotConfiguredError,
)
from mailcenter_pricing.domain.models import RateConfiguration, RateConfigurationDraft, RenewalPeriod
from mailcenter_pricing.domain.policy import MAX_NOTES_LENGTH, MAX_RATE, MIN_RATE, PERIOD_MONTHS
from mailcenter_pricing.utils.date_utils import add_days
from mailcenter_pricing.utils.money import to_money

MONETARY_FIELDS = (
    "base_monthly_rate",
    "rate_4th_adult",
    "rate_5th_adult",
    "rate_6th_adult",
    "rate_7th_adult",
    "business_account_fee",
    "minor_recipient_fee",
    "key_deposit",
)


def validate_draft(draft: RateConfigurationDraft) -> None:
    """
    Reject a draft before it reaches storage.

    Every monetary field must be within [0, 999.99] with at most cent precision,
    and the base monthly rate must be positive. Raises
    InvalidRateConfigurationError naming the first offending field.
    """
    for name in MONETARY_FIELDS:
        value = getattr(draft, name)
        if not isinstance(value, Decimal):
            raise InvalidRateConfigurationError(name, "must be a decimal amount")
        if not value.is_finite():
            raise InvalidRateConfigurationError(name, "must be a finite amount")
        if value < MIN_RATE:
            raise InvalidRateConfigurationError(name, "must be non-negative")
        if value > MAX_RATE:
            raise InvalidRateConfigurationError(name, f"cannot exceed {MAX_RATE}")
        if value != to_money(value):
            raise InvalidRateConfigurationError(name, "must not have fractional cents")

    if draft.base_monthly_rate == 0:
        raise InvalidRateConfigurationError("base_monthly_rate", "must be greater than zero")

    if draft.notes is not None and len(draft.notes) > MAX_NOTES_LENGTH:
        raise InvalidRateConfigurationError("notes", f"cannot exceed {MAX_NOTES_LENGTH} characters")


def period_base_rates(base_monthly_rate: Decimal) -> Dict[RenewalPeriod, Decimal]:
    """Stored period base rates, computed once at write time"""
    return {period: to_money(base_monthly_rate * months) for period, months in PERIOD_MONTHS.items()}


def base_rate_for_period(rates: RateConfiguration, period: RenewalPeriod) -> Decimal:
    if period == RenewalPeriod.THREE_MONTH:
        return rates.base_rate_3mo
    if period == RenewalPeriod.SIX_MONTH:
        return rates.base_rate_6mo
    if period == RenewalPeriod.TWELVE_MONTH:
        return rates.base_rate_12mo
    raise ValueError(f"Unknown renewal period: {period}")


def closing_date_for(new_start_date: date) -> date:
    """End date given to the prior current configuration"""
    return add_days(new_start_date, -1)


def is_mutable(start_date: date, today: date) -> bool:
    """Only configurations that have not started yet may be edited or deleted"""
    return start_date > today


def ensure_mutable(rates: RateConfiguration, today: date, action: str = "edit") -> None:
    if not is_mutable(rates.start_date, today):
        raise RateConfigurationLockedError(
            f"Cannot {action} pricing configuration that has already started or is current"
        )


def ensure_follows(new_start_date: date, previous: Optional[RateConfiguration]) -> None:
    """A new or moved configuration must start strictly after its predecessor"""
    if previous is not None and new_start_date <= previous.start_date:
        raise InvalidRateConfigurationError(
            "start_date",
            f"must be after {previous.start_date.isoformat()}, the start of the previous configuration",
        )


def select_effective(configurations: Iterable[RateConfiguration], day: date) -> RateConfiguration:
    """
    Pick the configuration in effect on day from an in-memory sequence.

    Latest start date wins if stored ranges ever overlap.
    """
    matches = [c for c in configurations if c.contains(day)]
    if not matches:
        raise RateNotConfiguredError(day)
    return max(matches, key=lambda c: c.start_date)
