"""Rate audit - compare an account's charged monthly rate with the expected rate"""

from datetime import date
from decimal import Decimal
from typing import Optional

from mailcenter_pricing.domain.models import (
    AuditFlagType,
    PriceCalculationInput,
    RateAuditResult,
    RateConfiguration,
    RecipientComposition,
    RenewalPeriod,
)
from mailcenter_pricing.domain.policy import AUDIT_TOLERANCE, MAX_RECIPIENTS
from mailcenter_pricing.domain.pricing import calculate_price_breakdown
from mailcenter_pricing.utils.money import format_currency, to_money


def rate_date_for(start_date: date, last_renewal_date: Optional[date]) -> date:
    """Accounts are priced at the rates live on their last renewal, else their start"""
    return last_renewal_date or start_date


def audit_account_rate(
    current_rate: Decimal,
    rate_override: bool,
    composition: RecipientComposition,
    renewal_period: RenewalPeriod,
    rate_date: date,
    rates: Optional[RateConfiguration],
) -> RateAuditResult:
    """
    Flag accounts whose charged monthly rate does not match policy.

    Priority:
    1. NO_RATE: no configuration was in effect on the rate date
    2. RECIPIENT_OVERFLOW: more recipients than policy allows
    3. UNDERCHARGED / OVERCHARGED: difference above one cent, unless a
       manager override is recorded on the account
    """
    current_rate = to_money(current_rate)

    if rates is None:
        return RateAuditResult(
            rate_date=rate_date,
            current_rate=current_rate,
            expected_rate=None,
            discrepancy=current_rate,
            flag_type=AuditFlagType.NO_RATE,
            note=f"No pricing data found for rate date {rate_date.isoformat()}",
            recipient_count=composition.total_count,
        )

    if composition.total_count > MAX_RECIPIENTS:
        return RateAuditResult(
            rate_date=rate_date,
            current_rate=current_rate,
            expected_rate=None,
            discrepancy=to_money(0),
            flag_type=AuditFlagType.RECIPIENT_OVERFLOW,
            note=f"Account has {composition.total_count} recipients (max {MAX_RECIPIENTS})",
            recipient_count=composition.total_count,
        )

    breakdown = calculate_price_breakdown(
        rates,
        PriceCalculationInput(
            renewal_period=renewal_period,
            adult_recipient_count=composition.adult_count,
            minor_recipient_count=composition.minor_count,
            has_business_recipient=composition.has_business_recipient,
        ),
    )
    expected_rate = breakdown.total_monthly
    discrepancy = abs(current_rate - expected_rate)
    summary = f"Expected: {format_currency(expected_rate)}, Current: {format_currency(current_rate)}"

    flag_type = None
    note = None
    if discrepancy > AUDIT_TOLERANCE:
        if rate_override:
            note = f"Rate overridden. {summary}"
        else:
            flag_type = AuditFlagType.UNDERCHARGED if current_rate < expected_rate else AuditFlagType.OVERCHARGED
            note = f"{summary}. Difference: {format_currency(discrepancy)}"

    return RateAuditResult(
        rate_date=rate_date,
        current_rate=current_rate,
        expected_rate=expected_rate,
        discrepancy=discrepancy,
        flag_type=flag_type,
        note=note,
        recipient_count=composition.total_count,
    )
