"""Price breakdown calculator - forward-looking quotes for a renewal term"""

from decimal import Decimal

from mailcenter_pricing.domain.exceptions import InvalidPricingInputError
from mailcenter_pricing.domain.models import (
    PriceBreakdown,
    PriceCalculationInput,
    RateConfiguration,
    RenewalPeriod,
)
from mailcenter_pricing.domain.policy import INCLUDED_RECIPIENTS, MAX_RECIPIENTS, PERIOD_MONTHS
from mailcenter_pricing.domain.rates import base_rate_for_period
from mailcenter_pricing.utils.money import ZERO, to_money


def period_months_for(period: RenewalPeriod) -> int:
    """
    Months used for pricing a term.

    TWELVE_MONTH prices 12 months even though the service window it grants is
    13 months (see SERVICE_DAYS).
    """
    try:
        return PERIOD_MONTHS[RenewalPeriod(period)]
    except ValueError:
        raise InvalidPricingInputError("renewal_period", f"unknown renewal period {period!r}")


def validate_counts(adult_count: int, minor_count: int) -> None:
    """Reject counts outside policy, naming the offending field"""
    for name, value in (("adult_recipient_count", adult_count), ("minor_recipient_count", minor_count)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidPricingInputError(name, "must be an integer")
        if value < 0:
            raise InvalidPricingInputError(name, "cannot be negative")

    if adult_count + minor_count > MAX_RECIPIENTS:
        # Blame adults only when they overflow the cap on their own
        field = "adult_recipient_count" if adult_count > MAX_RECIPIENTS else "minor_recipient_count"
        raise InvalidPricingInputError(
            field,
            f"total recipients cannot exceed {MAX_RECIPIENTS}",
        )


def slot_fee(rates: RateConfiguration, adult_position: int) -> Decimal:
    """
    Monthly surcharge for the adult at 1-based position adult_position.

    Included positions (1..3) cost nothing; positions past the 7th are outside
    policy and priced at zero.
    """
    index = adult_position - INCLUDED_RECIPIENTS - 1
    slot_rates = rates.slot_rates()
    if index < 0 or index >= len(slot_rates):
        return ZERO
    return slot_rates[index]


def additional_recipient_monthly_fee(rates: RateConfiguration, adult_count: int) -> Decimal:
    """Sum of slot surcharges for adults 4..adult_count"""
    total = ZERO
    for position in range(INCLUDED_RECIPIENTS + 1, adult_count + 1):
        total += slot_fee(rates, position)
    return total


def calculate_price_breakdown(rates: RateConfiguration, calc_input: PriceCalculationInput) -> PriceBreakdown:
    """
    Calculate a detailed price breakdown for one renewal term.

    - base_rate: stored period rate (no monthly * months derivation)
    - business_fee: flat monthly fee * months when a business recipient exists
    - additional_recipient_fees: 4th..7th adult slot surcharges * months
    - minor_fees: flat monthly fee per minor * months, minors never take a slot
    - total_monthly: total_for_period / months
    """
    validate_counts(calc_input.adult_recipient_count, calc_input.minor_recipient_count)
    period_months = period_months_for(calc_input.renewal_period)

    base_rate = to_money(base_rate_for_period(rates, calc_input.renewal_period))

    business_fee = ZERO
    if calc_input.has_business_recipient:
        business_fee = to_money(rates.business_account_fee * period_months)

    additional_recipient_fees = to_money(
        additional_recipient_monthly_fee(rates, calc_input.adult_recipient_count) * period_months
    )

    minor_fees = to_money(rates.minor_recipient_fee * calc_input.minor_recipient_count * period_months)

    total_for_period = base_rate + business_fee + additional_recipient_fees + minor_fees
    total_monthly = to_money(total_for_period / period_months)

    return PriceBreakdown(
        base_rate=base_rate,
        business_fee=business_fee,
        additional_recipient_fees=additional_recipient_fees,
        minor_fees=minor_fees,
        total_monthly=total_monthly,
        total_for_period=total_for_period,
        period_months=period_months,
    )
