"""Unit tests for the price breakdown calculator"""

import pytest
from dataclasses import replace
from decimal import Decimal
from mailcenter_pricing.domain.exceptions import InvalidPricingInputError
from mailcenter_pricing.domain.models import PriceCalculationInput, RenewalPeriod
from mailcenter_pricing.domain.rates import period_base_rates
from mailcenter_pricing.domain.pricing import (
    additional_recipient_monthly_fee,
    calculate_price_breakdown,
    period_months_for,
    slot_fee,
)


def quote(rates, period=RenewalPeriod.THREE_MONTH, adults=1, minors=0, business=False):
    return calculate_price_breakdown(
        rates,
        PriceCalculationInput(
            renewal_period=period,
            adult_recipient_count=adults,
            minor_recipient_count=minors,
            has_business_recipient=business,
        ),
    )


def test_five_adults_three_months(rates):
    """5 adults pay the 4th and 5th slot surcharges for 3 months"""
    breakdown = quote(rates, adults=5)

    assert breakdown.base_rate == Decimal("51.00")
    assert breakdown.additional_recipient_fees == Decimal("12.00")  # (2 + 2) * 3
    assert breakdown.business_fee == Decimal("0.00")
    assert breakdown.minor_fees == Decimal("0.00")
    assert breakdown.total_for_period == Decimal("63.00")
    assert breakdown.total_monthly == Decimal("21.00")
    assert breakdown.period_months == 3


def test_minor_fee_per_minor_per_month(rates):
    rates = replace(rates, minor_recipient_fee=Decimal("1.00"))
    breakdown = quote(rates, adults=1, minors=2)

    assert breakdown.minor_fees == Decimal("6.00")  # 2 * 1 * 3
    assert breakdown.additional_recipient_fees == Decimal("0.00")
    assert breakdown.total_for_period == Decimal("57.00")


def test_minors_never_take_adult_slot(rates):
    """Three adults plus four minors stay inside the included slots"""
    breakdown = quote(rates, adults=3, minors=4)
    assert breakdown.additional_recipient_fees == Decimal("0.00")


def test_business_fee_charged_per_month(rates):
    breakdown = quote(rates, period=RenewalPeriod.SIX_MONTH, adults=1, business=True)

    assert breakdown.base_rate == Decimal("102.00")
    assert breakdown.business_fee == Decimal("24.00")
    assert breakdown.total_for_period == Decimal("126.00")
    assert breakdown.total_monthly == Decimal("21.00")


def test_twelve_month_term_prices_twelve_months(rates):
    """Full house on a 12-month term: every slot charged for 12 months, not 13"""
    breakdown = quote(rates, period=RenewalPeriod.TWELVE_MONTH, adults=7)

    assert breakdown.period_months == 12
    assert breakdown.base_rate == Decimal("204.00")
    assert breakdown.additional_recipient_fees == Decimal("96.00")  # 4 slots * 2 * 12
    assert breakdown.total_for_period == Decimal("300.00")
    assert breakdown.total_monthly == Decimal("25.00")


def test_distinct_slot_rates(rates):
    rates = replace(
        rates,
        rate_4th_adult=Decimal("1.00"),
        rate_5th_adult=Decimal("2.00"),
        rate_6th_adult=Decimal("3.00"),
        rate_7th_adult=Decimal("4.00"),
    )
    assert slot_fee(rates, 3) == Decimal("0.00")
    assert slot_fee(rates, 4) == Decimal("1.00")
    assert slot_fee(rates, 7) == Decimal("4.00")
    assert slot_fee(rates, 8) == Decimal("0.00")

    breakdown = quote(rates, adults=6)
    assert breakdown.additional_recipient_fees == Decimal("18.00")  # (1 + 2 + 3) * 3


@pytest.mark.parametrize("adults", [1, 2, 3])
@pytest.mark.parametrize("minors", [0, 2, 4])
def test_no_surcharge_up_to_three_adults(rates, adults, minors):
    assert quote(rates, adults=adults, minors=minors).additional_recipient_fees == Decimal("0.00")


@pytest.mark.parametrize("adults", [4, 5, 6, 7])
@pytest.mark.parametrize("period", list(RenewalPeriod))
def test_surcharge_is_sum_of_slots(rates, adults, period):
    breakdown = quote(rates, period=period, adults=adults)
    expected = sum(rates.slot_rates()[: adults - 3]) * breakdown.period_months
    assert breakdown.additional_recipient_fees == expected
    assert additional_recipient_monthly_fee(rates, adults) * breakdown.period_months == expected


@pytest.mark.parametrize("period", list(RenewalPeriod))
@pytest.mark.parametrize("adults,business", [(1, False), (5, True), (7, False)])
def test_monthly_total_times_months_is_period_total(rates, period, adults, business):
    breakdown = quote(rates, period=period, adults=adults, business=business)
    assert breakdown.total_monthly * breakdown.period_months == breakdown.total_for_period


def test_monthly_total_rounds_to_cents(rates):
    """A hand-entered period rate that is not a whole monthly multiple rounds half-up"""
    rates = replace(rates, base_rate_3mo=Decimal("50.00"))
    breakdown = quote(rates)
    assert breakdown.total_monthly == Decimal("16.67")


@pytest.mark.parametrize("monthly", ["17.00", "17.33", "0.01", "999.99"])
@pytest.mark.parametrize("period", list(RenewalPeriod))
def test_catalog_rates_divide_exactly(rates, monthly, period):
    """Period rates derived at write time keep monthly total * months exact"""
    period_rates = period_base_rates(Decimal(monthly))
    rates = replace(
        rates,
        base_rate_3mo=period_rates[RenewalPeriod.THREE_MONTH],
        base_rate_6mo=period_rates[RenewalPeriod.SIX_MONTH],
        base_rate_12mo=period_rates[RenewalPeriod.TWELVE_MONTH],
        rate_4th_adult=Decimal("1.37"),
        minor_recipient_fee=Decimal("0.45"),
    )
    breakdown = quote(rates, period=period, adults=4, minors=2, business=True)
    assert breakdown.total_monthly * breakdown.period_months == breakdown.total_for_period


def test_period_months():
    assert period_months_for(RenewalPeriod.THREE_MONTH) == 3
    assert period_months_for(RenewalPeriod.SIX_MONTH) == 6
    assert period_months_for(RenewalPeriod.TWELVE_MONTH) == 12
    assert period_months_for("SIX_MONTH") == 6


def test_unknown_period_rejected():
    with pytest.raises(InvalidPricingInputError) as exc_info:
        period_months_for("NINE_MONTH")
    assert exc_info.value.field == "renewal_period"


def test_total_above_cap_rejected(rates):
    with pytest.raises(InvalidPricingInputError) as exc_info:
        quote(rates, adults=5, minors=3)
    assert exc_info.value.field == "minor_recipient_count"


def test_adults_alone_above_cap_name_adult_field(rates):
    with pytest.raises(InvalidPricingInputError) as exc_info:
        quote(rates, adults=8)
    assert exc_info.value.field == "adult_recipient_count"


def test_negative_count_rejected(rates):
    with pytest.raises(InvalidPricingInputError) as exc_info:
        quote(rates, adults=-1)
    assert exc_info.value.field == "adult_recipient_count"

    with pytest.raises(InvalidPricingInputError) as exc_info:
        quote(rates, adults=1, minors=-2)
    assert exc_info.value.field == "minor_recipient_count"
