"""Renewal proration - bills minors who turn 18 inside the renewal window"""

from datetime import date
from typing import Iterable, List

from mailcenter_pricing.domain.composition import partition_recipients
from mailcenter_pricing.domain.models import (
    MinorTransition,
    PriceCalculationInput,
    RateConfiguration,
    RecipientSnapshot,
    RenewalPeriod,
    RenewalPriceBreakdown,
)
from mailcenter_pricing.domain.policy import AGE_OF_MAJORITY, INCLUDED_RECIPIENTS, SERVICE_DAYS
from mailcenter_pricing.domain.pricing import calculate_price_breakdown, period_months_for, slot_fee, validate_counts
from mailcenter_pricing.utils.date_utils import add_days, add_months, nth_birthday, whole_months_between
from mailcenter_pricing.utils.money import ZERO, to_money


def find_transitions(
    minors: Iterable[RecipientSnapshot],
    renewal_start: date,
    renewal_end: date,
    period_months: int,
) -> List[MinorTransition]:
    """
    Minors whose 18th birthday falls in [renewal_start, renewal_end).

    Months as a minor are whole months from renewal_start to the birthday,
    floored: the month containing the birthday is billed at the minor rate.
    Result is ordered by turns_adult_date, ties kept in recipient order.
    """
    transitions = []
    for minor in minors:
        if minor.birthdate is None:
            continue

        turns_adult_date = nth_birthday(minor.birthdate, AGE_OF_MAJORITY)
        if not (renewal_start <= turns_adult_date < renewal_end):
            continue

        months_as_minor = min(whole_months_between(renewal_start, turns_adult_date), period_months)
        transitions.append(
            MinorTransition(
                recipient_id=minor.id,
                recipient_name=minor.name,
                turns_adult_date=turns_adult_date,
                months_as_minor=months_as_minor,
                months_as_adult=period_months - months_as_minor,
            )
        )

    # sorted() is stable, so same-day birthdays keep recipient order
    return sorted(transitions, key=lambda t: t.turns_adult_date)


def calculate_renewal_price_breakdown(
    rates: RateConfiguration,
    renewal_period: RenewalPeriod,
    recipients: Iterable[RecipientSnapshot],
    renewal_start: date,
) -> RenewalPriceBreakdown:
    """
    Calculate the renewal charge, prorating minors who turn 18 mid-term.

    Flow:
    1. Baseline breakdown from the composition as of renewal_start, held for
       the full term (transitioning minors pay the minor fee for every month)
    2. Find transitions inside [renewal_start, renewal_start + period months)
    3. Walk transitions earliest first; the k-th one raises the adult count to
       baseline_adults + k. Past the included slots, that slot's surcharge is
       charged for the months as an adult
    4. Every transition credits back its minor fee for the months as an adult
    5. adjusted_total_for_period = total_for_period + transition_fees

    Example (minor fee $1, 4th slot $2, 3-month term, birthday 2 months in):
        3 adults at start -> 4th slot: +$2 * 1 month, credit -$1 * 1 month
        transition_fees = $1
    """
    period_months = period_months_for(renewal_period)
    renewal_end = add_months(renewal_start, period_months)

    recipients = list(recipients)
    adults, minors, has_business = partition_recipients(recipients, renewal_start)
    validate_counts(len(adults), len(minors))

    baseline = calculate_price_breakdown(
        rates,
        PriceCalculationInput(
            renewal_period=renewal_period,
            adult_recipient_count=len(adults),
            minor_recipient_count=len(minors),
            has_business_recipient=has_business,
        ),
    )

    transitions = find_transitions(minors, renewal_start, renewal_end, period_months)

    transition_fees = ZERO
    for order, transition in enumerate(transitions, start=1):
        adult_position = len(adults) + order
        if adult_position > INCLUDED_RECIPIENTS:
            transition.additional_adult_fee = to_money(slot_fee(rates, adult_position) * transition.months_as_adult)
        transition.minor_fee_credit = to_money(rates.minor_recipient_fee * transition.months_as_adult)
        transition_fees += transition.additional_adult_fee - transition.minor_fee_credit

    adjusted_total = baseline.total_for_period + transition_fees

    return RenewalPriceBreakdown(
        base_rate=baseline.base_rate,
        business_fee=baseline.business_fee,
        additional_recipient_fees=baseline.additional_recipient_fees,
        minor_fees=baseline.minor_fees,
        total_monthly=baseline.total_monthly,
        total_for_period=baseline.total_for_period,
        period_months=period_months,
        renewal_start=renewal_start,
        renewal_end=renewal_end,
        service_end_date=add_days(renewal_start, SERVICE_DAYS[RenewalPeriod(renewal_period)]),
        minor_transitions=transitions,
        transition_fees=to_money(transition_fees),
        adjusted_total_for_period=to_money(adjusted_total),
        adjusted_total_monthly=to_money(adjusted_total / period_months),
    )
