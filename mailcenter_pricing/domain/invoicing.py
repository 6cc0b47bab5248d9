"""Invoice line items derived from price breakdowns"""

from decimal import Decimal
from typing import List

from mailcenter_pricing.domain.models import (
    InvoiceLineItem,
    PriceBreakdown,
    RateConfiguration,
    RecipientComposition,
    RenewalPeriod,
    RenewalPriceBreakdown,
)
from mailcenter_pricing.domain.policy import INCLUDED_RECIPIENTS
from mailcenter_pricing.domain.pricing import slot_fee
from mailcenter_pricing.utils.money import ZERO, to_money

PERIOD_LABELS = {
    RenewalPeriod.THREE_MONTH: "3 Months",
    RenewalPeriod.SIX_MONTH: "6 Months",
    RenewalPeriod.TWELVE_MONTH: "12 Months",
}

ORDINALS = {4: "4th", 5: "5th", 6: "6th", 7: "7th"}


def build_line_items(
    breakdown: PriceBreakdown,
    composition: RecipientComposition,
    rates: RateConfiguration,
    renewal_period: RenewalPeriod,
) -> List[InvoiceLineItem]:
    """
    Itemize a breakdown for invoicing.

    Line items always sum to total_for_period, or to adjusted_total_for_period
    for a renewal breakdown.
    """
    months = breakdown.period_months
    items = [
        InvoiceLineItem(
            line_type="BASE_RATE",
            description=f"Base Rate ({PERIOD_LABELS[RenewalPeriod(renewal_period)]})",
            amount=breakdown.base_rate,
            months=months,
        )
    ]

    if breakdown.business_fee > ZERO:
        items.append(
            InvoiceLineItem(
                line_type="BUSINESS_FEE",
                description="Business Account Fee",
                amount=breakdown.business_fee,
                months=months,
            )
        )

    for position in range(INCLUDED_RECIPIENTS + 1, composition.adult_count + 1):
        amount = to_money(slot_fee(rates, position) * months)
        if amount > ZERO:
            items.append(
                InvoiceLineItem(
                    line_type=f"ADDITIONAL_RECIPIENT_{ORDINALS[position].upper()}",
                    description=f"{ORDINALS[position]} Recipient Fee",
                    amount=amount,
                    months=months,
                )
            )

    if breakdown.minor_fees > ZERO:
        count = composition.minor_count
        items.append(
            InvoiceLineItem(
                line_type="MINOR_FEE",
                description="Minor Recipient Fee" + (f" ({count})" if count > 1 else ""),
                amount=breakdown.minor_fees,
                months=months,
                quantity=count,
            )
        )

    if isinstance(breakdown, RenewalPriceBreakdown):
        for transition in breakdown.minor_transitions:
            turns = transition.turns_adult_date.isoformat()
            if transition.additional_adult_fee > ZERO:
                items.append(
                    InvoiceLineItem(
                        line_type="ADULT_TRANSITION_FEE",
                        description=f"{transition.recipient_name} turns 18 on {turns} (Prorated)",
                        amount=transition.additional_adult_fee,
                        months=transition.months_as_adult,
                    )
                )
            if transition.minor_fee_credit > ZERO:
                items.append(
                    InvoiceLineItem(
                        line_type="MINOR_FEE_CREDIT",
                        description=f"Minor fee credit: {transition.recipient_name} ({turns})",
                        amount=-transition.minor_fee_credit,
                        months=transition.months_as_adult,
                    )
                )

    return items


def line_items_total(items: List[InvoiceLineItem]) -> Decimal:
    return to_money(sum((item.amount for item in items), ZERO))
