"""Recipient composition analysis for pricing"""

from datetime import date
from typing import Iterable, List, Tuple

from mailcenter_pricing.domain.models import RecipientComposition, RecipientSnapshot, RecipientType
from mailcenter_pricing.domain.policy import AGE_OF_MAJORITY
from mailcenter_pricing.utils.date_utils import age_on


def is_minor(recipient: RecipientSnapshot, reference_date: date) -> bool:
    """A person without a birthdate is treated as an adult"""
    if recipient.recipient_type != RecipientType.PERSON or recipient.birthdate is None:
        return False
    return age_on(recipient.birthdate, reference_date) < AGE_OF_MAJORITY


def partition_recipients(
    recipients: Iterable[RecipientSnapshot],
    reference_date: date,
) -> Tuple[List[RecipientSnapshot], List[RecipientSnapshot], bool]:
    """
    Split recipients into (adults, minors, has_business_recipient) in one ordered pass.

    Business recipient rules:
    - First business: establishes business account status, covered by the flat
      business fee, not counted as a recipient
    - Additional businesses (2nd+): counted as adults for slot pricing
    """
    adults: List[RecipientSnapshot] = []
    minors: List[RecipientSnapshot] = []
    business_seen = 0

    for recipient in recipients:
        if recipient.recipient_type == RecipientType.BUSINESS:
            business_seen += 1
            if business_seen > 1:
                adults.append(recipient)
        elif is_minor(recipient, reference_date):
            minors.append(recipient)
        else:
            adults.append(recipient)

    return adults, minors, business_seen > 0


def analyze_recipients(recipients: Iterable[RecipientSnapshot], reference_date: date) -> RecipientComposition:
    """Classify recipients into adult/minor/business counts as of reference_date"""
    adults, minors, has_business = partition_recipients(recipients, reference_date)
    return RecipientComposition(
        adult_count=len(adults),
        minor_count=len(minors),
        has_business_recipient=has_business,
        total_count=len(adults) + len(minors),
    )
