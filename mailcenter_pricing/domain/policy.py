"""Mail-center pricing policy constants"""

from decimal import Decimal

from mailcenter_pricing.domain.models import RenewalPeriod

# Adult recipients covered by the base rate
INCLUDED_RECIPIENTS = 3

# Hard cap on recipients per mailbox (included + 4th..7th slots)
MAX_RECIPIENTS = 7

AGE_OF_MAJORITY = 18

# Months used for every fee multiplication
PERIOD_MONTHS = {
    RenewalPeriod.THREE_MONTH: 3,
    RenewalPeriod.SIX_MONTH: 6,
    RenewalPeriod.TWELVE_MONTH: 12,
}

# Coverage granted by each term. Twelve-month term carries a 30-day bonus month.
SERVICE_DAYS = {
    RenewalPeriod.THREE_MONTH: 90,
    RenewalPeriod.SIX_MONTH: 180,
    RenewalPeriod.TWELVE_MONTH: 365 + 30,
}

MIN_RATE = Decimal("0.00")
MAX_RATE = Decimal("999.99")

MAX_NOTES_LENGTH = 500

# Charged vs expected monthly rate difference tolerated by the rate audit
AUDIT_TOLERANCE = Decimal("0.01")
