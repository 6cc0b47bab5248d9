"""Domain models - pure Python dataclasses representing pricing entities"""

import enum
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional


class RenewalPeriod(str, enum.Enum):
    """Billing term selected for an account"""

    THREE_MONTH = "THREE_MONTH"
    SIX_MONTH = "SIX_MONTH"
    TWELVE_MONTH = "TWELVE_MONTH"


class RecipientType(str, enum.Enum):
    PERSON = "PERSON"
    BUSINESS = "BUSINESS"


class AuditFlagType(str, enum.Enum):
    UNDERCHARGED = "UNDERCHARGED"
    OVERCHARGED = "OVERCHARGED"
    RECIPIENT_OVERFLOW = "RECIPIENT_OVERFLOW"
    NO_RATE = "NO_RATE"


@dataclass(frozen=True)
class RateConfiguration:
    """
    Fees effective over [start_date, end_date].

    end_date is None for the single currently effective configuration.
    Period base rates are stored, never derived at calculation time.
    """

    start_date: date
    end_date: Optional[date]
    base_rate_3mo: Decimal
    base_rate_6mo: Decimal
    base_rate_12mo: Decimal
    rate_4th_adult: Decimal
    rate_5th_adult: Decimal
    rate_6th_adult: Decimal
    rate_7th_adult: Decimal
    business_account_fee: Decimal
    minor_recipient_fee: Decimal
    key_deposit: Decimal
    id: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_current(self) -> bool:
        return self.end_date is None

    def contains(self, day: date) -> bool:
        """True when the configuration is in effect on day"""
        if day < self.start_date:
            return False
        return self.end_date is None or self.end_date >= day

    def slot_rates(self) -> List[Decimal]:
        """Monthly surcharges for the 4th, 5th, 6th and 7th adult slots"""
        return [
            self.rate_4th_adult,
            self.rate_5th_adult,
            self.rate_6th_adult,
            self.rate_7th_adult,
        ]


@dataclass(frozen=True)
class RateConfigurationDraft:
    """Manager input for creating or replacing a rate configuration"""

    start_date: date
    base_monthly_rate: Decimal
    rate_4th_adult: Decimal
    rate_5th_adult: Decimal
    rate_6th_adult: Decimal
    rate_7th_adult: Decimal
    business_account_fee: Decimal
    minor_recipient_fee: Decimal
    key_deposit: Decimal
    notes: Optional[str] = None


@dataclass(frozen=True)
class RecipientSnapshot:
    """Point-in-time view of a recipient as read from account management"""

    recipient_type: RecipientType
    birthdate: Optional[date] = None
    id: Optional[str] = None
    name: str = ""


@dataclass(frozen=True)
class RecipientComposition:
    """Adult/minor/business counts as of a reference date"""

    adult_count: int
    minor_count: int
    has_business_recipient: bool
    total_count: int


@dataclass(frozen=True)
class PriceCalculationInput:
    renewal_period: RenewalPeriod
    adult_recipient_count: int
    minor_recipient_count: int
    has_business_recipient: bool


@dataclass
class PriceBreakdown:
    """Itemized charge for one renewal term"""

    base_rate: Decimal
    business_fee: Decimal
    additional_recipient_fees: Decimal
    minor_fees: Decimal
    total_monthly: Decimal
    total_for_period: Decimal
    period_months: int


@dataclass
class MinorTransition:
    """A minor whose 18th birthday falls inside the renewal window"""

    recipient_id: Optional[str]
    recipient_name: str
    turns_adult_date: date
    months_as_minor: int
    months_as_adult: int
    additional_adult_fee: Decimal = Decimal("0.00")
    minor_fee_credit: Decimal = Decimal("0.00")


@dataclass
class RenewalPriceBreakdown(PriceBreakdown):
    """Price breakdown adjusted for minors turning 18 mid-term"""

    renewal_start: Optional[date] = None
    renewal_end: Optional[date] = None
    service_end_date: Optional[date] = None
    minor_transitions: List[MinorTransition] = field(default_factory=list)
    transition_fees: Decimal = Decimal("0.00")
    adjusted_total_for_period: Decimal = Decimal("0.00")
    adjusted_total_monthly: Decimal = Decimal("0.00")


@dataclass(frozen=True)
class InvoiceLineItem:
    """Single line of an invoice built from a breakdown"""

    line_type: str
    description: str
    amount: Decimal
    months: int
    quantity: int = 1


@dataclass
class RateAuditResult:
    """Charged monthly rate compared with the rate that should apply"""

    rate_date: date
    current_rate: Decimal
    expected_rate: Optional[Decimal]
    discrepancy: Decimal
    flag_type: Optional[AuditFlagType]
    note: Optional[str]
    recipient_count: int

    @property
    def flagged(self) -> bool:
        return self.flag_type is not None
