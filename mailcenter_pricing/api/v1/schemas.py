"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field, model_validator
from datetime import date
from decimal import Decimal
from typing import Annotated, List, Optional

from mailcenter_pricing.domain.models import (
    AuditFlagType,
    InvoiceLineItem,
    MinorTransition,
    PriceBreakdown,
    RateConfiguration,
    RateConfigurationDraft,
    RenewalPeriod,
)
from mailcenter_pricing.domain.policy import MAX_NOTES_LENGTH, MAX_RATE, MAX_RECIPIENTS, MIN_RATE

Amount = Annotated[Decimal, Field(ge=MIN_RATE, le=MAX_RATE, decimal_places=2)]


class RateConfigurationRequest(BaseModel):
    """Request body for POST /v1/pricing and PUT /v1/pricing/{rate_id}"""

    start_date: date
    base_monthly_rate: Decimal = Field(..., gt=0, le=MAX_RATE, decimal_places=2)
    rate_4th_adult: Amount
    rate_5th_adult: Amount
    rate_6th_adult: Amount
    rate_7th_adult: Amount
    business_account_fee: Amount
    minor_recipient_fee: Amount
    key_deposit: Amount
    notes: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH)

    def to_draft(self) -> RateConfigurationDraft:
        return RateConfigurationDraft(**self.model_dump())


class RateConfigurationResponse(BaseModel):
    """Rate configuration as returned by the API"""

    id: str
    start_date: date
    end_date: Optional[date] = None  # None = current effective rate
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
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_domain(cls, config: RateConfiguration) -> "RateConfigurationResponse":
        return cls(
            id=str(config.id),
            start_date=config.start_date,
            end_date=config.end_date,
            base_rate_3mo=config.base_rate_3mo,
            base_rate_6mo=config.base_rate_6mo,
            base_rate_12mo=config.base_rate_12mo,
            rate_4th_adult=config.rate_4th_adult,
            rate_5th_adult=config.rate_5th_adult,
            rate_6th_adult=config.rate_6th_adult,
            rate_7th_adult=config.rate_7th_adult,
            business_account_fee=config.business_account_fee,
            minor_recipient_fee=config.minor_recipient_fee,
            key_deposit=config.key_deposit,
            notes=config.notes,
            created_by=config.created_by,
            created_at=config.created_at.isoformat() if config.created_at else None,
        )


class RateHistoryResponse(BaseModel):
    """Response for GET /v1/pricing/history"""

    data: List[RateConfigurationResponse]
    page: int
    page_size: int
    total_items: int
    total_pages: int


class PriceCalculationRequest(BaseModel):
    """Request body for POST /v1/pricing/calculate"""

    renewal_period: RenewalPeriod
    adult_recipient_count: int = Field(..., ge=1, le=MAX_RECIPIENTS, description="At least one adult")
    minor_recipient_count: int = Field(0, ge=0, le=MAX_RECIPIENTS)
    has_business_recipient: bool = False

    @model_validator(mode="after")
    def check_total(self) -> "PriceCalculationRequest":
        if self.adult_recipient_count + self.minor_recipient_count > MAX_RECIPIENTS:
            raise ValueError(f"Total recipients cannot exceed {MAX_RECIPIENTS}")
        return self


class PriceBreakdownResponse(BaseModel):
    base_rate: Decimal
    business_fee: Decimal
    additional_recipient_fees: Decimal
    minor_fees: Decimal
    total_monthly: Decimal
    total_for_period: Decimal
    period_months: int

    @classmethod
    def from_domain(cls, breakdown: PriceBreakdown) -> "PriceBreakdownResponse":
        return cls(
            base_rate=breakdown.base_rate,
            business_fee=breakdown.business_fee,
            additional_recipient_fees=breakdown.additional_recipient_fees,
            minor_fees=breakdown.minor_fees,
            total_monthly=breakdown.total_monthly,
            total_for_period=breakdown.total_for_period,
            period_months=breakdown.period_months,
        )


class RenewalQuoteRequest(BaseModel):
    """Request body for POST /v1/pricing/renewal"""

    account_id: str = Field(..., min_length=1)
    renewal_period: RenewalPeriod
    renewal_start_date: Optional[date] = Field(None, description="Defaults to today")
    send_to_invoicing: bool = False


class RenewalBreakdownSchema(PriceBreakdownResponse):
    transition_fees: Decimal
    adjusted_total_for_period: Decimal
    adjusted_total_monthly: Decimal


class MinorTransitionSchema(BaseModel):
    recipient_id: Optional[str] = None
    recipient_name: str
    turns_adult_date: date
    months_as_minor: int
    months_as_adult: int
    additional_adult_fee: Decimal
    minor_fee_credit: Decimal

    @classmethod
    def from_domain(cls, transition: MinorTransition) -> "MinorTransitionSchema":
        return cls(**transition.__dict__)


class InvoiceLineItemSchema(BaseModel):
    line_type: str
    description: str
    quantity: int
    months: int
    amount: Decimal

    @classmethod
    def from_domain(cls, item: InvoiceLineItem) -> "InvoiceLineItemSchema":
        return cls(
            line_type=item.line_type,
            description=item.description,
            quantity=item.quantity,
            months=item.months,
            amount=item.amount,
        )


class RenewalQuoteResponse(BaseModel):
    """Response for POST /v1/pricing/renewal"""

    account_id: str
    renewal_period: RenewalPeriod
    renewal_start_date: date
    renewal_end_date: date
    service_end_date: date
    rate_id: str
    breakdown: RenewalBreakdownSchema
    minor_transitions: List[MinorTransitionSchema]
    line_items: List[InvoiceLineItemSchema]


class RateAuditItem(BaseModel):
    account_id: str
    mailbox_number: int
    rate_date: date
    recipient_count: int
    current_rate: Decimal
    expected_rate: Optional[Decimal] = None
    discrepancy: Decimal
    audit_flag: bool
    audit_flag_type: Optional[AuditFlagType] = None
    audit_note: Optional[str] = None


class RateAuditSummary(BaseModel):
    """Response for GET /v1/accounts/rate-audit"""

    total_accounts: int
    accounts_flagged: int
    accounts_with_override: int
    accounts_ok: int
    results: List[RateAuditItem]
