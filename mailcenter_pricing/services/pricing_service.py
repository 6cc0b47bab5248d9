"""Pricing service - the caller-facing surface of the rate & renewal pricing engine.

Route handlers stay thin: they translate HTTP into calls on this service,
which reads rate history and account recipients through the repositories and
hands them to the pure domain calculators. Nothing here commits; callers own
the transaction.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from mailcenter_pricing.domain import composition, pricing, renewal
from mailcenter_pricing.domain.audit import audit_account_rate, rate_date_for
from mailcenter_pricing.domain.exceptions import RateNotConfiguredError
from mailcenter_pricing.domain.invoicing import build_line_items
from mailcenter_pricing.domain.models import (
    InvoiceLineItem,
    PriceBreakdown,
    PriceCalculationInput,
    RateAuditResult,
    RateConfiguration,
    RateConfigurationDraft,
    RecipientComposition,
    RecipientSnapshot,
    RenewalPeriod,
    RenewalPriceBreakdown,
)
from mailcenter_pricing.domain.rates import select_effective
from mailcenter_pricing.infrastructure.database.repositories import AccountRepository, RateRepository
from mailcenter_pricing.infrastructure.observability.metrics import (
    minor_transition_counter,
    rate_lookup_miss_counter,
    record_quote,
    record_rate_change,
)


@dataclass
class RenewalQuote:
    """Renewal breakdown for one account plus the invoice lines built from it"""

    account_id: uuid.UUID
    renewal_period: RenewalPeriod
    rates: RateConfiguration
    composition: RecipientComposition
    breakdown: RenewalPriceBreakdown
    line_items: List[InvoiceLineItem]


@dataclass
class AccountAudit:
    account_id: uuid.UUID
    mailbox_number: int
    rate_override: bool
    result: RateAuditResult


class PricingService:
    """Service for rate lookups, quotes and renewal billing"""

    def __init__(self, db: Session):
        self.db = db
        self.rates = RateRepository(db)
        self.accounts = AccountRepository(db)

    # Rate catalogue

    def get_current_rates(self) -> RateConfiguration:
        try:
            return self.rates.get_current()
        except RateNotConfiguredError:
            rate_lookup_miss_counter.labels(lookup="current").inc()
            raise

    def get_rates_for_date(self, day: date) -> RateConfiguration:
        """Rates that were live on day, so historical renewals bill at historical prices"""
        try:
            return self.rates.get_effective_at(day)
        except RateNotConfiguredError:
            rate_lookup_miss_counter.labels(lookup="effective").inc()
            raise

    def get_rate_history(self, page: int, limit: int) -> Tuple[List[RateConfiguration], int]:
        return self.rates.get_history(page, limit)

    def create_rates(self, draft: RateConfigurationDraft, created_by: Optional[str] = None) -> RateConfiguration:
        config = self.rates.create(draft, created_by=created_by)
        record_rate_change("create")
        return config

    def replace_rates(self, rate_id: uuid.UUID, draft: RateConfigurationDraft, today: date) -> RateConfiguration:
        config = self.rates.replace(rate_id, draft, today)
        record_rate_change("replace")
        return config

    def delete_rates(self, rate_id: uuid.UUID, today: date) -> None:
        self.rates.delete(rate_id, today)
        record_rate_change("delete")

    # Calculations

    @staticmethod
    def analyze_recipients(recipients: Iterable[RecipientSnapshot], reference_date: date) -> RecipientComposition:
        return composition.analyze_recipients(recipients, reference_date)

    @staticmethod
    def calculate_price_breakdown(rates: RateConfiguration, calc_input: PriceCalculationInput) -> PriceBreakdown:
        breakdown = pricing.calculate_price_breakdown(rates, calc_input)
        record_quote("price", calc_input.renewal_period)
        return breakdown

    @staticmethod
    def calculate_renewal_price_breakdown(
        rates: RateConfiguration,
        renewal_period: RenewalPeriod,
        recipients: Iterable[RecipientSnapshot],
        renewal_start: date,
    ) -> RenewalPriceBreakdown:
        breakdown = renewal.calculate_renewal_price_breakdown(rates, renewal_period, recipients, renewal_start)
        record_quote("renewal", renewal_period)
        minor_transition_counter.inc(len(breakdown.minor_transitions))
        return breakdown

    # Account-level operations

    def quote_renewal(
        self,
        account_id: uuid.UUID,
        renewal_period: RenewalPeriod,
        renewal_start: date,
    ) -> RenewalQuote:
        """Renewal breakdown for an account's active recipients at the rates live on renewal_start"""
        self.accounts.get_account(account_id)
        recipients = self.accounts.get_active_recipients(account_id)
        rates = self.get_rates_for_date(renewal_start)

        breakdown = self.calculate_renewal_price_breakdown(rates, renewal_period, recipients, renewal_start)
        comp = self.analyze_recipients(recipients, renewal_start)
        return RenewalQuote(
            account_id=account_id,
            renewal_period=renewal_period,
            rates=rates,
            composition=comp,
            breakdown=breakdown,
            line_items=build_line_items(breakdown, comp, rates, renewal_period),
        )

    def audit_account(self, account_id: uuid.UUID, today: date) -> AccountAudit:
        account = self.accounts.get_account(account_id)
        rate_date = rate_date_for(account.start_date, account.last_renewal_date)
        try:
            rates = self.get_rates_for_date(rate_date)
        except RateNotConfiguredError:
            rates = None
        return self._audit(account, rates, rate_date, today)

    def audit_accounts(self, statuses: List[str], today: date) -> List[AccountAudit]:
        """Audit every account in the given statuses against one load of rate history"""
        history = self.rates.list_all()
        audits = []
        for account in self.accounts.get_accounts_by_status(statuses):
            rate_date = rate_date_for(account.start_date, account.last_renewal_date)
            try:
                rates = select_effective(history, rate_date)
            except RateNotConfiguredError:
                rate_lookup_miss_counter.labels(lookup="effective").inc()
                rates = None
            audits.append(self._audit(account, rates, rate_date, today))
        return audits

    def _audit(self, account, rates: Optional[RateConfiguration], rate_date: date, today: date) -> AccountAudit:
        recipients = self.accounts.get_active_recipients(account.id)
        comp = self.analyze_recipients(recipients, today)
        result = audit_account_rate(
            current_rate=account.current_rate,
            rate_override=account.rate_override,
            composition=comp,
            renewal_period=account.renewal_period,
            rate_date=rate_date,
            rates=rates,
        )
        return AccountAudit(
            account_id=account.id,
            mailbox_number=account.mailbox_number,
            rate_override=bool(account.rate_override),
            result=result,
        )
