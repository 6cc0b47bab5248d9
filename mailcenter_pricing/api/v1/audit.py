"""/v1/accounts rate audit endpoints"""

from datetime import date
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from mailcenter_pricing.api.dependencies import get_pricing_service, get_request_id, get_today, parse_uuid
from mailcenter_pricing.api.v1.schemas import RateAuditItem, RateAuditSummary
from mailcenter_pricing.domain.exceptions import AccountNotFoundError
from mailcenter_pricing.infrastructure.observability.logging import log_rate_audit
from mailcenter_pricing.services.pricing_service import AccountAudit, PricingService

router = APIRouter()

DEFAULT_AUDIT_STATUSES = ["ACTIVE", "HOLD"]


def _to_item(audit: AccountAudit) -> RateAuditItem:
    result = audit.result
    return RateAuditItem(
        account_id=str(audit.account_id),
        mailbox_number=audit.mailbox_number,
        rate_date=result.rate_date,
        recipient_count=result.recipient_count,
        current_rate=result.current_rate,
        expected_rate=result.expected_rate,
        discrepancy=result.discrepancy,
        audit_flag=result.flagged,
        audit_flag_type=result.flag_type,
        audit_note=result.note,
    )


@router.get("/accounts/rate-audit", response_model=RateAuditSummary)
def audit_account_rates(
    request: Request,
    status: List[str] = Query(DEFAULT_AUDIT_STATUSES),
    today: date = Depends(get_today),
    service: PricingService = Depends(get_pricing_service),
):
    """
    Compare every account's charged monthly rate with the rate its recipients
    imply at the pricing in effect on its last renewal.
    """
    audits = service.audit_accounts(status, today)
    items = [_to_item(a) for a in audits]

    flagged = sum(1 for item in items if item.audit_flag)
    with_override = sum(1 for a in audits if a.rate_override)
    # Overridden accounts are never flagged for a discrepancy
    ok = sum(1 for a in audits if not a.result.flagged and not a.rate_override)

    log_rate_audit(get_request_id(request), len(items), flagged)

    return RateAuditSummary(
        total_accounts=len(items),
        accounts_flagged=flagged,
        accounts_with_override=with_override,
        accounts_ok=ok,
        results=items,
    )


@router.get("/accounts/{account_id}/rate-audit", response_model=RateAuditItem)
def audit_single_account(
    account_id: str,
    today: date = Depends(get_today),
    service: PricingService = Depends(get_pricing_service),
):
    """Rate audit for one account"""
    account_uuid = parse_uuid(account_id, "account")
    try:
        audit = service.audit_account(account_uuid, today)
    except AccountNotFoundError:
        raise HTTPException(status_code=404, detail="Account not found")
    return _to_item(audit)
