"""POST /v1/pricing/renewal - prorated renewal quote for an account"""

import time
import logging
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, BackgroundTasks, Request
from sqlalchemy.orm import Session

from mailcenter_pricing.api.v1.schemas import (
    InvoiceLineItemSchema,
    MinorTransitionSchema,
    RenewalBreakdownSchema,
    RenewalQuoteRequest,
    RenewalQuoteResponse,
)
from mailcenter_pricing.api.dependencies import get_invoicing_client, get_request_id, get_today, parse_uuid
from mailcenter_pricing.infrastructure.database.session import get_db
from mailcenter_pricing.infrastructure.clients.invoicing import InvoicingClient, build_renewal_payload
from mailcenter_pricing.domain.exceptions import (
    AccountNotFoundError,
    InvalidPricingInputError,
    RateNotConfiguredError,
)
from mailcenter_pricing.infrastructure.observability.logging import log_renewal_quote
from mailcenter_pricing.services.pricing_service import PricingService

router = APIRouter()


@router.post("/pricing/renewal", response_model=RenewalQuoteResponse)
def quote_renewal(
    request_body: RenewalQuoteRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
    invoicing_client: InvoicingClient = Depends(get_invoicing_client),
):
    """
    Price an account's renewal, accounting for minors turning 18 mid-term.

    Flow:
    1. Load the account's active recipients
    2. Resolve the rates in effect on the renewal start date
    3. Run renewal proration and itemize the result
    4. Optionally hand line items to invoicing in the background
    """
    start_time = time.time()
    request_id = get_request_id(request)
    account_uuid = parse_uuid(request_body.account_id, "account")
    renewal_start = request_body.renewal_start_date or today

    try:
        quote = PricingService(db).quote_renewal(account_uuid, request_body.renewal_period, renewal_start)

    except AccountNotFoundError:
        raise HTTPException(status_code=404, detail="Account not found")

    except RateNotConfiguredError as e:
        logging.error(f"No rates for renewal: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=404, detail=str(e))

    except InvalidPricingInputError as e:
        logging.warning(f"Renewal outside policy: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail={"field": e.field, "message": e.message})

    breakdown = quote.breakdown
    period = request_body.renewal_period.value

    if request_body.send_to_invoicing:
        background_tasks.add_task(
            invoicing_client.send_line_items,
            build_renewal_payload(str(account_uuid), period, breakdown, quote.line_items),
        )

    duration_ms = (time.time() - start_time) * 1000
    log_renewal_quote(
        request_id,
        str(account_uuid),
        period,
        str(breakdown.adjusted_total_for_period),
        len(breakdown.minor_transitions),
        duration_ms,
    )

    return RenewalQuoteResponse(
        account_id=str(account_uuid),
        renewal_period=request_body.renewal_period,
        renewal_start_date=breakdown.renewal_start,
        renewal_end_date=breakdown.renewal_end,
        service_end_date=breakdown.service_end_date,
        rate_id=str(quote.rates.id),
        breakdown=RenewalBreakdownSchema(
            base_rate=breakdown.base_rate,
            business_fee=breakdown.business_fee,
            additional_recipient_fees=breakdown.additional_recipient_fees,
            minor_fees=breakdown.minor_fees,
            total_monthly=breakdown.total_monthly,
            total_for_period=breakdown.total_for_period,
            period_months=breakdown.period_months,
            transition_fees=breakdown.transition_fees,
            adjusted_total_for_period=breakdown.adjusted_total_for_period,
            adjusted_total_monthly=breakdown.adjusted_total_monthly,
        ),
        minor_transitions=[MinorTransitionSchema.from_domain(t) for t in breakdown.minor_transitions],
        line_items=[InvoiceLineItemSchema.from_domain(i) for i in quote.line_items],
    )
