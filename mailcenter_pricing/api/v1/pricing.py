"""/v1/pricing - rate catalogue and price quote endpoints"""

import logging
import math
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.orm import Session

from mailcenter_pricing.api.dependencies import get_actor, get_request_id, get_today, parse_uuid
from mailcenter_pricing.api.v1.schemas import (
    PriceBreakdownResponse,
    PriceCalculationRequest,
    RateConfigurationRequest,
    RateConfigurationResponse,
    RateHistoryResponse,
)
from mailcenter_pricing.config import settings
from mailcenter_pricing.domain.exceptions import (
    InvalidPricingInputError,
    InvalidRateConfigurationError,
    RateConfigurationConflictError,
    RateConfigurationLockedError,
    RateConfigurationNotFoundError,
    RateNotConfiguredError,
)
from mailcenter_pricing.domain.models import PriceCalculationInput
from mailcenter_pricing.infrastructure.database.session import get_db, transaction
from mailcenter_pricing.infrastructure.observability.logging import log_rate_change
from mailcenter_pricing.services.pricing_service import PricingService

router = APIRouter()


def _not_configured() -> HTTPException:
    return HTTPException(status_code=404, detail="Pricing configuration not found")


@router.get("/pricing", response_model=RateConfigurationResponse)
def get_current_pricing(response: Response, db: Session = Depends(get_db)):
    """Current effective pricing configuration"""
    try:
        rates = PricingService(db).get_current_rates()
    except RateNotConfiguredError:
        raise _not_configured()

    # Rates rarely change
    max_age = settings.current_rate_max_age_seconds
    response.headers["Cache-Control"] = f"private, max-age={max_age}, stale-while-revalidate={max_age * 2}"
    return RateConfigurationResponse.from_domain(rates)


@router.get("/pricing/effective", response_model=RateConfigurationResponse)
def get_effective_pricing(
    on: date = Query(..., description="Calendar date (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
):
    """Pricing configuration that was in effect on a given date"""
    try:
        rates = PricingService(db).get_rates_for_date(on)
    except RateNotConfiguredError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return RateConfigurationResponse.from_domain(rates)


@router.get("/pricing/history", response_model=RateHistoryResponse)
def get_pricing_history(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    """Paginated rate history, newest first"""
    page_size = min(settings.max_page_size, limit or settings.default_page_size)
    configs, total = PricingService(db).get_rate_history(page, page_size)

    return RateHistoryResponse(
        data=[RateConfigurationResponse.from_domain(c) for c in configs],
        page=page,
        page_size=page_size,
        total_items=total,
        total_pages=math.ceil(total / page_size),
    )


@router.post("/pricing", response_model=RateConfigurationResponse, status_code=201)
def create_pricing(
    request_body: RateConfigurationRequest,
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[str] = Depends(get_actor),
):
    """
    Create a new pricing configuration.

    The current configuration is closed the day before the new start date in
    the same transaction, so exactly one configuration stays open.
    """
    request_id = get_request_id(request)

    try:
        with transaction(db):
            config = PricingService(db).create_rates(request_body.to_draft(), created_by=actor)
    except InvalidRateConfigurationError as e:
        logging.warning(f"Rejected pricing configuration: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail={"field": e.field, "message": e.message})
    except RateConfigurationConflictError as e:
        logging.warning(f"Concurrent pricing change: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail=str(e))

    log_rate_change(request_id, "create", str(config.id), config.start_date.isoformat(), actor)
    return RateConfigurationResponse.from_domain(config)


@router.put("/pricing/{rate_id}", response_model=RateConfigurationResponse)
def update_pricing(
    rate_id: str,
    request_body: RateConfigurationRequest,
    request: Request,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
    actor: Optional[str] = Depends(get_actor),
):
    """Update a pricing configuration whose start date is still in the future"""
    request_id = get_request_id(request)
    rate_uuid = parse_uuid(rate_id, "pricing configuration")

    try:
        with transaction(db):
            config = PricingService(db).replace_rates(rate_uuid, request_body.to_draft(), today)
    except RateConfigurationNotFoundError:
        raise _not_configured()
    except RateConfigurationLockedError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except InvalidRateConfigurationError as e:
        logging.warning(f"Rejected pricing update: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail={"field": e.field, "message": e.message})

    log_rate_change(request_id, "replace", str(config.id), config.start_date.isoformat(), actor)
    return RateConfigurationResponse.from_domain(config)


@router.delete("/pricing/{rate_id}")
def delete_pricing(
    rate_id: str,
    request: Request,
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
    actor: Optional[str] = Depends(get_actor),
):
    """Delete a future pricing configuration, re-opening the previous one if needed"""
    request_id = get_request_id(request)
    rate_uuid = parse_uuid(rate_id, "pricing configuration")

    try:
        with transaction(db):
            service = PricingService(db)
            start_date = service.rates.get_by_id(rate_uuid).start_date
            service.delete_rates(rate_uuid, today)
    except RateConfigurationNotFoundError:
        raise _not_configured()
    except RateConfigurationLockedError as e:
        raise HTTPException(status_code=400, detail=str(e))

    log_rate_change(request_id, "delete", str(rate_uuid), start_date.isoformat(), actor)
    return {"deleted": True}


@router.post("/pricing/calculate", response_model=PriceBreakdownResponse)
def calculate_pricing(request_body: PriceCalculationRequest, db: Session = Depends(get_db)):
    """Quote a renewal term from recipient counts at the current rates"""
    service = PricingService(db)
    try:
        rates = service.get_current_rates()
        breakdown = service.calculate_price_breakdown(
            rates,
            PriceCalculationInput(
                renewal_period=request_body.renewal_period,
                adult_recipient_count=request_body.adult_recipient_count,
                minor_recipient_count=request_body.minor_recipient_count,
                has_business_recipient=request_body.has_business_recipient,
            ),
        )
    except RateNotConfiguredError:
        raise _not_configured()
    except InvalidPricingInputError as e:
        raise HTTPException(status_code=422, detail={"field": e.field, "message": e.message})

    return PriceBreakdownResponse.from_domain(breakdown)
