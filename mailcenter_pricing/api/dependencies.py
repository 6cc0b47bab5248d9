"""Dependency injection for FastAPI endpoints"""

import uuid
from datetime import date
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from mailcenter_pricing.infrastructure.clients.invoicing import InvoicingClient
from mailcenter_pricing.infrastructure.database.session import get_db
from mailcenter_pricing.services.pricing_service import PricingService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_pricing_service(db: Session = Depends(get_db)) -> PricingService:
    return PricingService(db)


def get_invoicing_client() -> InvoicingClient:
    """Provide invoicing webhook client instance"""
    return InvoicingClient()


def get_today() -> date:
    """Calendar date used for the future-only edit rule and default renewal start"""
    return date.today()


def get_actor(x_user_id: Optional[str] = Header(None)) -> Optional[str]:
    """Identity recorded on rate changes, supplied by the upstream auth layer"""
    return x_user_id


def parse_uuid(value: str, label: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {label} ID format")
