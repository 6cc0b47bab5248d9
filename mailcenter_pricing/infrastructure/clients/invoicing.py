"""Invoicing webhook client with exponential backoff retry logic"""

import asyncio
import logging
from typing import Any, Dict, List

import httpx

from mailcenter_pricing.config import settings
from mailcenter_pricing.domain.exceptions import InvoicingAPIError
from mailcenter_pricing.domain.models import InvoiceLineItem, RenewalPriceBreakdown
from mailcenter_pricing.infrastructure.observability.metrics import (
    invoicing_failure_counter,
    invoicing_latency_histogram,
)
from mailcenter_pricing.utils.money import format_amount

logger = logging.getLogger(__name__)


def build_renewal_payload(
    account_id: str,
    renewal_period: str,
    breakdown: RenewalPriceBreakdown,
    line_items: List[InvoiceLineItem],
) -> Dict[str, Any]:
    """Event body for the invoicing service. Amounts are two-place decimal strings."""
    return {
        "event": "RENEWAL_PRICED",
        "account_id": account_id,
        "renewal_period": renewal_period,
        "period_start": breakdown.renewal_start.isoformat(),
        "period_end": breakdown.service_end_date.isoformat(),
        "period_months": breakdown.period_months,
        "total_amount": format_amount(breakdown.adjusted_total_for_period),
        "line_items": [
            {
                "line_type": item.line_type,
                "description": item.description,
                "quantity": item.quantity,
                "months": item.months,
                "amount": format_amount(item.amount),
                "sort_order": index,
            }
            for index, item in enumerate(line_items)
        ],
    }


class InvoicingClient:
    """Client for handing renewal line items to the invoicing service"""

    def __init__(self, webhook_url: str | None = None):
        self.webhook_url = webhook_url or settings.invoicing_webhook_url
        self.max_retries = settings.webhook_max_retries
        self.backoff_base = settings.webhook_backoff_base
        self.timeout = settings.http_timeout_seconds

    async def send_line_items(self, payload: Dict[str, Any]) -> None:
        """
        Deliver a priced renewal to invoicing with retry logic.

        Retry strategy:
        - Exponential backoff: 1s, 2s, 4s, 8s (base * 2^attempt)
        - Retries on 5xx/4xx status errors and network failures
        - Raises InvoicingAPIError once retries are exhausted
        """
        attempt = 0
        async with httpx.AsyncClient() as client:
            while True:
                try:
                    with invoicing_latency_histogram.time():
                        response = await client.post(
                            self.webhook_url,
                            json=payload,
                            timeout=self.timeout,
                        )
                        response.raise_for_status()
                        return

                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    attempt += 1
                    invoicing_failure_counter.inc()

                    if attempt >= self.max_retries:
                        logger.error(
                            f"Invoicing webhook failed after {attempt} attempts: {e}",
                            extra={"account_id": payload.get("account_id")},
                        )
                        raise InvoicingAPIError(str(e)) from e

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)
