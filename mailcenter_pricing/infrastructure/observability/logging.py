"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from mailcenter_pricing.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_rate_change(
    request_id: str,
    action: str,
    rate_id: str,
    start_date: str,
    created_by: Optional[str] = None,
) -> None:
    """Log rate catalogue writes for the pricing audit trail"""
    logging.info(
        "Rate configuration changed",
        extra={
            "request_id": request_id,
            "step": "rate_change",
            "action": action,
            "rate_id": rate_id,
            "start_date": start_date,
            "created_by": created_by,
        },
    )


def log_renewal_quote(
    request_id: str,
    account_id: str,
    renewal_period: str,
    adjusted_total: str,
    transition_count: int,
    duration_ms: float,
) -> None:
    """Log structured renewal quote outcome"""
    logging.info(
        "Renewal quote completed",
        extra={
            "request_id": request_id,
            "account_id": account_id,
            "step": "renewal_quote",
            "renewal_period": renewal_period,
            "adjusted_total_for_period": adjusted_total,
            "minor_transitions": transition_count,
            "duration_ms": duration_ms,
        },
    )


def log_rate_audit(request_id: str, audited: int, flagged: int) -> None:
    logging.info(
        "Rate audit completed",
        extra={
            "request_id": request_id,
            "step": "rate_audit",
            "accounts_audited": audited,
            "accounts_flagged": flagged,
        },
    )
