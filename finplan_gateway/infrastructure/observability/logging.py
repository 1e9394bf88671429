"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from finplan_gateway.config import settings


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


def log_payoff_computed(
    request_id: str,
    action: str,
    total_months: int,
    total_interest: float,
    debt_count: int,
    duration_ms: float,
) -> None:
    """Log structured payoff outcome for analysis"""
    logging.info(
        "Payoff computed",
        extra={
            "request_id": request_id,
            "step": "payoff_complete",
            "action": action,
            "total_months": total_months,
            "total_interest": total_interest,
            "debt_count": debt_count,
            "duration_ms": duration_ms,
        },
    )


def log_permission_decision(
    request_id: str,
    member_id: str,
    check: str,
    outcome: bool,
    detail: str = "",
) -> None:
    """Log a household permission/limit decision"""
    logging.info(
        "Permission decision",
        extra={
            "request_id": request_id,
            "member_id": member_id,
            "step": "permission_check",
            "check": check,
            "outcome": "allowed" if outcome else "denied",
            "detail": detail,
        },
    )
