"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = "leisure-ledger"


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_settlement(
    entry_type: str,
    minutes: float,
    net_balance_before: float,
    net_balance_after: float,
    recovered: bool = False,
) -> None:
    """Log a settled transaction for audit"""
    logging.info(
        "Settlement applied",
        extra={
            "step": "settlement",
            "entry_type": entry_type,
            "minutes": round(minutes, 2),
            "net_balance_before": round(net_balance_before, 2),
            "net_balance_after": round(net_balance_after, 2),
            "recovered": recovered,
        },
    )


def log_recovery(action: str, mode: Optional[str], elapsed_seconds: int, remaining_seconds: int = 0) -> None:
    """Log what start-up recovery did with a persisted session"""
    logging.info(
        "Session recovery",
        extra={
            "step": "recovery",
            "action": action,
            "mode": mode,
            "elapsed_seconds": elapsed_seconds,
            "remaining_seconds": remaining_seconds,
        },
    )


def log_request(request_id: str, method: str, endpoint: str, status: int, duration_seconds: float) -> None:
    logging.info(
        f"{method} {endpoint} {status}",
        extra={
            "step": "request",
            "request_id": request_id,
            "status": status,
            "duration_ms": round(duration_seconds * 1000, 1),
        },
    )
