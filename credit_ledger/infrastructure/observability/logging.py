"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Sequence
from pythonjsonlogger import jsonlogger

from credit_ledger.config import settings
from credit_ledger.domain.models import LifecycleEvent


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


def log_recalculation(
    contract_id: str,
    trigger: str,
    changed_installments: int,
    changed_fields: Sequence[str],
    events: Sequence[LifecycleEvent],
    duration_ms: float,
) -> None:
    """Log structured recalculation outcome for analysis"""
    logging.info(
        "Recalculation completed",
        extra={
            "contract_id": contract_id,
            "step": "recalculation_complete",
            "trigger": trigger,
            "changed_installments": changed_installments,
            "changed_fields": list(changed_fields),
            "events": [event.type.value for event in events],
            "duration_ms": duration_ms,
        },
    )


def log_lifecycle_event(event: LifecycleEvent) -> None:
    logging.info(
        f"Lifecycle event {event.type.value}",
        extra={
            "contract_id": str(event.contract_id),
            "step": "lifecycle_event",
            "event_type": event.type.value,
            "payload": event.payload,
        },
    )
