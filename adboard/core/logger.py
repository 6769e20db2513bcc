"""
Application logging and audit trail.
Every module logs through the shared `logger`; request-scoped code wraps it with the correlation id.
"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from adboard.core.config import settings


class CorrelationFormatter(logging.Formatter):
    """Formatter tolerating records without a correlation id."""

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = "-"
        return super().format(record)


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Configures the `adboard` logger hierarchy once and returns the root application logger."""
    app_logger = logging.getLogger("adboard")
    app_logger.setLevel(getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO))

    if not app_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(CorrelationFormatter(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(correlation_id)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        app_logger.addHandler(handler)
        app_logger.propagate = False

    # Reduce noise from external libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    return app_logger


logger = setup_logging()
_audit_logger = logging.getLogger("adboard.audit")


def get_logger_with_correlation(correlation_id: str) -> logging.LoggerAdapter:
    """Returns a logger adapter that stamps every record with the request correlation id."""
    return logging.LoggerAdapter(logger, {"correlation_id": correlation_id})


def audit_log(action: str, user: str, resource: str, details: Optional[Dict[str, Any]] = None) -> None:
    """
    Emits an immutable audit record for state-changing business operations.
    Records are single-line JSON so they can be shipped to any log sink.
    """
    entry: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "action": action,
        "user": user,
        "resource": resource,
        "details": details or {},
    }
    correlation_id = (details or {}).get("correlation_id", "-")
    _audit_logger.info(json.dumps(entry, default=str), extra={"correlation_id": correlation_id})
