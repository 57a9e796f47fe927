"""
Logging configuration.

JSON lines in production, plain text while developing. Service modules log
under the ``herdcycle`` namespace and attach the herd record they act on
(``farm_id``, ``tag_number``, ``cow_id``) through ``extra=``; the JSON
formatter lifts those onto the top level of each line.
"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from herdcycle.config import settings

PACKAGE_LOGGER = "herdcycle"
HERD_FIELDS = ("farm_id", "tag_number", "cow_id")


def herd_context(farm_id: Optional[int] = None, tag_number: Optional[str] = None,
                 cow_id: Optional[int] = None) -> Dict[str, Any]:
    """``extra=`` payload naming the herd record a log line is about."""
    context = {"farm_id": farm_id, "tag_number": tag_number, "cow_id": cow_id}
    return {k: v for k, v in context.items() if v is not None}


class JSONFormatter(logging.Formatter):
    """One JSON object per record, herd fields included when present."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
        }

        for field in HERD_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_data[field] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def build_formatter() -> logging.Formatter:
    if settings.LOG_FORMAT == "json" or settings.ENVIRONMENT == "production":
        return JSONFormatter()
    return logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")


def setup_logging() -> logging.Logger:
    """Configure the root logger once for scripts and the dashboard."""
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(build_formatter())
    root_logger.addHandler(console_handler)

    logging.getLogger(PACKAGE_LOGGER).setLevel(log_level)
    # SQL echo is controlled by DB_ECHO, not by the root level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    return root_logger
