"""
Centralized logging module for the photo uploader.

- Structured JSON logs suitable for Loki/ELK
- Appropriate log levels (info, warning, error)
- NEVER logs service account keys, access tokens or file contents
- Upload steps emit structured logs with action, result, filename, timestamp
"""
import logging
import json
from typing import Any, Dict, Optional
from datetime import datetime, timezone

from core.config import settings

logger = logging.getLogger("uploader")
logger.setLevel(settings.LOG_LEVEL.upper())

_handler = logging.StreamHandler()
_handler.setLevel(settings.LOG_LEVEL.upper())


class JSONFormatter(logging.Formatter):
    """Formatter that outputs structured JSON logs."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "action"):
            log_data["action"] = record.action
        if hasattr(record, "result"):
            log_data["result"] = record.result
        if hasattr(record, "filename_"):
            log_data["filename"] = record.filename_
        if hasattr(record, "meta"):
            log_data["meta"] = record.meta

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)

_handler.setFormatter(JSONFormatter())
logger.addHandler(_handler)

# Prevent duplicate logs
logger.propagate = False


def log_upload_event(
    action: str,
    result: str,
    filename: Optional[str] = None,
    meta: Optional[Dict[str, Any]] = None,
    level: str = "info",
) -> None:
    """
    Log an upload step (batch received, file stored, sharing, batch summary).

    Args:
        action: Action name (e.g., "upload_batch", "drive_create", "drive_share")
        result: Result status (e.g., "received", "success", "failure")
        filename: Original filename of the file involved (optional)
        meta: Additional metadata dict (optional)
        level: Log level ("info", "warning", "error")
    """
    log_method = getattr(logger, level.lower(), logger.info)
    # LogRecord reserves "filename" for the source file name
    extra: Dict[str, Any] = {
        "action": action,
        "result": result,
    }
    if filename is not None:
        extra["filename_"] = filename
    if meta:
        extra["meta"] = meta

    log_method(f"{action}: {result}", extra=extra)
