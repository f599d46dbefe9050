# school_erp/core/logging.py
"""Logging configuration and the audit trail."""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional

from .config import settings

AUDIT_LOGGER_NAME = "school_erp.audit"

def setup_logging():
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    _configure_audit_logger(settings.audit_log_path)

def _configure_audit_logger(path: str):
    audit_logger = logging.getLogger(AUDIT_LOGGER_NAME)
    if any(isinstance(h, logging.FileHandler) for h in audit_logger.handlers):
        return
    try:
        handler = logging.FileHandler(path, encoding="utf-8")
    except OSError as e:
        logging.getLogger(__name__).error(f"Audit log unavailable at {path}: {e}")
        return
    handler.setFormatter(logging.Formatter("%(message)s"))
    audit_logger.addHandler(handler)
    audit_logger.setLevel(logging.INFO)

def format_audit_line(
    user_id: Optional[Any],
    action: str,
    resource: str,
    ip: Optional[str] = None,
    details: Optional[dict] = None,
    timestamp: Optional[datetime] = None,
) -> str:
    ts = (timestamp or datetime.now(timezone.utc)).isoformat()
    return (
        f"[{ts}] User:{user_id or 'anonymous'} | Action:{action} | "
        f"Resource:{resource} | IP:{ip or 'unknown'} | "
        f"Details:{json.dumps(details or {}, default=str)}"
    )

def audit(
    user_id: Optional[Any],
    action: str,
    resource: str,
    ip: Optional[str] = None,
    details: Optional[dict] = None,
):
    """Append one line to the audit log (LOGIN_SUCCESS, ACCESS_DENIED, ...)."""
    logging.getLogger(AUDIT_LOGGER_NAME).info(
        format_audit_line(user_id, action, resource, ip, details)
    )
