import logging
from typing import Any, Dict, Optional

audit_logger = logging.getLogger("canditrack.audit")

LEVELS = {
    "AUDIT": logging.INFO,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
}


def describe_user(user) -> str:
    if user is None or not getattr(user, "is_authenticated", False):
        return "System"
    return user.get_full_name() or user.get_username() or user.email or "System"


def log_audit(
    level: str,
    message: str,
    source: str,
    user=None,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    acting_user_id = getattr(user, "pk", None) if user is not None else None
    audit_logger.log(
        LEVELS.get(level, logging.INFO),
        "[%s] %s",
        source,
        message,
        extra={
            "audit_level": level,
            "audit_source": source,
            "acting_user_id": acting_user_id,
            "audit_details": details or {},
        },
    )
