"""Audit trail for key generation and card issuing.

Audit lines are single-line ``AUDIT [EVENT] | field=value | ...`` records so
they can be grepped out of the main log. They describe what was issued
(key id, dose count, chunk count, JWS length), never who it was issued to.
"""

import time
import uuid
from typing import Any

from .logger import get_logger

logger = get_logger("shc_issuer.audit")

# Fields written first, in this order, when present
AUDIT_FIELD_ORDER = [
    "status",
    "kid",
    "immunization_count",
    "chunk_count",
    "jws_length",
    "duration",
    "error_type",
    "error_message",
    "correlation_id",
]

# Patient-identifying fields are never written to the audit trail
PATIENT_FIELDS = frozenset({
    "family_name",
    "given_names",
    "date_of_birth",
    "birth_date",
    "lot_number",
    "performer",
})

OMITTED = "[OMITTED]"


def _format_field(name: str, value: Any) -> str:
    if name in PATIENT_FIELDS:
        return f"{name}={OMITTED}"
    if name == "duration" and isinstance(value, (int, float)):
        return f"{name}={value:.3f}s"
    return f"{name}={value}"


def log_audit_event(event_type: str, details: dict[str, Any]) -> None:
    """Log an audit trail event.
    
    Events with ``status="failure"`` are logged at ERROR, everything else at
    INFO. A ``correlation_id`` is generated when the caller gives none.
    
    Args:
        event_type: Event name, e.g. "CARD_ISSUED", "CARD_ISSUE_FAILED",
                    "BATCH_ISSUED", "KEY_GENERATED"
        details: Event fields. Standard fields are written first in a fixed
                 order; patient fields are replaced with ``[OMITTED]``.
                 
    Example:
        >>> log_audit_event("CARD_ISSUED", {
        ...     "status": "success",
        ...     "kid": key.kid,
        ...     "chunk_count": 1,
        ...     "jws_length": 1032,
        ... })
    """
    details = dict(details)
    details.setdefault("timestamp", time.time())
    details.setdefault("correlation_id", str(uuid.uuid4()))
    
    message_parts = [f"AUDIT [{event_type}]"]
    message_parts.extend(
        _format_field(name, details[name]) for name in AUDIT_FIELD_ORDER if name in details
    )
    message_parts.extend(
        _format_field(name, value)
        for name, value in details.items()
        if name not in AUDIT_FIELD_ORDER and name != "timestamp"
    )
    audit_message = " | ".join(message_parts)
    
    if details.get("status") == "failure":
        logger.error(audit_message)
    else:
        logger.info(audit_message)
