"""Logging and audit trail for the issuer.

``configure_logging`` sets up console and rotating file output,
``get_logger`` hands out module loggers and ``log_audit_event`` writes the
one-line audit records for key and card operations.
"""

from .audit import log_audit_event
from .formatters import PIIRedactingFormatter
from .logger import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
    "log_audit_event",
    "PIIRedactingFormatter",
]
