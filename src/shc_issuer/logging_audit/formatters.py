"""Custom log formatters for the SMART Health Card issuer.

This module provides specialized formatters for logging, including PII redaction.
"""

import logging
import re
from typing import List, Tuple


class PIIRedactingFormatter(logging.Formatter):
    """Formatter that redacts patient-identifying data from log messages.
    
    Covers the fields an immunization card carries: patient names, birth
    dates and vaccine lot numbers, in the ``field=value`` and
    ``Field: value`` styles used across the codebase.
    
    Attributes:
        redact_pii: Whether to enable PII redaction
        patterns: List of (regex_pattern, replacement_text) tuples for redaction
        
    Example:
        >>> formatter = PIIRedactingFormatter(redact_pii=True)
        >>> handler = logging.StreamHandler()
        >>> handler.setFormatter(formatter)
    """
    
    def __init__(
        self,
        fmt: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt: str | None = None,
        redact_pii: bool = False,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.redact_pii = redact_pii
        
        self.patterns: List[Tuple[re.Pattern[str], str]] = [
            # family_name=Salk, given_names="Jonas Edward", name='Jonas Salk'
            (re.compile(r'\b(family_name|given_names|name)=(["\'])[^"\']*\2'), r'\1=[NAME-REDACTED]'),
            (re.compile(r'\b(family_name|given_names|name)=[^\s,|]+'), r'\1=[NAME-REDACTED]'),
            
            # date_of_birth=1914-10-28, birth_date=1914-10-28
            (re.compile(r'\b(date_of_birth|birth_date|birthDate)=\d{4}-\d{2}-\d{2}'),
             r'\1=[DOB-REDACTED]'),
            
            # lot_number=LN01234
            (re.compile(r'\b(lot_number|lotNumber)=[^\s,|]+'), r'\1=[LOT-REDACTED]'),
            
            # "Patient: Jonas Salk"
            (re.compile(r'\bPatient:\s+[A-Z][\w\'-]*(?:\s+[A-Z][\w\'-]*)*'), 'Patient: [NAME-REDACTED]'),
        ]
    
    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with optional PII redaction."""
        original = super().format(record)
        
        if self.redact_pii:
            for pattern, replacement in self.patterns:
                original = pattern.sub(replacement, original)
        
        return original
