"""Forms module.

This module validates raw immunization form input.
"""

from shc_issuer.forms.validator import FORM_FIELDS, parse_form

__all__ = [
    "FORM_FIELDS",
    "parse_form",
]
