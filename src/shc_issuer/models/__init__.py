"""Models module.

This module provides data models and dataclasses for the application.
"""

from shc_issuer.models.card import IssuedCard, QRChunk
from shc_issuer.models.immunization import CredentialBundle, ImmunizationEvent, VaccineType
from shc_issuer.models.patient import Patient

__all__ = [
    "CredentialBundle",
    "ImmunizationEvent",
    "IssuedCard",
    "Patient",
    "QRChunk",
    "VaccineType",
]
