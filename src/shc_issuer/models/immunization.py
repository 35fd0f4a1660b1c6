"""Immunization data models.

This module defines the supported COVID-19 vaccine types, a single
immunization event, and the credential bundle that ties a patient to an
ordered sequence of events.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum

from shc_issuer.models.patient import Patient

# Maximum number of doses carried on one card
MAX_IMMUNIZATIONS = 3

# https://www2a.cdc.gov/vaccines/iis/iisstandards/vaccines.asp?rpt=cvx
_CVX_CODES = {
    "Pfizer": "208",
    "Moderna": "207",
    "JohnsonAndJohnson": "212",
    "AstraZeneca": "210",
    "Sinopharm": "510",
    "COVAXIN": "502",
}


class VaccineType(str, Enum):
    """Supported COVID-19 vaccine types.
    
    Values are the exact strings accepted from the web form.
    """

    PFIZER = "Pfizer"
    MODERNA = "Moderna"
    JOHNSON_AND_JOHNSON = "JohnsonAndJohnson"
    ASTRAZENECA = "AstraZeneca"
    SINOPHARM = "Sinopharm"
    COVAXIN = "COVAXIN"

    @property
    def cvx_code(self) -> str:
        """CDC CVX code for this vaccine type."""
        return _CVX_CODES[self.value]


@dataclass(frozen=True)
class ImmunizationEvent:
    """One administered COVID-19 vaccine dose.
    
    Attributes:
        date_administered: Date the dose was given
        performer: Entity that administered the dose (hospital, clinic)
        lot_number: Manufacturer lot number of the dose
        vaccine_type: Vaccine product given
    """

    date_administered: date
    performer: str
    lot_number: str
    vaccine_type: VaccineType

    def __post_init__(self) -> None:
        if not isinstance(self.vaccine_type, VaccineType):
            raise TypeError(
                f"vaccine_type must be a VaccineType, got {self.vaccine_type!r}. "
                f"Validate input before building an ImmunizationEvent."
            )


@dataclass(frozen=True)
class CredentialBundle:
    """A patient and their immunizations, in dose order.
    
    Attributes:
        patient: The vaccinated patient
        immunizations: One to three events, first dose first
    """

    patient: Patient
    immunizations: tuple[ImmunizationEvent, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "immunizations", tuple(self.immunizations))
        count = len(self.immunizations)
        if not 1 <= count <= MAX_IMMUNIZATIONS:
            raise ValueError(
                f"CredentialBundle requires 1 to {MAX_IMMUNIZATIONS} immunizations, got {count}"
            )
