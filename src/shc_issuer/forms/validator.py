"""Validation of web-form immunization records.

Turns the fifteen raw form fields of the issuing form into a CredentialBundle,
or raises ValidationError with a message suitable for showing to the user.
"""

from collections.abc import Mapping
from datetime import date, datetime
from typing import Optional

from shc_issuer.logging_audit import get_logger
from shc_issuer.models.immunization import CredentialBundle, ImmunizationEvent, VaccineType
from shc_issuer.models.patient import Patient
from shc_issuer.utils.exceptions import ValidationError


logger = get_logger(__name__)

DATE_FORMAT = "%Y-%m-%d"

PATIENT_FIELDS = ["family_name", "given_names", "date_of_birth"]
IMMUNIZATION_ORDINALS = ["first", "second", "third"]
IMMUNIZATION_ATTRIBUTES = ["performer", "lot_number", "vaccine_type", "date"]


def immunization_fields(ordinal: str) -> list[str]:
    """Form field names for one immunization, e.g. ``first_immunization_date``."""
    return [f"{ordinal}_immunization_{attr}" for attr in IMMUNIZATION_ATTRIBUTES]


# All form fields in display order
FORM_FIELDS = PATIENT_FIELDS + [
    name for ordinal in IMMUNIZATION_ORDINALS for name in immunization_fields(ordinal)
]


def _clean(fields: Mapping[str, Optional[str]]) -> dict[str, str]:
    cleaned = {}
    for name in FORM_FIELDS:
        value = fields.get(name)
        cleaned[name] = "" if value is None else str(value).strip()
    return cleaned


def _parse_date(value: str, description: str) -> date:
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        raise ValidationError(f"invalid {description}")


def _parse_vaccine_type(value: str, ordinal: str) -> VaccineType:
    try:
        return VaccineType(value)
    except ValueError:
        raise ValidationError(f"invalid {ordinal} immunization vaccine type")


def _build_immunization(values: dict[str, str], ordinal: str) -> ImmunizationEvent:
    performer, lot_number, vaccine_type, date_text = (
        values[name] for name in immunization_fields(ordinal)
    )
    return ImmunizationEvent(
        date_administered=_parse_date(date_text, f"{ordinal} immunization date"),
        performer=performer,
        lot_number=lot_number,
        vaccine_type=_parse_vaccine_type(vaccine_type, ordinal),
    )


def parse_form(fields: Mapping[str, Optional[str]]) -> CredentialBundle:
    """Validate raw form fields and build a credential bundle.
    
    Rules:
    - Patient fields and all first immunization fields are required
    - Second immunization fields are all-or-nothing
    - Third immunization fields require a second immunization and are
      all-or-nothing
    - Dates must be YYYY-MM-DD
    - Vaccine types must be one of the supported values
    
    Args:
        fields: Mapping of form field name to raw value; missing keys and
                None are treated as blank
                
    Returns:
        CredentialBundle with one to three immunizations in dose order
        
    Raises:
        ValidationError: If any rule is violated
        
    Example:
        >>> bundle = parse_form({
        ...     "family_name": "Salk", "given_names": "Jonas",
        ...     "date_of_birth": "1914-10-28",
        ...     "first_immunization_performer": "MyLocalHospital",
        ...     "first_immunization_lot_number": "LN01234",
        ...     "first_immunization_vaccine_type": "Pfizer",
        ...     "first_immunization_date": "2021-06-01",
        ... })
        >>> len(bundle.immunizations)
        1
    """
    values = _clean(fields)

    first = [values[name] for name in immunization_fields("first")]
    second = [values[name] for name in immunization_fields("second")]
    third = [values[name] for name in immunization_fields("third")]

    if not all(values[name] for name in PATIENT_FIELDS) or not all(first):
        raise ValidationError("patient information or first immunization information missing")

    if any(second) and not all(second):
        raise ValidationError("second immunization information only partially complete")

    if any(third) and not values["second_immunization_performer"]:
        raise ValidationError(
            "third immunization information provided while second immunization is blank"
        )

    if any(third) and not all(third):
        raise ValidationError("third immunization information only partially complete")

    birth_date = _parse_date(values["date_of_birth"], "patient birth date")
    patient = Patient(
        family=values["family_name"],
        given=tuple(values["given_names"].split()),
        birth_date=birth_date,
    )

    immunizations = [_build_immunization(values, "first")]
    if values["second_immunization_performer"]:
        immunizations.append(_build_immunization(values, "second"))
    if values["third_immunization_performer"]:
        immunizations.append(_build_immunization(values, "third"))

    logger.debug(f"Validated form with {len(immunizations)} immunization(s)")
    return CredentialBundle(patient=patient, immunizations=tuple(immunizations))
