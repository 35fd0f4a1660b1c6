"""FHIR bundle and JWS payload construction for SMART Health Cards.

This module turns a CredentialBundle into the (pre-compression) JWS payload
described at
https://spec.smarthealth.cards/#health-cards-are-encoded-as-compact-serialization-json-web-signatures-jws
wrapping a bundle shaped like
https://build.fhir.org/ig/HL7/fhir-shc-vaccination-ig/StructureDefinition-shc-vaccination-bundle-dm.html
"""

import json
import logging
from datetime import date, datetime, timezone
from typing import Any, Optional, Union

from shc_issuer.models.immunization import CredentialBundle, ImmunizationEvent
from shc_issuer.utils.exceptions import EncodingError

logger = logging.getLogger(__name__)

FHIR_VERSION = "4.0.1"
CVX_SYSTEM = "https://hl7.org/fhir/sid/cvx"  # https://www.hl7.org/fhir/cvx.html
PATIENT_REFERENCE = "resource:0"

CREDENTIAL_TYPES = [
    "https://smarthealth.cards#health-card",
    "https://smarthealth.cards#immunization",
    "https://smarthealth.cards#covid19",
]


def _format_date(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def _without_empty(resource: dict[str, Any]) -> dict[str, Any]:
    """Drop empty optional string fields, keeping key order."""
    return {key: value for key, value in resource.items() if value != ""}


def _patient_resource(bundle: CredentialBundle) -> dict[str, Any]:
    patient = bundle.patient
    return _without_empty({
        "resourceType": "Patient",
        "name": [{"family": patient.family, "given": list(patient.given)}],
        "birthDate": _format_date(patient.birth_date),
    })


def _immunization_resource(event: ImmunizationEvent) -> dict[str, Any]:
    return _without_empty({
        "resourceType": "Immunization",
        "status": "completed",
        "vaccineCode": {
            "coding": [{"system": CVX_SYSTEM, "code": event.vaccine_type.cvx_code}],
        },
        "patient": {"reference": PATIENT_REFERENCE},
        "occurrenceDateTime": _format_date(event.date_administered),
        "performer": [{"actor": {"display": event.performer}}],
        "lotNumber": event.lot_number,
    })


def build_fhir_bundle(bundle: CredentialBundle) -> dict[str, Any]:
    """Build the FHIR ``Bundle`` resource for a credential bundle.
    
    The patient is entry ``resource:0``; immunizations follow as
    ``resource:1`` .. ``resource:N`` in dose order, each referring back to
    the patient entry.
    
    Args:
        bundle: Validated patient and immunizations
        
    Returns:
        Dictionary ready for JSON serialization
        
    Example:
        >>> fhir_bundle = build_fhir_bundle(bundle)
        >>> fhir_bundle["entry"][0]["fullUrl"]
        'resource:0'
    """
    entries = [{"fullUrl": PATIENT_REFERENCE, "resource": _patient_resource(bundle)}]
    for i, event in enumerate(bundle.immunizations, start=1):
        entries.append({
            "fullUrl": f"resource:{i}",
            "resource": _immunization_resource(event),
        })

    return {
        "resourceType": "Bundle",
        "type": "collection",
        "entry": entries,
    }


def _unix_seconds(issued_at: Optional[Union[datetime, int]]) -> int:
    if issued_at is None:
        return int(datetime.now(timezone.utc).timestamp())
    if isinstance(issued_at, datetime):
        if issued_at.tzinfo is None:
            raise ValueError("issued_at must be timezone-aware")
        return int(issued_at.timestamp())
    return int(issued_at)


def build_jws_payload(
    bundle: CredentialBundle,
    issuer: str,
    issued_at: Optional[Union[datetime, int]] = None,
) -> dict[str, Any]:
    """Wrap a credential bundle in the verifiable-credential envelope.
    
    Args:
        bundle: Validated patient and immunizations
        issuer: Issuer URL (``iss``); verifiers fetch
                ``<issuer>/.well-known/jwks.json``
        issued_at: Aware datetime or Unix seconds for ``nbf``.
                   Defaults to the current time on every call.
                   
    Returns:
        Payload dictionary with ``iss``, ``nbf`` and ``vc`` keys
    """
    return {
        "iss": issuer,
        "nbf": _unix_seconds(issued_at),
        "vc": {
            "type": list(CREDENTIAL_TYPES),
            "credentialSubject": {
                "fhirVersion": FHIR_VERSION,
                "fhirBundle": build_fhir_bundle(bundle),
            },
        },
    }


def serialize_payload(payload: dict[str, Any]) -> bytes:
    """Serialize a payload dictionary to compact UTF-8 JSON.
    
    Args:
        payload: Payload built by build_jws_payload
        
    Returns:
        JSON bytes with no insignificant whitespace
        
    Raises:
        EncodingError: If the payload is not JSON serializable
    """
    try:
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise EncodingError(f"Failed to serialize JWS payload as JSON: {e}") from e


def build_payload(
    bundle: CredentialBundle,
    issuer: str,
    issued_at: Optional[Union[datetime, int]] = None,
) -> bytes:
    """Build and serialize the JWS payload for a credential bundle.
    
    Args:
        bundle: Validated patient and immunizations
        issuer: Issuer URL
        issued_at: Optional fixed issue time (defaults to now)
        
    Returns:
        Compact JSON payload bytes, ready for compression and signing
    """
    payload = serialize_payload(build_jws_payload(bundle, issuer, issued_at))
    logger.debug(
        f"Built JWS payload: {len(bundle.immunizations)} immunization(s), {len(payload)} bytes"
    )
    return payload
