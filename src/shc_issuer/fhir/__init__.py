"""FHIR module.

This module builds FHIR immunization bundles and SMART Health Card payloads.
"""

from shc_issuer.fhir.bundle import (
    build_fhir_bundle,
    build_jws_payload,
    build_payload,
    serialize_payload,
)

__all__ = [
    "build_fhir_bundle",
    "build_jws_payload",
    "build_payload",
    "serialize_payload",
]
