"""
Shared pytest configuration and fixtures.

This module provides fixtures and configuration used across all test suites
(unit and integration tests).
"""

import os
import secrets
from datetime import date
from pathlib import Path

import pytest

from shc_issuer.config.schema import Config, IssuerConfig
from shc_issuer.issuer import HealthCardIssuer
from shc_issuer.models import CredentialBundle, ImmunizationEvent, Patient, VaccineType
from shc_issuer.signing.key_loader import export_key_params, generate_key
from shc_issuer.signing.keys import ECSigningKey

ISSUER_URL = "https://example.com"


@pytest.fixture
def project_root() -> Path:
    """
    Return the project root directory.
    
    Returns:
        Path: Absolute path to the project root directory.
    """
    return Path(__file__).parent.parent


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """
    Run every test in a scratch directory with no SHC_* variables set.
    
    Keeps config/config.json and logs/ lookups away from the working tree.
    """
    for name in list(os.environ):
        if name.startswith("SHC_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture(scope="session")
def signing_key() -> ECSigningKey:
    """A P-256 signing key shared by the whole test session."""
    return generate_key()


@pytest.fixture
def key_env(monkeypatch: pytest.MonkeyPatch, signing_key: ECSigningKey) -> dict[str, str]:
    """
    Export the session signing key as SHC_KEY_D/X/Y.
    
    Returns:
        dict: The exported decimal key parameters.
    """
    params = export_key_params(signing_key)
    monkeypatch.setenv("SHC_KEY_D", params["d"])
    monkeypatch.setenv("SHC_KEY_X", params["x"])
    monkeypatch.setenv("SHC_KEY_Y", params["y"])
    return params


@pytest.fixture
def salk_bundle() -> CredentialBundle:
    """Two-dose credential bundle for a well-known patient."""
    patient = Patient(family="Salk", given=("Jonas", "Edward"), birth_date=date(1914, 10, 28))
    return CredentialBundle(
        patient=patient,
        immunizations=(
            ImmunizationEvent(
                date_administered=date(2021, 1, 1),
                performer="MyLocalHospital",
                lot_number="LN01234",
                vaccine_type=VaccineType.PFIZER,
            ),
            ImmunizationEvent(
                date_administered=date(2021, 1, 22),
                performer="MyLocalHospital",
                lot_number="LN05678",
                vaccine_type=VaccineType.PFIZER,
            ),
        ),
    )


@pytest.fixture
def form_fields() -> dict[str, str]:
    """Web form fields for a single-dose card."""
    return {
        "family_name": "Salk",
        "given_names": "Jonas Edward",
        "date_of_birth": "1914-10-28",
        "first_immunization_performer": "MyLocalHospital",
        "first_immunization_lot_number": "LN01234",
        "first_immunization_vaccine_type": "Moderna",
        "first_immunization_date": "2021-06-01",
    }


@pytest.fixture
def oversized_form_fields(form_fields: dict[str, str]) -> dict[str, str]:
    """
    Three-dose form whose signed card cannot fit one QR code.
    
    Performer and lot values are random hex so DEFLATE cannot shrink them.
    """
    fields = dict(form_fields)
    for ordinal, day in (("first", "01"), ("second", "22"), ("third", "30")):
        fields[f"{ordinal}_immunization_performer"] = secrets.token_hex(200)
        fields[f"{ordinal}_immunization_lot_number"] = secrets.token_hex(200)
        fields[f"{ordinal}_immunization_vaccine_type"] = "Pfizer"
        fields[f"{ordinal}_immunization_date"] = f"2021-06-{day}"
    return fields


@pytest.fixture
def issuer(signing_key: ECSigningKey) -> HealthCardIssuer:
    """Card issuer using the session key, chunking enabled."""
    return HealthCardIssuer(key=signing_key, issuer=ISSUER_URL)


@pytest.fixture
def config() -> Config:
    """Configuration with defaults and the example issuer URL."""
    return Config(issuer=IssuerConfig(issuer_url=ISSUER_URL))
