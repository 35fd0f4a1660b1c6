"""Unit tests for patient, immunization and card models."""

from dataclasses import FrozenInstanceError
from datetime import date
from unittest.mock import patch

import pytest

from shc_issuer.models import (
    CredentialBundle,
    ImmunizationEvent,
    IssuedCard,
    Patient,
    QRChunk,
    VaccineType,
)


def _event(vaccine_type: VaccineType = VaccineType.MODERNA) -> ImmunizationEvent:
    return ImmunizationEvent(
        date_administered=date(2021, 6, 1),
        performer="MyLocalHospital",
        lot_number="LN01234",
        vaccine_type=vaccine_type,
    )


def _patient() -> Patient:
    return Patient(family="Salk", given=("Jonas",), birth_date=date(1914, 10, 28))


class TestPatient:
    """Tests for the Patient model."""

    def test_given_names_stored_as_tuple(self):
        """Test given names from a list are stored as a tuple."""
        # Arrange & Act
        patient = Patient(family="Salk", given=["Jonas", "Edward"], birth_date=date(1914, 10, 28))

        # Assert
        assert patient.given == ("Jonas", "Edward")

    def test_empty_family_name_rejected(self):
        """Test an empty family name raises ValueError."""
        with pytest.raises(ValueError, match="family name"):
            Patient(family="", given=("Jonas",), birth_date=date(1914, 10, 28))

    def test_empty_given_names_rejected(self):
        """Test an empty given-name sequence raises ValueError."""
        with pytest.raises(ValueError, match="given name"):
            Patient(family="Salk", given=(), birth_date=date(1914, 10, 28))

    def test_patient_is_immutable(self):
        """Test Patient cannot be modified after construction."""
        # Arrange
        patient = _patient()

        # Act & Assert
        with pytest.raises(FrozenInstanceError):
            patient.family = "Sabin"


class TestVaccineType:
    """Tests for VaccineType and its CVX mapping."""

    @pytest.mark.parametrize(
        "vaccine_type,expected_code",
        [
            (VaccineType.PFIZER, "208"),
            (VaccineType.MODERNA, "207"),
            (VaccineType.JOHNSON_AND_JOHNSON, "212"),
            (VaccineType.ASTRAZENECA, "210"),
            (VaccineType.SINOPHARM, "510"),
            (VaccineType.COVAXIN, "502"),
        ],
    )
    def test_cvx_codes(self, vaccine_type, expected_code):
        """Test every vaccine type maps to its CVX code."""
        assert vaccine_type.cvx_code == expected_code

    def test_accepted_form_strings(self):
        """Test the members are the accepted form strings in declaration order."""
        assert [member.value for member in VaccineType] == [
            "Pfizer", "Moderna", "JohnsonAndJohnson", "AstraZeneca", "Sinopharm", "COVAXIN",
        ]

    def test_unmapped_vaccine_type_raises(self):
        """Test a vaccine type without a CVX code fails loudly."""
        # Arrange
        with patch.dict(
            "shc_issuer.models.immunization._CVX_CODES", {"Pfizer": "208"}, clear=True
        ):
            # Act & Assert
            with pytest.raises(KeyError):
                VaccineType.MODERNA.cvx_code

    def test_lookup_by_form_value(self):
        """Test enum lookup by the exact form string."""
        assert VaccineType("JohnsonAndJohnson") is VaccineType.JOHNSON_AND_JOHNSON


class TestImmunizationEvent:
    """Tests for the ImmunizationEvent model."""

    def test_raw_string_vaccine_type_rejected(self):
        """Test a plain string vaccine type raises TypeError."""
        with pytest.raises(TypeError, match="VaccineType"):
            ImmunizationEvent(
                date_administered=date(2021, 6, 1),
                performer="MyLocalHospital",
                lot_number="LN01234",
                vaccine_type="Pfizer",
            )


class TestCredentialBundle:
    """Tests for the CredentialBundle model."""

    def test_order_preserved(self):
        """Test immunizations keep caller order."""
        # Arrange
        events = [_event(VaccineType.PFIZER), _event(VaccineType.MODERNA)]

        # Act
        bundle = CredentialBundle(patient=_patient(), immunizations=events)

        # Assert
        assert bundle.immunizations == tuple(events)

    def test_no_immunizations_rejected(self):
        """Test an empty immunization list raises ValueError."""
        with pytest.raises(ValueError, match="1 to 3"):
            CredentialBundle(patient=_patient(), immunizations=())

    def test_four_immunizations_rejected(self):
        """Test more than three immunizations raises ValueError."""
        with pytest.raises(ValueError, match="got 4"):
            CredentialBundle(patient=_patient(), immunizations=[_event()] * 4)


class TestIssuedCard:
    """Tests for the IssuedCard result model."""

    def test_is_chunked(self):
        """Test is_chunked reflects the number of chunks."""
        # Arrange
        single = IssuedCard(jws="a.b.c", chunks=(QRChunk(1, 1, "a.b.c", "shc:/5201"),))
        double = IssuedCard(
            jws="a.b.c",
            chunks=(QRChunk(1, 2, "a.b", "shc:/1/2/52"), QRChunk(2, 2, ".c", "shc:/2/2/01")),
        )

        # Assert
        assert single.is_chunked is False
        assert double.is_chunked is True
        assert single.images == ()
