"""Unit tests for the FHIR Patient data model."""

import pytest

from fhir_patient_list.models.patient import (
    Address,
    ContactPerson,
    HumanName,
    Identifier,
    PatientRecord,
)


class TestPatientRecordFromDict:
    """Tests for PatientRecord.from_dict."""

    def test_parses_all_fields(self, sample_patient_resource):
        """Test that every supported Patient field is decoded."""
        # Arrange & Act
        patient = PatientRecord.from_dict(sample_patient_resource)

        # Assert
        assert patient.id == "1"
        assert patient.active is True
        assert patient.gender == "male"
        assert patient.birth_date == "1985-03-15"
        assert patient.identifier[0].value == "MRN-001"
        assert patient.identifier[0].type_code == "MR"
        assert patient.name[0] == HumanName(family="Smith", given=("John", "David"), use="official")
        assert patient.telecom[0].system == "phone"
        assert patient.telecom[1].value == "john.smith@email.com"
        assert patient.address[0].city == "Springfield"
        assert patient.address[0].postal_code == "62701"

    def test_parses_contact(self, sample_patient_resource):
        """Test that contact parties are decoded with relationship and phone."""
        # Arrange & Act
        patient = PatientRecord.from_dict(sample_patient_resource)

        # Assert
        assert len(patient.contact) == 1
        contact = patient.contact[0]
        assert isinstance(contact, ContactPerson)
        assert contact.relationship[0].code == "C"
        assert contact.name.given == ("Jane",)
        assert contact.telecom[0].value == "+1-555-0124"

    def test_minimal_resource(self):
        """Test that a resource with only an id is accepted."""
        # Arrange & Act
        patient = PatientRecord.from_dict({"resourceType": "Patient", "id": "x"})

        # Assert
        assert patient.id == "x"
        assert patient.identifier == ()
        assert patient.name == ()
        assert patient.active is None
        assert patient.primary_identifier is None
        assert patient.primary_name is None

    def test_wrong_resource_type_raises(self):
        """Test that a non-Patient resource is rejected."""
        # Arrange & Act & Assert
        with pytest.raises(ValueError, match="Expected resourceType 'Patient'"):
            PatientRecord.from_dict({"resourceType": "Observation", "id": "1"})

    def test_missing_id_raises(self):
        """Test that a Patient without an id is rejected."""
        # Arrange & Act & Assert
        with pytest.raises(ValueError, match="missing required 'id'"):
            PatientRecord.from_dict({"resourceType": "Patient"})


class TestPatientRecordToDict:
    """Tests for PatientRecord.to_dict."""

    def test_uses_fhir_keys(self, sample_patient_resource):
        """Test that serialization uses FHIR camelCase keys."""
        # Arrange
        patient = PatientRecord.from_dict(sample_patient_resource)

        # Act
        data = patient.to_dict()

        # Assert
        assert data["resourceType"] == "Patient"
        assert data["birthDate"] == "1985-03-15"
        assert data["address"][0]["postalCode"] == "62701"
        assert data["identifier"][0]["type"]["coding"][0]["code"] == "MR"

    def test_matches_source_resource(self, sample_patient_resource):
        """Test that a decoded resource serializes back to the same JSON."""
        # Arrange
        patient = PatientRecord.from_dict(sample_patient_resource)

        # Act & Assert
        assert patient.to_dict() == sample_patient_resource

    def test_omits_unset_fields(self):
        """Test that unset optional fields are not serialized."""
        # Arrange
        patient = PatientRecord(id="7")

        # Act & Assert
        assert patient.to_dict() == {"resourceType": "Patient", "id": "7"}


class TestComponentTypes:
    """Tests for name, identifier and address helpers."""

    def test_full_name_joins_given_and_family(self):
        """Test full name is given names followed by family name."""
        # Arrange
        name = HumanName(family="Smith", given=("John", "David"))

        # Act & Assert
        assert name.full_name == "John David Smith"

    def test_full_name_without_family(self):
        """Test full name keeps the separator when family is missing."""
        # Arrange & Act & Assert
        assert HumanName(given=("Cher",)).full_name == "Cher "

    def test_identifier_without_type(self):
        """Test identifier type code is None without codings."""
        # Arrange & Act & Assert
        assert Identifier(value="A-1").type_code is None

    def test_primary_fields_use_first_entries(self):
        """Test primary identifier and name are the first entries."""
        # Arrange
        patient = PatientRecord(
            id="1",
            identifier=(Identifier(value="A"), Identifier(value="B")),
            name=(HumanName(family="First"), HumanName(family="Second")),
        )

        # Act & Assert
        assert patient.primary_identifier == "A"
        assert patient.primary_name.family == "First"

    def test_address_from_dict(self):
        """Test address decoding maps postalCode."""
        # Arrange & Act
        address = Address.from_dict({"line": ["1 Way"], "city": "Town", "postalCode": "00001"})

        # Assert
        assert address.line == ("1 Way",)
        assert address.postal_code == "00001"
        assert address.to_dict() == {"line": ["1 Way"], "city": "Town", "postalCode": "00001"}
