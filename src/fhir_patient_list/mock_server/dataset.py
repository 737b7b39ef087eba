"""Mock FHIR R4 Patient dataset served by the mock server."""

from typing import Any

from fhir_patient_list.query.store import PatientStore

MRN_TYPE = {
    "coding": [
        {
            "system": "http://terminology.hl7.org/CodeSystem/v2-0203",
            "code": "MR",
            "display": "Medical record number",
        }
    ]
}


def _mrn(value: str) -> list[dict[str, Any]]:
    return [{"use": "usual", "type": MRN_TYPE, "value": value}]


def _home_address(line: str, city: str, postal_code: str) -> list[dict[str, Any]]:
    return [
        {
            "use": "home",
            "line": [line],
            "city": city,
            "state": "IL",
            "postalCode": postal_code,
            "country": "US",
        }
    ]


MOCK_PATIENTS: list[dict[str, Any]] = [
    {
        "resourceType": "Patient",
        "id": "1",
        "identifier": _mrn("MRN-001"),
        "active": True,
        "name": [{"use": "official", "family": "Smith", "given": ["John", "David"]}],
        "telecom": [
            {"system": "phone", "value": "+1-555-0123", "use": "home"},
            {"system": "email", "value": "john.smith@email.com", "use": "home"},
        ],
        "gender": "male",
        "birthDate": "1985-03-15",
        "address": _home_address("123 Main St", "Springfield", "62701"),
        "contact": [
            {
                "relationship": [
                    {
                        "coding": [
                            {
                                "system": "http://terminology.hl7.org/CodeSystem/v2-0131",
                                "code": "C",
                                "display": "Emergency Contact",
                            }
                        ]
                    }
                ],
                "name": {"family": "Smith", "given": ["Jane"]},
                "telecom": [{"system": "phone", "value": "+1-555-0124"}],
            }
        ],
    },
    {
        "resourceType": "Patient",
        "id": "2",
        "identifier": _mrn("MRN-002"),
        "active": True,
        # Family name is Jackson, not Johnson, so that "John" matches only patient 1
        "name": [{"use": "official", "family": "Jackson", "given": ["Sarah", "Elizabeth"]}],
        "telecom": [
            {"system": "phone", "value": "+1-555-0456", "use": "mobile"},
            {"system": "email", "value": "sarah.jackson@email.com", "use": "home"},
        ],
        "gender": "female",
        "birthDate": "1992-07-22",
        "address": _home_address("456 Oak Ave", "Chicago", "60601"),
    },
    {
        "resourceType": "Patient",
        "id": "3",
        "identifier": _mrn("MRN-003"),
        "active": False,
        "name": [{"use": "official", "family": "Brown", "given": ["Michael", "Robert"]}],
        "telecom": [{"system": "phone", "value": "+1-555-0789", "use": "home"}],
        "gender": "male",
        "birthDate": "1978-11-08",
        "address": _home_address("789 Pine St", "Peoria", "61601"),
    },
    {
        "resourceType": "Patient",
        "id": "4",
        "identifier": _mrn("MRN-004"),
        "active": True,
        "name": [{"use": "official", "family": "Davis", "given": ["Emily", "Grace"]}],
        "telecom": [
            {"system": "phone", "value": "+1-555-0321", "use": "mobile"},
            {"system": "email", "value": "emily.davis@email.com", "use": "work"},
        ],
        "gender": "female",
        "birthDate": "1995-12-03",
        "address": _home_address("321 Elm St", "Rockford", "61101"),
    },
    {
        "resourceType": "Patient",
        "id": "5",
        "identifier": _mrn("MRN-005"),
        "active": True,
        "name": [{"use": "official", "family": "Wilson", "given": ["Robert", "James"]}],
        "telecom": [{"system": "phone", "value": "+1-555-0654", "use": "home"}],
        "gender": "male",
        "birthDate": "1989-09-18",
        "address": _home_address("654 Maple Dr", "Naperville", "60540"),
    },
]


def load_mock_store() -> PatientStore:
    """Seed a PatientStore with the mock dataset."""
    return PatientStore.from_resources(MOCK_PATIENTS)
