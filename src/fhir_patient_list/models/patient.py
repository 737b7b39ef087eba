"""FHIR R4 Patient data model.

This module defines the PatientRecord dataclass and its component types
(identifiers, names, contact points, addresses) used throughout the
application. Records convert to and from their FHIR JSON representation.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class Coding:
    """A code from a terminology system."""

    system: Optional[str] = None
    code: Optional[str] = None
    display: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Coding":
        return cls(
            system=data.get("system"),
            code=data.get("code"),
            display=data.get("display"),
        )

    def to_dict(self) -> dict[str, Any]:
        return _compact({"system": self.system, "code": self.code, "display": self.display})


@dataclass(frozen=True)
class Identifier:
    """Business identifier of a patient (e.g. a medical record number).

    Attributes:
        value: Identifier value, e.g. ``MRN-001``
        use: Identifier use tag (usual, official, temp, secondary, old)
        type_coding: Codings describing the identifier type (``MR`` for MRN)
    """

    value: Optional[str] = None
    use: Optional[str] = None
    type_coding: tuple[Coding, ...] = ()

    @property
    def type_code(self) -> Optional[str]:
        """Code of the first type coding, if any."""
        if not self.type_coding:
            return None
        return self.type_coding[0].code

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Identifier":
        codings = (data.get("type") or {}).get("coding") or []
        return cls(
            value=data.get("value"),
            use=data.get("use"),
            type_coding=tuple(Coding.from_dict(c) for c in codings),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.use is not None:
            result["use"] = self.use
        if self.type_coding:
            result["type"] = {"coding": [c.to_dict() for c in self.type_coding]}
        if self.value is not None:
            result["value"] = self.value
        return result


@dataclass(frozen=True)
class HumanName:
    """A patient name with its use tag."""

    family: Optional[str] = None
    given: tuple[str, ...] = ()
    use: Optional[str] = None

    @property
    def full_name(self) -> str:
        """Given names joined by spaces, then the family name."""
        return f"{' '.join(self.given)} {self.family or ''}"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HumanName":
        return cls(
            family=data.get("family"),
            given=tuple(data.get("given") or ()),
            use=data.get("use"),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.use is not None:
            result["use"] = self.use
        if self.family is not None:
            result["family"] = self.family
        if self.given:
            result["given"] = list(self.given)
        return result


@dataclass(frozen=True)
class ContactPoint:
    """Telecom details (phone, email, ...)."""

    system: Optional[str] = None
    value: Optional[str] = None
    use: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContactPoint":
        return cls(system=data.get("system"), value=data.get("value"), use=data.get("use"))

    def to_dict(self) -> dict[str, Any]:
        return _compact({"system": self.system, "value": self.value, "use": self.use})


@dataclass(frozen=True)
class Address:
    """Postal address."""

    line: tuple[str, ...] = ()
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    use: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Address":
        return cls(
            line=tuple(data.get("line") or ()),
            city=data.get("city"),
            state=data.get("state"),
            postal_code=data.get("postalCode"),
            country=data.get("country"),
            use=data.get("use"),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.use is not None:
            result["use"] = self.use
        if self.line:
            result["line"] = list(self.line)
        result.update(
            _compact(
                {
                    "city": self.city,
                    "state": self.state,
                    "postalCode": self.postal_code,
                    "country": self.country,
                }
            )
        )
        return result


@dataclass(frozen=True)
class ContactPerson:
    """A contact party (e.g. emergency contact) for the patient."""

    relationship: tuple[Coding, ...] = ()
    name: Optional[HumanName] = None
    telecom: tuple[ContactPoint, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContactPerson":
        codings: list[Coding] = []
        for concept in data.get("relationship") or []:
            codings.extend(Coding.from_dict(c) for c in concept.get("coding") or [])
        name = data.get("name")
        return cls(
            relationship=tuple(codings),
            name=HumanName.from_dict(name) if name else None,
            telecom=tuple(ContactPoint.from_dict(t) for t in data.get("telecom") or []),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.relationship:
            result["relationship"] = [{"coding": [c.to_dict() for c in self.relationship]}]
        if self.name is not None:
            result["name"] = self.name.to_dict()
        if self.telecom:
            result["telecom"] = [t.to_dict() for t in self.telecom]
        return result


@dataclass(frozen=True)
class PatientRecord:
    """FHIR R4 Patient resource (subset used by the patient list).

    Records are seeded once at process start and treated as read-only.

    Attributes:
        id: Logical resource id, unique within the store
        identifier: Business identifiers; the first one is the primary identifier
        active: Whether the patient record is in active use
        name: Names; the first one is used for search and sorting
        telecom: Phone numbers, email addresses, ...
        gender: Administrative gender (male, female, other, unknown)
        birth_date: Birth date as a calendar date string (``YYYY-MM-DD``)
        address: Postal addresses
        contact: Contact parties
    """

    id: str
    identifier: tuple[Identifier, ...] = ()
    active: Optional[bool] = None
    name: tuple[HumanName, ...] = ()
    telecom: tuple[ContactPoint, ...] = ()
    gender: Optional[str] = None
    birth_date: Optional[str] = None
    address: tuple[Address, ...] = ()
    contact: tuple[ContactPerson, ...] = field(default=())

    resource_type = "Patient"

    @property
    def primary_identifier(self) -> Optional[str]:
        """Value of the first identifier, if any."""
        if not self.identifier:
            return None
        return self.identifier[0].value

    @property
    def primary_name(self) -> Optional[HumanName]:
        """First name entry, if any."""
        if not self.name:
            return None
        return self.name[0]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PatientRecord":
        """Build a record from a FHIR Patient JSON object.

        Raises:
            ValueError: If the resource is not a Patient or has no id
        """
        resource_type = data.get("resourceType", cls.resource_type)
        if resource_type != cls.resource_type:
            raise ValueError(f"Expected resourceType 'Patient', got '{resource_type}'")
        if not data.get("id"):
            raise ValueError("Patient resource is missing required 'id'")

        return cls(
            id=str(data["id"]),
            identifier=tuple(Identifier.from_dict(i) for i in data.get("identifier") or []),
            active=data.get("active"),
            name=tuple(HumanName.from_dict(n) for n in data.get("name") or []),
            telecom=tuple(ContactPoint.from_dict(t) for t in data.get("telecom") or []),
            gender=data.get("gender"),
            birth_date=data.get("birthDate"),
            address=tuple(Address.from_dict(a) for a in data.get("address") or []),
            contact=tuple(ContactPerson.from_dict(c) for c in data.get("contact") or []),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a FHIR Patient JSON object."""
        result: dict[str, Any] = {"resourceType": self.resource_type, "id": self.id}
        if self.identifier:
            result["identifier"] = [i.to_dict() for i in self.identifier]
        if self.active is not None:
            result["active"] = self.active
        if self.name:
            result["name"] = [n.to_dict() for n in self.name]
        if self.telecom:
            result["telecom"] = [t.to_dict() for t in self.telecom]
        if self.gender is not None:
            result["gender"] = self.gender
        if self.birth_date is not None:
            result["birthDate"] = self.birth_date
        if self.address:
            result["address"] = [a.to_dict() for a in self.address]
        if self.contact:
            result["contact"] = [c.to_dict() for c in self.contact]
        return result


def _compact(values: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}
