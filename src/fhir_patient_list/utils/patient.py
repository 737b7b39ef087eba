"""Patient display helpers.

Helpers that turn a PatientRecord into display strings for the presentation
layer, plus the age calculation shared with the query engine's Age sort.
None of these raise on missing or malformed data: they degrade to "N/A",
"Unknown", None or the raw value.
"""

import re
from datetime import date
from typing import Optional, Sequence

from fhir_patient_list.models.patient import HumanName, PatientRecord

NOT_AVAILABLE = "N/A"
UNKNOWN_NAME = "Unknown"

# Name use tags in order of preference
NAME_USE_PRIORITY = ("official", "usual", "temp")

MRN_TYPE_CODE = "MR"

_PARTIAL_DATE = re.compile(r"^(\d{4})(?:-(\d{2}))?(?:-(\d{2}))?$")


def parse_birth_date(birth_date: Optional[str]) -> Optional[date]:
    """Parse a FHIR date (``YYYY``, ``YYYY-MM`` or ``YYYY-MM-DD``).

    Missing month/day default to the first.

    Returns:
        Parsed date, or None if missing or invalid
    """
    if not birth_date:
        return None
    match = _PARTIAL_DATE.match(birth_date.strip())
    if match is None:
        return None
    year, month, day = match.groups()
    try:
        return date(int(year), int(month or 1), int(day or 1))
    except ValueError:
        return None


def calculate_age(birth_date: Optional[str], today: Optional[date] = None) -> Optional[int]:
    """Calculate age in whole years.

    Args:
        birth_date: Birth date string
        today: Reference date (defaults to the current date)

    Returns:
        Age in years, or None if the birth date is missing or invalid

    Example:
        >>> calculate_age("1985-03-15", today=date(2024, 1, 15))
        38
    """
    born = parse_birth_date(birth_date)
    if born is None:
        return None
    today = today or date.today()
    age = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        age -= 1
    return age


def select_preferred_name(
    names: Sequence[HumanName],
    priority: Sequence[str] = NAME_USE_PRIORITY,
) -> Optional[HumanName]:
    """Pick the preferred name: first match by use priority, else the first name."""
    for use in priority:
        for name in names:
            if name.use == use:
                return name
    return names[0] if names else None


def get_patient_name(patient: PatientRecord) -> str:
    """Full display name of the preferred name, ``Unknown`` when blank."""
    name = select_preferred_name(patient.name)
    if name is None:
        return UNKNOWN_NAME
    return name.full_name.strip() or UNKNOWN_NAME


def get_patient_mrn(patient: PatientRecord) -> str:
    """Medical record number.

    The identifier typed ``MR`` wins; otherwise the first identifier value.
    """
    for identifier in patient.identifier:
        if identifier.type_code == MRN_TYPE_CODE and identifier.value:
            return identifier.value
    return patient.primary_identifier or NOT_AVAILABLE


def get_telecom_value(patient: PatientRecord, system: str) -> str:
    for contact_point in patient.telecom:
        if contact_point.system == system:
            return contact_point.value or NOT_AVAILABLE
    return NOT_AVAILABLE


def get_patient_phone(patient: PatientRecord) -> str:
    return get_telecom_value(patient, "phone")


def get_patient_email(patient: PatientRecord) -> str:
    return get_telecom_value(patient, "email")


def get_patient_address(patient: PatientRecord) -> str:
    """First address as ``line, city, state, postalCode``."""
    if not patient.address:
        return NOT_AVAILABLE
    address = patient.address[0]
    parts = [
        ", ".join(address.line),
        address.city or "",
        address.state or "",
        address.postal_code or "",
    ]
    return ", ".join(p for p in parts if p) or NOT_AVAILABLE


def format_birth_date(birth_date: Optional[str]) -> str:
    """Format a birth date as ``Mar 15, 1985``.

    Returns ``N/A`` when missing and the raw string when unparseable.
    """
    if not birth_date:
        return NOT_AVAILABLE
    parsed = parse_birth_date(birth_date)
    if parsed is None:
        return birth_date
    return f"{parsed.strftime('%b')} {parsed.day}, {parsed.year}"


def format_age(birth_date: Optional[str], today: Optional[date] = None) -> str:
    age = calculate_age(birth_date, today=today)
    return NOT_AVAILABLE if age is None else str(age)
