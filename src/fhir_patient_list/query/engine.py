"""Patient query engine.

Applies, in fixed order, free-text search, gender and active filters, an
optional sort and pagination to a collection of patient records.
"""

import logging
from datetime import date
from typing import Callable, Optional, Sequence

from fhir_patient_list.models.bundle import QueryParams, SortKey
from fhir_patient_list.models.patient import PatientRecord
from fhir_patient_list.utils.patient import calculate_age

logger = logging.getLogger(__name__)


def full_name_key(patient: PatientRecord) -> str:
    """Lower-cased ``"<given...> <family>"`` of the first name entry."""
    name = patient.primary_name
    if name is None:
        return " "
    return name.full_name.lower()


def mrn_key(patient: PatientRecord) -> str:
    return (patient.primary_identifier or "").lower()


def age_key(patient: PatientRecord, today: Optional[date] = None) -> int:
    """Age in whole years; missing or invalid birth dates sort as 0."""
    age = calculate_age(patient.birth_date, today=today)
    return max(0, age) if age is not None else 0


def matches_search(patient: PatientRecord, token: str) -> bool:
    token = token.lower()
    return token in full_name_key(patient) or token in mrn_key(patient)


def matches_gender(patient: PatientRecord, gender: str) -> bool:
    return (patient.gender or "").lower() == gender.lower()


def matches_active(patient: PatientRecord, active: str) -> bool:
    return patient.active == (active.lower() == "true")


def filter_patients(
    patients: Sequence[PatientRecord],
    params: QueryParams,
) -> list[PatientRecord]:
    """Apply search, gender and active filters (in that order)."""
    result = list(patients)
    if params.search:
        result = [p for p in result if matches_search(p, params.search)]
    if params.gender:
        result = [p for p in result if matches_gender(p, params.gender)]
    if params.active:
        result = [p for p in result if matches_active(p, params.active)]
    return result


def sort_patients(
    patients: list[PatientRecord],
    sort: Optional[str],
    descending: bool = False,
    today: Optional[date] = None,
) -> list[PatientRecord]:
    """Stable sort by ``Name``, ``MRN`` or ``Age``.

    Unknown or missing sort keys leave the order unchanged.
    """
    key: Optional[Callable[[PatientRecord], object]]
    if sort == SortKey.NAME.value:
        key = full_name_key
    elif sort == SortKey.MRN.value:
        key = mrn_key
    elif sort == SortKey.AGE.value:
        key = lambda patient: age_key(patient, today=today)  # noqa: E731
    else:
        if sort:
            logger.debug("Ignoring unknown sort key '%s'", sort)
        return patients
    return sorted(patients, key=key, reverse=descending)


def run_query(
    patients: Sequence[PatientRecord],
    params: QueryParams,
    today: Optional[date] = None,
) -> tuple[int, list[PatientRecord]]:
    """Search, filter, sort and paginate.

    Args:
        patients: Full record collection
        params: Query parameters
        today: Reference date for the Age sort (defaults to the current date)

    Returns:
        Tuple of (total matches before pagination, records of the page)
    """
    matched = filter_patients(patients, params)
    total = len(matched)
    ordered = sort_patients(matched, params.sort, params.descending, today=today)

    offset = params.page_offset
    page = ordered[offset:offset + params.page_size]

    logger.debug(
        "Query %s matched %d of %d records, returning %d",
        params,
        total,
        len(patients),
        len(page),
    )
    return total, page
