"""Searchset Bundle (result envelope) builder."""

from datetime import datetime, timezone
from typing import Optional, Sequence

from fhir_patient_list.models.bundle import Bundle, BundleEntry, SearchMode
from fhir_patient_list.models.patient import PatientRecord

SEARCH_BUNDLE_ID = "patient-search-results"


def fhir_timestamp(moment: Optional[datetime] = None) -> str:
    """UTC instant with millisecond precision, e.g. ``2024-01-15T10:30:00.000Z``."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def build_searchset(
    page: Sequence[PatientRecord],
    total: int,
    timestamp: Optional[datetime] = None,
) -> Bundle:
    """Wrap a result page into a searchset Bundle.

    Every entry is marked with search mode ``match``.

    Args:
        page: Records of the current page
        total: Number of matches before pagination
        timestamp: Capture time (defaults to now)

    Returns:
        Bundle envelope
    """
    return Bundle(
        id=SEARCH_BUNDLE_ID,
        type="searchset",
        timestamp=fhir_timestamp(timestamp),
        total=total,
        entry=tuple(BundleEntry(resource=p, mode=SearchMode.MATCH.value) for p in page),
    )
