"""Controller module.

Patient list state machine.
"""

from fhir_patient_list.controller.patient_list import (
    FilterState,
    ListState,
    PageRequest,
    PatientListController,
    SortState,
)

__all__ = [
    "FilterState",
    "ListState",
    "PageRequest",
    "PatientListController",
    "SortState",
]
