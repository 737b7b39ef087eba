"""Models module.

This module provides data models and dataclasses for the application.
"""

from fhir_patient_list.models.bundle import (
    Bundle,
    BundleEntry,
    OperationOutcome,
    OutcomeIssue,
    QueryParams,
    SearchMode,
    SortKey,
    SortOrder,
)
from fhir_patient_list.models.patient import (
    Address,
    Coding,
    ContactPerson,
    ContactPoint,
    HumanName,
    Identifier,
    PatientRecord,
)

__all__ = [
    "Address",
    "Bundle",
    "BundleEntry",
    "Coding",
    "ContactPerson",
    "ContactPoint",
    "HumanName",
    "Identifier",
    "OperationOutcome",
    "OutcomeIssue",
    "PatientRecord",
    "QueryParams",
    "SearchMode",
    "SortKey",
    "SortOrder",
]
