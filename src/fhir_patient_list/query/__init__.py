"""Query module.

In-memory patient store, query engine and searchset envelope builder.
"""

from fhir_patient_list.query.engine import run_query
from fhir_patient_list.query.envelope import build_searchset
from fhir_patient_list.query.store import PatientStore

__all__ = [
    "PatientStore",
    "build_searchset",
    "run_query",
]
