"""Client module.

FHIR Patient client.
"""

from fhir_patient_list.client.fhir_client import FHIRClient

__all__ = [
    "FHIRClient",
]
