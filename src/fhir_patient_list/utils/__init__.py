"""Utilities module.

Exception hierarchy and patient display helpers.
"""

from fhir_patient_list.utils.exceptions import (
    ConfigurationError,
    FHIRRequestError,
    PatientListError,
    TransportError,
)

__all__ = [
    "PatientListError",
    "ConfigurationError",
    "TransportError",
    "FHIRRequestError",
]
