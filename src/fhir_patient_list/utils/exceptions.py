"""Custom exception classes for FHIR Patient List.

All exceptions inherit from PatientListError to allow catching all custom exceptions.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from fhir_patient_list.models.bundle import OperationOutcome


class PatientListError(Exception):
    """Base exception for all FHIR Patient List custom exceptions."""

    pass


class ConfigurationError(PatientListError):
    """Raised when configuration loading or validation fails.

    Examples:
        - Invalid configuration file format
        - Configuration value out of range
        - Malformed base URL
    """

    pass


class TransportError(PatientListError):
    """Raised when network/transport issues occur.

    Examples:
        - Connection refused
        - Connection timeout
        - Network unreachable
    """

    pass


class FHIRRequestError(TransportError):
    """Raised when the FHIR server answers with a non-success status.

    The message is built from the OperationOutcome issues when the body could
    be decoded, otherwise it is ``HTTP <status>: <reason>``.

    Attributes:
        status_code: HTTP status code of the response
        outcome: Decoded OperationOutcome, or None if the body was unstructured
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        outcome: Optional["OperationOutcome"] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.outcome = outcome
