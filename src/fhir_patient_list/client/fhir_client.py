"""FHIR Patient client.

Builds Patient search/read requests, issues them through a pooled
``requests`` session and maps transport and server errors to
:class:`~fhir_patient_list.utils.exceptions.TransportError`.
"""

import logging
import time
from typing import Any, Optional
from urllib.parse import quote, urlencode

import requests

from fhir_patient_list.config.schema import Config
from fhir_patient_list.logging_audit.audit import log_audit_event
from fhir_patient_list.models.bundle import Bundle, OperationOutcome, QueryParams
from fhir_patient_list.transport.http_client import ConnectionPool, ConnectionPoolConfig
from fhir_patient_list.utils.exceptions import (
    FHIRRequestError,
    PatientListError,
    TransportError,
)

logger = logging.getLogger(__name__)

FHIR_JSON = "application/fhir+json"

DEFAULT_HEADERS = {
    "Accept": FHIR_JSON,
    "Content-Type": FHIR_JSON,
}


def build_url(base_url: str, path: str, query_args: Optional[dict[str, str]] = None) -> str:
    """Join base URL and resource path and append the query string, if any."""
    url = f"{base_url.rstrip('/')}{path}"
    if query_args:
        url = f"{url}?{urlencode(query_args)}"
    return url


def error_from_response(response: requests.Response) -> FHIRRequestError:
    """Map a non-success response to a FHIRRequestError.

    If the body decodes to an OperationOutcome the message is the
    comma-joined issue diagnostics (``"<severity>: <code>"`` for issues
    without diagnostics); otherwise it is ``HTTP <status>: <reason>``.
    """
    try:
        body = response.json()
    except ValueError:
        body = None

    outcome = OperationOutcome.from_dict(body)
    if outcome is not None:
        return FHIRRequestError(outcome.message, response.status_code, outcome)

    return FHIRRequestError(
        f"HTTP {response.status_code}: {response.reason or ''}".rstrip(),
        response.status_code,
    )


class FHIRClient:
    """Stateless accessor for the FHIR Patient endpoints.

    Holds only its base URL and a session; every call is a pure function of
    its arguments.

    Attributes:
        base_url: FHIR server base URL (e.g. ``http://localhost:8080/api/fhir``)
        timeout: (connect, read) timeout in seconds

    Example:
        >>> client = FHIRClient("http://localhost:8080/api/fhir")
        >>> bundle = client.search(QueryParams(search="John"))
        >>> bundle.total
        1
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: tuple[int, int] = (10, 30),
        verify_tls: bool = True,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.verify_tls = verify_tls
        self._pool: Optional[ConnectionPool] = None
        if session is None:
            self._pool = ConnectionPool()
            session = self._pool.get_session()
        self.session = session
        logger.debug(f"FHIRClient initialized for {self.base_url}")

    @classmethod
    def from_config(cls, config: Config) -> "FHIRClient":
        """Create a client from application configuration."""
        transport = config.transport
        pool = ConnectionPool(ConnectionPoolConfig(max_connections=transport.max_connections))
        client = cls(
            config.endpoints.fhir_base_url,
            session=pool.get_session(),
            timeout=(transport.timeout_connect, transport.timeout_read),
            verify_tls=transport.verify_tls,
        )
        client._pool = pool
        return client

    def search(self, params: Optional[QueryParams] = None) -> Bundle:
        """Search patients.

        Args:
            params: Search parameters; only defined values are sent

        Returns:
            Decoded searchset Bundle

        Raises:
            FHIRRequestError: On a non-success HTTP status
            TransportError: On connection/timeout failures
            PatientListError: If the response body is not a Bundle
        """
        query_args = (params or QueryParams()).to_query_args()
        return self._get("/Patient", query_args, event_type="PATIENT_SEARCH")

    def get_by_id(self, patient_id: str) -> Bundle:
        """Fetch a single patient by id.

        Raises:
            FHIRRequestError: On a non-success HTTP status (e.g. 404)
            TransportError: On connection/timeout failures
        """
        return self._get(f"/Patient/{quote(patient_id, safe='')}", None, event_type="PATIENT_READ")

    def _get(
        self,
        path: str,
        query_args: Optional[dict[str, str]],
        event_type: str,
    ) -> Bundle:
        url = build_url(self.base_url, path, query_args)
        audit: dict[str, Any] = {
            "base_url": self.base_url,
            "resource": path,
            "query": urlencode(query_args or {}),
        }
        start = time.monotonic()

        logger.debug(f"GET {url}")
        try:
            response = self.session.get(
                url,
                headers=DEFAULT_HEADERS,
                timeout=self.timeout,
                verify=self.verify_tls,
            )
        except requests.Timeout as e:
            self._audit_failure(event_type, audit, start, f"Timeout: {e}")
            raise TransportError(f"Request to {url} timed out") from e
        except requests.ConnectionError as e:
            self._audit_failure(event_type, audit, start, f"ConnectionError: {e}")
            raise TransportError(f"Could not connect to FHIR server at {self.base_url}") from e
        except requests.RequestException as e:
            self._audit_failure(event_type, audit, start, str(e))
            raise TransportError(f"Request to {url} failed: {e}") from e

        if not response.ok:
            error = error_from_response(response)
            audit["http_status"] = response.status_code
            self._audit_failure(event_type, audit, start, str(error))
            raise error

        try:
            bundle = Bundle.from_dict(response.json())
        except ValueError as e:
            self._audit_failure(event_type, audit, start, f"Malformed response: {e}")
            raise PatientListError(f"Malformed FHIR response from {url}: {e}") from e

        audit.update(
            status="success",
            total=bundle.total,
            returned=len(bundle.entry),
            duration=time.monotonic() - start,
        )
        log_audit_event(event_type, audit)
        return bundle

    @staticmethod
    def _audit_failure(event_type: str, audit: dict[str, Any], start: float, message: str) -> None:
        audit.update(status="failure", duration=time.monotonic() - start, error_message=message)
        log_audit_event(event_type, audit)

    def close(self) -> None:
        """Release pooled connections owned by this client."""
        if self._pool is not None:
            self._pool.close()

    def __enter__(self) -> "FHIRClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
