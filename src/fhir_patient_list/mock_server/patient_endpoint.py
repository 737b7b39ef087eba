"""Mock FHIR Patient endpoint.

Serves the mock dataset through the query engine:

- ``GET {base}/Patient``: search, filter, sort and paginate
- ``GET {base}/Patient/<id>``: single-record lookup
- ``OPTIONS {base}/Patient``: CORS preflight
"""

import json
import logging
import random
import time
from typing import Any

from flask import Blueprint, Response, request

from fhir_patient_list.models.bundle import OperationOutcome, QueryParams
from fhir_patient_list.query.engine import run_query
from fhir_patient_list.query.envelope import build_searchset
from fhir_patient_list.query.store import PatientStore

from .config import MockServerConfig
from .dataset import load_mock_store

FHIR_JSON_MIMETYPE = "application/fhir+json"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

INTERNAL_ERROR_DIAGNOSTICS = "Internal server error occurred while processing the request"

patient_bp = Blueprint("patient", __name__)

patient_logger = logging.getLogger("fhir_patient_list.mock_server.patient")

_config: MockServerConfig | None = None
_store: PatientStore | None = None


def get_store() -> PatientStore:
    """Return the seeded store, seeding it on first use."""
    global _store
    if _store is None:
        _store = load_mock_store()
        patient_logger.info(f"Seeded patient store with {len(_store)} records")
    return _store


def fhir_response(body: dict[str, Any] | None, status: int, cors: bool = True) -> Response:
    """Build a FHIR JSON response (empty body when ``body`` is None)."""
    data = "" if body is None else json.dumps(body)
    response = Response(data, status=status, mimetype=FHIR_JSON_MIMETYPE)
    if cors:
        response.headers.update(CORS_HEADERS)
    return response


def outcome_response(status: int, code: str, diagnostics: str) -> Response:
    """Build an OperationOutcome error response."""
    patient_logger.warning(f"OperationOutcome generated: HTTP {status} {code} - {diagnostics}")
    return fhir_response(OperationOutcome.error(code, diagnostics).to_dict(), status, cors=False)


def _simulate_latency() -> None:
    if _config is None:
        return
    behavior = _config.patient_behavior
    if behavior.response_delay_max_ms <= 0:
        return
    delay_ms = random.uniform(behavior.response_delay_min_ms, behavior.response_delay_max_ms)
    patient_logger.debug(f"Simulating network delay: {delay_ms:.0f}ms")
    time.sleep(delay_ms / 1000.0)


def _should_inject_failure() -> bool:
    if _config is None or _config.patient_behavior.failure_rate <= 0:
        return False
    return random.random() < _config.patient_behavior.failure_rate


@patient_bp.route("/Patient", methods=["GET", "OPTIONS"])
def search_patients() -> Response:
    """Handle Patient search and its CORS preflight."""
    if request.method == "OPTIONS":
        response = Response(status=200)
        response.headers.update(CORS_HEADERS)
        return response

    try:
        params = QueryParams.from_query_args(request.args)
        patient_logger.info(f"Patient search - {params}")

        _simulate_latency()

        if _should_inject_failure():
            message = _config.patient_behavior.custom_fault_message or INTERNAL_ERROR_DIAGNOSTICS
            return outcome_response(500, "processing", message)

        store = get_store()
        total, page = run_query(store.records, params)
        bundle = build_searchset(page, total)

        patient_logger.info(f"Patient search - Total: {total}, Returned: {len(page)}")
        return fhir_response(bundle.to_dict(), 200)

    except Exception as e:
        patient_logger.error(f"Unexpected error processing Patient search: {e}", exc_info=True)
        return outcome_response(500, "processing", INTERNAL_ERROR_DIAGNOSTICS)


@patient_bp.route("/Patient/<patient_id>", methods=["GET"])
def read_patient(patient_id: str) -> Response:
    """Handle Patient lookup by id.

    Answers with a searchset Bundle holding the single record, or a 404
    OperationOutcome when the id is unknown.
    """
    try:
        _simulate_latency()

        patient = get_store().get(patient_id)
        if patient is None:
            return outcome_response(404, "not-found", f"Patient/{patient_id} not found")

        patient_logger.info(f"Patient read - Id: {patient_id}")
        return fhir_response(build_searchset([patient], 1).to_dict(), 200)

    except Exception as e:
        patient_logger.error(f"Unexpected error processing Patient read: {e}", exc_info=True)
        return outcome_response(500, "processing", INTERNAL_ERROR_DIAGNOSTICS)


def register_patient_endpoint(app, config: MockServerConfig) -> None:
    """Register Patient endpoint with Flask app.

    Args:
        app: Flask application instance
        config: Mock server configuration
    """
    global _config
    _config = config

    # Register Blueprint (only if not already registered)
    if patient_bp.name not in app.blueprints:
        app.register_blueprint(patient_bp, url_prefix=config.fhir_base_path or None)
        patient_logger.info(f"Registered Patient endpoint: {config.fhir_base_path}/Patient")
    else:
        patient_logger.debug("Patient endpoint already registered")
