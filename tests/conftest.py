"""
Shared pytest configuration and fixtures.

This module provides fixtures and configuration used across the unit and
integration test suites.
"""

import copy
from datetime import date
from pathlib import Path
from typing import Any, Generator
from unittest.mock import patch

import pytest
from flask.testing import FlaskClient

from fhir_patient_list.mock_server.app import app, initialize_app
from fhir_patient_list.mock_server.config import MockServerConfig, PatientEndpointBehavior
from fhir_patient_list.mock_server.dataset import MOCK_PATIENTS
from fhir_patient_list.models.patient import PatientRecord


# Reference date used for age calculations in tests
TODAY = date(2024, 1, 15)


@pytest.fixture
def project_root() -> Path:
    """
    Return the project root directory.

    Returns:
        Path: Absolute path to the project root directory.
    """
    return Path(__file__).parent.parent


@pytest.fixture
def today() -> date:
    """Fixed reference date (2024-01-15)."""
    return TODAY


@pytest.fixture
def patient_resources() -> list[dict[str, Any]]:
    """
    Return a deep copy of the mock Patient dataset as FHIR JSON.

    Returns:
        list[dict]: Five FHIR Patient resources (ids "1" to "5").
    """
    return copy.deepcopy(MOCK_PATIENTS)


@pytest.fixture
def patient_records(patient_resources: list[dict[str, Any]]) -> list[PatientRecord]:
    """Return the mock dataset as PatientRecord instances."""
    return [PatientRecord.from_dict(r) for r in patient_resources]


@pytest.fixture
def sample_patient_resource(patient_resources: list[dict[str, Any]]) -> dict[str, Any]:
    """
    Return the first mock patient (John David Smith, MRN-001) as FHIR JSON.

    Returns:
        dict: FHIR Patient resource.
    """
    return patient_resources[0]


@pytest.fixture
def mock_server_config(tmp_path: Path) -> MockServerConfig:
    """
    Mock server configuration without latency or injected failures.

    Args:
        tmp_path: Pytest's temporary directory fixture.

    Returns:
        MockServerConfig: Configuration for in-process testing.
    """
    return MockServerConfig(
        log_level="WARNING",
        log_path=str(tmp_path / "mock-server.log"),
        patient_behavior=PatientEndpointBehavior(
            response_delay_min_ms=0,
            response_delay_max_ms=0,
            failure_rate=0.0,
        ),
    )


@pytest.fixture
def flask_test_client(mock_server_config: MockServerConfig) -> Generator[FlaskClient, None, None]:
    """
    Provide a Flask test client for in-process testing of the mock server.

    Signal handler registration is skipped so pytest keeps its own handlers.

    Args:
        mock_server_config: Mock server configuration.

    Yields:
        FlaskClient: Flask test client.
    """
    with patch("fhir_patient_list.mock_server.app.setup_graceful_shutdown"):
        initialize_app(mock_server_config)
    app.config["TESTING"] = True
    yield app.test_client()
