"""Integration test fixtures.

Starts the Flask mock server on a free local port in a background thread so
the FHIR client can be exercised over real HTTP.
"""

import logging
import socket
import threading
import time
from typing import Generator
from unittest.mock import patch

import pytest
import requests
from werkzeug.serving import make_server

from fhir_patient_list.mock_server.app import app, initialize_app
from fhir_patient_list.mock_server.config import MockServerConfig, PatientEndpointBehavior


logger = logging.getLogger(__name__)


def find_free_port() -> int:
    """Find an available port on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        s.listen(1)
        return s.getsockname()[1]


def wait_for_server(url: str, timeout: float = 10.0, interval: float = 0.1) -> bool:
    """Wait for the server health check to answer 200.

    Returns:
        bool: True if server became available, False if timeout.
    """
    start_time = time.time()
    while time.time() - start_time < timeout:
        try:
            if requests.get(url, timeout=1).status_code == 200:
                return True
        except requests.exceptions.RequestException:
            pass
        time.sleep(interval)
    return False


@pytest.fixture(scope="session")
def live_server_config(tmp_path_factory) -> MockServerConfig:
    """Mock server configuration without latency or injected failures."""
    return MockServerConfig(
        host="127.0.0.1",
        http_port=find_free_port(),
        log_level="WARNING",
        log_path=str(tmp_path_factory.mktemp("logs") / "mock-server.log"),
        patient_behavior=PatientEndpointBehavior(
            response_delay_min_ms=0,
            response_delay_max_ms=0,
            failure_rate=0.0,
        ),
    )


@pytest.fixture(scope="session")
def live_server(live_server_config: MockServerConfig) -> Generator[str, None, None]:
    """Run the mock server for the test session.

    Yields:
        str: FHIR base URL of the running server.
    """
    with patch("fhir_patient_list.mock_server.app.setup_graceful_shutdown"):
        initialize_app(live_server_config)

    server = make_server(live_server_config.host, live_server_config.http_port, app, threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    root_url = f"http://{live_server_config.host}:{live_server_config.http_port}"
    if not wait_for_server(f"{root_url}/health"):
        server.shutdown()
        pytest.fail(f"Mock server did not start on {root_url}")

    logger.info(f"Mock server running on {root_url}")
    yield f"{root_url}{live_server_config.fhir_base_path}"

    server.shutdown()
    thread.join(timeout=5)
