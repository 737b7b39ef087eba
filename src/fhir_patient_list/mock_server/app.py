"""Flask application for the mock FHIR server."""

import logging
import signal
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path

from flask import Flask, Response, jsonify, request

from fhir_patient_list import __version__

from .config import MockServerConfig, load_config
from .patient_endpoint import outcome_response, register_patient_endpoint


# Server state tracking
_server_start_time: datetime | None = None
_request_count: int = 0
_config: MockServerConfig | None = None

# Create Flask app
app = Flask(__name__)


def setup_logging(config: MockServerConfig) -> logging.Logger:
    """Configure logging for mock server with rotation.

    Args:
        config: Mock server configuration

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("fhir_patient_list.mock_server")
    logger.setLevel(config.log_level)

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    log_path = Path(config.log_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    return logger


logger = logging.getLogger("fhir_patient_list.mock_server")


@app.before_request
def log_request():
    """Log all incoming requests."""
    global _request_count
    _request_count += 1

    query = f"?{request.query_string.decode('utf-8')}" if request.query_string else ""
    logger.info(f"Request #{_request_count}: {request.method} {request.path}{query}")


@app.route("/health", methods=["GET"])
def health_check():
    """Health check endpoint.

    Returns JSON with server status, version, port, endpoints, uptime,
    request count, and timestamp.
    """
    uptime_seconds = 0
    if _server_start_time:
        uptime_seconds = int((datetime.now(timezone.utc) - _server_start_time).total_seconds())

    port = 8080
    endpoints = ["/health"]
    if _config:
        port = _config.http_port
        endpoints.append(f"{_config.fhir_base_path}/Patient")
        endpoints.append(f"{_config.fhir_base_path}/Patient/<id>")

    health_response = {
        "status": "healthy",
        "version": __version__,
        "protocol": "http",
        "port": port,
        "endpoints": endpoints,
        "uptime_seconds": uptime_seconds,
        "request_count": _request_count,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    return jsonify(health_response), 200


@app.errorhandler(404)
def not_found(error) -> Response:
    """Handle 404 Not Found errors with an OperationOutcome."""
    return outcome_response(404, "not-found", f"Resource not found: {request.path}")


@app.errorhandler(405)
def method_not_allowed(error) -> Response:
    """Handle 405 Method Not Allowed errors with an OperationOutcome."""
    return outcome_response(
        405, "not-supported", f"Method {request.method} not supported on {request.path}"
    )


@app.errorhandler(500)
def internal_error(error) -> Response:
    """Handle 500 Internal Server errors with an OperationOutcome."""
    return outcome_response(
        500, "processing", "Internal server error occurred while processing the request"
    )


def setup_graceful_shutdown():
    """Setup graceful shutdown handlers for SIGTERM and SIGINT.

    Note: Signal handlers can only be registered in the main thread.
    In test scenarios or when running in background threads, this will
    log a warning but continue gracefully.
    """
    def shutdown_handler(signum, frame):
        logger.info(f"Received shutdown signal ({signum}), cleaning up...")
        logger.info("Mock server shutdown complete")
        sys.exit(0)

    try:
        signal.signal(signal.SIGTERM, shutdown_handler)
        signal.signal(signal.SIGINT, shutdown_handler)
        logger.info("Graceful shutdown handlers registered successfully")
    except ValueError as e:
        # Signal registration only works in main thread
        logger.warning(
            f"Could not register signal handlers (not in main thread): {e}. "
            f"Graceful shutdown via signals will not be available."
        )


def initialize_app(config: MockServerConfig) -> None:
    """Initialize Flask app with configuration.

    Args:
        config: Mock server configuration
    """
    global _config, _server_start_time
    _config = config
    _server_start_time = datetime.now(timezone.utc)

    setup_logging(config)
    logger.info("Mock server application initialized")

    setup_graceful_shutdown()

    register_patient_endpoint(app, config)


def run_server(
    host: str | None = None,
    port: int | None = None,
    config: MockServerConfig | None = None,
    debug: bool = False,
) -> None:
    """Run the Flask mock server.

    Args:
        host: Host address (overrides config)
        port: Port number (overrides config)
        config: Mock server configuration (loads from file if not provided)
        debug: Enable debug mode (default: False)
    """
    if config is None:
        config = load_config()

    updates = {}
    if host is not None:
        updates["host"] = host
    if port is not None:
        updates["http_port"] = port
    if updates:
        config = config.model_copy(update=updates)

    initialize_app(config)

    base_url = f"http://{config.host}:{config.http_port}"
    logger.info(f"Starting mock FHIR server on {base_url}")
    logger.info(f"Patient endpoint available at: {base_url}{config.fhir_base_path}/Patient")

    app.run(
        host=config.host,
        port=config.http_port,
        debug=debug,
        use_reloader=False,  # Disable reloader to avoid duplicate startup
    )


if __name__ == "__main__":
    run_server()
