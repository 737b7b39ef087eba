"""CLI commands for mock server management."""

import json
import logging
from pathlib import Path

import click
import requests

from ..mock_server.app import run_server
from ..mock_server.config import load_config


logger = logging.getLogger(__name__)


def format_uptime(seconds: int) -> str:
    """Format uptime seconds as ``1h 2m 3s``."""
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


@click.group(name="mock")
def mock_group():
    """Manage the mock FHIR server.

    The mock server provides FHIR endpoints for testing:
    - /health - Health check endpoint
    - /api/fhir/Patient - Patient search endpoint
    - /api/fhir/Patient/<id> - Patient read endpoint

    Available commands:
    - start: Start the mock server
    - status: Check server status
    """


@mock_group.command(name="start")
@click.option("--host", type=str, help="Server host (overrides config file)")
@click.option("--port", type=int, help="Server port (overrides config file)")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file (default: mocks/config.json)"
)
@click.option("--debug", is_flag=True, help="Enable debug mode")
def start_server(host: str | None, port: int | None, config: Path | None, debug: bool):
    """Start the mock FHIR server in the foreground.

    Examples:

        # Start on the configured port\n
        fhir-patient-list mock start

        # Start on custom port\n
        fhir-patient-list mock start --port 9090
    """
    try:
        server_config = load_config(config)

        host = host or server_config.host
        port = port or server_config.http_port
        if not 1 <= port <= 65535:
            raise click.ClickException(
                f"Invalid port {port}. Port must be between 1 and 65535."
            )

        click.echo("=" * 50)
        click.echo("Mock FHIR Server")
        click.echo("=" * 50)
        click.echo(f"Host: {host}")
        click.echo(f"Port: {port}")
        click.echo(f"Health Check: http://{host}:{port}/health")
        click.echo(f"Patient: http://{host}:{port}{server_config.fhir_base_path}/Patient")
        click.echo("=" * 50)
        click.echo("")
        click.echo("Starting server... (Press Ctrl+C to stop)")
        click.echo("")

        run_server(host=host, port=port, config=server_config, debug=debug)

    except FileNotFoundError as e:
        raise click.ClickException(str(e))
    except ValueError as e:
        raise click.ClickException(f"Configuration error: {e}")
    except KeyboardInterrupt:
        click.echo("\n\nServer stopped by user.")


@mock_group.command(name="status")
@click.option("--url", default=None, help="Server root URL (default: from mock config)")
@click.option("--json", "output_json", is_flag=True, help="Output status as JSON")
def server_status(url: str | None, output_json: bool):
    """Display mock server status from its health check.

    Examples:

        fhir-patient-list mock status

        fhir-patient-list mock status --url http://localhost:9090 --json
    """
    if url is None:
        server_config = load_config()
        # Use 127.0.0.1 for HTTP requests if host is 0.0.0.0
        request_host = "127.0.0.1" if server_config.host == "0.0.0.0" else server_config.host
        url = f"http://{request_host}:{server_config.http_port}"

    health_url = f"{url.rstrip('/')}/health"
    try:
        response = requests.get(health_url, timeout=5)
        health_data = response.json() if response.status_code == 200 else {}
    except (requests.RequestException, ValueError) as e:
        logger.debug(f"Health check failed: {e}")
        health_data = {}

    if not health_data:
        if output_json:
            click.echo(json.dumps({"running": False, "url": url}))
        else:
            click.echo("Mock Server Status")
            click.echo("=" * 50)
            click.echo("Status: Stopped")
            click.echo("")
            click.echo("Start the server with: fhir-patient-list mock start")
        raise click.exceptions.Exit(1)

    if output_json:
        click.echo(json.dumps({"running": True, "url": url, **health_data}, indent=2))
        return

    click.echo("Mock Server Status")
    click.echo("=" * 50)
    click.echo("Status: Running")
    click.echo(f"URL: {url}")
    click.echo(f"Version: {health_data.get('version', 'unknown')}")
    click.echo(f"Uptime: {format_uptime(int(health_data.get('uptime_seconds', 0)))}")
    click.echo(f"Requests: {health_data.get('request_count', 0)}")
    click.echo("Endpoints:")
    for endpoint in health_data.get("endpoints", []):
        click.echo(f"  {endpoint}")
