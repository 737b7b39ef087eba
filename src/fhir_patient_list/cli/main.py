"""Main CLI entry point for FHIR Patient List.

This module provides the main Click command group for the fhir-patient-list CLI.
"""

from pathlib import Path
from typing import Optional

import click

from fhir_patient_list import __version__
from fhir_patient_list.cli.mock_commands import mock_group
from fhir_patient_list.cli.patient_commands import patients_group
from fhir_patient_list.config import load_config
from fhir_patient_list.logging_audit import configure_logging
from fhir_patient_list.utils.exceptions import ConfigurationError


@click.group()
@click.version_option(version=__version__, prog_name="fhir-patient-list")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: ./config/config.json)",
)
@click.option("--verbose", is_flag=True, help="Enable verbose logging (DEBUG level)")
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to log file (overrides config file)",
)
@click.option(
    "--redact-pii",
    is_flag=True,
    help="Redact PII (patient names, MRNs, phones, emails) from logs",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: bool,
    log_file: Optional[Path],
    redact_pii: bool,
) -> None:
    """FHIR Patient List - browse patients on a FHIR server.

    Searches, filters, sorts and pages through FHIR Patient resources, and
    ships a mock FHIR server for local testing.

    Common usage:

        # Start the mock server
        fhir-patient-list mock start

        # Search patients by name or MRN
        fhir-patient-list patients search --search John

        # Page through all active patients sorted by age
        fhir-patient-list patients browse --active true --sort Age

        # Enable verbose logging for debugging
        fhir-patient-list --verbose patients search

    Use --help with any command for more information.
    """
    ctx.ensure_object(dict)

    try:
        config_obj = load_config(config)
        ctx.obj["config"] = config_obj
    except ConfigurationError as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        ctx.exit(1)

    ctx.obj["verbose"] = verbose
    ctx.obj["redact_pii"] = redact_pii
    ctx.obj["log_file"] = log_file

    # Precedence: CLI flags > config file > defaults
    log_level = "DEBUG" if verbose else config_obj.logging.level
    log_file_path = log_file if log_file else config_obj.logging.log_file
    redact_pii_setting = redact_pii if redact_pii else config_obj.logging.redact_pii

    configure_logging(
        level=log_level, log_file=log_file_path, redact_pii=redact_pii_setting
    )


cli.add_command(mock_group)
cli.add_command(patients_group)


@cli.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command()
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
def validate(config_file: Path) -> None:
    """Validate a configuration file.

    Example:
        fhir-patient-list config validate config/config.json
    """
    try:
        config_obj = load_config(config_file)

        click.echo(click.style("✓", fg="green", bold=True) + " Configuration is valid")
        click.echo(f"\nConfiguration file: {config_file}")
        click.echo("\nEndpoints:")
        click.echo(f"  FHIR base URL: {config_obj.endpoints.fhir_base_url}")

        click.echo("\nTransport:")
        click.echo(f"  Verify TLS:  {config_obj.transport.verify_tls}")
        click.echo(
            f"  Timeouts:    {config_obj.transport.timeout_connect}s connect, "
            f"{config_obj.transport.timeout_read}s read"
        )
        click.echo(f"  Pool size:   {config_obj.transport.max_connections}")

        click.echo("\nPatient list:")
        click.echo(f"  Page size:   {config_obj.patient_list.page_size}")

        click.echo("\nLogging:")
        click.echo(f"  Level:       {config_obj.logging.level}")
        click.echo(f"  Log file:    {config_obj.logging.log_file}")
        click.echo(f"  Redact PII:  {config_obj.logging.redact_pii}")

    except ConfigurationError as e:
        click.echo(click.style("✗", fg="red", bold=True) + " Configuration validation failed")
        click.echo(f"\n{e}", err=True)
        raise click.exceptions.Exit(1)


cli.add_command(config)


@cli.command()
def version() -> None:
    """Display version information."""
    click.echo(f"fhir-patient-list version {__version__}")


if __name__ == "__main__":
    cli()
