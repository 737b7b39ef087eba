"""CLI commands for searching and browsing patients."""

import json
import logging
from typing import Optional, Sequence

import click

from ..client.fhir_client import FHIRClient
from ..config.schema import Config
from ..controller.patient_list import FilterState, ListState, PatientListController, SortState
from ..models.bundle import Bundle, QueryParams, SortKey, SortOrder
from ..models.patient import PatientRecord
from ..utils.exceptions import PatientListError
from ..utils.patient import (
    NOT_AVAILABLE,
    format_age,
    format_birth_date,
    get_patient_email,
    get_patient_mrn,
    get_patient_name,
    get_patient_phone,
)

logger = logging.getLogger(__name__)

GENDER_CHOICES = ["male", "female", "other", "unknown"]
ACTIVE_CHOICES = ["true", "false"]
SORT_CHOICES = [key.value for key in SortKey]
ORDER_CHOICES = [order.value for order in SortOrder]

TABLE_COLUMNS = (
    ("Name", 26),
    ("MRN", 10),
    ("Gender", 8),
    ("Age", 4),
    ("Birth Date", 13),
    ("Phone", 13),
    ("Email", 28),
    ("Status", 8),
)


def _client_from_context(ctx: click.Context) -> FHIRClient:
    config = (ctx.obj or {}).get("config") or Config()
    return FHIRClient.from_config(config)


def patient_row(patient: PatientRecord) -> list[str]:
    """Display values of one patient, in TABLE_COLUMNS order."""
    if patient.active is None:
        status = NOT_AVAILABLE
    else:
        status = "Active" if patient.active else "Inactive"
    return [
        get_patient_name(patient),
        get_patient_mrn(patient),
        patient.gender.capitalize() if patient.gender else NOT_AVAILABLE,
        format_age(patient.birth_date),
        format_birth_date(patient.birth_date),
        get_patient_phone(patient),
        get_patient_email(patient),
        status,
    ]


def render_table(patients: Sequence[PatientRecord]) -> str:
    """Render patients as a fixed-width text table."""
    header = "  ".join(title.ljust(width) for title, width in TABLE_COLUMNS)
    lines = [header, "-" * len(header)]
    for patient in patients:
        cells = patient_row(patient)
        lines.append(
            "  ".join(
                cell[:width].ljust(width) for cell, (_, width) in zip(cells, TABLE_COLUMNS)
            )
        )
    return "\n".join(lines)


def echo_bundle(bundle: Bundle, output_json: bool) -> None:
    if output_json:
        click.echo(json.dumps(bundle.to_dict(), indent=2))
        return
    if not bundle.entry:
        click.echo("No patients found.")
    else:
        click.echo(render_table(bundle.patients))
    click.echo("")
    click.echo(f"Showing {len(bundle.entry)} of {bundle.total} patients")


@click.group(name="patients")
def patients_group():
    """Search and browse patients on the FHIR server.

    Available commands:
    - search: Run a single Patient search
    - get: Fetch one patient by id
    - browse: Page through all matching patients
    """


@patients_group.command(name="search")
@click.option("--search", "search_text", default=None, help="Name or medical record number")
@click.option("--gender", type=click.Choice(GENDER_CHOICES), default=None, help="Gender filter")
@click.option("--active", type=click.Choice(ACTIVE_CHOICES), default=None, help="Status filter")
@click.option("--count", type=click.IntRange(min=0), default=None, help="Page size (server default: 10)")
@click.option("--offset", type=click.IntRange(min=0), default=None, help="Zero-based offset")
@click.option("--sort", type=click.Choice(SORT_CHOICES), default=None, help="Sort key")
@click.option("--order", type=click.Choice(ORDER_CHOICES), default=None, help="Sort direction")
@click.option("--json", "output_json", is_flag=True, help="Output the raw Bundle as JSON")
@click.pass_context
def search_patients(
    ctx: click.Context,
    search_text: Optional[str],
    gender: Optional[str],
    active: Optional[str],
    count: Optional[int],
    offset: Optional[int],
    sort: Optional[str],
    order: Optional[str],
    output_json: bool,
) -> None:
    """Run a single Patient search.

    Examples:

        fhir-patient-list patients search --search John

        fhir-patient-list patients search --gender female --sort Age --order desc
    """
    params = QueryParams(
        search=search_text,
        gender=gender,
        active=active,
        count=count,
        offset=offset,
        sort=sort,
        order=order,
    )
    try:
        with _client_from_context(ctx) as client:
            bundle = client.search(params)
    except PatientListError as e:
        click.echo(click.style("✗", fg="red", bold=True) + f" Error loading patients: {e}", err=True)
        raise click.exceptions.Exit(1)

    echo_bundle(bundle, output_json)


@patients_group.command(name="get")
@click.argument("patient_id")
@click.option("--json", "output_json", is_flag=True, help="Output the raw Bundle as JSON")
@click.pass_context
def get_patient(ctx: click.Context, patient_id: str, output_json: bool) -> None:
    """Fetch one patient by id.

    Example:

        fhir-patient-list patients get 1
    """
    try:
        with _client_from_context(ctx) as client:
            bundle = client.get_by_id(patient_id)
    except PatientListError as e:
        click.echo(click.style("✗", fg="red", bold=True) + f" Error loading patient: {e}", err=True)
        raise click.exceptions.Exit(1)

    echo_bundle(bundle, output_json)


@patients_group.command(name="browse")
@click.option("--search", "search_text", default=None, help="Name or medical record number")
@click.option("--gender", type=click.Choice(GENDER_CHOICES), default=None, help="Gender filter")
@click.option("--active", type=click.Choice(ACTIVE_CHOICES), default=None, help="Status filter")
@click.option("--sort", type=click.Choice(SORT_CHOICES), default=SortKey.NAME.value, help="Sort key")
@click.option("--order", type=click.Choice(ORDER_CHOICES), default=SortOrder.ASC.value, help="Sort direction")
@click.option("--pages", type=click.IntRange(min=0), default=0, help="Maximum pages to load (0: all)")
@click.option("--page-size", type=click.IntRange(min=1, max=100), default=None, help="Patients per page")
@click.pass_context
def browse_patients(
    ctx: click.Context,
    search_text: Optional[str],
    gender: Optional[str],
    active: Optional[str],
    sort: str,
    order: str,
    pages: int,
    page_size: Optional[int],
) -> None:
    """Page through matching patients, loading more until exhausted.

    Example:

        fhir-patient-list patients browse --active true --sort MRN --pages 2
    """
    config = (ctx.obj or {}).get("config") or Config()
    page_size = page_size or config.patient_list.page_size
    logger.debug(f"Browsing patients (page_size={page_size}, pages={pages or 'all'})")

    with _client_from_context(ctx) as client:
        controller = PatientListController(client, page_size=page_size)
        controller.filters = FilterState(
            search=search_text or "", gender=gender or "", active=active or ""
        )
        controller.sort = SortState(sort_by=sort, order=order)

        controller.load()
        loaded_pages = 1
        while (
            controller.state == ListState.LOADED
            and controller.has_more
            and (pages == 0 or loaded_pages < pages)
        ):
            controller.load_more()
            loaded_pages += 1

    if controller.show_full_page_error:
        click.echo(click.style("✗", fg="red", bold=True) + " Error Loading Patients", err=True)
        click.echo(controller.error, err=True)
        raise click.exceptions.Exit(1)

    if controller.is_empty:
        click.echo("No patients found.")
    else:
        click.echo(render_table(controller.patients))

    click.echo("")
    click.echo(f"Showing {len(controller.patients)} of {controller.total} patients")
    if controller.filters.active_filter_count:
        click.echo(f"Filters applied: {controller.filters.active_filter_count}")

    if controller.show_inline_error:
        click.echo(click.style("✗", fg="red", bold=True) + f" {controller.error}", err=True)
        raise click.exceptions.Exit(1)
