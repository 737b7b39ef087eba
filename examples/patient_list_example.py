"""Patient list examples against the mock FHIR server.

This module demonstrates searching patients with the FHIR client and paging
through results with the patient list controller, including how failures
surface as full-page and inline errors.

Start the mock server first:

    fhir-patient-list mock start
"""

import logging

from fhir_patient_list.client.fhir_client import FHIRClient
from fhir_patient_list.config import load_config
from fhir_patient_list.controller.patient_list import PatientListController
from fhir_patient_list.models.bundle import QueryParams
from fhir_patient_list.utils.exceptions import FHIRRequestError, TransportError
from fhir_patient_list.utils.patient import format_age, get_patient_mrn, get_patient_name

# Configure logging to see requests and audit events
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def example_1_search_patients(client: FHIRClient):
    """Example 1: Run a single search with filters and a sort."""
    print("=" * 80)
    print("EXAMPLE 1: Search active female patients, oldest first")
    print("=" * 80)
    print()

    params = QueryParams(gender="female", active="true", sort="Age", order="desc")

    try:
        bundle = client.search(params)
    except TransportError as e:
        print(f"Search failed: {e}")
        return

    print(f"Matches: {bundle.total}")
    for patient in bundle.patients:
        print(f"  {get_patient_mrn(patient)}  {get_patient_name(patient)} ({format_age(patient.birth_date)})")
    print()


def example_2_browse_pages(client: FHIRClient):
    """Example 2: Page through every patient two at a time."""
    print("=" * 80)
    print("EXAMPLE 2: Browse all patients with load more")
    print("=" * 80)
    print()

    controller = PatientListController(
        client,
        page_size=2,
        on_change=lambda c: logger.info(f"List state: {c.state.value} ({len(c.patients)} of {c.total})"),
    )

    controller.load()
    while controller.has_more and not controller.error:
        controller.load_more()

    if controller.show_full_page_error:
        print(f"Error Loading Patients: {controller.error}")
        print("Call controller.retry() to try again.")
        return

    for patient in controller.patients:
        print(f"  {get_patient_name(patient)}")
    print()

    if controller.show_inline_error:
        print(f"Some pages failed to load: {controller.error}")
        print()


def example_3_handle_not_found(client: FHIRClient):
    """Example 3: Read a patient by id and handle a 404 OperationOutcome."""
    print("=" * 80)
    print("EXAMPLE 3: Handle a missing patient")
    print("=" * 80)
    print()

    try:
        client.get_by_id("does-not-exist")
    except FHIRRequestError as e:
        print(f"HTTP {e.status_code}: {e}")
        if e.outcome is not None:
            for issue in e.outcome.issue:
                print(f"  [{issue.severity}] {issue.code}: {issue.diagnostics}")
    print()


def main():
    """Run all examples."""
    config = load_config()

    with FHIRClient.from_config(config) as client:
        example_1_search_patients(client)
        example_2_browse_pages(client)
        example_3_handle_not_found(client)


if __name__ == "__main__":
    main()
