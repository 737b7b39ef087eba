"""Unit tests for the patient list controller."""

from unittest.mock import Mock

import pytest

from fhir_patient_list.controller.patient_list import (
    FilterState,
    ListState,
    PatientListController,
    SortState,
)
from fhir_patient_list.models.bundle import QueryParams
from fhir_patient_list.query.engine import run_query
from fhir_patient_list.query.envelope import build_searchset
from fhir_patient_list.utils.exceptions import FHIRRequestError, TransportError


class FakeClient:
    """In-memory client running queries against the mock dataset.

    Failures queued in ``failures`` are raised by the next calls, in order.
    """

    def __init__(self, records):
        self.records = records
        self.calls: list[QueryParams] = []
        self.failures: list[Exception] = []

    def search(self, params=None):
        params = params or QueryParams()
        self.calls.append(params)
        if self.failures:
            raise self.failures.pop(0)
        total, page = run_query(self.records, params)
        return build_searchset(page, total)


@pytest.fixture
def client(patient_records):
    return FakeClient(patient_records)


@pytest.fixture
def controller(client):
    return PatientListController(client, page_size=2)


def _ids(controller):
    return [p.id for p in controller.patients]


class TestInitialLoad:
    """Tests for the first page load."""

    def test_initial_state(self, controller):
        """Test a new controller is idle and empty."""
        # Arrange & Act & Assert
        assert controller.state == ListState.IDLE
        assert controller.patients == []
        assert controller.sort == SortState(sort_by="Name", order="asc")
        assert not controller.loading

    def test_load_first_page(self, controller, client):
        """Test load fetches page 0 sorted by name."""
        # Act
        state = controller.load()

        # Assert
        assert state == ListState.LOADED
        assert controller.total == 5
        assert controller.has_more is True
        assert controller.page == 0
        assert _ids(controller) == ["4", "1"]
        assert client.calls[0] == QueryParams(count=2, offset=0, sort="Name", order="asc")

    def test_invalid_page_size(self, client):
        """Test that page size must be positive."""
        # Arrange & Act & Assert
        with pytest.raises(ValueError, match="page_size must be >= 1"):
            PatientListController(client, page_size=0)

    def test_empty_result(self, controller):
        """Test the empty state after a search without matches."""
        # Act
        controller.set_search("nobody")

        # Assert
        assert controller.state == ListState.LOADED
        assert controller.is_empty
        assert controller.has_more is False

    def test_on_change_notified(self, client):
        """Test observers see the loading and loaded transitions."""
        # Arrange
        states = []
        controller = PatientListController(client, on_change=lambda c: states.append(c.state))

        # Act
        controller.load()

        # Assert
        assert states == [ListState.LOADING, ListState.LOADED]


class TestLoadMore:
    """Tests for appending pages."""

    def test_appends_until_exhausted(self, controller, client):
        """Test load_more accumulates pages and stops at the total."""
        # Arrange
        controller.load()

        # Act
        controller.load_more()
        controller.load_more()

        # Assert
        assert _ids(controller) == ["4", "1", "3", "5", "2"]
        assert controller.page == 2
        assert controller.has_more is False
        assert [c.offset for c in client.calls] == [0, 2, 4]

    def test_ignored_without_more(self, controller, client):
        """Test load_more is a no-op when everything is loaded."""
        # Arrange
        controller.page_size = 10
        controller.load()

        # Act
        state = controller.load_more()

        # Assert
        assert state == ListState.LOADED
        assert len(client.calls) == 1

    def test_ignored_before_load(self, controller, client):
        """Test load_more is a no-op while idle."""
        # Act
        state = controller.load_more()

        # Assert
        assert state == ListState.IDLE
        assert client.calls == []

    def test_empty_page_below_total_ends_paging(self):
        """Test an empty page stops paging when the total overstates the matches."""
        # Arrange
        client = Mock()
        client.search.return_value = build_searchset([], 5)
        controller = PatientListController(client, page_size=2)

        # Act
        controller.load()
        state = controller.load_more()

        # Assert
        assert state == ListState.LOADED
        assert controller.has_more is False
        assert controller.patients == []
        assert client.search.call_count == 1

    def test_empty_later_page_ends_paging(self, patient_records):
        """Test an empty appended page keeps the records and stops paging."""
        # Arrange
        client = Mock()
        client.search.side_effect = [
            build_searchset(patient_records[:2], 5),
            build_searchset([], 5),
        ]
        controller = PatientListController(client, page_size=2)
        controller.load()

        # Act
        controller.load_more()

        # Assert
        assert controller.state == ListState.LOADED
        assert controller.has_more is False
        assert [p.id for p in controller.patients] == ["1", "2"]
        assert controller.total == 5


class TestCriteria:
    """Tests for search, filter and sort changes."""

    def test_filter_resets_to_first_page(self, controller, client):
        """Test that changing a filter reloads from page 0."""
        # Arrange
        controller.load()
        controller.load_more()

        # Act
        controller.set_filter("gender", "female")

        # Assert
        assert controller.page == 0
        assert _ids(controller) == ["4", "2"]
        assert controller.total == 2
        assert client.calls[-1].gender == "female"
        assert client.calls[-1].offset == 0

    def test_unknown_filter(self, controller):
        """Test that only gender and active are filters."""
        # Arrange & Act & Assert
        with pytest.raises(ValueError, match="Unknown filter"):
            controller.set_filter("city", "Chicago")

    def test_active_filter_count(self, controller):
        """Test the number of applied equality filters."""
        # Act
        controller.set_search("o")
        controller.set_filter("gender", "male")
        controller.set_filter("active", "true")

        # Assert
        assert controller.filters == FilterState(search="o", gender="male", active="true")
        assert controller.filters.active_filter_count == 2
        assert _ids(controller) == ["1", "5"]

    def test_clear_filters(self, controller, client):
        """Test clearing filters reloads everything."""
        # Arrange
        controller.set_filter("active", "false")

        # Act
        controller.clear_filters()

        # Assert
        assert controller.filters == FilterState()
        assert controller.total == 5
        assert client.calls[-1].active is None

    def test_set_sort(self, controller, client):
        """Test sort changes are sent to the server."""
        # Act
        controller.set_sort("MRN", "desc")

        # Assert
        assert _ids(controller) == ["5", "4"]
        assert client.calls[-1].sort == "MRN"
        assert client.calls[-1].order == "desc"

    def test_toggle_sort_flips_direction(self, controller):
        """Test each toggle flips the sort direction."""
        # Act
        controller.toggle_sort("Age")
        first = controller.sort
        controller.toggle_sort("Age")
        second = controller.sort

        # Assert
        assert first == SortState(sort_by="Age", order="desc")
        assert second == SortState(sort_by="Age", order="asc")

    def test_no_sort(self, controller, client):
        """Test that clearing the sort key omits it from the request."""
        # Act
        controller.set_sort(None)

        # Assert
        assert client.calls[-1].sort is None
        assert _ids(controller) == ["1", "2"]


class TestErrors:
    """Tests for error states and retry."""

    def test_full_page_error(self, controller, client):
        """Test a failed first load shows the error in place of the list."""
        # Arrange
        client.failures.append(FHIRRequestError("Invalid search parameter", 400))

        # Act
        state = controller.load()

        # Assert
        assert state == ListState.ERROR
        assert controller.error == "Invalid search parameter"
        assert controller.show_full_page_error
        assert not controller.show_inline_error

    def test_inline_error_keeps_records(self, controller, client):
        """Test a failed load_more keeps loaded records."""
        # Arrange
        controller.load()
        client.failures.append(TransportError("Could not connect"))

        # Act
        controller.load_more()

        # Assert
        assert controller.state == ListState.ERROR
        assert _ids(controller) == ["4", "1"]
        assert controller.show_inline_error
        assert not controller.show_full_page_error

    def test_retry_repeats_failed_append(self, controller, client):
        """Test retry after a failed load_more fetches the same page."""
        # Arrange
        controller.load()
        client.failures.append(TransportError("Could not connect"))
        controller.load_more()

        # Act
        state = controller.retry()

        # Assert
        assert state == ListState.LOADED
        assert _ids(controller) == ["4", "1", "3", "5"]
        assert [c.offset for c in client.calls] == [0, 2, 2]

    def test_load_in_error_state_retries(self, controller, client):
        """Test load from the error state behaves like retry."""
        # Arrange
        client.failures.append(TransportError("down"))
        controller.load()

        # Act
        controller.load()

        # Assert
        assert controller.state == ListState.LOADED
        assert controller.error is None

    def test_criteria_change_waits_for_retry(self, controller, client):
        """Test that criteria changes in the error state do not fetch."""
        # Arrange
        controller.load()
        client.failures.append(TransportError("down"))
        controller.load_more()
        calls = len(client.calls)

        # Act
        state = controller.set_filter("gender", "male")

        # Assert
        assert state == ListState.ERROR
        assert len(client.calls) == calls
        assert controller.patients == []
        assert controller.total == 0
        assert controller.page == 0
        assert controller.has_more is False
        assert controller.show_full_page_error is True

        # Retry reloads from the first page with the new filter
        controller.retry()
        assert client.calls[-1].offset == 0
        assert client.calls[-1].gender == "male"
        assert _ids(controller) == ["1", "3"]

    def test_retry_ignored_outside_error(self, controller, client):
        """Test retry is a no-op unless in the error state."""
        # Arrange
        controller.load()

        # Act
        state = controller.retry()

        # Assert
        assert state == ListState.LOADED
        assert len(client.calls) == 1

    def test_empty_message_uses_default(self, controller):
        """Test a blank failure message is replaced."""
        # Arrange
        request = controller.begin_request(append=False)

        # Act
        controller.fail_request(request, "")

        # Assert
        assert controller.error == "An unexpected error occurred"

    def test_unexpected_exceptions_propagate(self, patient_records):
        """Test that non-domain exceptions are not swallowed."""
        # Arrange
        client = Mock()
        client.search.side_effect = KeyError("bug")
        controller = PatientListController(client)

        # Act & Assert
        with pytest.raises(KeyError):
            controller.load()


class TestStaleResponses:
    """Tests for discarding superseded responses."""

    def test_stale_success_discarded(self, controller, patient_records):
        """Test an older response cannot overwrite a newer request."""
        # Arrange
        old = controller.begin_request(append=False)
        new = controller.begin_request(append=False)

        # Act
        applied_old = controller.complete_request(old, build_searchset(patient_records, 5))
        applied_new = controller.complete_request(new, build_searchset(patient_records[:1], 1))

        # Assert
        assert applied_old is False
        assert applied_new is True
        assert controller.total == 1
        assert _ids(controller) == ["1"]

    def test_stale_failure_discarded(self, controller, patient_records):
        """Test a superseded failure does not enter the error state."""
        # Arrange
        old = controller.begin_request(append=False)
        new = controller.begin_request(append=False)
        controller.complete_request(new, build_searchset(patient_records[:2], 5))

        # Act
        applied = controller.fail_request(old, "timeout")

        # Assert
        assert applied is False
        assert controller.state == ListState.LOADED
        assert controller.error is None

    def test_reset_clears_records_while_loading(self, controller):
        """Test a new first-page request clears accumulated records."""
        # Arrange
        controller.load()

        # Act
        request = controller.begin_request(append=False)

        # Assert
        assert controller.loading
        assert controller.patients == []
        assert controller.total == 0
        assert request.params.offset == 0
