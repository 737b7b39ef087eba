"""Integration tests: FHIR client and list controller against the mock server."""

import pytest
import requests

from fhir_patient_list.client.fhir_client import FHIRClient
from fhir_patient_list.controller.patient_list import ListState, PatientListController
from fhir_patient_list.models.bundle import QueryParams
from fhir_patient_list.utils.exceptions import FHIRRequestError, TransportError

pytestmark = pytest.mark.integration


@pytest.fixture
def client(live_server):
    with FHIRClient(live_server) as fhir_client:
        yield fhir_client


class TestClientAgainstMockServer:
    """Client requests over HTTP."""

    def test_search_all(self, client):
        """Test an unfiltered search returns the whole dataset."""
        # Act
        bundle = client.search()

        # Assert
        assert bundle.total == 5
        assert bundle.type == "searchset"
        assert [p.id for p in bundle.patients] == ["1", "2", "3", "4", "5"]

    def test_search_by_mrn(self, client):
        """Test MRN search over HTTP."""
        # Act
        bundle = client.search(QueryParams(search="MRN-002"))

        # Assert
        assert bundle.total == 1
        assert bundle.patients[0].name[0].family == "Jackson"

    def test_search_sorted_page(self, client):
        """Test sort and pagination survive the round trip."""
        # Act
        bundle = client.search(QueryParams(sort="Name", count=2, offset=2))

        # Assert
        assert bundle.total == 5
        assert [p.id for p in bundle.patients] == ["3", "5"]

    def test_get_by_id(self, client):
        """Test single patient lookup."""
        # Act
        bundle = client.get_by_id("4")

        # Assert
        assert bundle.total == 1
        assert bundle.patients[0].birth_date == "1995-12-03"

    def test_get_unknown_id(self, client):
        """Test the 404 OperationOutcome becomes a FHIRRequestError."""
        # Act & Assert
        with pytest.raises(FHIRRequestError, match="Patient/99 not found") as exc_info:
            client.get_by_id("99")
        assert exc_info.value.status_code == 404

    def test_content_type_and_cors(self, live_server):
        """Test raw response headers."""
        # Act
        response = requests.get(f"{live_server}/Patient", timeout=5)

        # Assert
        assert response.headers["Content-Type"].startswith("application/fhir+json")
        assert response.headers["Access-Control-Allow-Origin"] == "*"

    def test_unreachable_server(self):
        """Test connection failures surface as TransportError."""
        # Arrange
        with FHIRClient("http://127.0.0.1:1/api/fhir", timeout=(1, 1)) as fhir_client:
            # Act & Assert
            with pytest.raises(TransportError, match="Could not connect"):
                fhir_client.search()


class TestControllerAgainstMockServer:
    """List controller flows over HTTP."""

    def test_browse_all_pages(self, client):
        """Test load then load_more until exhausted."""
        # Arrange
        controller = PatientListController(client, page_size=2)

        # Act
        controller.load()
        while controller.has_more:
            controller.load_more()

        # Assert
        assert controller.state == ListState.LOADED
        assert [p.id for p in controller.patients] == ["4", "1", "3", "5", "2"]
        assert controller.total == 5

    def test_filter_change(self, client):
        """Test a filter change reloads from the first page."""
        # Arrange
        controller = PatientListController(client, page_size=2)
        controller.load()

        # Act
        controller.set_filter("active", "false")

        # Assert
        assert controller.total == 1
        assert [p.id for p in controller.patients] == ["3"]
        assert controller.has_more is False
