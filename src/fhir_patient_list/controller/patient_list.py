"""Patient list controller.

Owns the filter, sort and pagination state of a patient list, drives the
FHIR client and exposes loading/error/empty states to a presentation layer.

State machine::

    idle -> loading -> {loaded, error}
    loaded -> loading   (filter change, sort change, load more)
    error  -> loading   (retry only)

Each request is tagged with a generation number. A response whose
generation is not the latest one issued is discarded, so a slow response
to a superseded query never overwrites fresher state.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional, Protocol

from fhir_patient_list.models.bundle import (
    DEFAULT_COUNT,
    Bundle,
    QueryParams,
    SortKey,
    SortOrder,
)
from fhir_patient_list.models.patient import PatientRecord
from fhir_patient_list.utils.exceptions import PatientListError

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"

FILTER_FIELDS = ("gender", "active")


class PatientSearchClient(Protocol):
    """Anything that can run a Patient search."""

    def search(self, params: Optional[QueryParams] = None) -> Bundle: ...


class ListState(str, Enum):
    """Patient list loading state."""

    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


@dataclass(frozen=True)
class FilterState:
    """Search text and equality filters; empty strings mean "no filter"."""

    search: str = ""
    gender: str = ""
    active: str = ""

    @property
    def active_filter_count(self) -> int:
        """Number of set equality filters (search excluded)."""
        return sum(1 for value in (self.gender, self.active) if value)


@dataclass(frozen=True)
class SortState:
    sort_by: Optional[str] = SortKey.NAME.value
    order: str = SortOrder.ASC.value


@dataclass(frozen=True)
class PageRequest:
    """A page request issued by the controller.

    Attributes:
        generation: Monotonic request number; only the latest is applied
        params: Query parameters sent to the server
        page: Zero-based page number requested
        append: Whether the page is appended to the accumulated records
    """

    generation: int
    params: QueryParams
    page: int
    append: bool


class PatientListController:
    """Filter/sort/pagination state for a list of patients.

    ``search`` calls on the client are synchronous; hosts that issue requests
    themselves can use :meth:`begin_request`, :meth:`complete_request` and
    :meth:`fail_request` directly.

    Attributes:
        state: Current ListState
        patients: Accumulated records of all loaded pages
        total: Match count reported by the last successful response
        has_more: Whether more pages are available
        error: Message of the last failure, if any
        filters: Current FilterState
        sort: Current SortState
        page: Zero-based number of the last loaded page

    Example:
        >>> controller = PatientListController(FHIRClient(base_url))
        >>> controller.load()
        >>> controller.set_filter("gender", "female")
        >>> while controller.has_more:
        ...     controller.load_more()
    """

    def __init__(
        self,
        client: PatientSearchClient,
        page_size: int = DEFAULT_COUNT,
        on_change: Optional[Callable[["PatientListController"], None]] = None,
    ) -> None:
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")
        self.client = client
        self.page_size = page_size
        self.on_change = on_change

        self.state = ListState.IDLE
        self.patients: list[PatientRecord] = []
        self.total = 0
        self.has_more = False
        self.error: Optional[str] = None
        self.filters = FilterState()
        self.sort = SortState()
        self.page = 0

        self._generation = 0
        self._failed_request: Optional[PageRequest] = None
        self._reset_on_retry = False

    # ------------------------------------------------------------------
    # Derived presentation state
    # ------------------------------------------------------------------

    @property
    def loading(self) -> bool:
        return self.state == ListState.LOADING

    @property
    def is_empty(self) -> bool:
        """Loaded successfully with no matching patients."""
        return self.state == ListState.LOADED and not self.patients

    @property
    def show_full_page_error(self) -> bool:
        """Failure with nothing to show: the error replaces the list."""
        return self.state == ListState.ERROR and not self.patients

    @property
    def show_inline_error(self) -> bool:
        """Failure with records already shown: error is displayed alongside them."""
        return self.state == ListState.ERROR and bool(self.patients)

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    def load(self) -> ListState:
        """Load the first page for the current filters and sort."""
        if self.state == ListState.ERROR:
            return self.retry()
        return self._fetch(append=False)

    def set_search(self, value: str) -> ListState:
        return self._update_criteria(filters=replace(self.filters, search=value))

    def set_filter(self, name: str, value: str) -> ListState:
        """Set the ``gender`` or ``active`` filter.

        Raises:
            ValueError: If ``name`` is not a known filter
        """
        if name not in FILTER_FIELDS:
            raise ValueError(
                f"Unknown filter: {name}. Must be one of: {', '.join(FILTER_FIELDS)}"
            )
        return self._update_criteria(filters=replace(self.filters, **{name: value}))

    def clear_filters(self) -> ListState:
        return self._update_criteria(filters=FilterState())

    def set_sort(self, sort_by: Optional[str], order: str = SortOrder.ASC.value) -> ListState:
        return self._update_criteria(sort=SortState(sort_by=sort_by, order=order))

    def toggle_sort(self, sort_by: str) -> ListState:
        """Select a sort key, flipping the direction on every selection."""
        order = SortOrder.DESC.value if self.sort.order == SortOrder.ASC.value else SortOrder.ASC.value
        return self.set_sort(sort_by, order)

    def load_more(self) -> ListState:
        """Fetch the next page and append it.

        Ignored unless the list is loaded and more records are available.
        """
        if self.state != ListState.LOADED or not self.has_more:
            logger.debug(f"Load more ignored (state={self.state.value}, has_more={self.has_more})")
            return self.state
        return self._fetch(append=True)

    def retry(self) -> ListState:
        """Re-issue the failed request.

        A failed "load more" is retried as an append unless the criteria
        changed since the failure, in which case the list reloads from page 0.
        """
        if self.state != ListState.ERROR:
            logger.debug(f"Retry ignored (state={self.state.value})")
            return self.state
        append = bool(
            self._failed_request and self._failed_request.append and not self._reset_on_retry
        )
        return self._fetch(append=append)

    # ------------------------------------------------------------------
    # Request lifecycle
    # ------------------------------------------------------------------

    def build_params(self, page: int) -> QueryParams:
        return QueryParams(
            search=self.filters.search or None,
            gender=self.filters.gender or None,
            active=self.filters.active or None,
            count=self.page_size,
            offset=page * self.page_size,
            sort=self.sort.sort_by or None,
            order=self.sort.order,
        )

    def begin_request(self, append: bool) -> PageRequest:
        """Enter the loading state and issue a new request generation.

        A non-append request resets accumulated records and the page offset.
        """
        self._generation += 1
        page = self.page + 1 if append else 0

        if not append:
            self.patients = []
            self.total = 0
            self.page = 0
            self.has_more = False

        self.state = ListState.LOADING
        self.error = None
        self._reset_on_retry = False

        request = PageRequest(
            generation=self._generation,
            params=self.build_params(page),
            page=page,
            append=append,
        )
        logger.debug(f"Request #{request.generation}: page {page} (append={append})")
        self._notify()
        return request

    def complete_request(self, request: PageRequest, bundle: Bundle) -> bool:
        """Apply a successful response.

        Returns:
            False if the response belongs to a superseded request and was discarded
        """
        if self._is_stale(request):
            return False

        new_patients = bundle.patients
        self.patients = self.patients + new_patients if request.append else new_patients
        self.page = request.page
        self.total = bundle.total
        # An empty page ends paging even if the reported total is higher
        self.has_more = bool(new_patients) and len(self.patients) < self.total
        self.state = ListState.LOADED
        self._failed_request = None

        logger.info(
            f"Loaded page {request.page}: {len(new_patients)} patients "
            f"({len(self.patients)} of {self.total})"
        )
        self._notify()
        return True

    def fail_request(self, request: PageRequest, message: str) -> bool:
        """Apply a failed response.

        Returns:
            False if the failure belongs to a superseded request and was discarded
        """
        if self._is_stale(request):
            return False

        self.error = message or UNEXPECTED_ERROR_MESSAGE
        self.state = ListState.ERROR
        self._failed_request = request

        logger.warning(f"Failed to load page {request.page}: {self.error}")
        self._notify()
        return True

    def _fetch(self, append: bool) -> ListState:
        request = self.begin_request(append)
        try:
            bundle = self.client.search(request.params)
        except PatientListError as e:
            self.fail_request(request, str(e))
        else:
            self.complete_request(request, bundle)
        return self.state

    def _update_criteria(
        self,
        filters: Optional[FilterState] = None,
        sort: Optional[SortState] = None,
    ) -> ListState:
        if filters is not None:
            self.filters = filters
        if sort is not None:
            self.sort = sort

        if self.state == ListState.ERROR:
            # Only retry leaves the error state; it will reload with the new criteria
            self.patients = []
            self.total = 0
            self.page = 0
            self.has_more = False
            self._reset_on_retry = True
            self._notify()
            return self.state
        return self._fetch(append=False)

    def _is_stale(self, request: PageRequest) -> bool:
        if request.generation != self._generation:
            logger.debug(
                f"Discarding response for superseded request #{request.generation} "
                f"(latest #{self._generation})"
            )
            return True
        return False

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self)
