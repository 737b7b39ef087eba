"""Search parameter, Bundle and OperationOutcome data models.

This module defines the query parameters accepted by the Patient search
endpoint and the FHIR resources exchanged between the mock server and the
client: the searchset Bundle envelope and the OperationOutcome error payload.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional

from fhir_patient_list.models.patient import PatientRecord

DEFAULT_COUNT = 10
DEFAULT_OFFSET = 0

# Query argument names in the order they are appended to a request URL
QUERY_ARG_ORDER = ("_search", "gender", "active", "_count", "_offset", "_sort", "_order")

_NON_NEGATIVE_INT = re.compile(r"^\s*\d+\s*$")


class SortKey(str, Enum):
    """Sort keys supported by the Patient search endpoint."""

    NAME = "Name"
    MRN = "MRN"
    AGE = "Age"


class SortOrder(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


class SearchMode(str, Enum):
    """Why an entry appears in a searchset Bundle."""

    MATCH = "match"


@dataclass(frozen=True)
class QueryParams:
    """Patient search parameters.

    All fields are optional; unset fields mean "no filter" (or the default
    page window). ``sort`` is kept as a raw string so that unknown keys can be
    carried through and ignored by the query engine.

    Attributes:
        search: Free-text token matched against full name and MRN
        gender: Gender equality filter
        active: Active status filter (``"true"``/``"false"``)
        count: Page size (default 10)
        offset: Zero-based offset of the first record (default 0)
        sort: Sort key (``Name``, ``MRN`` or ``Age``)
        order: Sort direction (``asc`` default, ``desc``)
    """

    search: Optional[str] = None
    gender: Optional[str] = None
    active: Optional[str] = None
    count: Optional[int] = None
    offset: Optional[int] = None
    sort: Optional[str] = None
    order: Optional[str] = None

    @property
    def page_size(self) -> int:
        return DEFAULT_COUNT if self.count is None or self.count < 0 else self.count

    @property
    def page_offset(self) -> int:
        return DEFAULT_OFFSET if self.offset is None or self.offset < 0 else self.offset

    @property
    def descending(self) -> bool:
        return (self.order or SortOrder.ASC.value) != SortOrder.ASC.value

    def to_query_args(self) -> dict[str, str]:
        """Encode into URL query arguments.

        Only defined values are kept (``None`` and empty strings are dropped),
        in the fixed order of ``QUERY_ARG_ORDER``.
        """
        values = {
            "_search": self.search,
            "gender": self.gender,
            "active": self.active,
            "_count": self.count,
            "_offset": self.offset,
            "_sort": self.sort,
            "_order": self.order,
        }
        args: dict[str, str] = {}
        for key in QUERY_ARG_ORDER:
            value = values[key]
            if value is None or value == "":
                continue
            if isinstance(value, bool):
                value = "true" if value else "false"
            elif isinstance(value, Enum):
                value = value.value
            args[key] = str(value)
        return args

    @classmethod
    def from_query_args(cls, args: Mapping[str, str]) -> "QueryParams":
        """Decode from URL query arguments.

        Malformed or negative ``_count``/``_offset`` values are dropped so that
        the defaults apply; empty strings count as absent.
        """
        return cls(
            search=args.get("_search") or None,
            gender=args.get("gender") or None,
            active=args.get("active") or None,
            count=_parse_non_negative_int(args.get("_count")),
            offset=_parse_non_negative_int(args.get("_offset")),
            sort=args.get("_sort") or None,
            order=args.get("_order") or None,
        )


def _parse_non_negative_int(value: Optional[str]) -> Optional[int]:
    if value is None or not _NON_NEGATIVE_INT.match(value):
        return None
    return int(value)


@dataclass(frozen=True)
class BundleEntry:
    """A single searchset entry."""

    resource: PatientRecord
    mode: str = SearchMode.MATCH.value

    def to_dict(self) -> dict[str, Any]:
        return {"resource": self.resource.to_dict(), "search": {"mode": self.mode}}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BundleEntry":
        search = data.get("search") or {}
        return cls(
            resource=PatientRecord.from_dict(data["resource"]),
            mode=search.get("mode", SearchMode.MATCH.value),
        )


@dataclass(frozen=True)
class Bundle:
    """FHIR searchset Bundle (result envelope).

    Invariants: ``len(entry) <= page size`` and ``total >= len(entry)``.

    Attributes:
        total: Number of matches after filtering, before pagination
        entry: Entries of the current page
        timestamp: Time the envelope was built (ISO-8601)
        id: Bundle id
        type: Bundle type (always ``searchset`` here)
    """

    total: int
    entry: tuple[BundleEntry, ...] = ()
    timestamp: Optional[str] = None
    id: Optional[str] = None
    type: str = "searchset"

    resource_type = "Bundle"

    @property
    def patients(self) -> list[PatientRecord]:
        return [e.resource for e in self.entry]

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"resourceType": self.resource_type}
        if self.id is not None:
            result["id"] = self.id
        result["type"] = self.type
        if self.timestamp is not None:
            result["timestamp"] = self.timestamp
        result["total"] = self.total
        result["entry"] = [e.to_dict() for e in self.entry]
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Bundle":
        """Decode a Bundle JSON object.

        A missing ``total`` is read as 0 and a missing ``entry`` as empty.

        Raises:
            ValueError: If the object is not a Bundle or an entry is malformed
        """
        if not isinstance(data, dict) or data.get("resourceType") != cls.resource_type:
            found = data.get("resourceType") if isinstance(data, dict) else type(data).__name__
            raise ValueError(f"Expected resourceType 'Bundle', got '{found}'")
        try:
            entries = tuple(BundleEntry.from_dict(e) for e in data.get("entry") or [])
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"Malformed Bundle entry: {e}") from e
        return cls(
            total=int(data.get("total") or 0),
            entry=entries,
            timestamp=data.get("timestamp"),
            id=data.get("id"),
            type=data.get("type", "searchset"),
        )


@dataclass(frozen=True)
class OutcomeIssue:
    """A single OperationOutcome issue."""

    severity: str
    code: str
    diagnostics: Optional[str] = None

    @property
    def message(self) -> str:
        """Diagnostics text, or ``"<severity>: <code>"`` when absent."""
        return self.diagnostics or f"{self.severity}: {self.code}"

    def to_dict(self) -> dict[str, Any]:
        result = {"severity": self.severity, "code": self.code}
        if self.diagnostics is not None:
            result["diagnostics"] = self.diagnostics
        return result


@dataclass(frozen=True)
class OperationOutcome:
    """Structured error payload listing one or more issues."""

    issue: tuple[OutcomeIssue, ...] = field(default=())

    resource_type = "OperationOutcome"

    @property
    def message(self) -> str:
        return ", ".join(i.message for i in self.issue)

    @classmethod
    def error(cls, code: str, diagnostics: str) -> "OperationOutcome":
        """Single-issue outcome with severity ``error``."""
        return cls(issue=(OutcomeIssue(severity="error", code=code, diagnostics=diagnostics),))

    def to_dict(self) -> dict[str, Any]:
        return {
            "resourceType": self.resource_type,
            "issue": [i.to_dict() for i in self.issue],
        }

    @classmethod
    def from_dict(cls, data: Any) -> Optional["OperationOutcome"]:
        """Decode an OperationOutcome, or return None if ``data`` is not one."""
        if not isinstance(data, dict) or data.get("resourceType") != cls.resource_type:
            return None
        issues = []
        for raw in data.get("issue") or []:
            if not isinstance(raw, dict):
                continue
            issues.append(
                OutcomeIssue(
                    severity=str(raw.get("severity", "error")),
                    code=str(raw.get("code", "unknown")),
                    diagnostics=raw.get("diagnostics"),
                )
            )
        return cls(issue=tuple(issues))
