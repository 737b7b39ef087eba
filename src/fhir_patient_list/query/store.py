"""In-memory Patient record store."""

import logging
from typing import Any, Iterable, Iterator, Optional

from fhir_patient_list.models.patient import PatientRecord

logger = logging.getLogger(__name__)


class PatientStore:
    """Fixed, read-only collection of patient records.

    Records keep their seed order, which is the order search results are
    returned in when no sort is requested.

    Raises:
        ValueError: If two records share the same id
    """

    def __init__(self, records: Iterable[PatientRecord]) -> None:
        self._records: tuple[PatientRecord, ...] = tuple(records)
        self._by_id: dict[str, PatientRecord] = {}
        for record in self._records:
            if record.id in self._by_id:
                raise ValueError(f"Duplicate patient id in store: '{record.id}'")
            self._by_id[record.id] = record
        logger.debug("PatientStore seeded with %d records", len(self._records))

    @classmethod
    def from_resources(cls, resources: Iterable[dict[str, Any]]) -> "PatientStore":
        """Seed a store from FHIR Patient JSON objects."""
        return cls(PatientRecord.from_dict(r) for r in resources)

    @property
    def records(self) -> tuple[PatientRecord, ...]:
        return self._records

    def get(self, patient_id: str) -> Optional[PatientRecord]:
        return self._by_id.get(patient_id)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[PatientRecord]:
        return iter(self._records)
