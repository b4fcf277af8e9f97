"""
Usage record storage for the quota tracker.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterator, Optional


@dataclass(frozen=True)
class UsageRecord:
    """Admitted request count for one identity since ``window_start``."""

    count: int
    window_start: float


class UsageStore(ABC):
    """Storage seam for usage records, keyed by identity id.

    The tracker's read-check-increment is only atomic within one event loop.
    A deployment with several workers needs an implementation backed by a
    shared store with compare-and-set or transactional writes.
    """

    @abstractmethod
    def get(self, identity_id: str) -> Optional[UsageRecord]:
        """Return the record for ``identity_id`` or ``None``."""

    @abstractmethod
    def put(self, identity_id: str, record: UsageRecord) -> None:
        """Store ``record`` for ``identity_id``."""


class InMemoryUsageStore(UsageStore):
    """Process-local store. Records are never evicted and are lost on restart."""

    def __init__(self):
        self._records: Dict[str, UsageRecord] = {}

    def get(self, identity_id: str) -> Optional[UsageRecord]:
        return self._records.get(identity_id)

    def put(self, identity_id: str, record: UsageRecord) -> None:
        self._records[identity_id] = record

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)
