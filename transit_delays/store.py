"""Delay record store contract and the in-memory implementation."""
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from operator import attrgetter
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
import logging
import uuid

from .exceptions import StoreError, ValidationError
from .models import DelayReport, DelayStatus, FieldViolation, NeighborhoodTotals, NewDelayReport
from .validation import validate_delay_payload

logger = logging.getLogger(__name__)

# (column, descending)
SortKey = Tuple[str, bool]

# Newest reports first, backed by the reported_at index
DEFAULT_SORT: Tuple[SortKey, ...] = (("reported_at", True),)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DelayStore(ABC):
    """
    Persistence contract for delay reports.

    Records are addressed by id, or scanned with equality filters on column
    names (``status``, ``neighborhood``, ...) and a sort order. Every insert
    is validated first; implementations only see clean records.
    """

    name = "abstract"

    async def insert(self, record: NewDelayReport) -> DelayReport:
        """Validate and persist a new report, returning it with its id and timestamps."""
        violations = validate_delay_payload(record.model_dump(by_alias=True))
        if violations:
            raise ValidationError(violations)

        reported_at = record.reported_at
        if reported_at is not None and reported_at.tzinfo is None:
            reported_at = reported_at.replace(tzinfo=timezone.utc)

        clean = record.model_copy(update={
            "route_number": record.route_number.strip(),
            "neighborhood": record.neighborhood.strip(),
            "reason": record.reason.strip(),
            "bus_id": record.bus_id.strip(),
            "reported_at": reported_at,
        })
        return await self._insert(clean)

    @abstractmethod
    async def _insert(self, record: NewDelayReport) -> DelayReport:
        """Persist an already validated record."""

    @abstractmethod
    async def find_by_id(self, delay_id: str) -> Optional[DelayReport]:
        """Get a report by id, or None."""

    @abstractmethod
    async def find_many(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        sort: Sequence[SortKey] = DEFAULT_SORT,
        offset: int = 0,
        limit: Optional[int] = None
    ) -> List[DelayReport]:
        """Get reports matching all equality filters, sorted, then sliced."""

    @abstractmethod
    async def count(self, filters: Optional[Mapping[str, Any]] = None) -> int:
        """Count reports matching all equality filters."""

    async def update_status(self, delay_id: str, status: DelayStatus) -> Optional[DelayReport]:
        """
        Set the status of a report. Returns the updated report, or None if absent.

        Resolution is one-way, so resolved is the only status a report can
        move to. Resolving a resolved report just refreshes updated_at.

        Raises:
            ValidationError: if the target status is not resolved
        """
        if DelayStatus(status) is not DelayStatus.RESOLVED:
            raise ValidationError([
                FieldViolation("status", "invalid", "a delay can only be changed to resolved")
            ])
        return await self._update_status(delay_id, DelayStatus.RESOLVED)

    @abstractmethod
    async def _update_status(self, delay_id: str, status: DelayStatus) -> Optional[DelayReport]:
        """Persist a checked status change."""

    @abstractmethod
    async def delete_by_id(self, delay_id: str) -> Optional[DelayReport]:
        """Delete a report. Returns its last state, or None if absent."""

    @abstractmethod
    async def group_by_neighborhood(self, status: DelayStatus) -> List[NeighborhoodTotals]:
        """
        Count and sum delay minutes per neighborhood for one status.

        Groups come back in order of the first inserted report of each
        neighborhood.
        """

    @abstractmethod
    async def clear(self) -> int:
        """Delete every report. Returns how many were removed."""

    async def test_connection(self) -> bool:
        """Check the store is reachable."""
        return True


class InMemoryDelayStore(DelayStore):
    """Dict-backed store for local development and tests."""

    name = "memory"

    def __init__(self):
        # insertion ordered
        self._records: Dict[str, DelayReport] = {}

    def _matches(self, record: DelayReport, filters: Optional[Mapping[str, Any]]) -> bool:
        for column, expected in (filters or {}).items():
            if column not in DelayReport.model_fields:
                raise StoreError(f"Unknown column: {column}")
            if getattr(record, column) != expected:
                return False
        return True

    async def _insert(self, record: NewDelayReport) -> DelayReport:
        now = utcnow()
        report = DelayReport(
            id=str(uuid.uuid4()),
            route_number=record.route_number,
            neighborhood=record.neighborhood,
            delay_minutes=record.delay_minutes,
            reason=record.reason,
            bus_id=record.bus_id,
            reported_at=record.reported_at or now,
            status=record.status,
            created_at=now,
            updated_at=now,
        )
        self._records[report.id] = report
        return report

    async def find_by_id(self, delay_id: str) -> Optional[DelayReport]:
        return self._records.get(delay_id)

    async def find_many(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        sort: Sequence[SortKey] = DEFAULT_SORT,
        offset: int = 0,
        limit: Optional[int] = None
    ) -> List[DelayReport]:
        results = [r for r in self._records.values() if self._matches(r, filters)]

        # Stable sorts applied last key first give a multi-key ordering
        for column, descending in reversed(list(sort)):
            results.sort(key=attrgetter(column), reverse=descending)

        end = None if limit is None else offset + limit
        return results[offset:end]

    async def count(self, filters: Optional[Mapping[str, Any]] = None) -> int:
        return sum(1 for r in self._records.values() if self._matches(r, filters))

    async def _update_status(self, delay_id: str, status: DelayStatus) -> Optional[DelayReport]:
        current = self._records.get(delay_id)
        if current is None:
            return None

        updated = current.model_copy(update={"status": status, "updated_at": utcnow()})
        self._records[delay_id] = updated
        return updated

    async def delete_by_id(self, delay_id: str) -> Optional[DelayReport]:
        return self._records.pop(delay_id, None)

    async def group_by_neighborhood(self, status: DelayStatus) -> List[NeighborhoodTotals]:
        counts: Dict[str, int] = {}
        totals: Dict[str, int] = {}

        for record in self._records.values():
            if record.status != status:
                continue
            counts[record.neighborhood] = counts.get(record.neighborhood, 0) + 1
            totals[record.neighborhood] = totals.get(record.neighborhood, 0) + record.delay_minutes

        return [
            NeighborhoodTotals(neighborhood=name, count=counts[name], total_delay_minutes=totals[name])
            for name in counts
        ]

    async def clear(self) -> int:
        removed = len(self._records)
        self._records.clear()
        logger.info(f"Cleared {removed} delay reports from memory")
        return removed
