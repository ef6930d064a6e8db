"""Write-side operations: create, resolve and delete delay reports."""
from typing import Any, Mapping
import logging
import uuid

from .exceptions import NotFoundError
from .models import DelayReport, DelayStatus
from .store import DelayStore
from .validation import normalize_delay_payload

logger = logging.getLogger(__name__)


def _checked_id(delay_id: str) -> str:
    """Ids are UUIDs; anything else cannot exist in the store."""
    try:
        return str(uuid.UUID(str(delay_id)))
    except ValueError:
        raise NotFoundError(delay_id) from None


class DelayMutationService:
    """Mutations over an injected delay store."""

    def __init__(self, store: DelayStore):
        self.store = store

    async def create(self, payload: Mapping[str, Any]) -> DelayReport:
        """
        Report a new delay.

        Args:
            payload: Client body with routeNumber, neighborhood, delayMinutes,
                reason and busId. Any status, id or reportedAt is ignored.

        Returns:
            The persisted report, always active

        Raises:
            ValidationError: if a required field is missing or invalid
        """
        record = normalize_delay_payload(payload)
        report = await self.store.insert(record)

        logger.info(
            f"Delay reported: id={report.id}, route={report.route_number}, "
            f"neighborhood={report.neighborhood}, minutes={report.delay_minutes}"
        )
        return report

    async def resolve(self, delay_id: str) -> DelayReport:
        """Mark a report resolved. Resolving a resolved report is a no-op success."""
        report = await self.store.update_status(_checked_id(delay_id), DelayStatus.RESOLVED)
        if report is None:
            raise NotFoundError(delay_id)

        logger.info(f"Delay resolved: id={report.id}")
        return report

    async def delete(self, delay_id: str) -> DelayReport:
        """Permanently delete a report and return its last state."""
        report = await self.store.delete_by_id(_checked_id(delay_id))
        if report is None:
            raise NotFoundError(delay_id)

        logger.info(f"Delay deleted: id={report.id}")
        return report
