"""Read-side operations: paginated listing and neighborhood aggregation."""
from decimal import Decimal, ROUND_HALF_EVEN
from typing import List
import logging
import math

from .exceptions import ValidationError
from .models import (
    DelayPage,
    DelayStatus,
    FieldViolation,
    NeighborhoodSummary,
    Pagination,
    StatusFilter,
)
from .store import DEFAULT_SORT, DelayStore

logger = logging.getLogger(__name__)

# Only unresolved delays are charted
AGGREGATE_STATUS = DelayStatus.ACTIVE


def average_minutes(total: int, count: int) -> float:
    """Mean delay rounded to 2 decimals, ties to even, on the exact quotient."""
    if count <= 0:
        return 0.0
    mean = Decimal(total) / Decimal(count)
    return float(mean.quantize(Decimal("0.01"), rounding=ROUND_HALF_EVEN))


def build_pagination(page: int, page_size: int, total_items: int) -> Pagination:
    """Pagination metadata for one page of a result set."""
    total_pages = math.ceil(total_items / page_size) if total_items else 0
    return Pagination(
        current_page=page,
        total_pages=total_pages,
        total_items=total_items,
        items_per_page=page_size,
        has_next_page=page < total_pages,
        has_prev_page=page > 1
    )


class DelayQueryService:
    """Query and aggregation over an injected delay store."""

    def __init__(self, store: DelayStore):
        self.store = store

    async def list_delays(
        self,
        status: StatusFilter = StatusFilter.ACTIVE,
        page: int = 1,
        page_size: int = 10
    ) -> DelayPage:
        """
        Get one page of delay reports, newest first.

        Args:
            status: active, resolved or all
            page: 1-based page number; pages past the end are empty
            page_size: Reports per page

        Returns:
            The page of reports with its pagination metadata
        """
        violations = []
        if page < 1:
            violations.append(FieldViolation("page", "invalid", "must be at least 1"))
        if page_size < 1:
            violations.append(FieldViolation("limit", "invalid", "must be at least 1"))
        if violations:
            raise ValidationError(violations)

        wanted = StatusFilter(status).to_status()
        filters = {"status": wanted} if wanted is not None else {}

        total = await self.store.count(filters)
        items = await self.store.find_many(
            filters,
            sort=DEFAULT_SORT,
            offset=(page - 1) * page_size,
            limit=page_size
        )

        return DelayPage(items=items, pagination=build_pagination(page, page_size, total))

    async def aggregate_by_neighborhood(self) -> List[NeighborhoodSummary]:
        """
        Group active reports by neighborhood.

        Returns:
            One summary per neighborhood, largest count first
        """
        groups = await self.store.group_by_neighborhood(AGGREGATE_STATUS)

        summaries = [
            NeighborhoodSummary(
                neighborhood=group.neighborhood,
                count=group.count,
                total_delay_minutes=group.total_delay_minutes,
                avg_delay_minutes=average_minutes(group.total_delay_minutes, group.count)
            )
            for group in groups
        ]
        # list.sort is stable, reverse included
        summaries.sort(key=lambda s: s.count, reverse=True)

        logger.debug(f"Aggregated {len(summaries)} neighborhoods")
        return summaries
