"""Delay record store backed by a Supabase table."""
from supabase import create_client, Client
from typing import Any, Dict, List, Mapping, Optional, Sequence
import logging

from .exceptions import StoreError
from .models import DelayReport, DelayStatus, NeighborhoodTotals, NewDelayReport
from .store import DEFAULT_SORT, DelayStore, SortKey, utcnow

logger = logging.getLogger(__name__)

# Postgres function defined in supabase/schema.sql
GROUP_BY_NEIGHBORHOOD_RPC = "delays_by_neighborhood"


class SupabaseDelayStore(DelayStore):
    """
    Store delay reports in the ``delays`` table through the Supabase client.

    The table, its (neighborhood, status) and reported_at indexes, and the
    grouping function live in supabase/schema.sql. Every client failure is
    re-raised as StoreError with the original message.
    """

    name = "supabase"

    def __init__(self, client: Client, table: str = "delays"):
        """Initialize with an existing Supabase client."""
        self.client = client
        self.table = table

    @classmethod
    def from_settings(cls, settings) -> "SupabaseDelayStore":
        """Create the Supabase client from application settings."""
        if not settings.supabase_key:
            raise StoreError("SUPABASE_KEY must be set when DELAY_STORE=supabase")

        client = create_client(settings.supabase_url, settings.supabase_key)
        logger.info(f"Supabase client initialized for {settings.supabase_url}")
        return cls(client, table=settings.delays_table)

    def _query(self):
        return self.client.table(self.table)

    @staticmethod
    def _apply_filters(query, filters: Optional[Mapping[str, Any]]):
        for column, value in (filters or {}).items():
            if isinstance(value, DelayStatus):
                value = value.value
            query = query.eq(column, value)
        return query

    @staticmethod
    def _first(rows: Optional[List[Dict[str, Any]]]) -> Optional[DelayReport]:
        if not rows:
            return None
        return DelayReport.model_validate(rows[0])

    async def _insert(self, record: NewDelayReport) -> DelayReport:
        # reported_at is left to the column default when not supplied
        row = record.model_dump(mode="json", exclude_none=True)

        try:
            response = self._query().insert(row).execute()
        except Exception as e:
            logger.error(f"Error inserting delay report: {e}")
            raise StoreError(str(e)) from e

        report = self._first(response.data)
        if report is None:
            raise StoreError("Insert returned no data")

        logger.info(f"Delay report stored: id={report.id}, neighborhood={report.neighborhood}")
        return report

    async def find_by_id(self, delay_id: str) -> Optional[DelayReport]:
        try:
            response = self._query().select("*").eq("id", delay_id).limit(1).execute()
        except Exception as e:
            logger.error(f"Error fetching delay report {delay_id}: {e}")
            raise StoreError(str(e)) from e

        return self._first(response.data)

    async def find_many(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        sort: Sequence[SortKey] = DEFAULT_SORT,
        offset: int = 0,
        limit: Optional[int] = None
    ) -> List[DelayReport]:
        query = self._apply_filters(self._query().select("*"), filters)

        for column, descending in sort:
            query = query.order(column, desc=descending)

        if limit is not None:
            query = query.range(offset, offset + limit - 1)
        elif offset:
            query = query.offset(offset)

        try:
            response = query.execute()
        except Exception as e:
            logger.error(f"Error fetching delay reports: {e}")
            raise StoreError(str(e)) from e

        return [DelayReport.model_validate(row) for row in response.data or []]

    async def count(self, filters: Optional[Mapping[str, Any]] = None) -> int:
        query = self._apply_filters(self._query().select("id", count="exact"), filters)

        try:
            # The exact count covers every matching row regardless of the limit
            response = query.limit(1).execute()
        except Exception as e:
            logger.error(f"Error counting delay reports: {e}")
            raise StoreError(str(e)) from e

        return response.count or 0

    async def _update_status(self, delay_id: str, status: DelayStatus) -> Optional[DelayReport]:
        try:
            response = self._query()\
                .update({"status": status.value, "updated_at": utcnow().isoformat()})\
                .eq("id", delay_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error updating delay report {delay_id}: {e}")
            raise StoreError(str(e)) from e

        return self._first(response.data)

    async def delete_by_id(self, delay_id: str) -> Optional[DelayReport]:
        try:
            response = self._query().delete().eq("id", delay_id).execute()
        except Exception as e:
            logger.error(f"Error deleting delay report {delay_id}: {e}")
            raise StoreError(str(e)) from e

        return self._first(response.data)

    async def group_by_neighborhood(self, status: DelayStatus) -> List[NeighborhoodTotals]:
        try:
            response = self.client.rpc(GROUP_BY_NEIGHBORHOOD_RPC, {"p_status": status.value}).execute()
        except Exception as e:
            logger.error(f"Error grouping delay reports: {e}")
            raise StoreError(str(e)) from e

        return [
            NeighborhoodTotals(
                neighborhood=row["neighborhood"],
                count=int(row["count"]),
                total_delay_minutes=int(row["total_delay_minutes"] or 0)
            )
            for row in response.data or []
        ]

    async def clear(self) -> int:
        try:
            # PostgREST refuses an unfiltered delete
            response = self._query().delete().neq("id", "00000000-0000-0000-0000-000000000000").execute()
        except Exception as e:
            logger.error(f"Error clearing delay reports: {e}")
            raise StoreError(str(e)) from e

        return len(response.data or [])

    async def test_connection(self) -> bool:
        """Test Supabase connection."""
        try:
            self._query().select("id").limit(1).execute()
            return True
        except Exception as e:
            logger.error(f"Supabase connection test failed: {e}")
            return False
