"""Pydantic models for delay reports and API responses."""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# Fields a client must supply when reporting a delay, in API naming
REQUIRED_FIELDS = ("routeNumber", "neighborhood", "delayMinutes", "reason", "busId")

# Reasons offered by the dashboard report form
DELAY_REASONS = [
    "Mechanical Breakdown",
    "Traffic Congestion",
    "Weather Conditions",
    "Accident",
    "Construction",
    "Other"
]


class DelayStatus(str, Enum):
    """Lifecycle state of a delay report. Resolution is one-way."""
    ACTIVE = "active"
    RESOLVED = "resolved"


class StatusFilter(str, Enum):
    """Status filter accepted by the listing endpoint."""
    ACTIVE = "active"
    RESOLVED = "resolved"
    ALL = "all"

    def to_status(self) -> Optional[DelayStatus]:
        """Map the filter to a concrete status, or None for 'all'."""
        if self is StatusFilter.ALL:
            return None
        return DelayStatus(self.value)


@dataclass(frozen=True)
class FieldViolation:
    """A single field that failed validation."""
    field: str
    code: str  # "missing" or "invalid"
    message: str


class ApiModel(BaseModel):
    """Snake_case attributes, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_api(self) -> Dict[str, Any]:
        """JSON-ready dict using the API field names."""
        return self.model_dump(by_alias=True, mode="json")


class NewDelayReport(ApiModel):
    """A delay report that has not been persisted yet."""
    route_number: str
    neighborhood: str
    delay_minutes: int
    reason: str
    bus_id: str
    reported_at: Optional[datetime] = None  # store defaults it to insert time
    status: DelayStatus = DelayStatus.ACTIVE


class DelayReport(ApiModel):
    """Delay report as persisted by the store."""
    id: str
    route_number: str
    neighborhood: str
    delay_minutes: int
    reason: str
    bus_id: str
    reported_at: datetime
    status: DelayStatus
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class NeighborhoodTotals:
    """Raw per-neighborhood group produced by the store."""
    neighborhood: str
    count: int
    total_delay_minutes: int


class NeighborhoodSummary(ApiModel):
    """One row of the by-neighborhood aggregation."""
    neighborhood: str
    count: int
    total_delay_minutes: int
    avg_delay_minutes: float


class Pagination(ApiModel):
    """Pagination metadata for list responses."""
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next_page: bool
    has_prev_page: bool


class DelayPage(BaseModel):
    """One page of delay reports plus its pagination metadata."""
    items: List[DelayReport]
    pagination: Pagination


class ApiResponse(BaseModel):
    """Uniform envelope wrapped around every API response."""
    success: bool
    data: Optional[Any] = None
    message: Optional[str] = None
    error: Optional[str] = None
    pagination: Optional[Dict[str, Any]] = None
    total: Optional[int] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field("OK", description="Liveness status")
    message: str
