"""Shared fixtures: an in-memory store and an app wired to it."""
import pytest
from datetime import datetime, timedelta, timezone
from httpx import ASGITransport, AsyncClient

from transit_delays.config import Settings
from transit_delays.main import create_app
from transit_delays.models import DelayStatus, NewDelayReport
from transit_delays.mutation_service import DelayMutationService
from transit_delays.query_service import DelayQueryService
from transit_delays.store import InMemoryDelayStore

BASE_TIME = datetime(2025, 10, 1, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def store():
    """Fresh in-memory store."""
    return InMemoryDelayStore()


@pytest.fixture
def query_service(store):
    return DelayQueryService(store)


@pytest.fixture
def mutation_service(store):
    return DelayMutationService(store)


@pytest.fixture
def make_payload():
    """Build a valid create payload, overriding selected fields."""
    def _make(**overrides):
        payload = {
            "routeNumber": "Route 42",
            "neighborhood": "Downtown",
            "delayMinutes": 15,
            "reason": "Traffic Congestion",
            "busId": "BUS-0042",
        }
        payload.update(overrides)
        return payload
    return _make


@pytest.fixture
def make_record():
    """Build a NewDelayReport reported `minutes_ago` before BASE_TIME."""
    def _make(neighborhood="Downtown", delay_minutes=10, status=DelayStatus.ACTIVE, minutes_ago=0):
        return NewDelayReport(
            route_number="Route 1",
            neighborhood=neighborhood,
            delay_minutes=delay_minutes,
            reason="Accident",
            bus_id="BUS-0001",
            reported_at=BASE_TIME - timedelta(minutes=minutes_ago),
            status=status
        )
    return _make


@pytest.fixture
def app(store):
    """API app using the in-memory store."""
    return create_app(store=store, app_settings=Settings(delay_store="memory", max_page_size=50))


@pytest.fixture
async def client(app):
    """Create test client."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
