"""Tests for create, resolve and delete."""
import pytest
import uuid

from transit_delays.exceptions import NotFoundError, ValidationError
from transit_delays.models import DelayStatus


@pytest.mark.asyncio
async def test_create_returns_persisted_active_report(mutation_service, store, make_payload):
    report = await mutation_service.create(make_payload(delayMinutes="25"))

    assert report.status == DelayStatus.ACTIVE
    assert report.delay_minutes == 25
    assert report.route_number == "Route 42"
    assert await store.find_by_id(report.id) == report


@pytest.mark.asyncio
@pytest.mark.parametrize("client_status", ["resolved", "active", "bogus", None])
async def test_create_ignores_client_status(mutation_service, make_payload, client_status):
    report = await mutation_service.create(make_payload(status=client_status))

    assert report.status == DelayStatus.ACTIVE


@pytest.mark.asyncio
async def test_create_accepts_zero_minutes(mutation_service, make_payload):
    report = await mutation_service.create(make_payload(delayMinutes=0))

    assert report.delay_minutes == 0


@pytest.mark.asyncio
async def test_create_missing_fields_does_not_touch_store(mutation_service, store, make_payload):
    payload = make_payload()
    del payload["busId"]
    del payload["neighborhood"]

    with pytest.raises(ValidationError) as exc_info:
        await mutation_service.create(payload)

    assert exc_info.value.fields == ["neighborhood", "busId"]
    assert await store.count() == 0


@pytest.mark.asyncio
async def test_resolve_twice_succeeds(mutation_service, make_payload):
    report = await mutation_service.create(make_payload())

    first = await mutation_service.resolve(report.id)
    second = await mutation_service.resolve(report.id)

    assert first.status == DelayStatus.RESOLVED
    assert second.status == DelayStatus.RESOLVED
    assert second.id == report.id


@pytest.mark.asyncio
async def test_resolve_unknown_id(mutation_service):
    with pytest.raises(NotFoundError):
        await mutation_service.resolve(str(uuid.uuid4()))


@pytest.mark.asyncio
async def test_delete_twice_second_is_not_found(mutation_service, store, make_payload):
    report = await mutation_service.create(make_payload())

    deleted = await mutation_service.delete(report.id)

    assert deleted.id == report.id
    assert deleted.neighborhood == report.neighborhood
    assert await store.count() == 0

    with pytest.raises(NotFoundError):
        await mutation_service.delete(report.id)


@pytest.mark.asyncio
async def test_delete_returns_resolved_state(mutation_service, make_payload):
    report = await mutation_service.create(make_payload())
    await mutation_service.resolve(report.id)

    deleted = await mutation_service.delete(report.id)

    assert deleted.status == DelayStatus.RESOLVED


@pytest.mark.asyncio
@pytest.mark.parametrize("bad_id", ["not-a-uuid", "", "123"])
async def test_malformed_ids_are_not_found(mutation_service, bad_id):
    with pytest.raises(NotFoundError) as exc_info:
        await mutation_service.delete(bad_id)

    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "Delay not found"
