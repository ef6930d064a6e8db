"""Tests for the in-memory delay store."""
import pytest
from datetime import datetime, timezone

from transit_delays.exceptions import StoreError, ValidationError
from transit_delays.models import DelayStatus, NewDelayReport


@pytest.mark.asyncio
async def test_insert_assigns_id_and_timestamps(store, make_record):
    report = await store.insert(make_record())

    assert report.id
    assert report.status == DelayStatus.ACTIVE
    assert report.created_at == report.updated_at
    assert report.created_at.tzinfo is not None
    assert await store.find_by_id(report.id) == report


@pytest.mark.asyncio
async def test_insert_defaults_reported_at_to_now(store, make_record):
    record = make_record().model_copy(update={"reported_at": None})

    before = datetime.now(timezone.utc)
    report = await store.insert(record)

    assert report.reported_at >= before
    assert report.reported_at == report.created_at


@pytest.mark.asyncio
async def test_insert_treats_naive_reported_at_as_utc(store, make_record):
    record = make_record().model_copy(update={"reported_at": datetime(2025, 1, 1, 12, 0)})

    report = await store.insert(record)

    assert report.reported_at == datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_insert_trims_strings(store):
    record = NewDelayReport(
        route_number=" Route 9 ",
        neighborhood="  Riverside ",
        delay_minutes=3,
        reason=" Other",
        bus_id="BUS-0009 "
    )

    report = await store.insert(record)

    assert report.route_number == "Route 9"
    assert report.neighborhood == "Riverside"
    assert report.reason == "Other"
    assert report.bus_id == "BUS-0009"


@pytest.mark.asyncio
async def test_insert_rejects_invalid_record(store, make_record):
    record = make_record(delay_minutes=-1).model_copy(update={"neighborhood": "  "})

    with pytest.raises(ValidationError) as exc_info:
        await store.insert(record)

    assert exc_info.value.fields == ["neighborhood", "delayMinutes"]
    assert await store.count() == 0


@pytest.mark.asyncio
async def test_ids_are_unique(store, make_record):
    ids = {(await store.insert(make_record())).id for _ in range(20)}

    assert len(ids) == 20


@pytest.mark.asyncio
async def test_find_many_sorts_newest_first(store, make_record):
    oldest = await store.insert(make_record(minutes_ago=30))
    newest = await store.insert(make_record(minutes_ago=0))
    middle = await store.insert(make_record(minutes_ago=10))

    results = await store.find_many()

    assert [r.id for r in results] == [newest.id, middle.id, oldest.id]


@pytest.mark.asyncio
async def test_find_many_filters_and_slices(store, make_record):
    for i in range(5):
        await store.insert(make_record(minutes_ago=i))
    await store.insert(make_record(status=DelayStatus.RESOLVED))

    active = await store.find_many({"status": DelayStatus.ACTIVE}, offset=1, limit=2)

    assert len(active) == 2
    assert all(r.status == DelayStatus.ACTIVE for r in active)
    assert [r.reported_at for r in active] == sorted((r.reported_at for r in active), reverse=True)
    assert await store.count({"status": DelayStatus.ACTIVE}) == 5
    assert await store.count({"status": "resolved"}) == 1
    assert await store.count() == 6


@pytest.mark.asyncio
async def test_find_many_supports_multiple_sort_keys(store, make_record):
    a = await store.insert(make_record(neighborhood="B", minutes_ago=5))
    b = await store.insert(make_record(neighborhood="A", minutes_ago=1))
    c = await store.insert(make_record(neighborhood="B", minutes_ago=0))

    results = await store.find_many(sort=[("neighborhood", False), ("reported_at", True)])

    assert [r.id for r in results] == [b.id, c.id, a.id]


@pytest.mark.asyncio
async def test_unknown_filter_column_raises_store_error(store, make_record):
    await store.insert(make_record())

    with pytest.raises(StoreError):
        await store.count({"colour": "red"})


@pytest.mark.asyncio
async def test_update_status(store, make_record):
    report = await store.insert(make_record())

    updated = await store.update_status(report.id, DelayStatus.RESOLVED)

    assert updated.status == DelayStatus.RESOLVED
    assert updated.id == report.id
    assert updated.updated_at >= report.updated_at
    assert (await store.find_by_id(report.id)).status == DelayStatus.RESOLVED
    assert await store.update_status("missing", DelayStatus.RESOLVED) is None


@pytest.mark.asyncio
async def test_resolved_report_cannot_be_reopened(store, make_record):
    report = await store.insert(make_record())
    await store.update_status(report.id, DelayStatus.RESOLVED)

    with pytest.raises(ValidationError) as exc_info:
        await store.update_status(report.id, DelayStatus.ACTIVE)

    assert exc_info.value.fields == ["status"]
    assert (await store.find_by_id(report.id)).status == DelayStatus.RESOLVED


@pytest.mark.asyncio
async def test_update_status_rejects_active_target(store, make_record):
    report = await store.insert(make_record())

    with pytest.raises(ValidationError):
        await store.update_status(report.id, "active")

    assert (await store.find_by_id(report.id)).updated_at == report.updated_at


@pytest.mark.asyncio
async def test_delete_returns_last_state(store, make_record):
    report = await store.insert(make_record())

    deleted = await store.delete_by_id(report.id)

    assert deleted == report
    assert await store.find_by_id(report.id) is None
    assert await store.delete_by_id(report.id) is None


@pytest.mark.asyncio
async def test_group_by_neighborhood_keeps_first_insertion_order(store, make_record):
    await store.insert(make_record(neighborhood="Uptown", delay_minutes=5))
    await store.insert(make_record(neighborhood="Downtown", delay_minutes=10))
    await store.insert(make_record(neighborhood="Uptown", delay_minutes=7))
    await store.insert(make_record(neighborhood="Eastside", delay_minutes=50, status=DelayStatus.RESOLVED))

    groups = await store.group_by_neighborhood(DelayStatus.ACTIVE)

    assert [(g.neighborhood, g.count, g.total_delay_minutes) for g in groups] == [
        ("Uptown", 2, 12),
        ("Downtown", 1, 10),
    ]


@pytest.mark.asyncio
async def test_clear(store, make_record):
    await store.insert(make_record())
    await store.insert(make_record())

    assert await store.clear() == 2
    assert await store.count() == 0
