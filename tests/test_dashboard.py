"""Dashboard session and deletion coordinator tests."""

import asyncio

import pytest

from app.core.exceptions import (
    ConfirmationRequiredError,
    DeleteFailedError,
    DeleteInProgressError,
    NotFoundError,
)
from app.domains.feedback.dashboard import (
    DashboardSession,
    DashboardSessionRegistry,
    DeletionCoordinator,
    LocalInFlightMarker,
    RedisInFlightMarker,
)
from app.db import redis as redis_db
from app.domains.feedback.schemas import FeedbackFilter
from tests.conftest import make_submission


@pytest.fixture
async def seeded_repo(feedback_repo):
    for rating in (5, 3, 3, 1):
        await feedback_repo.create(make_submission(overall_experience=rating))
    return feedback_repo


@pytest.fixture
def coordinator(seeded_repo, in_flight_marker):
    return DeletionCoordinator(seeded_repo, in_flight_marker)


@pytest.fixture
def session(seeded_repo, coordinator):
    return DashboardSession(seeded_repo, coordinator)


# ============================================================
# DeletionCoordinator
# ============================================================


async def test_delete_removes_from_store(coordinator, seeded_repo):
    target = (await seeded_repo.list_all())[0]

    await coordinator.delete(target.id)

    assert target.id not in [s.id for s in await seeded_repo.list_all()]


async def test_delete_unknown_id_fails(coordinator, in_flight_marker):
    with pytest.raises(DeleteFailedError) as exc_info:
        await coordinator.delete("665f1f77bcf86cd799439011")

    assert exc_info.value.status_code == 404
    assert "665f1f77bcf86cd799439011" not in in_flight_marker


async def test_store_error_clears_marker_so_retry_works(coordinator, seeded_repo, in_flight_marker):
    target = (await seeded_repo.list_all())[0]
    seeded_repo.fail_delete = True

    with pytest.raises(DeleteFailedError) as exc_info:
        await coordinator.delete(target.id)
    assert exc_info.value.status_code == 503
    assert target.id not in in_flight_marker

    seeded_repo.fail_delete = False
    await coordinator.delete(target.id)
    assert await seeded_repo.get_by_id(target.id) is None


async def test_second_delete_for_same_id_is_rejected_while_in_flight(seeded_repo):
    marker = LocalInFlightMarker()
    target = (await seeded_repo.list_all())[0]
    gate = asyncio.Event()
    original_delete = seeded_repo.delete

    async def slow_delete(feedback_id):
        await gate.wait()
        return await original_delete(feedback_id)

    seeded_repo.delete = slow_delete
    coordinator = DeletionCoordinator(seeded_repo, marker)

    first = asyncio.create_task(coordinator.delete(target.id))
    await asyncio.sleep(0)
    assert target.id in marker

    with pytest.raises(DeleteInProgressError):
        await coordinator.delete(target.id)

    gate.set()
    await first
    assert target.id not in marker


async def test_deletes_of_different_ids_may_overlap(seeded_repo):
    marker = LocalInFlightMarker()
    first_id, second_id = [s.id for s in (await seeded_repo.list_all())[:2]]

    assert await marker.acquire(first_id)
    coordinator = DeletionCoordinator(seeded_repo, marker)
    await coordinator.delete(second_id)

    assert first_id in marker


# ============================================================
# DashboardSession
# ============================================================


async def test_activate_loads_collection_newest_first(session, seeded_repo):
    records = await session.activate()

    assert records == await seeded_repo.list_all()
    assert session.cache.is_loaded


async def test_view_filters_cached_collection(session):
    await session.activate()

    ratings = [s.overall_experience for s in session.view(FeedbackFilter(overall_rating=3))]
    assert ratings == [3, 3]


async def test_delete_requires_confirmation(session, seeded_repo):
    records = await session.activate()

    with pytest.raises(ConfirmationRequiredError):
        await session.delete(records[0].id, confirmed=False)

    assert seeded_repo.delete_calls == 0
    assert len(session.cache) == 4


async def test_delete_reconciles_cache_and_closes_open_inspection(session):
    records = await session.activate()
    session.open(records[1].id)

    closed = await session.delete(records[1].id, confirmed=True)

    assert closed is True
    assert session.selected_id is None
    assert records[1].id not in [s.id for s in session.view()]
    assert len(session.cache) == 3


async def test_delete_of_other_record_keeps_inspection_open(session):
    records = await session.activate()
    session.open(records[0].id)

    closed = await session.delete(records[2].id, confirmed=True)

    assert closed is False
    assert session.selected_id == records[0].id


async def test_failed_delete_leaves_cache_untouched(session, seeded_repo):
    records = await session.activate()
    session.open(records[0].id)
    seeded_repo.fail_delete = True

    with pytest.raises(DeleteFailedError):
        await session.delete(records[0].id, confirmed=True)

    assert session.view() == records
    assert session.selected_id == records[0].id


async def test_deleting_missing_id_does_not_mutate_cache(session):
    records = await session.activate()

    with pytest.raises(DeleteFailedError):
        await session.delete("665f1f77bcf86cd799439011", confirmed=True)

    assert session.view() == records


async def test_open_unknown_id_raises_not_found(session):
    await session.activate()
    with pytest.raises(NotFoundError):
        session.open("missing")


async def test_invalidated_session_refetches(session, seeded_repo):
    await session.activate()
    await seeded_repo.create(make_submission(name="Newcomer"))

    await session.ensure_loaded()
    assert len(session.cache) == 4

    session.cache.invalidate()
    await session.ensure_loaded()
    assert session.view()[0].name == "Newcomer"


def test_registry_reuses_and_invalidates_sessions(seeded_repo, coordinator):
    registry = DashboardSessionRegistry()

    first = registry.get("reviewer@example.com", seeded_repo, coordinator)
    assert registry.get("reviewer@example.com", seeded_repo, coordinator) is first

    first.cache.replace([])
    registry.invalidate_all()
    assert not first.cache.is_loaded

    registry.drop("reviewer@example.com")
    assert registry.get("reviewer@example.com", seeded_repo, coordinator) is not first


async def test_list_started_before_delete_does_not_restore_deleted_record(session, seeded_repo):
    records = await session.activate()
    target = records[0]
    snapshot_taken = asyncio.Event()
    release = asyncio.Event()
    list_all = seeded_repo.list_all

    async def slow_list_all():
        snapshot = await list_all()
        snapshot_taken.set()
        await release.wait()
        return snapshot

    seeded_repo.list_all = slow_list_all
    reload = asyncio.create_task(session.activate())
    await snapshot_taken.wait()

    await session.delete(target.id, confirmed=True)
    release.set()
    await reload

    assert target.id not in [s.id for s in session.view()]
    assert len(session.cache) == 3
    with pytest.raises(NotFoundError):
        session.open(target.id)


# ============================================================
# RedisInFlightMarker
# ============================================================


class FakeRedis:
    """Just enough of redis.asyncio.Redis for SET NX EX markers."""

    def __init__(self):
        self.values: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}

    async def set(self, key, value, nx=False, ex=None):
        if nx and key in self.values:
            return None
        self.values[key] = value
        self.ttls[key] = ex
        return True

    async def delete(self, key):
        self.ttls.pop(key, None)
        return int(self.values.pop(key, None) is not None)


@pytest.fixture
def fake_redis(monkeypatch):
    client = FakeRedis()
    monkeypatch.setattr(redis_db, "redis_client", client)
    return client


async def test_redis_marker_rejects_same_id_until_released(fake_redis):
    marker = RedisInFlightMarker(ttl=30)

    assert await marker.acquire("abc") is True
    assert await marker.acquire("abc") is False
    assert await marker.acquire("def") is True
    assert fake_redis.ttls["feedback_delete:abc"] == 30

    await marker.release("abc")
    assert "feedback_delete:abc" not in fake_redis.values
    assert await marker.acquire("abc") is True


async def test_coordinator_with_redis_marker_rejects_concurrent_same_id(seeded_repo, fake_redis):
    target = (await seeded_repo.list_all())[0]
    gate = asyncio.Event()
    store_delete = seeded_repo.delete

    async def slow_delete(feedback_id):
        await gate.wait()
        return await store_delete(feedback_id)

    seeded_repo.delete = slow_delete
    coordinator = DeletionCoordinator(seeded_repo, RedisInFlightMarker(ttl=30))

    first = asyncio.create_task(coordinator.delete(target.id))
    await asyncio.sleep(0)
    assert f"feedback_delete:{target.id}" in fake_redis.values

    with pytest.raises(DeleteInProgressError):
        await coordinator.delete(target.id)

    gate.set()
    await first
    assert fake_redis.values == {}
    assert await seeded_repo.get_by_id(target.id) is None
