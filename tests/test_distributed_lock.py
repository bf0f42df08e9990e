from datetime import date

import pytest

from tablehold.distributed_lock import (
    DistributedLock,
    DistributedLockError,
    distributed_lock,
    occupancy_lock_key,
)


def test_occupancy_key_is_per_region_and_day():
    assert occupancy_lock_key("region-bar", date(2025, 7, 24)) == (
        "occupancy:region-bar:2025-07-24"
    )


async def test_acquire_and_release(redis_client):
    lock = DistributedLock(redis_client, "k", timeout_seconds=5)

    assert await lock.acquire(blocking=False)
    assert await lock.is_locked()
    assert await lock.release()
    assert not await lock.is_locked()


async def test_second_owner_is_refused(redis_client):
    first = DistributedLock(redis_client, "k")
    second = DistributedLock(redis_client, "k", max_retries=0)

    assert await first.acquire()
    assert not await second.acquire()
    assert second.token is None


async def test_release_by_non_owner_keeps_lock(redis_client):
    owner = DistributedLock(redis_client, "k")
    await owner.acquire()
    redis_client.store["lock:k"] = "stolen"

    assert not await owner.release()
    assert redis_client.store["lock:k"] == "stolen"


async def test_context_manager_releases_on_error(redis_client):
    with pytest.raises(RuntimeError):
        async with distributed_lock(redis_client, "k"):
            raise RuntimeError("boom")

    assert redis_client.store == {}


async def test_context_manager_raises_when_busy(redis_client):
    redis_client.store["lock:k"] = "someone-else"

    with pytest.raises(DistributedLockError):
        async with distributed_lock(redis_client, "k", blocking=False):
            pass
