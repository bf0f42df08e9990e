"""Distributed lock implementation using Redis."""

import asyncio
import uuid
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncGenerator

import redis.asyncio as redis

from tablehold.config import get_settings

settings = get_settings()


class DistributedLockError(Exception):
    """Exception raised when lock acquisition fails."""

    pass


class DistributedLock:
    """
    Redis-based distributed lock implementation.

    Uses SET NX EX pattern for atomic lock acquisition with expiration.
    Release goes through a Lua script so only the owner can delete the key.
    """

    # Lua script for safe lock release (only release if we own the lock)
    RELEASE_SCRIPT = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
        return redis.call("del", KEYS[1])
    else
        return 0
    end
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        key: str,
        timeout_seconds: int | None = None,
        retry_delay_ms: int | None = None,
        max_retries: int | None = None,
    ):
        """
        Initialize distributed lock.

        Args:
            redis_client: Redis client instance
            key: Lock key name
            timeout_seconds: Lock expiration time in seconds
            retry_delay_ms: Delay between retry attempts in milliseconds
            max_retries: Maximum number of retry attempts
        """
        self.redis = redis_client
        self.key = f"lock:{key}"
        self.timeout_seconds = timeout_seconds or settings.LOCK_TIMEOUT_SECONDS
        self.retry_delay_ms = retry_delay_ms or settings.LOCK_RETRY_DELAY_MS
        self.max_retries = (
            settings.LOCK_MAX_RETRIES if max_retries is None else max_retries
        )
        self.token: str | None = None
        self._release_script = self.redis.register_script(self.RELEASE_SCRIPT)

    async def acquire(self, blocking: bool = True) -> bool:
        """
        Acquire the lock.

        Args:
            blocking: If True, retry until lock is acquired or max retries reached.
                     If False, try once and return immediately.

        Returns:
            True if lock was acquired, False otherwise.
        """
        self.token = str(uuid.uuid4())
        retries = 0

        while True:
            acquired = await self.redis.set(
                self.key,
                self.token,
                nx=True,
                ex=self.timeout_seconds,
            )

            if acquired:
                return True

            if not blocking or retries >= self.max_retries:
                self.token = None
                return False

            retries += 1
            await asyncio.sleep(self.retry_delay_ms / 1000)

    async def release(self) -> bool:
        """
        Release the lock.

        Returns:
            True if lock was released, False if we didn't own the lock.
        """
        if self.token is None:
            return False

        result = await self._release_script(keys=[self.key], args=[self.token])
        self.token = None
        return bool(result)

    async def is_locked(self) -> bool:
        """Check if lock is currently held by anyone."""
        return await self.redis.exists(self.key) == 1


@asynccontextmanager
async def distributed_lock(
    redis_client: redis.Redis,
    key: str,
    timeout_seconds: int | None = None,
    blocking: bool = True,
) -> AsyncGenerator[DistributedLock, None]:
    """
    Context manager for distributed lock.

    Usage:
        async with distributed_lock(redis, "occupancy:<region>:2025-07-24") as lock:
            # Critical section
            ...

    Raises:
        DistributedLockError: If lock cannot be acquired
    """
    lock = DistributedLock(redis_client, key, timeout_seconds)
    acquired = await lock.acquire(blocking=blocking)

    if not acquired:
        raise DistributedLockError(f"Failed to acquire lock for key: {key}")

    try:
        yield lock
    finally:
        await lock.release()


def occupancy_lock_key(region_id: str, day: date) -> str:
    """
    Lock key guarding a region's occupancy for one day.

    Overlap windows span neighbouring slots, so the whole day of a region is
    the smallest unit whose occupancy count a write can change.
    """
    return f"occupancy:{region_id}:{day.isoformat()}"
