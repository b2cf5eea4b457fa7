# backend/app/locks.py
import asyncio
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

import redis.asyncio as redis_client
from redis.exceptions import RedisError

from app.config import BOOKING_LOCK_TIMEOUT, REDIS_URL


def lock_key(showtime_id: int) -> str:
    return f"showtime:{showtime_id}:booking-lock"


class ShowtimeLocks:
    """
    Mutual exclusion for booking attempts on the same showtime.

    An asyncio.Lock per showtime serializes attempts inside this process.
    When a Redis client is configured, a Redis lock on top extends that to
    every process sharing the server. Redis is best-effort: on error the
    attempt proceeds under the local lock alone, and the storage layer's
    conditional seat update still rejects a double booking.
    """

    def __init__(self, redis=None, timeout: float = BOOKING_LOCK_TIMEOUT):
        self.redis = redis
        self.timeout = timeout
        self._local: Dict[int, asyncio.Lock] = defaultdict(asyncio.Lock)

    @classmethod
    def from_url(cls, url: Optional[str] = REDIS_URL, timeout: float = BOOKING_LOCK_TIMEOUT) -> "ShowtimeLocks":
        if not url:
            return cls(timeout=timeout)
        # create a redis client suitable for asyncio
        return cls(redis_client.from_url(url, encoding="utf-8", decode_responses=True), timeout=timeout)

    @asynccontextmanager
    async def hold(self, showtime_id: int) -> AsyncIterator[None]:
        async with self._local[showtime_id]:
            remote = await self._acquire_remote(showtime_id)
            try:
                yield
            finally:
                if remote is not None:
                    await self._release_remote(remote, showtime_id)

    async def _acquire_remote(self, showtime_id: int):
        if self.redis is None:
            return None
        try:
            lock = self.redis.lock(lock_key(showtime_id), timeout=self.timeout, blocking_timeout=self.timeout)
            if await lock.acquire():
                return lock
            logging.warning("timed out waiting for redis booking lock on showtime %s", showtime_id)
        except RedisError as exc:
            logging.exception("Redis error acquiring booking lock: %s", exc)
        return None

    async def _release_remote(self, lock, showtime_id: int) -> None:
        try:
            await lock.release()
        except RedisError as exc:
            # lock expired or Redis went away; the key times out on its own
            logging.exception("Redis error releasing booking lock for showtime %s: %s", showtime_id, exc)

    async def close(self) -> None:
        if self.redis is not None:
            await self.redis.aclose()
