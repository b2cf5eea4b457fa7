import asyncio

from redis.exceptions import ConnectionError as RedisConnectionError

from app.locks import ShowtimeLocks, lock_key


class RecordingLock:
    def __init__(self, name, log):
        self.name = name
        self.log = log

    async def acquire(self):
        self.log.append(("acquire", self.name))
        return True

    async def release(self):
        self.log.append(("release", self.name))


class RecordingRedis:
    def __init__(self):
        self.log = []

    def lock(self, name, timeout=None, blocking_timeout=None):
        return RecordingLock(name, self.log)


class DownRedis:
    def lock(self, name, timeout=None, blocking_timeout=None):
        raise RedisConnectionError("connection refused")


async def test_local_lock_serializes_one_showtime():
    locks = ShowtimeLocks()
    order = []

    async def worker(tag):
        async with locks.hold(1):
            order.append(f"{tag}-in")
            await asyncio.sleep(0.01)
            order.append(f"{tag}-out")

    await asyncio.gather(worker("a"), worker("b"))

    assert order in (["a-in", "a-out", "b-in", "b-out"], ["b-in", "b-out", "a-in", "a-out"])


async def test_different_showtimes_do_not_block_each_other():
    locks = ShowtimeLocks()
    async with locks.hold(1):
        await asyncio.wait_for(_enter(locks, 2), timeout=1)


async def _enter(locks, showtime_id):
    async with locks.hold(showtime_id):
        return True


async def test_redis_lock_wraps_the_critical_section():
    redis = RecordingRedis()
    locks = ShowtimeLocks(redis)

    async with locks.hold(3):
        redis.log.append(("work", None))

    assert redis.log == [("acquire", lock_key(3)), ("work", None), ("release", lock_key(3))]


async def test_redis_outage_falls_back_to_local_lock():
    locks = ShowtimeLocks(DownRedis())
    entered = False
    async with locks.hold(4):
        entered = True
    assert entered
