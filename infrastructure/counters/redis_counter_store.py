import logging

from redis import asyncio as redis
from redis.exceptions import RedisError

from domain.exceptions.currency import CounterStoreError
from domain.interfaces import CounterStore

logger = logging.getLogger(__name__)


class RedisCounterStore(CounterStore):
    """Counter primitives on top of INCR/EXPIRE and SET NX EX, shared by circuit breakers and rate limiting."""

    def __init__(self, redis_client: redis.Redis):
        self.redis = redis_client

    async def increment(self, key: str, ttl_seconds: int | None = None) -> int:
        try:
            if ttl_seconds is None:
                return int(await self.redis.incr(key))

            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.incr(key)
                pipe.expire(key, ttl_seconds)
                results = await pipe.execute()
            return int(results[0])
        except RedisError as e:
            raise CounterStoreError(f'Failed to increment {key}: {e}') from e

    async def get(self, key: str) -> str | None:
        try:
            value = await self.redis.get(key)
        except RedisError as e:
            raise CounterStoreError(f'Failed to read {key}: {e}') from e

        if isinstance(value, bytes):
            return value.decode()
        return value

    async def set(self, key: str, value: str) -> None:
        try:
            await self.redis.set(key, value)
        except RedisError as e:
            raise CounterStoreError(f'Failed to write {key}: {e}') from e

    async def set_if_absent(self, key: str, value: str, ttl_seconds: int) -> bool:
        try:
            return bool(await self.redis.set(key, value, nx=True, ex=ttl_seconds))
        except RedisError as e:
            raise CounterStoreError(f'Failed to create {key}: {e}') from e

    async def expire(self, key: str, seconds: int) -> None:
        try:
            await self.redis.expire(key, seconds)
        except RedisError as e:
            raise CounterStoreError(f'Failed to set expiry on {key}: {e}') from e

    async def delete(self, *keys: str) -> None:
        if not keys:
            return
        try:
            await self.redis.delete(*keys)
        except RedisError as e:
            raise CounterStoreError(f'Failed to delete {", ".join(keys)}: {e}') from e
