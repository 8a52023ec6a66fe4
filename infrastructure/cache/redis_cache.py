import json
import logging
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from redis import asyncio as redis
from redis.exceptions import RedisError

from domain.exceptions.currency import CacheError, ValidationError
from domain.interfaces import RateCache
from domain.models.currency import ExchangeRate

logger = logging.getLogger(__name__)


class RedisCacheService(RateCache):
    """L1 rate cache. Redis errors and undecodable entries read as a miss."""

    def __init__(self, redis_client: redis.Redis):
        self.redis = redis_client

    @staticmethod
    def _serialize(rate: ExchangeRate) -> str:
        return json.dumps({
            'from': str(rate.from_currency),
            'to': str(rate.to_currency),
            'rate': rate.value,
            'timestamp': int(rate.timestamp.timestamp()),
            'source': rate.source.value,
        })

    @staticmethod
    def _deserialize(data: str | bytes) -> ExchangeRate:
        try:
            snapshot = json.loads(data)
            return ExchangeRate(
                from_currency=snapshot['from'],
                to_currency=snapshot['to'],
                rate=Decimal(snapshot['rate']),
                timestamp=datetime.fromtimestamp(snapshot['timestamp'], tz=UTC),
                source=snapshot['source'],
            )
        except (ValueError, KeyError, TypeError, ValidationError) as e:
            raise CacheError(f'Corrupt cache entry: {e}') from e

    async def get(self, key: str) -> ExchangeRate | None:
        try:
            data = await self.redis.get(key)
            if not data:
                return None
            return self._deserialize(data)
        except (RedisError, CacheError) as e:
            logger.warning(
                f'Cache read failed for {key}: {e}',
                extra={'extra_data': {'event_type': 'cache_operation', 'key': key}},
            )
            return None

    async def set(self, key: str, rate: ExchangeRate, ttl_seconds: int) -> bool:
        try:
            await self.redis.setex(key, ttl_seconds, self._serialize(rate))
            return True
        except RedisError as e:
            logger.warning(
                f'Cache write failed for {key}: {e}',
                extra={'extra_data': {'event_type': 'cache_operation', 'key': key}},
            )
            return False

    async def delete(self, key: str) -> bool:
        try:
            return bool(await self.redis.delete(key))
        except RedisError as e:
            logger.warning(f'Cache delete failed for {key}: {e}')
            return False

    async def exists(self, key: str) -> bool:
        try:
            return bool(await self.redis.exists(key))
        except RedisError as e:
            logger.warning(f'Cache exists check failed for {key}: {e}')
            return False

    async def health_check(self) -> dict[str, Any]:
        try:
            await self.redis.ping()
            return {'status': 'healthy'}
        except RedisError as e:
            logger.error(f'Redis health check failed: {e}')
            return {'status': 'unhealthy', 'error': str(e)}
