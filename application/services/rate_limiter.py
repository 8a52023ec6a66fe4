import logging

from domain.exceptions.currency import CounterStoreError
from domain.interfaces import CounterStore

logger = logging.getLogger(__name__)


class RateLimiter:
    """Fixed-window admission counter. Bursts at window boundaries are possible."""

    KEY_PREFIX = 'rate_limit'

    def __init__(self, counter_store: CounterStore):
        self.counter_store = counter_store

    def _key(self, key: str) -> str:
        return f'{self.KEY_PREFIX}:{key}'

    async def _current(self, key: str) -> int:
        value = await self.counter_store.get(self._key(key))
        try:
            return int(value) if value else 0
        except ValueError:
            return 0

    async def attempt(self, key: str, max_attempts: int, window_seconds: int) -> bool:
        try:
            if await self._current(key) >= max_attempts:
                return False

            # Window is created with its expiry before the first increment
            await self.counter_store.set_if_absent(self._key(key), '0', window_seconds)
            await self.counter_store.increment(self._key(key))
            return True

        except CounterStoreError as e:
            logger.error(f'Rate limiter unavailable for {key}, admitting request: {e}')
            return True

    async def remaining(self, key: str, max_attempts: int) -> int:
        try:
            return max(0, max_attempts - await self._current(key))
        except CounterStoreError as e:
            logger.error(f'Rate limiter unavailable for {key}: {e}')
            return max_attempts

    async def reset(self, key: str) -> None:
        await self.counter_store.delete(self._key(key))
