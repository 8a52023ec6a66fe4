import logging
import time
from collections.abc import Callable
from enum import Enum
from typing import Any

from domain.exceptions.currency import CounterStoreError
from domain.interfaces import CounterStore

logger = logging.getLogger(__name__)


class CircuitState(str, Enum):
    CLOSED = 'closed'
    OPEN = 'open'
    HALF_OPEN = 'half_open'


class CircuitBreaker:
    """Circuit breaker for a single quote provider.

    State lives in the shared counter store under ``circuit_breaker:{provider}:*`` so that
    every process sees the same breaker. When the counter store itself is unreachable the
    breaker fails open and lets calls through.
    """

    KEY_PREFIX = 'circuit_breaker'

    def __init__(
            self,
            provider_name: str,
            counter_store: CounterStore,
            failure_threshold: int = 5,
            timeout_seconds: int = 60,
            success_threshold: int = 2,
            clock: Callable[[], float] = time.time,
    ):
        self.provider_name = provider_name
        self.counter_store = counter_store

        self.failure_threshold = failure_threshold
        self.timeout_seconds = timeout_seconds
        self.success_threshold = success_threshold

        self._clock = clock

    def _key(self, suffix: str) -> str:
        return f'{self.KEY_PREFIX}:{self.provider_name}:{suffix}'

    async def get_state(self) -> CircuitState:
        value = await self.counter_store.get(self._key('state'))
        if not value:
            return CircuitState.CLOSED
        try:
            return CircuitState(value)
        except ValueError:
            logger.warning(f'Unknown circuit state {value!r} for {self.provider_name}, treating as closed')
            return CircuitState.CLOSED

    async def is_available(self) -> bool:
        try:
            state = await self.get_state()
            if state != CircuitState.OPEN:
                return True

            if await self._should_attempt_reset():
                await self._transition(state, CircuitState.HALF_OPEN, 'attempting_recovery')
                await self.counter_store.delete(self._key('successes'))
                return True
            return False

        except CounterStoreError as e:
            logger.error(
                f'Circuit breaker state unavailable for {self.provider_name}, allowing call: {e}',
                extra={'extra_data': {'event_type': 'circuit_breaker', 'provider': self.provider_name}},
            )
            return True

    async def record_success(self) -> None:
        try:
            state = await self.get_state()

            if state == CircuitState.HALF_OPEN:
                successes = await self.counter_store.increment(
                    self._key('successes'), ttl_seconds=self.timeout_seconds
                )
                if successes >= self.success_threshold:
                    await self._transition(
                        state, CircuitState.CLOSED, f'recovery_successful after {successes} successes'
                    )
                    await self.counter_store.delete(self._key('failures'), self._key('successes'))
                else:
                    logger.debug(
                        f'Circuit breaker HALF_OPEN for {self.provider_name}: '
                        f'{successes}/{self.success_threshold} successes'
                    )

            elif state == CircuitState.CLOSED:
                await self.counter_store.delete(self._key('failures'))

        except CounterStoreError as e:
            logger.error(f'Failed to record success for {self.provider_name}: {e}')

    async def record_failure(self) -> None:
        try:
            state = await self.get_state()

            if state == CircuitState.HALF_OPEN:
                await self._open(state, 'failure_during_recovery')
                await self.counter_store.delete(self._key('successes'))

            elif state == CircuitState.CLOSED:
                failures = await self.counter_store.increment(
                    self._key('failures'), ttl_seconds=self.timeout_seconds
                )
                if failures >= self.failure_threshold:
                    await self._open(state, f'{failures}_consecutive_failures')
                else:
                    logger.warning(
                        f'API failure for {self.provider_name}: {failures}/{self.failure_threshold}',
                        extra={'extra_data': {
                            'event_type': 'circuit_breaker',
                            'provider': self.provider_name,
                            'failure_count': failures,
                        }},
                    )

        except CounterStoreError as e:
            logger.error(f'Failed to record failure for {self.provider_name}: {e}')

    async def _should_attempt_reset(self) -> bool:
        opened_at = await self.counter_store.get(self._key('opened_at'))
        if not opened_at:
            return True

        try:
            elapsed = self._clock() - float(opened_at)
        except ValueError:
            return True

        return elapsed >= self.timeout_seconds

    async def _open(self, current_state: CircuitState, reason: str) -> None:
        await self.counter_store.set(self._key('opened_at'), str(self._clock()))
        await self._transition(current_state, CircuitState.OPEN, reason)

    async def _transition(self, current_state: CircuitState, new_state: CircuitState, reason: str) -> None:
        await self.counter_store.set(self._key('state'), new_state.value)

        log = logger.warning if new_state == CircuitState.OPEN else logger.info
        log(
            f'Circuit breaker state change: {current_state.value} -> {new_state.value}',
            extra={'extra_data': {
                'event_type': 'circuit_breaker',
                'provider': self.provider_name,
                'old_state': current_state.value,
                'new_state': new_state.value,
                'reason': reason,
            }},
        )

    async def get_status(self) -> dict[str, Any]:
        """Get current circuit breaker status for monitoring"""
        try:
            state = await self.get_state()
            failures = int(await self.counter_store.get(self._key('failures')) or 0)
            successes = int(await self.counter_store.get(self._key('successes')) or 0)
        except CounterStoreError as e:
            return {
                'provider_name': self.provider_name,
                'state': 'unknown',
                'status': 'unknown',
                'error': str(e),
            }

        return {
            'provider_name': self.provider_name,
            'state': state.value,
            'status': 'healthy' if state == CircuitState.CLOSED else 'unhealthy',
            'failure_count': failures,
            'failure_threshold': self.failure_threshold,
            'consecutive_successes': successes,
            'success_threshold': self.success_threshold,
        }
