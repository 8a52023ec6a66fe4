# nosec B101


import pytest
from unittest.mock import AsyncMock, MagicMock, Mock
from redis.exceptions import ConnectionError as RedisConnectionError

from infrastructure.counters.redis_counter_store import RedisCounterStore
from domain.exceptions.currency import CounterStoreError


def make_redis_with_pipeline(results):
    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=results)

    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=pipe)
    context.__aexit__ = AsyncMock(return_value=False)

    mock_redis = AsyncMock()
    mock_redis.pipeline = Mock(return_value=context)
    return mock_redis, pipe


@pytest.mark.asyncio
async def test_increment_without_ttl_uses_plain_incr():
    mock_redis = AsyncMock()
    mock_redis.incr.return_value = 4

    store = RedisCounterStore(mock_redis)

    assert await store.increment('circuit_breaker:fixerio:failures') == 4
    mock_redis.incr.assert_called_once_with('circuit_breaker:fixerio:failures')


@pytest.mark.asyncio
async def test_increment_with_ttl_runs_in_one_transaction():
    mock_redis, pipe = make_redis_with_pipeline([1, True])

    store = RedisCounterStore(mock_redis)

    assert await store.increment('rate_limit:ip:10.0.0.1', ttl_seconds=60) == 1
    mock_redis.pipeline.assert_called_once_with(transaction=True)
    pipe.incr.assert_called_once_with('rate_limit:ip:10.0.0.1')
    pipe.expire.assert_called_once_with('rate_limit:ip:10.0.0.1', 60)
    pipe.execute.assert_awaited_once()


@pytest.mark.asyncio
async def test_get_decodes_bytes():
    mock_redis = AsyncMock()
    mock_redis.get.return_value = b'open'

    store = RedisCounterStore(mock_redis)

    assert await store.get('circuit_breaker:fixerio:state') == 'open'


@pytest.mark.asyncio
async def test_get_missing_key():
    mock_redis = AsyncMock()
    mock_redis.get.return_value = None

    store = RedisCounterStore(mock_redis)

    assert await store.get('circuit_breaker:fixerio:state') is None


@pytest.mark.asyncio
async def test_delete_many_keys_in_one_call():
    mock_redis = AsyncMock()

    store = RedisCounterStore(mock_redis)
    await store.delete('a', 'b')
    await store.delete()

    mock_redis.delete.assert_called_once_with('a', 'b')


@pytest.mark.asyncio
async def test_set_and_expire():
    mock_redis = AsyncMock()

    store = RedisCounterStore(mock_redis)
    await store.set('circuit_breaker:fixerio:state', 'half_open')
    await store.expire('rate_limit:user:guest', 60)

    mock_redis.set.assert_called_once_with('circuit_breaker:fixerio:state', 'half_open')
    mock_redis.expire.assert_called_once_with('rate_limit:user:guest', 60)


@pytest.mark.asyncio
async def test_redis_errors_are_wrapped():
    mock_redis = AsyncMock()
    mock_redis.incr.side_effect = RedisConnectionError('down')
    mock_redis.get.side_effect = RedisConnectionError('down')
    mock_redis.set.side_effect = RedisConnectionError('down')

    store = RedisCounterStore(mock_redis)

    with pytest.raises(CounterStoreError):
        await store.increment('k')
    with pytest.raises(CounterStoreError):
        await store.get('k')
    with pytest.raises(CounterStoreError):
        await store.set('k', '1')


@pytest.mark.asyncio
async def test_set_if_absent_uses_nx_with_expiry():
    mock_redis = AsyncMock()
    mock_redis.set.side_effect = [True, None]

    store = RedisCounterStore(mock_redis)

    assert await store.set_if_absent('rate_limit:user:guest', '0', 60) is True
    assert await store.set_if_absent('rate_limit:user:guest', '0', 60) is False
    mock_redis.set.assert_called_with('rate_limit:user:guest', '0', nx=True, ex=60)


@pytest.mark.asyncio
async def test_set_if_absent_error_is_wrapped():
    mock_redis = AsyncMock()
    mock_redis.set.side_effect = RedisConnectionError('down')

    store = RedisCounterStore(mock_redis)

    with pytest.raises(CounterStoreError):
        await store.set_if_absent('rate_limit:user:guest', '0', 60)
