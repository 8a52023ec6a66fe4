import pytest

from tests.fakes import FakeClock, InMemoryCounterStore, InMemoryRateCache, InMemoryRateStore


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def counter_store():
    return InMemoryCounterStore()


@pytest.fixture
def rate_cache():
    return InMemoryRateCache()


@pytest.fixture
def rate_store():
    return InMemoryRateStore()
