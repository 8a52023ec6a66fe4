import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_conversion_service, get_rate_limiter, get_rate_resolver
from api.main import app
from application.services import CircuitBreaker, ConversionService, RateLimiter, RateResolver


@pytest.fixture
def providers():
    return []


@pytest.fixture
def rate_resolver(rate_cache, rate_store, providers, counter_store, clock):
    return RateResolver(
        cache=rate_cache,
        store=rate_store,
        providers=providers,
        circuit_breakers={p.name: CircuitBreaker(p.name, counter_store, clock=clock) for p in providers},
    )


@pytest.fixture
def client(rate_resolver, counter_store):
    # Lifespan is skipped; dependencies are wired to in-memory tiers
    app.dependency_overrides[get_rate_resolver] = lambda: rate_resolver
    app.dependency_overrides[get_conversion_service] = lambda: ConversionService(rate_resolver)
    app.dependency_overrides[get_rate_limiter] = lambda: RateLimiter(counter_store)
    client = TestClient(app, raise_server_exceptions=False)
    yield client
    app.dependency_overrides.clear()
