import asyncio
from datetime import UTC, datetime
from decimal import Decimal

from domain.exceptions.currency import CounterStoreError, ProviderError, StoreError
from domain.interfaces import CounterStore, ExchangeRateProvider, RateCache, RateStore
from domain.models.currency import CurrencyCode, ExchangeRate, RateSource


def make_rate(
    from_currency: str = 'USD',
    to_currency: str = 'EUR',
    rate: str = '0.85',
    timestamp: datetime | None = None,
    source: RateSource = RateSource.EXTERNAL_API,
) -> ExchangeRate:
    return ExchangeRate(
        from_currency=from_currency,
        to_currency=to_currency,
        rate=Decimal(rate),
        timestamp=timestamp or datetime.now(UTC),
        source=source,
    )


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class InMemoryCounterStore(CounterStore):
    def __init__(self):
        self.values: dict[str, str] = {}
        self.expiries: dict[str, int] = {}
        self.fail = False

    def _check(self) -> None:
        if self.fail:
            raise CounterStoreError('counter store unavailable')

    async def increment(self, key: str, ttl_seconds: int | None = None) -> int:
        self._check()
        value = int(self.values.get(key, 0)) + 1
        self.values[key] = str(value)
        if ttl_seconds is not None:
            self.expiries[key] = ttl_seconds
        return value

    async def get(self, key: str) -> str | None:
        self._check()
        return self.values.get(key)

    async def set(self, key: str, value: str) -> None:
        self._check()
        self.values[key] = value

    async def set_if_absent(self, key: str, value: str, ttl_seconds: int) -> bool:
        self._check()
        if key in self.values:
            return False
        self.values[key] = value
        self.expiries[key] = ttl_seconds
        return True

    async def expire(self, key: str, seconds: int) -> None:
        self._check()
        self.expiries[key] = seconds

    async def delete(self, *keys: str) -> None:
        self._check()
        for key in keys:
            self.values.pop(key, None)
            self.expiries.pop(key, None)


class InMemoryRateCache(RateCache):
    def __init__(self):
        self.entries: dict[str, ExchangeRate] = {}
        self.ttls: dict[str, int] = {}
        self.get_calls: list[str] = []

    async def get(self, key: str) -> ExchangeRate | None:
        self.get_calls.append(key)
        return self.entries.get(key)

    async def set(self, key: str, rate: ExchangeRate, ttl_seconds: int) -> bool:
        self.entries[key] = rate
        self.ttls[key] = ttl_seconds
        return True

    async def delete(self, key: str) -> bool:
        return self.entries.pop(key, None) is not None

    async def exists(self, key: str) -> bool:
        return key in self.entries


class InMemoryRateStore(RateStore):
    def __init__(self):
        self.rates: dict[tuple[str, str], ExchangeRate] = {}
        self.get_calls = 0
        self.fail_reads = False
        self.fail_writes = False

    async def get(self, from_currency: CurrencyCode, to_currency: CurrencyCode) -> ExchangeRate | None:
        self.get_calls += 1
        if self.fail_reads:
            raise StoreError('store unavailable')
        return self.rates.get((str(from_currency), str(to_currency)))

    async def exists(self, from_currency: CurrencyCode, to_currency: CurrencyCode) -> bool:
        return (str(from_currency), str(to_currency)) in self.rates

    async def upsert(self, rate: ExchangeRate) -> None:
        if self.fail_writes:
            raise StoreError('store unavailable')
        self.rates[(str(rate.from_currency), str(rate.to_currency))] = rate

    async def get_all_rates(self) -> list[ExchangeRate]:
        return list(self.rates.values())

    async def delete_stale_rates(self, max_age_hours: int = 24) -> int:
        return 0


class StubProvider(ExchangeRateProvider):
    """Replays a fixed behaviour: a rate string, ``None``, an exception, or ``'hang'``."""

    def __init__(self, name: str, behaviour, source: RateSource = RateSource.EXTERNAL_API):
        self._name = name
        self.behaviour = behaviour
        self.source = source
        self.calls = 0

    @property
    def name(self) -> str:
        return self._name

    async def get_rate(
        self, from_currency: CurrencyCode, to_currency: CurrencyCode, timeout_ms: int = 500
    ) -> ExchangeRate | None:
        self.calls += 1
        if self.behaviour is None:
            return None
        if isinstance(self.behaviour, Exception):
            raise self.behaviour
        if self.behaviour == 'hang':
            await asyncio.sleep(10)
        return make_rate(str(from_currency), str(to_currency), self.behaviour, source=self.source)


def failing_provider(name: str) -> StubProvider:
    return StubProvider(name, ProviderError(f'{name} is down'))
