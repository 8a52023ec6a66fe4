import logging
from datetime import UTC, datetime

from application.services.circuit_breaker import CircuitBreaker
from application.services.provider_call import call_provider
from domain.exceptions.currency import NoRateAvailableError, StoreError
from domain.interfaces import ExchangeRateProvider, RateCache, RateStore
from domain.models.currency import CurrencyCode, ExchangeRate, RateSource

logger = logging.getLogger(__name__)


class RateResolver:
    """Resolves a rate through the cache, the durable store and the providers, in that order.

    The first tier that yields a usable rate wins. When every provider is unavailable a
    stored rate of any age is returned with a warning attached. ``NoRateAvailableError``
    is raised only when there is nothing at all for the pair.
    """

    def __init__(
        self,
        cache: RateCache,
        store: RateStore,
        providers: list[ExchangeRateProvider],
        circuit_breakers: dict[str, CircuitBreaker],
        max_rate_age_minutes: int = 60,
        cache_ttl_seconds: int = 1,
        provider_timeout_ms: int = 500,
    ):
        self.cache = cache
        self.store = store
        self.providers = providers
        self.circuit_breakers = circuit_breakers
        self.max_rate_age_minutes = max_rate_age_minutes
        self.cache_ttl_seconds = cache_ttl_seconds
        self.provider_timeout_ms = provider_timeout_ms

    async def resolve(self, from_currency: CurrencyCode | str, to_currency: CurrencyCode | str) -> ExchangeRate:
        from_currency = CurrencyCode.from_code(from_currency)
        to_currency = CurrencyCode.from_code(to_currency)

        if from_currency == to_currency:
            return ExchangeRate.same_currency(from_currency)

        cache_key = self.cache.make_key(from_currency, to_currency)

        cached = await self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f'Cache HIT for {cache_key}')
            return cached.with_source(RateSource.LOCAL_CACHE)

        stored, store_failed = await self._read_store(from_currency, to_currency)
        if stored is not None and not stored.is_stale(self.max_rate_age_minutes):
            rate = stored.with_source(RateSource.LOCAL_DB)
            await self.cache.set(cache_key, rate, self.cache_ttl_seconds)
            return rate

        fetched = await self._fetch_from_providers(from_currency, to_currency)
        if fetched is not None:
            await self.cache.set(cache_key, fetched, self.cache_ttl_seconds)
            await self._write_store(fetched)
            return fetched

        if store_failed:
            stored, _ = await self._read_store(from_currency, to_currency)

        if stored is None:
            raise NoRateAvailableError(str(from_currency), str(to_currency))

        if not stored.is_stale(self.max_rate_age_minutes):
            return stored.with_source(RateSource.LOCAL_DB)

        age_minutes = int((datetime.now(UTC) - stored.timestamp).total_seconds() // 60)
        warning = f'Using stale rate for {from_currency}->{to_currency} ({age_minutes} minutes old)'
        logger.warning(
            warning,
            extra={'extra_data': {
                'event_type': 'rate_aggregation',
                'from_currency': str(from_currency),
                'to_currency': str(to_currency),
                'rate': stored.value,
                'last_updated': stored.timestamp,
            }},
        )
        return stored.with_source(RateSource.LOCAL_DB, warnings=(warning,))

    async def _read_store(
        self, from_currency: CurrencyCode, to_currency: CurrencyCode
    ) -> tuple[ExchangeRate | None, bool]:
        try:
            return await self.store.get(from_currency, to_currency), False
        except StoreError as e:
            logger.error(f'Durable store read failed for {from_currency}->{to_currency}: {e}')
            return None, True

    async def _write_store(self, rate: ExchangeRate) -> None:
        try:
            await self.store.upsert(rate)
        except StoreError as e:
            logger.error(f'Durable store write failed for {rate.from_currency}->{rate.to_currency}: {e}')

    async def _fetch_from_providers(
        self, from_currency: CurrencyCode, to_currency: CurrencyCode
    ) -> ExchangeRate | None:
        for provider in self.providers:
            breaker = self.circuit_breakers[provider.name]

            if not await breaker.is_available():
                logger.info(f'Circuit breaker OPEN for {provider.name}, skipping')
                continue

            result = await call_provider(provider, from_currency, to_currency, self.provider_timeout_ms)
            if result.was_successful:
                await breaker.record_success()
                return result.rate

            await breaker.record_failure()

        return None

    async def get_breaker_statuses(self) -> list[dict]:
        return [await self.circuit_breakers[p.name].get_status() for p in self.providers]
