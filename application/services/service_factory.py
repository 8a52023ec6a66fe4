import logging

from redis.asyncio import Redis

from application.services.circuit_breaker import CircuitBreaker
from application.services.conversion_service import ConversionService
from application.services.rate_aggregator import RateAggregator
from application.services.rate_limiter import RateLimiter
from application.services.rate_resolver import RateResolver
from config.settings import Settings, get_settings
from domain.interfaces import ExchangeRateProvider
from infrastructure.cache.redis_cache import RedisCacheService
from infrastructure.counters.redis_counter_store import RedisCounterStore
from infrastructure.persistence.database import Database
from infrastructure.persistence.repositories.currency import CurrencyRateRepository
from infrastructure.providers import CurrencyLayerProvider, ExchangeRateApiProvider, FixerIOProvider

logger = logging.getLogger(__name__)


class ServiceFactory:
    """Factory to create and wire up all services with dependencies"""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

        self.database = Database(self.settings.DATABASE_URL)
        self.redis_client = Redis.from_url(self.settings.REDIS_URL, decode_responses=True)

        self.cache = RedisCacheService(self.redis_client)
        self.counter_store = RedisCounterStore(self.redis_client)
        self.repository = CurrencyRateRepository(self.database)

        self.providers = self._create_providers()
        self.circuit_breakers = {
            provider.name: CircuitBreaker(
                provider_name=provider.name,
                counter_store=self.counter_store,
                failure_threshold=self.settings.CIRCUIT_BREAKER_FAILURE_THRESHOLD,
                timeout_seconds=self.settings.CIRCUIT_BREAKER_TIMEOUT_SECONDS,
                success_threshold=self.settings.CIRCUIT_BREAKER_SUCCESS_THRESHOLD,
            )
            for provider in self.providers
        }

    def _create_providers(self) -> list[ExchangeRateProvider]:
        providers = [
            ExchangeRateApiProvider(self.settings.EXCHANGERATE_API_KEY),
            CurrencyLayerProvider(self.settings.CURRENCYLAYER_API_KEY),
            FixerIOProvider(self.settings.FIXERIO_API_KEY),
        ]
        for provider in providers:
            if not provider.api_key:
                logger.warning(f'No API key configured for {provider.name}; its calls will fail')
        return providers

    def create_rate_resolver(self) -> RateResolver:
        return RateResolver(
            cache=self.cache,
            store=self.repository,
            providers=self.providers,
            circuit_breakers=self.circuit_breakers,
            max_rate_age_minutes=self.settings.MAX_RATE_AGE_MINUTES,
            cache_ttl_seconds=self.settings.RATE_CACHE_TTL_SECONDS,
            provider_timeout_ms=self.settings.PROVIDER_TIMEOUT_MS,
        )

    def create_conversion_service(self) -> ConversionService:
        return ConversionService(self.create_rate_resolver())

    def create_rate_aggregator(self) -> RateAggregator:
        return RateAggregator(self.providers, timeout_ms=self.settings.AGGREGATION_TIMEOUT_MS)

    def create_rate_limiter(self) -> RateLimiter:
        return RateLimiter(self.counter_store)

    async def initialize(self) -> None:
        await self.database.create_tables()
        logger.info(
            f'Services initialized with {len(self.providers)} providers',
            extra={'extra_data': {'event_type': 'service_lifecycle'}},
        )

    async def cleanup(self) -> None:
        """Clean up all services"""
        for provider in self.providers:
            await provider.close()
        await self.redis_client.aclose()
        await self.database.close()

        logger.info('Services cleaned up successfully', extra={'extra_data': {'event_type': 'service_lifecycle'}})
