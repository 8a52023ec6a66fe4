import asyncio
import logging
from datetime import UTC, datetime
from decimal import Decimal, localcontext

from application.services.provider_call import call_provider
from domain.interfaces import ExchangeRateProvider
from domain.models.currency import CurrencyCode, ExchangeRate, RateSource

logger = logging.getLogger(__name__)


def calculate_median(values: list[Decimal]) -> Decimal | None:
    if not values:
        return None

    ordered = sorted(values)
    middle = len(ordered) // 2
    if len(ordered) % 2:
        return ordered[middle]

    with localcontext() as ctx:
        ctx.prec = 50
        return (ordered[middle - 1] + ordered[middle]) / 2


class RateAggregator:
    """Builds a consensus rate from every provider for the periodic refresh.

    Providers are queried without circuit breakers, concurrently, each with its own timeout.
    The consensus is the median quote stamped with the latest observation time.
    """

    def __init__(self, providers: list[ExchangeRateProvider], timeout_ms: int = 2000):
        self.providers = providers
        self.timeout_ms = timeout_ms

    async def aggregate(self, from_currency: CurrencyCode | str, to_currency: CurrencyCode | str) -> ExchangeRate | None:
        from_currency = CurrencyCode.from_code(from_currency)
        to_currency = CurrencyCode.from_code(to_currency)

        results = await asyncio.gather(*[
            call_provider(provider, from_currency, to_currency, self.timeout_ms)
            for provider in self.providers
        ])
        quotes = [result.rate for result in results if result.was_successful]

        if not quotes:
            logger.warning(f'No provider quotes for {from_currency}->{to_currency}')
            return None

        median = calculate_median([quote.rate for quote in quotes])
        latest = max((quote.timestamp for quote in quotes), default=datetime.now(UTC))

        logger.info(
            f'Rate aggregation {from_currency}->{to_currency}: {median} from {len(quotes)} quotes',
            extra={'extra_data': {
                'event_type': 'rate_aggregation',
                'sources_used': [result.provider_name for result in results if result.was_successful],
                'individual_rates': {
                    result.provider_name: result.rate.value for result in results if result.was_successful
                },
            }},
        )

        return ExchangeRate(
            from_currency=from_currency,
            to_currency=to_currency,
            rate=median,
            timestamp=latest,
            source=RateSource.LOCAL_DB,
        )
