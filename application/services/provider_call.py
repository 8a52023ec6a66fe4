import asyncio
import logging
import time

from domain.exceptions.currency import ProviderError
from domain.interfaces import ExchangeRateProvider
from domain.models.currency import CurrencyCode
from domain.models.outcome import ProviderCallResult

logger = logging.getLogger(__name__)


async def call_provider(
    provider: ExchangeRateProvider,
    from_currency: CurrencyCode,
    to_currency: CurrencyCode,
    timeout_ms: int,
) -> ProviderCallResult:
    """Call one provider within a timeout and report the outcome.

    A call that overruns ``timeout_ms`` is cancelled. Timeouts, provider errors and empty
    quotes all come back as failures so that callers treat them the same way.
    """
    start_time = time.perf_counter()

    def elapsed_ms() -> int:
        return int((time.perf_counter() - start_time) * 1000)

    try:
        rate = await asyncio.wait_for(
            provider.get_rate(from_currency, to_currency, timeout_ms), timeout=timeout_ms / 1000
        )
    except TimeoutError:
        message = f'timed out after {timeout_ms}ms'
    except ProviderError as e:
        message = str(e)
    except Exception as e:
        logger.error(f'API call failed unexpectedly for {provider.name}: {e}', exc_info=True)
        message = f'unexpected error: {e.__class__.__name__}'
    else:
        if rate is not None:
            logger.debug(f'API call to {provider.name} for {from_currency}->{to_currency}: SUCCESS')
            return ProviderCallResult.success(provider.name, rate, elapsed_ms())
        message = 'no quote returned'

    logger.warning(
        f'API call to {provider.name} for {from_currency}->{to_currency}: FAILED ({message})',
        extra={'extra_data': {
            'event_type': 'api_call',
            'provider': provider.name,
            'error_message': message,
        }},
    )
    return ProviderCallResult.failure(provider.name, message, elapsed_ms())
