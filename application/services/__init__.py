from .circuit_breaker import CircuitBreaker, CircuitState
from .conversion_service import ConversionService
from .rate_aggregator import RateAggregator
from .rate_limiter import RateLimiter
from .rate_resolver import RateResolver

__all__ = [
	'CircuitBreaker',
	'CircuitState',
	'ConversionService',
	'RateAggregator',
	'RateLimiter',
	'RateResolver',
]
