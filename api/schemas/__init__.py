from .responses import (
	ConversionData,
	ConversionResponse,
	ExchangeRateData,
	ExchangeRateResponse,
	HealthResponse,
	ResponseMeta,
)

__all__ = [
	'ConversionData',
	'ConversionResponse',
	'ExchangeRateData',
	'ExchangeRateResponse',
	'HealthResponse',
	'ResponseMeta',
]
