from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ConversionData(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	from_currency: str = Field(..., alias='from', description='Source currency code')
	to_currency: str = Field(..., alias='to', description='Target currency code')
	amount: str = Field(..., description='Requested amount, 2 decimal places')
	result: str = Field(..., description='Converted amount, 2 decimal places')
	exact_result: str = Field(..., description='Converted amount at full precision')
	rate: str = Field(..., description='Exchange rate used for conversion')
	last_updated: datetime = Field(..., description='When the rate was observed')


class ExchangeRateData(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	from_currency: str = Field(..., alias='from', description='Source currency code')
	to_currency: str = Field(..., alias='to', description='Target currency code')
	rate: str = Field(..., description='Exchange rate')
	last_updated: datetime = Field(..., description='When the rate was observed')


class ResponseMeta(BaseModel):
	source: str = Field(..., description='Tier or provider that produced the rate')
	execution_time_ms: float
	warnings: list[str] = Field(default_factory=list)


class ConversionResponse(BaseModel):
	data: ConversionData
	meta: ResponseMeta

	model_config = ConfigDict(
		json_schema_extra={
			'example': {
				'data': {
					'from': 'USD',
					'to': 'EUR',
					'amount': '100.00',
					'result': '85.00',
					'exact_result': '85.00',
					'rate': '0.85',
					'last_updated': '2025-09-27T10:30:00Z',
				},
				'meta': {'source': 'local_cache', 'execution_time_ms': 1.42, 'warnings': []},
			}
		}
	)


class ExchangeRateResponse(BaseModel):
	data: ExchangeRateData
	meta: ResponseMeta


class HealthResponse(BaseModel):
	status: str
	timestamp: datetime
	checks: dict[str, Any]
