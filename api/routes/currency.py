import time
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, status

from api.dependencies import get_conversion_service, get_rate_resolver
from api.rate_limit import enforce_rate_limit
from api.schemas import (
	ConversionData,
	ConversionResponse,
	ExchangeRateData,
	ExchangeRateResponse,
	ResponseMeta,
)
from application.services import ConversionService, RateResolver

router = APIRouter(prefix='/api/v1', tags=['currency'])

CurrencyPath = Annotated[str, Path(min_length=3, max_length=3, pattern='^[A-Za-z]{3}$')]


def _elapsed_ms(start_time: float) -> float:
	return round((time.perf_counter() - start_time) * 1000, 2)


@router.get(
	'/convert',
	response_model=ConversionResponse,
	status_code=status.HTTP_200_OK,
	summary='Convert currency amount',
	dependencies=[Depends(enforce_rate_limit)],
)
async def convert_currency(
	from_currency: Annotated[str, Query(alias='from', min_length=3, max_length=3, pattern='^[A-Za-z]{3}$')],
	to_currency: Annotated[str, Query(alias='to', min_length=3, max_length=3, pattern='^[A-Za-z]{3}$')],
	amount: Annotated[str, Query(min_length=1, max_length=32)],
	service: Annotated[ConversionService, Depends(get_conversion_service)],
) -> ConversionResponse:
	start_time = time.perf_counter()

	result = await service.convert(amount, from_currency, to_currency)

	return ConversionResponse(
		data=ConversionData(
			from_currency=str(result.from_currency),
			to_currency=str(result.to_currency),
			amount=result.original_amount.format(2),
			result=result.converted_amount.format(2),
			exact_result=result.converted_amount.canonical,
			rate=result.rate.value,
			last_updated=result.rate.timestamp,
		),
		meta=ResponseMeta(
			source=result.rate.source.value,
			execution_time_ms=_elapsed_ms(start_time),
			warnings=list(result.rate.warnings),
		),
	)


@router.get(
	'/rates/{from_currency}/{to_currency}',
	response_model=ExchangeRateResponse,
	status_code=status.HTTP_200_OK,
	summary='Get current exchange rate',
)
async def get_exchange_rate(
	from_currency: CurrencyPath,
	to_currency: CurrencyPath,
	resolver: Annotated[RateResolver, Depends(get_rate_resolver)],
) -> ExchangeRateResponse:
	start_time = time.perf_counter()

	rate = await resolver.resolve(from_currency, to_currency)

	return ExchangeRateResponse(
		data=ExchangeRateData(
			from_currency=str(rate.from_currency),
			to_currency=str(rate.to_currency),
			rate=rate.value,
			last_updated=rate.timestamp,
		),
		meta=ResponseMeta(
			source=rate.source.value,
			execution_time_ms=_elapsed_ms(start_time),
			warnings=list(rate.warnings),
		),
	)
