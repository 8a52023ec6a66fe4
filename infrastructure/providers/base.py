import logging
from abc import abstractmethod
from datetime import UTC, datetime

import httpx

from domain.exceptions.currency import ProviderError, ValidationError
from domain.interfaces import ExchangeRateProvider
from domain.models.currency import CurrencyCode, ExchangeRate, RateSource

logger = logging.getLogger(__name__)


class BaseRateProvider(ExchangeRateProvider):
	"""Shared HTTP handling for quote providers.

	Subclasses describe how to build the request and how to read the quote out of the
	response body. A well-formed response without a quote yields ``None``; transport
	errors, HTTP errors and unreadable bodies raise ``ProviderError``.
	"""

	BASE_URL: str
	SOURCE: RateSource
	DISPLAY_NAME: str

	def __init__(self, api_key: str, client: httpx.AsyncClient | None = None, timeout: int = 10):
		self.api_key = api_key
		self._client = client or httpx.AsyncClient(timeout=timeout)

	@property
	def source(self) -> RateSource:
		return self.SOURCE

	@abstractmethod
	def _build_request(self, from_currency: CurrencyCode, to_currency: CurrencyCode) -> tuple[str, dict]: ...

	@abstractmethod
	def _parse_rate(
		self, data: dict, from_currency: CurrencyCode, to_currency: CurrencyCode
	) -> ExchangeRate | None: ...

	async def _request(self, url: str, params: dict, timeout_ms: int) -> dict:
		try:
			response = await self._client.get(url, params=params, timeout=timeout_ms / 1000)
			response.raise_for_status()
			return response.json()
		except httpx.HTTPStatusError as e:
			raise ProviderError(
				f'{self.DISPLAY_NAME} HTTP error {e.response.status_code}: {e.response.text[:200]}'
			) from e
		except httpx.RequestError as e:
			raise ProviderError(f'{self.DISPLAY_NAME} request failed: {e.__class__.__name__}') from e
		except ValueError as e:
			raise ProviderError(f'{self.DISPLAY_NAME} response parsing error: {str(e)}') from e

	async def get_rate(
		self, from_currency: CurrencyCode, to_currency: CurrencyCode, timeout_ms: int = 500
	) -> ExchangeRate | None:
		url, params = self._build_request(from_currency, to_currency)
		data = await self._request(url, params, timeout_ms)

		try:
			return self._parse_rate(data, from_currency, to_currency)
		except (AttributeError, KeyError, TypeError, ValueError, ValidationError) as e:
			raise ProviderError(f'{self.DISPLAY_NAME} returned an unreadable quote: {str(e)}') from e

	def _observed_at(self, epoch: int | float | None) -> datetime:
		if epoch is None:
			return datetime.now(UTC)
		return datetime.fromtimestamp(epoch, tz=UTC)

	async def close(self) -> None:
		await self._client.aclose()
