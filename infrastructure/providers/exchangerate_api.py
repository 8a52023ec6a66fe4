from domain.models.currency import CurrencyCode, ExchangeRate, RateSource
from infrastructure.providers.base import BaseRateProvider


class ExchangeRateApiProvider(BaseRateProvider):
	BASE_URL = 'https://v6.exchangerate-api.com/v6'
	SOURCE = RateSource.EXTERNAL_FALLBACK_1
	DISPLAY_NAME = 'ExchangeRate-API'

	@property
	def name(self) -> str:
		return 'exchangerate_api'

	def _build_request(self, from_currency: CurrencyCode, to_currency: CurrencyCode) -> tuple[str, dict]:
		return f'{self.BASE_URL}/{self.api_key}/pair/{from_currency}/{to_currency}', {}

	def _parse_rate(
		self, data: dict, from_currency: CurrencyCode, to_currency: CurrencyCode
	) -> ExchangeRate | None:
		if data.get('result') != 'success':
			return None

		return ExchangeRate(
			from_currency=from_currency,
			to_currency=to_currency,
			rate=str(data['conversion_rate']),
			timestamp=self._observed_at(data.get('time_last_update_unix')),
			source=self.SOURCE,
		)
