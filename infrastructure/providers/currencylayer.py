from domain.models.currency import CurrencyCode, ExchangeRate, RateSource
from infrastructure.providers.base import BaseRateProvider


class CurrencyLayerProvider(BaseRateProvider):
	BASE_URL = 'https://api.currencylayer.com'
	SOURCE = RateSource.EXTERNAL_FALLBACK_2
	DISPLAY_NAME = 'CurrencyLayer'

	@property
	def name(self) -> str:
		return 'currencylayer'

	def _build_request(self, from_currency: CurrencyCode, to_currency: CurrencyCode) -> tuple[str, dict]:
		params = {
			'access_key': self.api_key,
			'source': str(from_currency),
			'currencies': str(to_currency),
		}
		return f'{self.BASE_URL}/live', params

	def _parse_rate(
		self, data: dict, from_currency: CurrencyCode, to_currency: CurrencyCode
	) -> ExchangeRate | None:
		if not data.get('success', False):
			return None

		# Quotes are keyed by the concatenated pair, e.g. USDEUR
		quote = data.get('quotes', {}).get(f'{from_currency}{to_currency}')
		if quote is None:
			return None

		return ExchangeRate(
			from_currency=from_currency,
			to_currency=to_currency,
			rate=str(quote),
			timestamp=self._observed_at(data.get('timestamp')),
			source=self.SOURCE,
		)
