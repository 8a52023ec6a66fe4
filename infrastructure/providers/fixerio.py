from domain.models.currency import CurrencyCode, ExchangeRate, RateSource
from infrastructure.providers.base import BaseRateProvider


class FixerIOProvider(BaseRateProvider):
	BASE_URL = 'https://data.fixer.io/api'
	SOURCE = RateSource.EXTERNAL_FALLBACK_3
	DISPLAY_NAME = 'Fixer.io'

	@property
	def name(self) -> str:
		return 'fixerio'

	def _build_request(self, from_currency: CurrencyCode, to_currency: CurrencyCode) -> tuple[str, dict]:
		params = {
			'access_key': self.api_key,
			'base': str(from_currency),
			'symbols': str(to_currency),
		}
		return f'{self.BASE_URL}/latest', params

	def _parse_rate(
		self, data: dict, from_currency: CurrencyCode, to_currency: CurrencyCode
	) -> ExchangeRate | None:
		if not data.get('success', False):
			return None

		quote = data.get('rates', {}).get(str(to_currency))
		if quote is None:
			return None

		return ExchangeRate(
			from_currency=from_currency,
			to_currency=to_currency,
			rate=str(quote),
			timestamp=self._observed_at(data.get('timestamp')),
			source=self.SOURCE,
		)
