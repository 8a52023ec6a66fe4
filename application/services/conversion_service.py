from decimal import Decimal

from application.services.rate_resolver import RateResolver
from domain.models.currency import ConversionResult, CurrencyCode, Money


class ConversionService:
	def __init__(self, rate_resolver: RateResolver):
		self.rate_resolver = rate_resolver

	async def convert(
		self, amount: str | int | float | Decimal, from_currency: str, to_currency: str
	) -> ConversionResult:
		source = CurrencyCode.from_code(from_currency)
		target = CurrencyCode.from_code(to_currency)
		money = Money.from_value(amount, source)

		rate = await self.rate_resolver.resolve(source, target)

		return ConversionResult(
			original_amount=money,
			converted_amount=money.convert(rate),
			rate=rate,
		)
