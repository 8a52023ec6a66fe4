import re
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from enum import Enum

from domain.exceptions.currency import (
    InvalidAmountError,
    InvalidRateError,
    UnsupportedCurrencyError,
)

SUPPORTED_CURRENCIES = frozenset({
    'USD', 'EUR', 'GBP', 'JPY', 'CHF', 'CAD', 'AUD', 'NZD',
    'CNY', 'INR', 'BRL', 'MXN', 'ZAR', 'RUB', 'KRW', 'SGD',
    'HKD', 'NOK', 'SEK', 'DKK', 'PLN', 'THB', 'MYR', 'IDR',
})

SCALE = 8
MAX_AMOUNT = Decimal('999999999999.99999999')

_QUANTUM = Decimal(1).scaleb(-SCALE)
# Plain decimal or exponent notation; no underscores, NaN or Infinity
_NUMERIC_PATTERN = re.compile(r'[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?')
# Wide enough that a product of two scale-8 values never rounds before truncation
_PRECISION = 50


def _truncate(value: Decimal) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return value.quantize(_QUANTUM, rounding=ROUND_DOWN)


def _canonical(value: Decimal, min_places: int) -> str:
    text = format(value, 'f')
    whole, _, fraction = text.partition('.')
    fraction = fraction.rstrip('0').ljust(min_places, '0')
    return f'{whole}.{fraction}'


def _to_decimal(value) -> Decimal | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(repr(value))
    if isinstance(value, str):
        text = value.strip()
        if not _NUMERIC_PATTERN.fullmatch(text):
            return None
        try:
            return Decimal(text)
        except InvalidOperation:
            return None
    return None


class RateSource(str, Enum):
    SAME_CURRENCY = 'same_currency'
    LOCAL_CACHE = 'local_cache'
    LOCAL_DB = 'local_db'
    EXTERNAL_API = 'external_api'
    EXTERNAL_FALLBACK_1 = 'external_fallback_1'
    EXTERNAL_FALLBACK_2 = 'external_fallback_2'
    EXTERNAL_FALLBACK_3 = 'external_fallback_3'


@dataclass(frozen=True)
class CurrencyCode:
    code: str

    def __post_init__(self):
        if not isinstance(self.code, str):
            raise UnsupportedCurrencyError(f'Currency code must be a string, got {self.code!r}')

        normalized = self.code.strip().upper()
        if len(normalized) != 3 or not normalized.isalpha():
            raise UnsupportedCurrencyError(
                f'Invalid currency code format: {self.code!r}. Must be 3 letters.'
            )
        if normalized not in SUPPORTED_CURRENCIES:
            raise UnsupportedCurrencyError(f'Unsupported currency: {normalized}')

        object.__setattr__(self, 'code', normalized)

    @classmethod
    def from_code(cls, code: 'str | CurrencyCode') -> 'CurrencyCode':
        if isinstance(code, CurrencyCode):
            return code
        return cls(code)

    def __str__(self) -> str:
        return self.code


@dataclass(frozen=True)
class Money:
    """Exact amount at scale 8, strictly positive and bounded by MAX_AMOUNT."""

    amount: Decimal
    currency: CurrencyCode

    def __post_init__(self):
        amount = _to_decimal(self.amount)
        if amount is None or not amount.is_finite():
            raise InvalidAmountError(f'Amount must be numeric, got {self.amount!r}')
        if amount <= 0:
            raise InvalidAmountError('Amount must be positive')
        if amount > MAX_AMOUNT:
            raise InvalidAmountError(f'Amount exceeds maximum allowed value of {MAX_AMOUNT}')

        amount = _truncate(amount)
        if amount <= 0:
            raise InvalidAmountError('Amount must be positive')

        object.__setattr__(self, 'amount', amount)
        object.__setattr__(self, 'currency', CurrencyCode.from_code(self.currency))

    @classmethod
    def from_value(cls, value: str | int | float | Decimal, currency: 'str | CurrencyCode') -> 'Money':
        return cls(value, CurrencyCode.from_code(currency))

    @property
    def canonical(self) -> str:
        return _canonical(self.amount, 2)

    def convert(self, rate: 'ExchangeRate') -> 'Money':
        if self.currency != rate.from_currency:
            raise ValueError(
                f'Currency mismatch: money is {self.currency}, rate is from {rate.from_currency}'
            )

        with localcontext() as ctx:
            ctx.prec = _PRECISION
            converted = self.amount * rate.rate

        return Money(_truncate(converted), rate.to_currency)

    def format(self, decimals: int = 2) -> str:
        with localcontext() as ctx:
            ctx.prec = _PRECISION
            rounded = self.amount.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)
        return f'{rounded:f}'

    def __str__(self) -> str:
        return f'{self.canonical} {self.currency}'


@dataclass(frozen=True)
class ExchangeRate:
    from_currency: CurrencyCode
    to_currency: CurrencyCode
    rate: Decimal
    timestamp: datetime
    source: RateSource
    warnings: tuple[str, ...] = field(default=(), compare=False)

    def __post_init__(self):
        rate = _to_decimal(self.rate)
        if rate is None or not rate.is_finite():
            raise InvalidRateError(f'Exchange rate must be numeric, got {self.rate!r}')
        if rate <= 0:
            raise InvalidRateError('Exchange rate must be positive')

        rate = _truncate(rate)
        if rate <= 0:
            raise InvalidRateError('Exchange rate must be positive')

        timestamp = self.timestamp
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=UTC)
        else:
            timestamp = timestamp.astimezone(UTC)

        object.__setattr__(self, 'rate', rate)
        object.__setattr__(self, 'timestamp', timestamp)
        object.__setattr__(self, 'from_currency', CurrencyCode.from_code(self.from_currency))
        object.__setattr__(self, 'to_currency', CurrencyCode.from_code(self.to_currency))
        object.__setattr__(self, 'source', RateSource(self.source))
        object.__setattr__(self, 'warnings', tuple(self.warnings))

    @classmethod
    def same_currency(cls, currency: 'str | CurrencyCode', now: datetime | None = None) -> 'ExchangeRate':
        code = CurrencyCode.from_code(currency)
        return cls(
            from_currency=code,
            to_currency=code,
            rate=Decimal('1'),
            timestamp=now or datetime.now(UTC),
            source=RateSource.SAME_CURRENCY,
        )

    @property
    def value(self) -> str:
        return _canonical(self.rate, 1)

    def is_stale(self, max_age_minutes: int = 60, now: datetime | None = None) -> bool:
        now = now or datetime.now(UTC)
        return now - self.timestamp > timedelta(minutes=max_age_minutes)

    def reverse(self) -> 'ExchangeRate':
        with localcontext() as ctx:
            ctx.prec = _PRECISION
            inverse = Decimal(1) / self.rate

        return ExchangeRate(
            from_currency=self.to_currency,
            to_currency=self.from_currency,
            rate=_truncate(inverse),
            timestamp=self.timestamp,
            source=self.source,
        )

    def with_source(self, source: RateSource, warnings: tuple[str, ...] = ()) -> 'ExchangeRate':
        return replace(self, source=source, warnings=warnings)


@dataclass(frozen=True)
class ConversionResult:
    original_amount: Money
    converted_amount: Money
    rate: ExchangeRate

    def __post_init__(self):
        if self.original_amount.currency != self.rate.from_currency:
            raise ValueError('Original amount currency must match the rate source currency')
        if self.converted_amount.currency != self.rate.to_currency:
            raise ValueError('Converted amount currency must match the rate target currency')

    @property
    def from_currency(self) -> CurrencyCode:
        return self.original_amount.currency

    @property
    def to_currency(self) -> CurrencyCode:
        return self.converted_amount.currency
