class CurrencyException(Exception):
    pass


class ValidationError(CurrencyException):
    """Malformed input. Raised before any I/O and never retried."""


class UnsupportedCurrencyError(ValidationError):
    pass


class InvalidAmountError(ValidationError):
    pass


class InvalidRateError(ValidationError):
    pass


class NoRateAvailableError(CurrencyException):
    """Every tier was exhausted and no stale record exists. Safe to retry later."""

    def __init__(self, from_currency: str, to_currency: str):
        self.from_currency = from_currency
        self.to_currency = to_currency
        super().__init__(f'No exchange rate available for {from_currency}->{to_currency}')


class ProviderError(CurrencyException):
    pass


class StoreError(CurrencyException):
    pass


class CounterStoreError(StoreError):
    pass


class CacheError(CurrencyException):
    pass


class AggregationError(CurrencyException):
    pass
