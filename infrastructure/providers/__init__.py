from .base import BaseRateProvider
from .currencylayer import CurrencyLayerProvider
from .exchangerate_api import ExchangeRateApiProvider
from .fixerio import FixerIOProvider

__all__ = ['BaseRateProvider', 'CurrencyLayerProvider', 'ExchangeRateApiProvider', 'FixerIOProvider']
