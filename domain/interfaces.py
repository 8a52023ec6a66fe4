from abc import ABC, abstractmethod

from domain.models.currency import CurrencyCode, ExchangeRate


class ExchangeRateProvider(ABC):
    """An external quote source. Transport and parse failures raise ProviderError."""

    @property
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    async def get_rate(
        self, from_currency: CurrencyCode, to_currency: CurrencyCode, timeout_ms: int = 500
    ) -> ExchangeRate | None: ...

    async def close(self) -> None:
        return None


class RateCache(ABC):
    """Fast tier keyed by ``rate:{from}:{to}``."""

    @staticmethod
    def make_key(from_currency: CurrencyCode | str, to_currency: CurrencyCode | str) -> str:
        return f'rate:{from_currency}:{to_currency}'

    @abstractmethod
    async def get(self, key: str) -> ExchangeRate | None: ...

    @abstractmethod
    async def set(self, key: str, rate: ExchangeRate, ttl_seconds: int) -> bool: ...

    @abstractmethod
    async def delete(self, key: str) -> bool: ...

    @abstractmethod
    async def exists(self, key: str) -> bool: ...


class RateStore(ABC):
    """Durable tier. Failures raise StoreError."""

    @abstractmethod
    async def get(self, from_currency: CurrencyCode, to_currency: CurrencyCode) -> ExchangeRate | None: ...

    @abstractmethod
    async def exists(self, from_currency: CurrencyCode, to_currency: CurrencyCode) -> bool: ...

    @abstractmethod
    async def upsert(self, rate: ExchangeRate) -> None: ...

    @abstractmethod
    async def get_all_rates(self) -> list[ExchangeRate]: ...

    @abstractmethod
    async def delete_stale_rates(self, max_age_hours: int = 24) -> int: ...


class CounterStore(ABC):
    """Shared key-value store with atomic counter primitives. Failures raise CounterStoreError."""

    @abstractmethod
    async def increment(self, key: str, ttl_seconds: int | None = None) -> int:
        """Atomically increment ``key``. With ``ttl_seconds`` the expiry is refreshed in the same transaction."""

    @abstractmethod
    async def get(self, key: str) -> str | None: ...

    @abstractmethod
    async def set(self, key: str, value: str) -> None: ...

    @abstractmethod
    async def set_if_absent(self, key: str, value: str, ttl_seconds: int) -> bool:
        """Create ``key`` with ``value`` and its expiry in one step. False if it already exists."""

    @abstractmethod
    async def expire(self, key: str, seconds: int) -> None: ...

    @abstractmethod
    async def delete(self, *keys: str) -> None: ...
