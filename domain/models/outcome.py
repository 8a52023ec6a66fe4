from dataclasses import dataclass

from domain.models.currency import ExchangeRate


@dataclass(frozen=True)
class ProviderCallResult:
    """Outcome of a single provider call, consumed by the breaker and resolver alike."""

    provider_name: str
    was_successful: bool
    rate: ExchangeRate | None = None
    error_message: str | None = None
    response_time_ms: int = 0

    @classmethod
    def success(cls, provider_name: str, rate: ExchangeRate, response_time_ms: int = 0) -> 'ProviderCallResult':
        return cls(
            provider_name=provider_name,
            was_successful=True,
            rate=rate,
            response_time_ms=response_time_ms,
        )

    @classmethod
    def failure(cls, provider_name: str, error_message: str, response_time_ms: int = 0) -> 'ProviderCallResult':
        return cls(
            provider_name=provider_name,
            was_successful=False,
            error_message=error_message,
            response_time_ms=response_time_ms,
        )
