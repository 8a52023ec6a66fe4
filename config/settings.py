from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
	DATABASE_URL: str = 'sqlite+aiosqlite:///./currency_rates.db'

	REDIS_URL: str = 'redis://localhost:6379'

	# Providers, in priority order
	EXCHANGERATE_API_KEY: str = ''
	CURRENCYLAYER_API_KEY: str = ''
	FIXERIO_API_KEY: str = ''

	# Circuit breaker
	CIRCUIT_BREAKER_FAILURE_THRESHOLD: int = 5
	CIRCUIT_BREAKER_TIMEOUT_SECONDS: int = 60
	CIRCUIT_BREAKER_SUCCESS_THRESHOLD: int = 2

	# Resolution
	MAX_RATE_AGE_MINUTES: int = 60
	RATE_CACHE_TTL_SECONDS: int = 1
	PROVIDER_TIMEOUT_MS: int = 500
	AGGREGATION_TIMEOUT_MS: int = 2000

	# Rate sync worker
	SYNC_BASE_CURRENCY: str = 'USD'
	SYNC_CURRENCIES: list[str] = ['USD', 'EUR', 'GBP', 'JPY', 'CHF', 'CAD', 'AUD']
	SYNC_MAX_TRIES: int = 3
	SYNC_BACKOFF_SECONDS: list[int] = [60, 120, 240]

	# Rate limiting
	RATE_LIMIT_USER_MAX: int = 500
	RATE_LIMIT_IP_MAX: int = 1000
	RATE_LIMIT_WINDOW_SECONDS: int = 60

	# Logging
	LOG_DIRECTORY: str = 'logs'
	LOG_LEVEL: str = 'INFO'
	LOG_FILE_LEVEL: str = 'DEBUG'

	# Application
	APP_NAME: str = 'Currency Rate Service'
	DEBUG: bool = False

	model_config = SettingsConfigDict(env_file='.env', case_sensitive=False, extra='ignore')


@lru_cache
def get_settings() -> Settings:
	return Settings()
