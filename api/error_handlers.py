import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.rate_limit import RateLimitExceededError
from domain.exceptions.currency import (
	InvalidAmountError,
	NoRateAvailableError,
	UnsupportedCurrencyError,
	ValidationError,
)

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
	@app.exception_handler(ValidationError)
	async def validation_error_handler(request: Request, exc: ValidationError):
		if isinstance(exc, UnsupportedCurrencyError):
			error = 'Unsupported currency'
		elif isinstance(exc, InvalidAmountError):
			error = 'Invalid amount'
		else:
			error = 'Invalid request'
		return JSONResponse(status_code=400, content={'error': error, 'message': str(exc)})

	@app.exception_handler(NoRateAvailableError)
	async def no_rate_handler(request: Request, exc: NoRateAvailableError):
		logger.error(f'No rate available: {exc}')
		return JSONResponse(
			status_code=503,
			content={
				'error': 'Exchange rate temporarily unavailable',
				'message': str(exc),
			},
		)

	@app.exception_handler(RateLimitExceededError)
	async def rate_limit_handler(request: Request, exc: RateLimitExceededError):
		return JSONResponse(
			status_code=429,
			content={'error': str(exc), 'retry_after': exc.retry_after},
			headers={'Retry-After': str(exc.retry_after)},
		)

	@app.exception_handler(Exception)
	async def global_exception_handler(request: Request, exc: Exception):
		logger.error(f'Unhandled exception: {exc}', exc_info=True)
		return JSONResponse(
			status_code=500,
			content={'error': 'Internal server error', 'message': 'Unable to process request'},
		)
