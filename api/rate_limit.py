from typing import Annotated

from fastapi import Depends, Request, Response

from api.dependencies import get_rate_limiter
from application.services import RateLimiter
from config.settings import get_settings


class RateLimitExceededError(Exception):
	def __init__(self, subject: str, retry_after: int):
		self.subject = subject
		self.retry_after = retry_after
		super().__init__(f'Rate limit exceeded for {subject}')


async def enforce_rate_limit(
	request: Request,
	response: Response,
	limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
) -> None:
	"""Per-user and per-IP fixed-window limits for conversion requests."""
	settings = get_settings()
	window = settings.RATE_LIMIT_WINDOW_SECONDS

	user_id = request.headers.get('X-User-Id') or 'guest'
	client_ip = request.client.host if request.client else 'unknown'

	user_key = f'user:{user_id}'
	if not await limiter.attempt(user_key, settings.RATE_LIMIT_USER_MAX, window):
		raise RateLimitExceededError('user', window)

	ip_key = f'ip:{client_ip}'
	if not await limiter.attempt(ip_key, settings.RATE_LIMIT_IP_MAX, window):
		raise RateLimitExceededError('IP', window)

	response.headers['X-RateLimit-Limit-User'] = str(settings.RATE_LIMIT_USER_MAX)
	response.headers['X-RateLimit-Remaining-User'] = str(
		await limiter.remaining(user_key, settings.RATE_LIMIT_USER_MAX)
	)
	response.headers['X-RateLimit-Limit-IP'] = str(settings.RATE_LIMIT_IP_MAX)
	response.headers['X-RateLimit-Remaining-IP'] = str(
		await limiter.remaining(ip_key, settings.RATE_LIMIT_IP_MAX)
	)
