import logging

from application.services import ConversionService, RateLimiter, RateResolver
from application.services.service_factory import ServiceFactory

logger = logging.getLogger(__name__)


class AppDependencies:
	"""Container for application-wide singleton dependencies."""

	factory: ServiceFactory | None = None
	rate_resolver: RateResolver | None = None
	conversion_service: ConversionService | None = None
	rate_limiter: RateLimiter | None = None


deps = AppDependencies()


async def init_dependencies() -> None:
	"""Initialize all singleton dependencies. Called at app startup."""
	logger.info('Initializing dependencies...')

	deps.factory = ServiceFactory()
	await deps.factory.initialize()

	deps.rate_resolver = deps.factory.create_rate_resolver()
	deps.conversion_service = ConversionService(deps.rate_resolver)
	deps.rate_limiter = deps.factory.create_rate_limiter()

	logger.info('Dependencies initialized')


async def cleanup_dependencies() -> None:
	logger.info('Cleaning up dependencies...')

	if deps.factory:
		await deps.factory.cleanup()

	deps.factory = None
	deps.rate_resolver = None
	deps.conversion_service = None
	deps.rate_limiter = None

	logger.info('Cleanup complete')


def get_service_factory() -> ServiceFactory:
	if deps.factory is None:
		raise RuntimeError('Services not initialized')
	return deps.factory


def get_rate_resolver() -> RateResolver:
	if deps.rate_resolver is None:
		raise RuntimeError('Rate resolver not initialized')
	return deps.rate_resolver


def get_conversion_service() -> ConversionService:
	if deps.conversion_service is None:
		raise RuntimeError('Conversion service not initialized')
	return deps.conversion_service


def get_rate_limiter() -> RateLimiter:
	if deps.rate_limiter is None:
		raise RuntimeError('Rate limiter not initialized')
	return deps.rate_limiter
