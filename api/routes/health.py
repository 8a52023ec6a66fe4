from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.dependencies import get_service_factory
from api.schemas import HealthResponse
from application.services.service_factory import ServiceFactory

router = APIRouter(tags=['health'])


@router.get('/health', summary='Service health', response_model=HealthResponse)
async def health_check(
	factory: Annotated[ServiceFactory, Depends(get_service_factory)],
) -> JSONResponse:
	database = await factory.database.health_check()
	cache = await factory.cache.health_check()
	providers = {
		name: await breaker.get_status() for name, breaker in factory.circuit_breakers.items()
	}

	is_healthy = (
		database.get('status') == 'healthy'
		and cache.get('status') == 'healthy'
		and all(status.get('status') == 'healthy' for status in providers.values())
	)

	body = HealthResponse(
		status='healthy' if is_healthy else 'degraded',
		timestamp=datetime.now(UTC),
		checks={
			'database': database,
			'cache': cache,
			'external_providers': providers,
		},
	)
	return JSONResponse(status_code=200 if is_healthy else 503, content=body.model_dump(mode='json'))
