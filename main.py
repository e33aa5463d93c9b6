import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.exceptions import (AccessDeniedError, StoreUnavailableError,
                                   StructuralError)
from src.infrastructure.cache.redis_cache import CacheService
from src.infrastructure.config.settings import get_settings
from src.infrastructure.persistence.database import engine, get_db
from src.presentation.api.dependencies import (build_access_control_service,
                                               get_access_control_service,
                                               get_cache_service,
                                               set_access_control_service,
                                               set_cache_service)
from src.presentation.api.v1.routes import access
from src.presentation.middleware.identity import RequestIdentityMiddleware
from src.shared.context import get_actor_context
from src.shared.telemetry.logging import setup_logging
from src.shared.telemetry.telemetry import (TelemetryConfig, get_telemetry,
                                            set_telemetry)

logger = logging.getLogger(__name__)

settings = get_settings()


def _start_tracing(app: FastAPI) -> None:
    if not settings.telemetry_enabled:
        logger.info("Distributed tracing disabled in configuration")
        return
    telemetry = TelemetryConfig(service_name=settings.app_name, service_version=settings.app_version)
    try:
        telemetry.setup_telemetry(
            exporter_type=settings.telemetry_exporter,
            otlp_endpoint=settings.telemetry_otlp_endpoint,
            sample_rate=settings.telemetry_sample_rate,
        )
        telemetry.instrument(app, engine, redis=settings.redis_enabled)
    except (ImportError, ValueError, RuntimeError) as e:
        logger.warning(f"Telemetry initialization failed: {e}. Continuing without tracing.")
        return
    set_telemetry(telemetry)


async def _start_shared_cache() -> CacheService | None:
    if not settings.redis_enabled:
        logger.info("Redis cache disabled in configuration")
        return None
    cache_service = CacheService()
    await cache_service.connect()
    set_cache_service(cache_service)
    return cache_service


async def _preload_resources(cache_service: CacheService | None) -> None:
    """
    Build the engine and load the resource forests before taking traffic.

    An invalid resource tree stops startup. An unreachable store does not:
    forests then load on first use and requests are denied until they do.
    """
    access_control = build_access_control_service(cache_service)
    set_access_control_service(access_control)
    try:
        forests = await access_control.refresh_resources()
    except StructuralError as e:
        logger.error(f"Invalid resource configuration ({e.error_code}): {e.message}")
        raise
    except (StoreUnavailableError, TimeoutError) as e:
        logger.warning(f"Resource forests not preloaded: {e}")
        return
    sizes = {resource_type.value: len(forest) for resource_type, forest in forests.items()}
    logger.info(f"Resource forests loaded: {sizes}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start tracing, the shared cache and the access engine; tear down in reverse"""
    setup_logging()
    # Schema is managed by migrations; this service only reads it
    _start_tracing(app)
    cache_service = await _start_shared_cache()
    await _preload_resources(cache_service)

    yield

    set_access_control_service(None)
    if cache_service is not None:
        await cache_service.disconnect()
        set_cache_service(None)

    telemetry = get_telemetry()
    if telemetry:
        telemetry.shutdown()
        set_telemetry(None)

    await engine.dispose()
    logger.info("Database engine disposed")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)


@app.exception_handler(AccessDeniedError)
async def access_denied_handler(request: Request, exc: AccessDeniedError):
    # Generic message only; the denied capability or path stays in the logs
    actor = get_actor_context()
    logger.info(
        f"Access denied for user={actor.user_id} ip={actor.ip_address} "
        f"on {request.method} {request.url.path}: {exc.details}"
    )
    return JSONResponse(status_code=403, content={"detail": "Access denied"})


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    logger.error(f"Store unavailable on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=503, content={"detail": "Service temporarily unavailable"})


# Middleware is applied in reverse: CORS runs first, then identity
app.add_middleware(RequestIdentityMiddleware)
# allow_credentials=True requires explicit origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.allowed_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(access.router, prefix="/api/v1/access", tags=["access"])


@app.get("/")
async def root():
    return {"name": settings.app_name, "version": settings.app_version, "status": "running"}


@app.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Liveness and readiness for load balancers.

    Healthy (200) when the database answers; the shared cache is reported but
    optional. `unknown_capabilities` lists capability names that resources
    require but that do not exist, so those resources are hidden from all
    non-bypass users.
    """
    checks: dict[str, Any] = {"database": False, "cache": None}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = True
    except (SQLAlchemyError, OSError) as e:
        checks["error"] = str(e)

    if settings.redis_enabled:
        checks["cache"] = (await get_cache_service()).is_available()

    access_control = await get_access_control_service()
    checks["unknown_capabilities"] = sorted(access_control.configuration_warnings)

    if checks["database"]:
        return {"status": "healthy", "checks": checks}
    return JSONResponse(status_code=503, content={"status": "unhealthy", "checks": checks})
