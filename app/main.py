from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from starlette.responses import Response
from starlette.middleware.base import BaseHTTPMiddleware
from app.api import carrier_service, carriers
from app.core.config import settings
from app.core.enums import CarrierStore
from app.core.exceptions import CarrierRepositoryError, RateValidationError
from app.core.redis import init_redis, close_redis, get_redis
from app.core.metrics import request_count, request_duration, db_connected, redis_connected, get_metrics_text
from app.db.session import AsyncSessionLocal, init_db
from app.services.carriers import seed_default_carriers
from app.services.registration import register_carrier_service
import time
import logging

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        try:
            response = await call_next(request)
            duration = time.time() - start_time

            request_count.labels(
                method=request.method,
                endpoint=request.url.path,
                status=response.status_code
            ).inc()

            request_duration.labels(
                method=request.method,
                endpoint=request.url.path
            ).observe(duration)

            return response
        except Exception:
            duration = time.time() - start_time
            request_count.labels(
                method=request.method,
                endpoint=request.url.path,
                status=500
            ).inc()
            request_duration.labels(
                method=request.method,
                endpoint=request.url.path
            ).observe(duration)
            raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting...")

    logger.info("Initializing Redis connection...")
    try:
        await init_redis()
        redis_connected.set(1)
        logger.info("Redis connected")
    except Exception as e:
        logger.error(f"Redis connection failed, carrier cache disabled: {e}")
        redis_connected.set(0)

    if settings.CARRIER_STORE == CarrierStore.DATABASE:
        try:
            await init_db()
            if settings.SEED_DEFAULT_CARRIERS:
                async with AsyncSessionLocal() as db:
                    await seed_default_carriers(db)
            db_connected.set(1)
            app.state.db_ready = True
            logger.info("Database connected")
        except Exception as e:
            logger.error(f"Database initialization failed: {e}")
            db_connected.set(0)
            app.state.db_ready = False

    if settings.REGISTER_ON_STARTUP and settings.SHOPIFY_SHOP and settings.SHOPIFY_ACCESS_TOKEN:
        try:
            await register_carrier_service(settings.SHOPIFY_SHOP, settings.SHOPIFY_ACCESS_TOKEN)
        except Exception as e:
            logger.error(f"Carrier Service registration on startup failed: {e}")

    yield

    logger.info("Application shutting down...")
    await close_redis()
    redis_connected.set(0)
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
    lifespan=lifespan
)

app.add_middleware(MetricsMiddleware)

app.include_router(carrier_service.router)
app.include_router(carriers.router)


@app.exception_handler(RateValidationError)
async def rate_validation_error_handler(request: Request, exc: RateValidationError):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(CarrierRepositoryError)
async def carrier_repository_error_handler(request: Request, exc: CarrierRepositoryError):
    logger.error(f"Error calculating shipping rates: {exc}")
    return JSONResponse(status_code=500, content={"error": "Error calculating shipping rates"})


@app.get("/metrics", tags=["monitoring"])
async def metrics():
    return Response(
        content=get_metrics_text(),
        media_type="text/plain; version=0.0.4; charset=utf-8"
    )


@app.get("/health", tags=["monitoring"])
async def health_check():
    redis = get_redis()
    redis_healthy = redis is not None

    return {
        "status": "healthy",
        "service": settings.API_TITLE,
        "version": settings.API_VERSION,
        "dependencies": {
            "redis": "connected" if redis_healthy else "disconnected",
            "carrier_store": str(settings.CARRIER_STORE),
        }
    }


@app.get("/readiness", tags=["monitoring"])
async def readiness_check():
    if settings.CARRIER_STORE == CarrierStore.DATABASE and not getattr(app.state, "db_ready", False):
        return JSONResponse(
            status_code=503,
            content={"ready": False, "reason": "Database not available"},
        )

    return {
        "ready": True,
        "service": settings.API_TITLE
    }


@app.get("/", tags=["root"])
async def root():
    return {
        "message": settings.API_TITLE,
        "version": settings.API_VERSION,
        "docs": "/docs",
        "health": "/health",
        "metrics": "/metrics",
        "callback": "/carrier-service"
    }
