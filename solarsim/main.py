"""
Solar Simulator - Main Application Entry Point
Application Factory Pattern with ORJSONResponse as default response class.

Replays solar farm datasets in a loop and exposes them as Prometheus metrics.
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from solarsim.core.config import Settings, get_settings
from solarsim.core.exceptions import (
    SimulatorException,
    generic_exception_handler,
    http_exception_handler,
    simulator_exception_handler,
    validation_exception_handler,
)
from solarsim.core.logging import configure_logging, get_logger
from solarsim.core.metrics import MetricsMiddleware
from solarsim.runtime import SimulatorRuntime

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.
    Starts the replay on boot and stops it on shutdown.
    """
    runtime: SimulatorRuntime = app.state.runtime
    logger.info(
        "Starting Solar Simulator",
        environment=runtime.settings.environment,
        data_dir=str(runtime.settings.data_dir),
        update_interval_ms=runtime.settings.update_interval_ms,
    )

    await runtime.start()

    yield

    logger.info("Shutting down Solar Simulator")
    await runtime.stop()


ENDPOINTS = {
    "metrics": "GET /metrics - Prometheus metrics",
    "health": "GET /health - Liveness probe",
    "ready": "GET /ready - Readiness probe",
    "status": "GET /status - Replay status",
    "data": "GET /data - Current data of every installation",
    "data_installation": "GET /data/{installation_id} - Current data of one installation",
    "installations": "GET /installations - Installation configuration",
    "jump": "POST /control/jump - Jump to an index",
    "pause": "POST /control/pause - Pause replay",
    "resume": "POST /control/resume - Resume replay",
}


def create_application(
    settings: Settings | None = None,
    runtime: SimulatorRuntime | None = None,
) -> FastAPI:
    """
    Application factory function.
    Creates and configures the FastAPI application around one runtime.
    """
    settings = settings or get_settings()
    configure_logging(settings)
    runtime = runtime or SimulatorRuntime(settings)

    app = FastAPI(
        title="Solar Simulator API",
        summary="Solar farm dataset replay and Prometheus exporter",
        version=settings.app_version,
        openapi_url="/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        default_response_class=ORJSONResponse,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.runtime = runtime

    # Request metrics middleware
    if settings.prometheus_enabled:
        app.add_middleware(MetricsMiddleware, registry=runtime.registry)

    # Register exception handlers
    app.add_exception_handler(SimulatorException, simulator_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    cors_origins = settings.cors_origins_list
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )
        logger.info("CORS configured", origins=cors_origins)

    _include_routers(app)

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request) -> ORJSONResponse:
        """Liveness: the engine exists and is playing."""
        runtime: SimulatorRuntime = request.app.state.runtime
        healthy = runtime.engine is not None and runtime.engine.is_playing
        return ORJSONResponse(
            status_code=200 if healthy else 503,
            content={
                "status": "healthy" if healthy else "unhealthy",
                "uptime": runtime.uptime_seconds,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )

    @app.get("/ready", tags=["Health"])
    async def readiness_check(request: Request) -> ORJSONResponse:
        """Readiness: the engine has been constructed."""
        runtime: SimulatorRuntime = request.app.state.runtime
        ready = runtime.engine is not None
        return ORJSONResponse(
            status_code=200 if ready else 503,
            content={
                "status": "ready" if ready else "not_ready",
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )

    @app.get("/", tags=["Root"])
    async def root(request: Request) -> dict:
        """Service index."""
        runtime: SimulatorRuntime = request.app.state.runtime
        return {
            "name": settings.project_name,
            "version": settings.app_version,
            "description": "Solar farm data simulator",
            "endpoints": ENDPOINTS,
            "installations": list(runtime.catalog),
        }

    return app


def _include_routers(app: FastAPI) -> None:
    """Include all module routers."""
    from solarsim.modules.installations.router import router as installations_router
    from solarsim.modules.replay.router import router as replay_router
    from solarsim.modules.telemetry.router import router as metrics_router

    app.include_router(replay_router)
    app.include_router(installations_router)
    app.include_router(metrics_router)

    logger.info("Routers registered", modules=["replay", "installations", "metrics"])


# Create application instance
app = create_application()


def run() -> None:
    """Console entry point: serve the application with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "solarsim.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    run()
