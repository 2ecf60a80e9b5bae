"""
Pathway API Main Application

FastAPI application serving the prioritized admission list, marketer routes
and dashboard analytics from an in-memory snapshot.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pathway.api.routes import analytics_router, patients_router, routes_router, sync_router
from pathway.config import Settings, get_settings
from pathway.errors import ExternalFetchError
from pathway.ingestion.service import SnapshotService
from pathway.ingestion.source import AdmissionSource, HttpAdmissionSource, StaticAdmissionSource
from pathway.ingestion.synthetic_data import SyntheticAdmissionGenerator, default_directory
from pathway.observability import configure_logging, get_logger
from pathway.pipeline import AdmissionPipeline
from pathway.routing.directory import RoutingDirectory, load_directory

logger = get_logger("api")


def build_source(settings: Settings) -> AdmissionSource:
    """EHR source when configured, otherwise seeded synthetic admissions."""
    if settings.source.is_configured:
        return HttpAdmissionSource(settings.source)

    generator = SyntheticAdmissionGenerator(seed=settings.app.seed)
    logger.info("No EHR source configured, serving synthetic admissions", seed=settings.app.seed)
    return StaticAdmissionSource(generator.generate_admissions(settings.app.seed_admissions))


def build_directory(settings: Settings) -> RoutingDirectory:
    if settings.routing.directory_path:
        return load_directory(settings.routing.directory_path)
    return default_directory()


def build_service(settings: Settings) -> SnapshotService:
    """Wire the source, directory and pipeline from settings."""
    pipeline = AdmissionPipeline(
        scoring_settings=settings.scoring,
        routing_settings=settings.routing,
    )
    return SnapshotService(
        source=build_source(settings),
        directory=build_directory(settings),
        pipeline=pipeline,
        workflow_settings=settings.workflow,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown events."""
    settings = get_settings()
    configure_logging(settings.app.log_level, json_output=settings.app.log_json)

    logger.info(
        "Starting Pathway API",
        env=settings.app.env,
        source="http" if settings.source.is_configured else "synthetic",
    )

    service = getattr(app.state, "service", None)
    if service is None:
        service = build_service(settings)
        app.state.service = service

    if service.snapshot is None:
        try:
            await service.refresh(service.clock().date())
        except ExternalFetchError as e:
            # Serve 503s until a manual refresh succeeds
            logger.error("Initial admission sync failed", error=str(e))

    yield

    logger.info("Shutting down Pathway API")


def create_app(service: SnapshotService = None) -> FastAPI:
    """
    Build the API application.

    A pre-built service can be passed in; otherwise one is created from
    settings at startup.
    """
    app = FastAPI(
        title="Pathway API",
        description="Predictive discharge scoring and referral route assignment",
        version="0.1.0",
        lifespan=lifespan,
    )
    if service is not None:
        app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """Liveness plus snapshot freshness."""
        current = getattr(request.app.state, "service", None)
        if current is None:
            return {"status": "starting", "snapshot_loaded": False}

        sync = current.status
        return {
            "status": "degraded" if sync.sync_failed else "healthy",
            "snapshot_loaded": current.snapshot is not None,
            "last_successful_sync": sync.last_successful_sync,
            "message": sync.message,
        }

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler for unhandled errors."""
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred",
                "detail": str(exc) if get_settings().app.debug else None,
            },
        )

    app.include_router(patients_router, prefix="/v1")
    app.include_router(routes_router, prefix="/v1")
    app.include_router(analytics_router, prefix="/v1")
    app.include_router(sync_router, prefix="/v1")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "pathway.api.main:app",
        host=settings.app.api_host,
        port=settings.app.api_port,
    )
