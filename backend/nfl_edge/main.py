"""FastAPI application entry point."""

import threading
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from nfl_edge.config import configure_logging, settings
from nfl_edge.database import close_db, init_db
from nfl_edge.exceptions import ConfigurationError, StorageError
from nfl_edge.api import health, pipeline

configure_logging()

logger = structlog.get_logger()


def _start_scheduler_thread() -> threading.Thread:
    """Run the schedule daemon beside the API when no Celery beat is deployed."""
    from nfl_edge.tasks.scheduler import start_scheduler

    def _run():
        try:
            start_scheduler()
        except Exception as e:
            logger.error("Scheduler thread crashed", error=str(e))

    thread = threading.Thread(target=_run, name="pipeline-scheduler", daemon=True)
    thread.start()
    logger.info("Pipeline scheduler thread started")
    return thread


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info(
        "Starting NFL Edge API",
        environment=settings.environment,
        model_version=settings.model_version,
    )
    if settings.is_production:
        app.state.scheduler_thread = _start_scheduler_thread()
    else:
        # Alembic owns the schema in production
        await init_db()

    yield

    logger.info("Shutting down NFL Edge API")
    await close_db()


app = FastAPI(
    title="NFL Edge API",
    description="NFL odds consensus, win-probability predictions and calibration",
    version=settings.model_version,
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("Storage unavailable", path=request.url.path, error=str(exc))
    return JSONResponse({"detail": "Pipeline store unavailable"}, status_code=503)


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error("Pipeline misconfigured", path=request.url.path, error=str(exc))
    return JSONResponse({"detail": str(exc)}, status_code=500)


app.include_router(health.router, tags=["Health"])
app.include_router(pipeline.router, prefix=settings.api_v1_prefix, tags=["Pipeline"])


@app.get("/")
async def root() -> dict:
    return {
        "name": app.title,
        "version": app.version,
        "stages": pipeline.STAGE_ORDER,
        "docs": "/docs",
    }
