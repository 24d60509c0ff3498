"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings, get_database_url, settings as default_settings
from .database import close_db, create_engine, create_session_factory, ensure_data_dir, init_db
from .dependencies import get_registry, get_scheduler
from .exceptions import StorageError
from .routers import dashboard_router, status_router
from .services.aggregator import Aggregator
from .services.history import HistoryStore
from .services.prober import Prober
from .services.registry import TargetRegistry
from .services.scheduler import SchedulerService

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # APScheduler logs every job run at INFO
    logging.getLogger("apscheduler").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    config: Settings = app.state.settings
    logger.info("Starting uptimeboard")

    # A bad targets file aborts startup before anything is scheduled
    registry = TargetRegistry.load(config.targets_file)

    app.state.registry = registry
    app.state.scheduler = None
    engine = None
    prober = None
    try:
        database_url = get_database_url(config)
        ensure_data_dir(database_url)
        engine = create_engine(database_url)
        await init_db(engine)
        logger.info("Database initialized")

        store = HistoryStore(create_session_factory(engine))
        app.state.store = store
        app.state.aggregator = Aggregator(store)

        if config.scheduler_enabled:
            prober = Prober(verify_tls=config.verify_tls)
            scheduler = SchedulerService(registry, prober, store, config.scheduler_config())
            scheduler.start()
            app.state.scheduler = scheduler

        yield
    finally:
        if app.state.scheduler:
            app.state.scheduler.stop()
        if prober is not None:
            await prober.aclose()
        if engine is not None:
            await close_db(engine)
        logger.info("Shutdown complete")


async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error(f"Storage error serving {request.url.path}: {exc}")
    return JSONResponse(status_code=503, content={"detail": "History storage unavailable"})


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or default_settings
    configure_logging(settings.log_level)

    app = FastAPI(
        title="uptimeboard",
        description="Uptime and response-time dashboard for HTTP endpoints",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StorageError, storage_error_handler)

    app.include_router(status_router)
    app.include_router(dashboard_router)

    @app.get("/health")
    async def health_check(
        registry: TargetRegistry = Depends(get_registry),
        scheduler: SchedulerService | None = Depends(get_scheduler),
    ):
        return {
            "status": "healthy",
            "targets": len(registry),
            "scheduler_running": bool(scheduler and scheduler.running),
        }

    return app


# Create the application instance
app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run(app, host=default_settings.web_host, port=default_settings.web_port)


if __name__ == "__main__":
    run()
