"""FastAPI application entrypoint."""
from contextlib import asynccontextmanager

from fastapi import FastAPI

from autoblog import __version__
from autoblog.logging_config import configure_logging, get_logger
from autoblog.middleware.correlation_id import CorrelationIdMiddleware
from autoblog.routers import health_router, queue_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown: logging, queue worker + maintenance."""
    configure_logging()
    logger.info("app_started", version=__version__)
    from autoblog.services.scheduler_service import start_scheduler, stop_scheduler

    await start_scheduler(app)
    yield
    await stop_scheduler()
    logger.info("app_shutdown")


app = FastAPI(
    title="AutoBlog Director",
    version=__version__,
    lifespan=lifespan,
)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(health_router)
app.include_router(queue_router)


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint: app name and version."""
    return {"name": "autoblog", "version": __version__}
