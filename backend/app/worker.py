"""
ARQ Worker for background task processing.

This worker handles:
- broadcast_dependency_change: Publishes committed dependency changes to the
  project's Redis channel

Usage:
    arq app.worker.WorkerSettings
"""

from arq import create_pool
from arq.connections import RedisSettings, ArqRedis

from app.config import get_settings
from app.services.notifications import broadcast_dependency_change
from app.services.dependency_service import DependencyEvent
from app.logging_config import setup_logging, get_logger

# Initialize logging for the worker
setup_logging()
logger = get_logger(__name__)

settings = get_settings()


def parse_redis_url(url: str) -> RedisSettings:
    """Parse redis URL into RedisSettings."""
    # redis://localhost:6380/0 -> host=localhost, port=6380, database=0
    url = url.replace("redis://", "")
    database = 0
    if "/" in url:
        url, db_part = url.split("/", 1)
        if db_part:
            database = int(db_part)
    if ":" in url:
        host, port = url.split(":")
        return RedisSettings(host=host, port=int(port), database=database)
    return RedisSettings(host=url, database=database)


async def startup(ctx: dict) -> None:
    """Worker startup."""
    logger.info("ARQ Worker starting up...")
    logger.info(f"Redis: {settings.redis_url}")


async def shutdown(ctx: dict) -> None:
    """Worker shutdown - cleanup."""
    logger.info("ARQ Worker shutting down...")


class WorkerSettings:
    """ARQ Worker configuration."""

    functions = [broadcast_dependency_change]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = parse_redis_url(settings.redis_url)
    max_jobs = 10
    job_timeout = 30


# Redis pool for enqueuing jobs from the API
_arq_pool: ArqRedis | None = None


async def get_arq_pool() -> ArqRedis:
    """Get or create the ARQ Redis pool for enqueuing jobs."""
    global _arq_pool
    if _arq_pool is None:
        logger.debug("Creating ARQ Redis pool")
        _arq_pool = await create_pool(
            parse_redis_url(settings.redis_url)
        )
    return _arq_pool


async def enqueue_dependency_change(event: DependencyEvent) -> None:
    """Notifier for DependencyService: hand a change event to the worker."""
    pool = await get_arq_pool()
    logger.debug(f"Enqueuing broadcast: {event.change} dependency={str(event.edge_id)[:8]}...")
    await pool.enqueue_job(
        "broadcast_dependency_change",
        str(event.edge_id),
        str(event.project_id),
        event.change,
    )
