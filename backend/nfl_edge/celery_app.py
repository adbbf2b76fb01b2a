"""Celery application configuration."""

import asyncio

from celery import Celery
from celery.schedules import crontab

from nfl_edge.config import settings

# Create Celery app
celery_app = Celery(
    "nfl_edge",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "nfl_edge.tasks.ingestion",
        "nfl_edge.tasks.features",
        "nfl_edge.tasks.predictions",
        "nfl_edge.tasks.evaluation",
        "nfl_edge.tasks.orchestrator",
        "nfl_edge.tasks.monitoring",
    ],
)

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=1800,  # whole pipeline, six stages
    worker_prefetch_multiplier=1,
    task_acks_late=True,
)

# Beat schedule for periodic tasks
celery_app.conf.beat_schedule = {
    # Full pipeline without evaluation: every 30 minutes
    "pipeline-run": {
        "task": "nfl_edge.tasks.orchestrator.run_pipeline",
        "schedule": crontab(minute="*/30"),
        "kwargs": {"include_evaluation": False},
    },
    # Post-game evaluation: nightly at 4am ET (9am UTC), after Sunday/Monday night games
    "post-game-evaluation": {
        "task": "nfl_edge.tasks.evaluation.evaluate_predictions",
        "schedule": crontab(minute=0, hour=9),
    },
    # Alert monitor: hourly
    "alert-monitor": {
        "task": "nfl_edge.tasks.monitoring.run_alert_monitor",
        "schedule": crontab(minute=5),
    },
}


def run_async(coro):
    """Helper to run async code in sync Celery task."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def run_store_task(stage, **kwargs) -> dict:
    """Run an async pipeline stage against the database from a sync task.

    Each call runs on a fresh event loop with its own engine, so it never
    touches connections owned by the API loop.
    """
    from nfl_edge.storage import task_store

    async def _run():
        async with task_store() as store:
            result = await stage(store, **kwargs)
        return result.model_dump(mode="json")

    return run_async(_run())
