"""Monitoring tasks."""

import structlog

from nfl_edge.celery_app import celery_app, run_store_task
from nfl_edge.services.monitoring import run_alert_monitor

logger = structlog.get_logger()


@celery_app.task(name="nfl_edge.tasks.monitoring.run_alert_monitor")
def run_alert_monitor_task() -> dict:
    logger.info("Starting alert monitor")
    return run_store_task(run_alert_monitor)
