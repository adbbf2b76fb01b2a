#!/usr/bin/env python3
"""
Scheduler for running the pipeline without Celery.

This script runs scheduled tasks:
1. Full pipeline without evaluation (every 30 min)
2. Post-game evaluation (daily at 09:00 UTC)
3. Alert monitor (every hour)

Can be run as a standalone process, from cron, or as a one-off command.
"""

import sys
import time

import schedule
import structlog

from nfl_edge.celery_app import run_store_task
from nfl_edge.config import configure_logging
from nfl_edge.services.monitoring import run_alert_monitor
from nfl_edge.tasks.evaluation import evaluate_predictions
from nfl_edge.tasks.features import build_features
from nfl_edge.tasks.ingestion import ingest_injuries, ingest_odds, ingest_weather
from nfl_edge.tasks.orchestrator import run_pipeline
from nfl_edge.tasks.predictions import generate_predictions

logger = structlog.get_logger()

COMMANDS = {
    "odds": ingest_odds,
    "injuries": ingest_injuries,
    "weather": ingest_weather,
    "features": build_features,
    "predict": generate_predictions,
    "evaluate": evaluate_predictions,
    "alerts": run_alert_monitor,
    "all": run_pipeline,
}

USAGE = f"Usage: nfl-edge-pipeline [{'|'.join([*COMMANDS, 'daemon'])}]"


def run_command(command: str, **kwargs) -> dict:
    """Run one command to completion, logging instead of raising."""
    try:
        result = run_store_task(COMMANDS[command], **kwargs)
    except Exception as e:
        logger.error("Command failed", command=command, error=str(e))
        return {"success": False, "error": str(e)}
    logger.info("Command complete", command=command, success=result.get("success"))
    return result


def run_scheduled_pipeline():
    run_command("all", include_evaluation=False)


def run_scheduled_evaluation():
    run_command("evaluate")


def run_scheduled_alerts():
    run_command("alerts")


def start_scheduler():
    """Start the scheduler loop."""
    logger.info("Starting pipeline scheduler...")

    # Run the pipeline immediately on startup
    run_scheduled_pipeline()

    schedule.every(30).minutes.do(run_scheduled_pipeline)
    schedule.every().day.at("09:00").do(run_scheduled_evaluation)
    schedule.every(1).hour.do(run_scheduled_alerts)

    logger.info(
        "Scheduler configured",
        pipeline="every 30 minutes",
        evaluation="daily 09:00",
        alerts="every hour",
    )

    while True:
        schedule.run_pending()
        time.sleep(60)  # Check every minute


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    configure_logging()

    command = argv[0] if argv else "all"
    if command == "daemon":
        start_scheduler()
        return 0
    if command not in COMMANDS:
        print(f"Unknown command: {command}")
        print(USAGE)
        return 2

    result = run_command(command)
    return 0 if result.get("success") else 1


if __name__ == "__main__":
    sys.exit(main())
