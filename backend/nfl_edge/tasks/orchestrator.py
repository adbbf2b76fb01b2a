"""Pipeline orchestration: run every stage in dependency order."""

import asyncio
import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

import structlog

from nfl_edge.celery_app import celery_app, run_store_task
from nfl_edge.config import Settings, settings as default_settings
from nfl_edge.schemas import PipelineRunResult, StageResult
from nfl_edge.services.data.injuries_api import ESPNInjuryClient
from nfl_edge.services.data.odds_api import OddsAPIClient
from nfl_edge.services.data.weather_api import WeatherAPIClient
from nfl_edge.services.ml.predictor import BlendPolicy
from nfl_edge.storage import PipelineStore
from nfl_edge.tasks.evaluation import evaluate_predictions
from nfl_edge.tasks.features import build_features
from nfl_edge.tasks.ingestion import ingest_injuries, ingest_odds, ingest_weather
from nfl_edge.tasks.predictions import generate_predictions

logger = structlog.get_logger()

STAGE_ORDER = ["odds", "injuries", "weather", "features", "predictions", "evaluation"]
INGESTION_STAGES = {"odds", "injuries", "weather"}

StageRunner = Callable[[], Awaitable[StageResult]]


def stage_runners(
    store: PipelineStore,
    settings: Settings,
    odds_client: OddsAPIClient | None = None,
    injury_client: ESPNInjuryClient | None = None,
    weather_client: WeatherAPIClient | None = None,
    policy: BlendPolicy | None = None,
) -> dict[str, StageRunner]:
    return {
        "odds": lambda: ingest_odds(store, settings, client=odds_client),
        "injuries": lambda: ingest_injuries(store, settings, client=injury_client),
        "weather": lambda: ingest_weather(store, settings, client=weather_client),
        "features": lambda: build_features(store, settings),
        "predictions": lambda: generate_predictions(store, settings, policy=policy),
        "evaluation": lambda: evaluate_predictions(store, settings),
    }


async def run_stage(
    name: str,
    runner: StageRunner,
    store: PipelineStore,
    timeout: float,
) -> StageResult:
    """
    Run one stage under a wall-clock timeout and audit its outcome.

    Exceptions and timeouts become a failed StageResult; nothing propagates.
    """
    started = time.monotonic()
    try:
        result = await asyncio.wait_for(runner(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.error("Stage timed out", stage=name, timeout_seconds=timeout)
        result = StageResult.failure(name, f"timed out after {timeout:g}s")
    except Exception as e:
        logger.error("Stage failed", stage=name, error=str(e), error_type=type(e).__name__)
        result = StageResult.failure(name, str(e))
    result.duration_seconds = round(time.monotonic() - started, 3)

    try:
        await store.write_audit_log(
            "pipeline_stage",
            name,
            {
                "success": result.success,
                "processed": result.processed,
                "failed": result.failed,
                "error": result.error,
                "duration_seconds": result.duration_seconds,
            },
        )
    except Exception as e:
        logger.warning("Could not write stage audit record", stage=name, error=str(e))

    return result


async def run_pipeline(
    store: PipelineStore,
    settings: Settings | None = None,
    include_ingestion: bool = True,
    include_evaluation: bool = True,
    odds_client: OddsAPIClient | None = None,
    injury_client: ESPNInjuryClient | None = None,
    weather_client: WeatherAPIClient | None = None,
    policy: BlendPolicy | None = None,
) -> PipelineRunResult:
    """
    Run odds -> injuries -> weather -> features -> predictions -> evaluation.

    Stages run sequentially; a failed stage does not stop the ones after it.
    The run succeeds if any stage succeeded and is partial if any failed.
    """
    settings = settings or default_settings
    started_at = datetime.now(timezone.utc)
    runners = stage_runners(
        store, settings, odds_client, injury_client, weather_client, policy
    )

    results: dict[str, StageResult] = {}
    for name in STAGE_ORDER:
        if name in INGESTION_STAGES and not include_ingestion:
            continue
        if name == "evaluation" and not include_evaluation:
            continue
        logger.info("Running stage", stage=name)
        results[name] = await run_stage(
            name, runners[name], store, settings.stage_timeout_seconds
        )

    run = PipelineRunResult(
        success=any(r.success for r in results.values()),
        partial=any(not r.success for r in results.values()),
        started_at=started_at,
        finished_at=datetime.now(timezone.utc),
        results=results,
    )
    logger.info(
        "Pipeline run complete",
        success=run.success,
        partial=run.partial,
        failed_stages=[name for name, r in results.items() if not r.success],
    )
    return run


async def run_single_stage(
    store: PipelineStore,
    stage: str,
    settings: Settings | None = None,
    **clients,
) -> StageResult:
    """Run one named stage with the same timeout and auditing as a full run.

    Raises:
        ValueError: Unknown stage name
    """
    settings = settings or default_settings
    if stage not in STAGE_ORDER:
        raise ValueError(f"unknown stage {stage!r}, expected one of {STAGE_ORDER}")
    runners = stage_runners(store, settings, **clients)
    return await run_stage(stage, runners[stage], store, settings.stage_timeout_seconds)


@celery_app.task(name="nfl_edge.tasks.orchestrator.run_pipeline")
def run_pipeline_task(include_ingestion: bool = True, include_evaluation: bool = True) -> dict:
    logger.info("Starting pipeline run")
    return run_store_task(
        run_pipeline,
        include_ingestion=include_ingestion,
        include_evaluation=include_evaluation,
    )
