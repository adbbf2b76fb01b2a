"""Evaluation tasks for post-game analysis."""

from datetime import datetime, timezone

import structlog

from nfl_edge.celery_app import celery_app, run_store_task
from nfl_edge.config import Settings, settings as default_settings
from nfl_edge.schemas import Evaluation, StageResult
from nfl_edge.services.ml.calibration import evaluate_game, summarize
from nfl_edge.storage import PipelineStore

logger = structlog.get_logger()


async def evaluate_predictions(
    store: PipelineStore,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> StageResult:
    """
    Evaluate predictions of recently completed games.

    For each of the most recent completed games with final scores:
    1. Reads its predictions (games without a moneyline prediction are skipped)
    2. Scores moneyline (Brier, log loss), spread and total against the result
    3. Appends one evaluation row per prediction
    4. Summarizes accuracy and the reliability curve into the stage details
    """
    settings = settings or default_settings
    now = now or datetime.now(timezone.utc)
    result = StageResult(stage="evaluation", success=True)

    games = await store.list_completed_games_with_scores(settings.evaluation_limit)
    written: list[Evaluation] = []
    skipped = 0

    for game in games:
        try:
            predictions = await store.read_predictions_for_game(game.id)
            evaluations = evaluate_game(game, predictions, now=now)
            if not evaluations:
                skipped += 1
                continue
            for evaluation in evaluations:
                written.append(await store.write_evaluation(evaluation))
            result.processed += 1
        except Exception as e:
            logger.error("Error evaluating game", game_id=game.id, error=str(e))
            result.record_error(f"{game.id}: {e}")

    summary = summarize(written, settings.reliability_bins)
    result.details.update(
        games_considered=len(games),
        games_skipped=skipped,
        summary=summary.model_dump(mode="json"),
    )
    logger.info(
        "Completed post-game evaluation",
        games_evaluated=summary.games_evaluated,
        mean_brier_score=summary.mean_brier_score,
        mean_spread_error=summary.mean_spread_error,
    )
    return result


@celery_app.task(name="nfl_edge.tasks.evaluation.evaluate_predictions")
def evaluate_predictions_task() -> dict:
    logger.info("Starting post-game evaluation")
    return run_store_task(evaluate_predictions)
