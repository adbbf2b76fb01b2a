"""Prediction stage."""

from datetime import datetime, timezone

import structlog

from nfl_edge.celery_app import celery_app, run_store_task
from nfl_edge.config import Settings, settings as default_settings
from nfl_edge.schemas import StageResult
from nfl_edge.services.ml.predictor import BlendPolicy, predict_game
from nfl_edge.storage import PipelineStore

logger = structlog.get_logger()


async def generate_predictions(
    store: PipelineStore,
    settings: Settings | None = None,
    policy: BlendPolicy | None = None,
    now: datetime | None = None,
) -> StageResult:
    """
    Predict moneyline, spread and total for each upcoming game with features.

    Predictions are upserted on (game_id, market_type), so re-running replaces
    the previous output for a game. Games without a feature set are skipped.
    """
    settings = settings or default_settings
    policy = policy or BlendPolicy.from_settings(settings)
    now = now or datetime.now(timezone.utc)
    result = StageResult(stage="predictions", success=True)

    games = await store.list_upcoming_games(now)
    without_features = 0

    for game in games:
        try:
            feature_set = await store.read_latest_feature_set(game.id)
            if feature_set is None:
                without_features += 1
                continue

            predictions = predict_game(
                game.id, feature_set.feature_set, policy=policy, settings=settings, now=now
            )
            await store.upsert_predictions(game.id, predictions)
            result.processed += 1

            moneyline = predictions[0]
            logger.debug(
                "Predicted game",
                game_id=game.id,
                home_probability=round(moneyline.predicted_value, 4),
                confidence=round(moneyline.confidence, 3),
                edge=moneyline.edge_vs_implied,
            )
        except Exception as e:
            logger.error("Error generating predictions", game_id=game.id, error=str(e))
            result.record_error(f"{game.id}: {e}")

    result.details.update(
        games_considered=len(games),
        without_features=without_features,
        model_version=settings.model_version,
    )
    logger.info("Prediction generation complete", processed=result.processed, failed=result.failed)
    return result


@celery_app.task(name="nfl_edge.tasks.predictions.generate_predictions")
def generate_predictions_task() -> dict:
    return run_store_task(generate_predictions)
