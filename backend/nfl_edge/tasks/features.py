"""Feature builder stage."""

from datetime import datetime, timedelta, timezone

import structlog

from nfl_edge.celery_app import celery_app, run_store_task
from nfl_edge.config import Settings, settings as default_settings
from nfl_edge.schemas import StageResult
from nfl_edge.services.features.builder import build_game_features
from nfl_edge.storage import PipelineStore

logger = structlog.get_logger()


async def build_features(
    store: PipelineStore,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> StageResult:
    """
    Compute and append a feature set for every game that has not kicked off.

    A failure on one game is logged and collected; the remaining games are
    still processed.
    """
    settings = settings or default_settings
    now = now or datetime.now(timezone.utc)
    result = StageResult(stage="features", success=True)

    injury_since = now - timedelta(hours=settings.injury_lookback_hours)

    games = await store.list_upcoming_games(now)
    logger.info("Building features", games=len(games))

    for game in games:
        try:
            odds = await store.list_odds_snapshots(game.id, settings.odds_snapshot_limit)
            # Every report in the lookback window; per-player dedupe happens downstream
            injuries = await store.list_signals(game.id, "injury", since=injury_since)
            weather = await store.list_signals(game.id, "weather", 1)

            features = build_game_features(
                game, odds, injuries, weather[0] if weather else None, settings
            )
            await store.write_feature_set(game.id, features)
            result.processed += 1
        except Exception as e:
            logger.error("Error building features", game_id=game.id, error=str(e))
            result.record_error(f"{game.id}: {e}")

    result.details["games_considered"] = len(games)
    logger.info("Feature building complete", processed=result.processed, failed=result.failed)
    return result


@celery_app.task(name="nfl_edge.tasks.features.build_features")
def build_features_task() -> dict:
    return run_store_task(build_features)
