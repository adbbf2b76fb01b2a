"""Data ingestion stages: odds, injuries and weather."""

from datetime import datetime, timedelta, timezone

import structlog

from nfl_edge.celery_app import celery_app, run_store_task
from nfl_edge.config import Settings, settings as default_settings
from nfl_edge.exceptions import ConfigurationError, FetchError
from nfl_edge.schemas import Signal, StageResult
from nfl_edge.services.data import injuries_api, weather_api
from nfl_edge.services.data.injuries_api import ESPNInjuryClient
from nfl_edge.services.data.odds_api import OddsAPIClient, parse_game, parse_snapshots
from nfl_edge.services.data.venues import get_stadium
from nfl_edge.services.data.weather_api import WeatherAPIClient, indoor_content
from nfl_edge.storage import PipelineStore

logger = structlog.get_logger()

ODDS_BUDGET_KEY = "odds_api"


async def _source_inactive(store: PipelineStore, source_type: str, stage: str) -> StageResult | None:
    """Skip result when the source has been switched off in the registry."""
    source = await store.get_source(source_type)
    if source is not None and not source.is_active:
        logger.info("Source inactive, skipping", source=source_type)
        return StageResult(stage=stage, success=True, details={"skipped": "source inactive"})
    return None


def _day_start(now: datetime) -> datetime:
    return now.astimezone(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)


async def ingest_odds(
    store: PipelineStore,
    settings: Settings | None = None,
    client: OddsAPIClient | None = None,
    now: datetime | None = None,
) -> StageResult:
    """
    Fetch NFL odds, upsert games and append one snapshot per bookmaker market.

    Raises:
        ConfigurationError: No odds API key configured
    """
    settings = settings or default_settings
    now = now or datetime.now(timezone.utc)
    result = StageResult(stage="odds", success=True)

    skipped = await _source_inactive(store, "odds", "odds")
    if skipped:
        return skipped

    client = client or OddsAPIClient(settings=settings)
    if not client.api_key:
        raise ConfigurationError("ODDS_API_KEY not configured")

    if not await store.consume_usage_budget(
        ODDS_BUDGET_KEY, _day_start(now), 1, settings.odds_api_daily_budget
    ):
        logger.warning("Odds API daily budget exhausted", budget=settings.odds_api_daily_budget)
        result.details["skipped"] = "daily budget exhausted"
        return result

    try:
        events = await client.get_nfl_odds()
    except FetchError as e:
        await store.record_source_failure("odds", now)
        result.record_error(str(e))
        return result

    await store.record_source_success("odds", now)

    snapshots_stored = 0
    schedule_changes = 0
    for event in events:
        game_id = event.get("id", "unknown")
        try:
            game = await store.upsert_game(parse_game(event))
            snapshots_stored += await store.append_odds_snapshots(parse_snapshots(event, now))
            schedule_changes += int(game.schedule_change)
            result.processed += 1
        except Exception as e:
            logger.error("Error storing odds", game_id=game_id, error=str(e))
            result.record_error(f"{game_id}: {e}")

    result.details.update(
        games_fetched=len(events),
        snapshots_stored=snapshots_stored,
        schedule_changes=schedule_changes,
        api_requests_remaining=client.requests_remaining,
    )
    logger.info("Odds ingestion complete", **result.details)
    return result


async def ingest_injuries(
    store: PipelineStore,
    settings: Settings | None = None,
    client: ESPNInjuryClient | None = None,
    now: datetime | None = None,
) -> StageResult:
    """Attach each reported injury to the team's next game within the upcoming window."""
    settings = settings or default_settings
    now = now or datetime.now(timezone.utc)
    result = StageResult(stage="injuries", success=True)

    skipped = await _source_inactive(store, "injury", "injuries")
    if skipped:
        return skipped

    client = client or ESPNInjuryClient(settings=settings)
    try:
        reports = await client.get_injuries()
    except FetchError as e:
        await store.record_source_failure("injury", now)
        result.record_error(str(e))
        return result

    await store.record_source_success("injury", now)

    window_end = now + timedelta(days=settings.upcoming_window_days)
    unmatched = 0
    for report in reports:
        try:
            game = await store.find_next_game_for_team(report.team, now, window_end)
            if game is None:
                unmatched += 1
                continue
            await store.append_signal(
                Signal(
                    game_id=game.id,
                    signal_type="injury",
                    source=injuries_api.SOURCE_NAME,
                    content=report.to_content().model_dump(exclude_none=True),
                    confidence=injuries_api.SOURCE_CONFIDENCE,
                    timestamp=now,
                )
            )
            result.processed += 1
        except Exception as e:
            logger.error("Error storing injury", team=report.team, player=report.player, error=str(e))
            result.record_error(f"{report.team}/{report.player}: {e}")

    result.details.update(injuries_fetched=len(reports), unmatched=unmatched)
    logger.info("Injury ingestion complete", processed=result.processed, **result.details)
    return result


async def ingest_weather(
    store: PipelineStore,
    settings: Settings | None = None,
    client: WeatherAPIClient | None = None,
    now: datetime | None = None,
) -> StageResult:
    """Record kickoff-hour weather for upcoming games at known venues."""
    settings = settings or default_settings
    now = now or datetime.now(timezone.utc)
    result = StageResult(stage="weather", success=True)

    skipped = await _source_inactive(store, "weather", "weather")
    if skipped:
        return skipped

    client = client or WeatherAPIClient(settings=settings)
    window_end = now + timedelta(days=settings.upcoming_window_days)
    games = [g for g in await store.list_upcoming_games(now) if g.start_time_utc <= window_end]

    fetched = 0
    fetch_failures = 0
    unknown_venues = 0
    for game in games:
        stadium = get_stadium(game.venue)
        if stadium is None:
            logger.info("No coordinates for venue", game_id=game.id, venue=game.venue)
            unknown_venues += 1
            continue

        if stadium.indoor:
            content = indoor_content(stadium.name)
        else:
            try:
                weather = await client.get_kickoff_weather(stadium, game.start_time_utc)
            except FetchError as e:
                fetch_failures += 1
                result.record_error(f"{game.id}: {e}")
                continue
            fetched += 1
            if weather is None:
                continue
            content = weather.to_content(stadium.name)

        try:
            await store.append_signal(
                Signal(
                    game_id=game.id,
                    signal_type="weather",
                    source=weather_api.SOURCE_NAME,
                    content=content.model_dump(),
                    confidence=weather_api.SOURCE_CONFIDENCE,
                    timestamp=now,
                )
            )
            result.processed += 1
        except Exception as e:
            logger.error("Error storing weather signal", game_id=game.id, error=str(e))
            result.record_error(f"{game.id}: {e}")

    if fetch_failures and not fetched:
        await store.record_source_failure("weather", now)
    else:
        await store.record_source_success("weather", now)

    result.details.update(
        games_considered=len(games),
        forecasts_fetched=fetched,
        fetch_failures=fetch_failures,
        unknown_venues=unknown_venues,
    )
    logger.info("Weather ingestion complete", processed=result.processed, **result.details)
    return result


@celery_app.task(name="nfl_edge.tasks.ingestion.ingest_odds")
def ingest_odds_task() -> dict:
    logger.info("Starting odds ingestion")
    return run_store_task(ingest_odds)


@celery_app.task(name="nfl_edge.tasks.ingestion.ingest_injuries")
def ingest_injuries_task() -> dict:
    logger.info("Starting injury ingestion")
    return run_store_task(ingest_injuries)


@celery_app.task(name="nfl_edge.tasks.ingestion.ingest_weather")
def ingest_weather_task() -> dict:
    logger.info("Starting weather ingestion")
    return run_store_task(ingest_weather)
