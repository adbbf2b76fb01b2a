"""The Odds API client for fetching NFL betting odds."""

from datetime import date, datetime, timedelta, timezone
from typing import Any

import httpx
import structlog

from nfl_edge.config import Settings, settings as default_settings
from nfl_edge.exceptions import ConfigurationError
from nfl_edge.schemas import Game, OddsPayload, OddsSnapshot
from nfl_edge.services.data.http import request_with_retry
from nfl_edge.services.data.venues import venue_for_team

logger = structlog.get_logger()

MARKETS = ["h2h", "spreads", "totals"]
REGULAR_SEASON_WEEKS = 18


def labor_day(year: int) -> date:
    """First Monday of September."""
    first = date(year, 9, 1)
    return first + timedelta(days=(7 - first.weekday()) % 7)


def nfl_season(kickoff: datetime) -> int:
    """Season a kickoff belongs to; January and February games close the previous year's season."""
    kickoff = kickoff.astimezone(timezone.utc)
    return kickoff.year if kickoff.month >= 3 else kickoff.year - 1


def nfl_week(kickoff: datetime) -> int:
    """
    NFL regular-season week of a kickoff.

    Week 1 starts the Thursday after Labor Day. Games before that are week 0;
    anything past the regular season, playoffs included, is clamped to week 18.
    """
    kickoff = kickoff.astimezone(timezone.utc)
    start_day = labor_day(nfl_season(kickoff)) + timedelta(days=3)
    season_start = datetime(start_day.year, start_day.month, start_day.day, tzinfo=timezone.utc)
    if kickoff < season_start:
        return 0
    weeks = (kickoff - season_start).days // 7
    return min(max(weeks + 1, 1), REGULAR_SEASON_WEEKS)


def parse_commence_time(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00")).astimezone(timezone.utc)


def parse_game(event: dict[str, Any]) -> Game:
    """Normalize an Odds API event into a game with canonical UTC kickoff."""
    kickoff = parse_commence_time(event["commence_time"])
    return Game(
        id=event["id"],
        season=nfl_season(kickoff),
        week=nfl_week(kickoff),
        home_team=event["home_team"],
        away_team=event["away_team"],
        start_time_utc=kickoff,
        venue=venue_for_team(event["home_team"]),
        status="scheduled",
    )


def parse_snapshots(event: dict[str, Any], snapshot_time: datetime) -> list[OddsSnapshot]:
    """One snapshot per (bookmaker, market) of an event."""
    snapshots = []
    for bookmaker in event.get("bookmakers", []):
        for market in bookmaker.get("markets", []):
            if market.get("key") not in MARKETS:
                continue
            snapshots.append(
                OddsSnapshot(
                    game_id=event["id"],
                    bookmaker=bookmaker["key"],
                    market_type=market["key"],
                    snapshot_time=snapshot_time,
                    odds_data=OddsPayload(
                        outcomes=market.get("outcomes", []),
                        last_update=market.get("last_update"),
                    ),
                )
            )
    return snapshots


class OddsAPIClient:
    """Client for The Odds API."""

    BASE_URL = "https://api.the-odds-api.com/v4"

    def __init__(
        self,
        api_key: str | None = None,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings or default_settings
        self.api_key = api_key if api_key is not None else self.settings.odds_api_key
        self.transport = transport
        self.requests_remaining: int | None = None
        self.requests_used: int | None = None

    async def get_nfl_odds(
        self,
        markets: list[str] | None = None,
        bookmakers: list[str] | None = None,
    ) -> list[dict]:
        """
        Fetch current NFL odds from US sportsbooks.

        Args:
            markets: Markets to request (default h2h, spreads, totals)
            bookmakers: Optional list of specific bookmakers

        Returns:
            List of events with odds from each bookmaker

        Raises:
            ConfigurationError: No API key configured
            FetchError: The API could not be reached after retries
        """
        if not self.api_key:
            raise ConfigurationError("ODDS_API_KEY not configured")

        params = {
            "apiKey": self.api_key,
            "regions": self.settings.odds_api_regions,
            "markets": ",".join(markets or MARKETS),
            "oddsFormat": "decimal",
        }
        if bookmakers:
            params["bookmakers"] = ",".join(bookmakers)

        async with httpx.AsyncClient(
            transport=self.transport, timeout=self.settings.http_timeout_seconds
        ) as client:
            response = await request_with_retry(
                client,
                f"{self.BASE_URL}/sports/{self.settings.odds_api_sport}/odds",
                source="odds",
                params=params,
                max_retries=self.settings.http_max_retries,
                retry_delay=self.settings.http_retry_base_delay,
            )

        # Track usage from headers
        remaining = response.headers.get("x-requests-remaining")
        used = response.headers.get("x-requests-used")
        self.requests_remaining = int(float(remaining)) if remaining else None
        self.requests_used = int(float(used)) if used else None

        events = response.json()
        logger.info(
            "Fetched odds from API",
            events=len(events),
            requests_remaining=self.requests_remaining,
            requests_used=self.requests_used,
        )
        return events
