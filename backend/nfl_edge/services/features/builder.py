"""Assemble a game's feature set from odds and signals."""

from datetime import datetime
from zoneinfo import ZoneInfo

from nfl_edge.config import Settings, settings as default_settings
from nfl_edge.schemas import Game, GameFeatures, OddsSnapshot, Signal
from nfl_edge.services.features.consensus import calculate_consensus
from nfl_edge.services.features.signals import (
    calculate_injury_impact,
    calculate_weather_severity,
)

EASTERN = ZoneInfo("America/New_York")

# Rest days by kickoff weekday: Sunday slate after a full week, Thursday on a short week
SUNDAY_REST_DAYS = 7
THURSDAY_REST_DAYS = 4
DEFAULT_REST_DAYS = 6


def rest_days(kickoff: datetime) -> int:
    """Approximate rest days from the kickoff's US-Eastern weekday."""
    weekday = kickoff.astimezone(EASTERN).weekday()
    if weekday == 6:
        return SUNDAY_REST_DAYS
    if weekday == 3:
        return THURSDAY_REST_DAYS
    return DEFAULT_REST_DAYS


def build_game_features(
    game: Game,
    odds: list[OddsSnapshot],
    injuries: list[Signal],
    weather: Signal | None,
    settings: Settings | None = None,
) -> GameFeatures:
    settings = settings or default_settings

    consensus = calculate_consensus(
        odds,
        game.home_team,
        game.away_team,
        per_book=settings.consensus_window_per_book,
        full_coverage_books=settings.min_books_for_full_coverage,
        default_total=settings.default_total,
    )
    injury = calculate_injury_impact(injuries, game.home_team, game.away_team)
    rest = rest_days(game.start_time_utc)

    return GameFeatures(
        consensus_ml_home=consensus.ml_home,
        consensus_ml_away=consensus.ml_away,
        consensus_spread=consensus.spread,
        consensus_total=consensus.total,
        implied_prob_home=consensus.implied_prob_home,
        implied_prob_away=consensus.implied_prob_away,
        injury_impact_home=injury.home,
        injury_impact_away=injury.away,
        weather_severity=calculate_weather_severity(weather),
        rest_days_home=rest,
        rest_days_away=rest,
        odds_volatility=consensus.volatility,
        coverage_quality=consensus.coverage_quality,
        bookmaker_count=consensus.bookmaker_count,
    )
