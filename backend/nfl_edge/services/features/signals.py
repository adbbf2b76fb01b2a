"""Injury and weather impact scoring."""

from dataclasses import dataclass

import structlog
from pydantic import ValidationError

from nfl_edge.schemas import InjuryContent, Signal, WeatherContent

logger = structlog.get_logger()

# Position weights: QB = 3x, skill positions = 2x, others = 1x
POSITION_WEIGHTS = {"QB": 3.0, "WR": 2.0, "RB": 2.0, "TE": 2.0}
DEFAULT_POSITION_WEIGHT = 1.0
DEFAULT_SEVERITY = 0.5
DEFAULT_CONFIDENCE = 0.5
INJURY_NORMALIZER = 10.0

# Weather thresholds (Fahrenheit, mph, mm)
COLD_TEMPERATURE_F = 20.0
HIGH_WIND_MPH = 20.0
HEAVY_PRECIPITATION = 0.5
COLD_PENALTY = 0.3
WIND_PENALTY = 0.3
PRECIPITATION_PENALTY = 0.4


@dataclass
class InjuryImpact:
    home: float = 0.0
    away: float = 0.0

    @property
    def differential(self) -> float:
        """Away impact minus home impact; positive favors the home team."""
        return self.away - self.home


def position_weight(position: str | None) -> float:
    if not position:
        return DEFAULT_POSITION_WEIGHT
    return POSITION_WEIGHTS.get(position.strip().upper(), DEFAULT_POSITION_WEIGHT)


def injury_side(content: InjuryContent, home_team: str, away_team: str) -> str | None:
    """Resolve which side of the game a report belongs to."""
    if content.side:
        return content.side
    if not content.team:
        return None
    team = content.team.strip().lower()
    if team == home_team.strip().lower():
        return "home"
    if team == away_team.strip().lower():
        return "away"
    return None


def injury_weight(content: InjuryContent, confidence: float | None) -> float:
    severity = content.severity if content.severity is not None else DEFAULT_SEVERITY
    conf = confidence if confidence is not None else DEFAULT_CONFIDENCE
    return severity * conf * position_weight(content.position)


def calculate_injury_impact(
    signals: list[Signal], home_team: str, away_team: str
) -> InjuryImpact:
    """
    Score injury impact per side of a game.

    Each side's impact is ``sum(severity * confidence * position_weight) / 10``.
    Signals are append-only, so the same player shows up once per ingestion
    run; only the most recent report per player counts. Reports that cannot
    be attributed to either team, or whose content fails validation, are
    skipped.

    Args:
        signals: Injury signals for the game
        home_team: Home team name
        away_team: Away team name

    Returns:
        InjuryImpact with home/away scores (0 when no reports)
    """
    totals = {"home": 0.0, "away": 0.0}
    seen_players: set[tuple[str, str]] = set()

    for signal in sorted(signals, key=lambda s: s.timestamp, reverse=True):
        try:
            content = signal.injury()
        except ValidationError as e:
            logger.warning(
                "Skipping malformed injury signal",
                game_id=signal.game_id,
                signal_id=signal.id,
                error=str(e),
            )
            continue

        side = injury_side(content, home_team, away_team)
        if side is None:
            continue

        if content.player:
            key = (side, content.player.strip().lower())
            if key in seen_players:
                continue
            seen_players.add(key)

        totals[side] += injury_weight(content, signal.confidence)

    return InjuryImpact(
        home=totals["home"] / INJURY_NORMALIZER,
        away=totals["away"] / INJURY_NORMALIZER,
    )


def weather_severity_from_conditions(
    temperature: float | None,
    windspeed: float | None,
    precipitation: float | None,
) -> float:
    """Severity in [0, 1] from kickoff conditions; missing readings add nothing."""
    severity = 0.0
    if temperature is not None and temperature < COLD_TEMPERATURE_F:
        severity += COLD_PENALTY
    if windspeed is not None and windspeed > HIGH_WIND_MPH:
        severity += WIND_PENALTY
    if precipitation is not None and precipitation > HEAVY_PRECIPITATION:
        severity += PRECIPITATION_PENALTY
    return min(severity, 1.0)


def score_weather(content: WeatherContent) -> float:
    if content.indoor:
        return 0.0
    readings = (content.temperature, content.windspeed, content.precipitation)
    if any(r is not None for r in readings):
        return weather_severity_from_conditions(*readings)
    if content.severity is not None:
        return float(min(max(content.severity, 0.0), 1.0))
    return 0.0


def calculate_weather_severity(signal: Signal | None) -> float:
    """Weather severity of the latest weather signal, 0 when there is none."""
    if signal is None:
        return 0.0
    try:
        content = signal.weather()
    except ValidationError as e:
        logger.warning(
            "Skipping malformed weather signal",
            game_id=signal.game_id,
            signal_id=signal.id,
            error=str(e),
        )
        return 0.0
    return score_weather(content)
