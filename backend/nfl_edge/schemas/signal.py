"""Signal schemas.

Signals carry a free-form ``content`` blob per row. The typed content models
below are the parse boundary: consumers call :meth:`Signal.injury` or
:meth:`Signal.weather` and handle ``ValidationError`` for malformed payloads.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from nfl_edge.schemas.common import UTCDatetime

SignalType = Literal["injury", "weather"]


class InjuryContent(BaseModel):
    """Normalized injury report for one player."""

    model_config = ConfigDict(extra="ignore")

    team: str | None = None
    side: Literal["home", "away"] | None = None
    player: str | None = None
    position: str | None = None
    status: str | None = None
    injury_type: str | None = None
    severity: float | None = Field(default=None, ge=0, le=1)


class WeatherContent(BaseModel):
    """Forecast at kickoff for a venue."""

    model_config = ConfigDict(extra="ignore")

    temperature: float | None = None  # Fahrenheit
    windspeed: float | None = None  # MPH
    precipitation: float | None = None  # mm in the kickoff hour
    severity: float | None = None
    venue: str | None = None
    indoor: bool = False


class Signal(BaseModel):
    """Append-only injury or weather observation attached to a game."""

    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    game_id: str
    signal_type: SignalType
    source: str
    content: dict[str, Any] = Field(default_factory=dict)
    confidence: float | None = Field(default=None, ge=0, le=1)
    timestamp: UTCDatetime

    def injury(self) -> InjuryContent:
        return InjuryContent.model_validate(self.content)

    def weather(self) -> WeatherContent:
        return WeatherContent.model_validate(self.content)
