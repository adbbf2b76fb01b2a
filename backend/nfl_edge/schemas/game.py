"""Game schema."""

from typing import Literal

from pydantic import BaseModel, ConfigDict

from nfl_edge.schemas.common import UTCDatetime

GameStatus = Literal["scheduled", "in_progress", "completed"]


class Game(BaseModel):
    """NFL game with canonical UTC kickoff."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    season: int
    week: int = 0
    home_team: str
    away_team: str
    start_time_utc: UTCDatetime
    venue: str | None = None
    status: GameStatus = "scheduled"
    home_score: int | None = None
    away_score: int | None = None
    schedule_change: bool = False

    @property
    def has_final_score(self) -> bool:
        return self.home_score is not None and self.away_score is not None

    @property
    def home_margin(self) -> int | None:
        """Home points minus away points."""
        if self.has_final_score:
            return self.home_score - self.away_score
        return None

    @property
    def total_points(self) -> int | None:
        if self.has_final_score:
            return self.home_score + self.away_score
        return None
