"""Odds snapshot schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from nfl_edge.schemas.common import UTCDatetime

MarketKey = Literal["h2h", "spreads", "totals"]


class OddsOutcome(BaseModel):
    """One quoted outcome (team name or Over/Under) with decimal price and optional point."""

    name: str
    price: float | None = None
    point: float | None = None


class OddsPayload(BaseModel):
    """Raw bookmaker market as stored on a snapshot."""

    outcomes: list[OddsOutcome] = Field(default_factory=list)
    last_update: str | None = None

    def find(self, name: str) -> OddsOutcome | None:
        """Find an outcome by name, case-insensitively."""
        wanted = name.strip().lower()
        for outcome in self.outcomes:
            if outcome.name.strip().lower() == wanted:
                return outcome
        return None


class OddsSnapshot(BaseModel):
    """Point-in-time quote from one bookmaker for one market of one game.

    Append-only: newer snapshots supersede older ones, nothing is updated.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    game_id: str
    bookmaker: str
    market_type: str
    snapshot_time: UTCDatetime
    odds_data: OddsPayload
