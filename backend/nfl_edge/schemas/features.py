"""Feature set schemas."""

from pydantic import BaseModel, ConfigDict, Field

from nfl_edge.schemas.common import UTCDatetime


class GameFeatures(BaseModel):
    """Derived numeric features for one game, as consumed by the predictor."""

    consensus_ml_home: float | None = None
    consensus_ml_away: float | None = None
    consensus_spread: float = 0.0
    consensus_total: float = 47.0
    implied_prob_home: float = Field(default=0.5, ge=0, le=1)
    implied_prob_away: float = Field(default=0.5, ge=0, le=1)
    injury_impact_home: float = Field(default=0.0, ge=0)
    injury_impact_away: float = Field(default=0.0, ge=0)
    weather_severity: float = Field(default=0.0, ge=0, le=1)
    rest_days_home: int = 6
    rest_days_away: int = 6
    odds_volatility: float = Field(default=0.0, ge=0)
    coverage_quality: float = Field(default=0.0, ge=0, le=1)
    bookmaker_count: int = Field(default=0, ge=0)

    @property
    def has_market(self) -> bool:
        """True when at least one bookmaker quoted the game."""
        return self.bookmaker_count > 0


class FeatureSet(BaseModel):
    """One feature-builder output row. Each run appends; the latest computed_at wins."""

    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    game_id: str
    feature_set: GameFeatures
    computed_at: UTCDatetime
