"""Evaluation and calibration Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field

from nfl_edge.schemas.common import UTCDatetime


class Evaluation(BaseModel):
    """Post-game evaluation of one prediction. Append-only."""

    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    prediction_id: int | None = None
    game_id: str
    market_type: str
    predicted_value: float
    actual_value: float
    absolute_error: float
    squared_error: float
    brier_score: float | None = Field(default=None, description="Moneyline only")
    log_loss: float | None = Field(default=None, description="Moneyline only")
    evaluated_at: UTCDatetime


class ReliabilityBin(BaseModel):
    """Calibration curve data point."""

    lower: float
    upper: float
    midpoint: float = Field(description="Center of prediction bin")
    count: int = Field(description="Number of predictions in bin")
    mean_predicted: float | None = None
    empirical_rate: float | None = Field(
        default=None, description="Observed home win rate; None for an empty bin"
    )


class CalibrationSummary(BaseModel):
    """Aggregate accuracy and calibration over one evaluation run."""

    games_evaluated: int = 0
    predictions_evaluated: int = 0
    mean_brier_score: float | None = None
    mean_log_loss: float | None = None
    mean_spread_error: float | None = None
    mean_total_error: float | None = None
    calibration_slope: float | None = None
    reliability_curve: list[ReliabilityBin] = Field(default_factory=list)
