"""Prediction schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from nfl_edge.schemas.common import UTCDatetime

PredictionMarket = Literal["moneyline", "spread", "total"]


class UncertaintyBand(BaseModel):
    lower: float
    upper: float


class Prediction(BaseModel):
    """Model output for one market of one game, upserted on (game_id, market_type).

    ``predicted_value`` is the home win probability for moneyline, the
    predicted home margin for spread, and combined points for total.
    """

    model_config = ConfigDict(from_attributes=True, protected_namespaces=())

    id: int | None = None
    game_id: str
    market_type: PredictionMarket
    predicted_value: float
    confidence: float = Field(ge=0, le=1)
    uncertainty_band: UncertaintyBand
    model_version: str
    provenance_hash: str
    model_probability: float | None = None
    implied_probability: float | None = None
    edge_vs_implied: float | None = None  # percentage points
    created_at: UTCDatetime | None = None
