"""Market quality and prediction confidence."""

from nfl_edge.services.scoring.confidence import compute_confidence, probability_band
from nfl_edge.services.scoring.market_quality import compute_market_quality

__all__ = [
    "compute_confidence",
    "probability_band",
    "compute_market_quality",
]
