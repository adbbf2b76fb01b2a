"""Win-probability model and evaluation metrics."""

from nfl_edge.services.ml.predictor import BlendPolicy, predict_game, provenance_hash
from nfl_edge.services.ml.calibration import evaluate_game, summarize

__all__ = [
    "BlendPolicy",
    "predict_game",
    "provenance_hash",
    "evaluate_game",
    "summarize",
]
