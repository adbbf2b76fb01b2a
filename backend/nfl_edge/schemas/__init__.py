"""Pydantic schemas for pipeline records and API responses."""

from nfl_edge.schemas.game import Game, GameStatus
from nfl_edge.schemas.odds import OddsOutcome, OddsPayload, OddsSnapshot
from nfl_edge.schemas.signal import InjuryContent, Signal, WeatherContent
from nfl_edge.schemas.features import FeatureSet, GameFeatures
from nfl_edge.schemas.prediction import Prediction, UncertaintyBand
from nfl_edge.schemas.evaluation import CalibrationSummary, Evaluation, ReliabilityBin
from nfl_edge.schemas.pipeline import (
    AuditRecord,
    PipelineRunResult,
    SourceStatus,
    StageResult,
)

__all__ = [
    "Game",
    "GameStatus",
    "OddsOutcome",
    "OddsPayload",
    "OddsSnapshot",
    "InjuryContent",
    "Signal",
    "WeatherContent",
    "FeatureSet",
    "GameFeatures",
    "Prediction",
    "UncertaintyBand",
    "CalibrationSummary",
    "Evaluation",
    "ReliabilityBin",
    "AuditRecord",
    "PipelineRunResult",
    "SourceStatus",
    "StageResult",
]
