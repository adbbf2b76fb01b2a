"""SQLAlchemy database models."""

from nfl_edge.models.game import GameRow
from nfl_edge.models.odds_snapshot import OddsSnapshotRow
from nfl_edge.models.signal import SignalRow
from nfl_edge.models.feature_set import FeatureSetRow
from nfl_edge.models.prediction import PredictionRow
from nfl_edge.models.evaluation import EvaluationRow
from nfl_edge.models.source_registry import SourceRegistryRow
from nfl_edge.models.audit_log import AuditLogRow
from nfl_edge.models.usage_budget import UsageBudgetRow

__all__ = [
    "GameRow",
    "OddsSnapshotRow",
    "SignalRow",
    "FeatureSetRow",
    "PredictionRow",
    "EvaluationRow",
    "SourceRegistryRow",
    "AuditLogRow",
    "UsageBudgetRow",
]
