"""Storage interface shared by every pipeline stage.

Stages only talk to a :class:`PipelineStore`. The SQL implementation lives in
:mod:`nfl_edge.storage.sql`; tests substitute an in-memory store.
"""

from collections.abc import Sequence
from datetime import datetime
from typing import Any, Protocol

from nfl_edge.schemas import (
    AuditRecord,
    Evaluation,
    FeatureSet,
    Game,
    GameFeatures,
    OddsSnapshot,
    Prediction,
    Signal,
    SourceStatus,
)


class PipelineStore(Protocol):
    # Core reads and writes used by the feature, prediction and evaluation stages

    async def list_upcoming_games(self, not_before: datetime) -> list[Game]:
        """Games with kickoff at or after ``not_before``, soonest first."""
        ...

    async def list_odds_snapshots(self, game_id: str, limit: int) -> list[OddsSnapshot]:
        """Most recent snapshots for a game, newest first."""
        ...

    async def list_signals(
        self,
        game_id: str,
        signal_type: str,
        limit: int | None = None,
        since: datetime | None = None,
    ) -> list[Signal]:
        """Signals of one type for a game, newest first.

        ``since`` keeps only signals stamped at or after it; ``limit=None``
        returns every matching row.
        """
        ...

    async def write_feature_set(self, game_id: str, features: GameFeatures) -> FeatureSet:
        ...

    async def read_latest_feature_set(self, game_id: str) -> FeatureSet | None:
        ...

    async def upsert_predictions(
        self, game_id: str, predictions: Sequence[Prediction]
    ) -> None:
        """Insert or replace predictions keyed by (game_id, market_type)."""
        ...

    async def list_completed_games_with_scores(self, limit: int) -> list[Game]:
        """Completed games with both scores set, most recent kickoff first."""
        ...

    async def read_predictions_for_game(self, game_id: str) -> list[Prediction]:
        ...

    async def write_evaluation(self, evaluation: Evaluation) -> Evaluation:
        ...

    # Ingestion

    async def get_game(self, game_id: str) -> Game | None:
        ...

    async def upsert_game(self, game: Game) -> Game:
        """Create the game or update its kickoff/venue/week.

        Sets ``schedule_change`` when an existing kickoff moves by more than
        five minutes. Scores and status are never overwritten here.
        """
        ...

    async def append_odds_snapshots(self, snapshots: Sequence[OddsSnapshot]) -> int:
        ...

    async def append_signal(self, signal: Signal) -> Signal:
        ...

    async def find_next_game_for_team(
        self, team: str, not_before: datetime, not_after: datetime
    ) -> Game | None:
        ...

    # Source registry and usage budget

    async def get_source(self, source_type: str) -> SourceStatus | None:
        ...

    async def record_source_success(self, source_type: str, at: datetime) -> None:
        ...

    async def record_source_failure(self, source_type: str, at: datetime) -> None:
        ...

    async def list_sources(self) -> list[SourceStatus]:
        ...

    async def consume_usage_budget(
        self, key: str, window_start: datetime, amount: int, limit: int
    ) -> bool:
        """Add ``amount`` to the window's usage if it stays within ``limit``.

        Returns False, leaving the count unchanged, when the budget would be
        exceeded.
        """
        ...

    # Audit and observability

    async def write_audit_log(
        self, action: str, target: str, meta: dict[str, Any]
    ) -> AuditRecord:
        ...

    async def list_recent_evaluations(
        self, market_type: str, limit: int
    ) -> list[Evaluation]:
        ...

    async def latest_odds_snapshot_time(self) -> datetime | None:
        ...

    async def count_predictions_since(self, since: datetime) -> int:
        ...

    async def count_games_with_predictions(
        self, start: datetime, end: datetime
    ) -> tuple[int, int]:
        """Return (games in window, games in window with any prediction)."""
        ...

    async def ping(self) -> bool:
        ...
