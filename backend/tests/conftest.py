"""
Shared fixtures: an in-memory pipeline store and record factories.
"""

import itertools
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from nfl_edge.config import Settings
from nfl_edge.exceptions import StorageError
from nfl_edge.schemas import (
    AuditRecord,
    Evaluation,
    FeatureSet,
    Game,
    GameFeatures,
    OddsPayload,
    OddsSnapshot,
    Prediction,
    Signal,
    SourceStatus,
)

NOW = datetime(2025, 10, 15, 12, 0, tzinfo=timezone.utc)  # a Wednesday
HOME = "Kansas City Chiefs"
AWAY = "Buffalo Bills"


class InMemoryStore:
    """PipelineStore over plain dicts and lists.

    ``fail_games`` makes every per-game write for those ids raise StorageError.
    """

    def __init__(self):
        self.games: dict[str, Game] = {}
        self.snapshots: list[OddsSnapshot] = []
        self.signals: list[Signal] = []
        self.feature_sets: list[FeatureSet] = []
        self.predictions: dict[tuple[str, str], Prediction] = {}
        self.evaluations: list[Evaluation] = []
        self.sources: dict[str, SourceStatus] = {}
        self.budgets: dict[tuple[str, datetime], int] = {}
        self.audit: list[AuditRecord] = []
        self.fail_games: set[str] = set()
        self.healthy = True
        self._ids = itertools.count(1)

    def _check(self, game_id: str) -> None:
        if game_id in self.fail_games:
            raise StorageError(f"write failed for {game_id}")

    # Core

    async def list_upcoming_games(self, not_before):
        games = [g for g in self.games.values() if g.start_time_utc >= not_before]
        return sorted(games, key=lambda g: g.start_time_utc)

    async def list_odds_snapshots(self, game_id, limit):
        rows = [s for s in self.snapshots if s.game_id == game_id]
        rows.sort(key=lambda s: s.snapshot_time, reverse=True)
        return rows[:limit]

    async def list_signals(self, game_id, signal_type, limit=None, since=None):
        rows = [
            s for s in self.signals
            if s.game_id == game_id
            and s.signal_type == signal_type
            and (since is None or s.timestamp >= since)
        ]
        rows.sort(key=lambda s: s.timestamp, reverse=True)
        return rows if limit is None else rows[:limit]

    async def write_feature_set(self, game_id, features):
        self._check(game_id)
        # Strictly increasing so "latest" is unambiguous within one test
        computed_at = NOW + timedelta(microseconds=len(self.feature_sets))
        row = FeatureSet(
            id=next(self._ids), game_id=game_id, feature_set=features, computed_at=computed_at
        )
        self.feature_sets.append(row)
        return row

    async def read_latest_feature_set(self, game_id):
        rows = [f for f in self.feature_sets if f.game_id == game_id]
        return max(rows, key=lambda f: f.computed_at) if rows else None

    async def upsert_predictions(self, game_id, predictions):
        self._check(game_id)
        for prediction in predictions:
            key = (game_id, prediction.market_type)
            existing = self.predictions.get(key)
            row_id = existing.id if existing else next(self._ids)
            self.predictions[key] = prediction.model_copy(update={"id": row_id})

    async def list_completed_games_with_scores(self, limit):
        games = [
            g for g in self.games.values()
            if g.status == "completed" and g.has_final_score
        ]
        games.sort(key=lambda g: g.start_time_utc, reverse=True)
        return games[:limit]

    async def read_predictions_for_game(self, game_id):
        return [p for (gid, _), p in self.predictions.items() if gid == game_id]

    async def write_evaluation(self, evaluation):
        self._check(evaluation.game_id)
        row = evaluation.model_copy(update={"id": next(self._ids)})
        self.evaluations.append(row)
        return row

    # Ingestion

    async def get_game(self, game_id):
        return self.games.get(game_id)

    async def upsert_game(self, game):
        self._check(game.id)
        existing = self.games.get(game.id)
        if existing is None:
            self.games[game.id] = game
            return game
        moved = abs(existing.start_time_utc - game.start_time_utc) > timedelta(minutes=5)
        updated = existing.model_copy(
            update={
                "start_time_utc": game.start_time_utc,
                "week": game.week,
                "venue": game.venue or existing.venue,
                "schedule_change": existing.schedule_change or moved,
            }
        )
        self.games[game.id] = updated
        return updated

    async def append_odds_snapshots(self, snapshots):
        for snapshot in snapshots:
            self._check(snapshot.game_id)
            self.snapshots.append(snapshot.model_copy(update={"id": next(self._ids)}))
        return len(snapshots)

    async def append_signal(self, signal):
        self._check(signal.game_id)
        row = signal.model_copy(update={"id": next(self._ids)})
        self.signals.append(row)
        return row

    async def find_next_game_for_team(self, team, not_before, not_after):
        name = team.lower()
        games = [
            g for g in self.games.values()
            if name in (g.home_team.lower(), g.away_team.lower())
            and not_before <= g.start_time_utc <= not_after
        ]
        return min(games, key=lambda g: g.start_time_utc) if games else None

    # Source registry and usage budget

    async def get_source(self, source_type):
        return self.sources.get(source_type)

    async def record_source_success(self, source_type, at):
        source = self.sources.get(source_type) or SourceStatus(source_type=source_type)
        self.sources[source_type] = source.model_copy(
            update={"consecutive_failures": 0, "last_success": at}
        )

    async def record_source_failure(self, source_type, at):
        source = self.sources.get(source_type) or SourceStatus(source_type=source_type)
        self.sources[source_type] = source.model_copy(
            update={
                "consecutive_failures": source.consecutive_failures + 1,
                "last_failure": at,
            }
        )

    async def list_sources(self):
        return list(self.sources.values())

    async def consume_usage_budget(self, key, window_start, amount, limit):
        used = self.budgets.get((key, window_start), 0)
        if used + amount > limit:
            return False
        self.budgets[(key, window_start)] = used + amount
        return True

    # Audit and observability

    async def write_audit_log(self, action, target, meta):
        record = AuditRecord(
            id=next(self._ids), action=action, target=target, meta=meta, created_at=NOW
        )
        self.audit.append(record)
        return record

    async def list_recent_evaluations(self, market_type, limit):
        rows = [e for e in self.evaluations if e.market_type == market_type]
        rows.sort(key=lambda e: e.evaluated_at, reverse=True)
        return rows[:limit]

    async def latest_odds_snapshot_time(self):
        if not self.snapshots:
            return None
        return max(s.snapshot_time for s in self.snapshots)

    async def count_predictions_since(self, since):
        return sum(
            1 for p in self.predictions.values()
            if p.created_at is not None and p.created_at >= since
        )

    async def count_games_with_predictions(self, start, end):
        games = [g for g in self.games.values() if start <= g.start_time_utc <= end]
        covered = {gid for gid, _ in self.predictions}
        return len(games), sum(1 for g in games if g.id in covered)

    async def ping(self):
        return self.healthy


def make_game(
    game_id: str = "game-1",
    kickoff: datetime | None = None,
    home_team: str = HOME,
    away_team: str = AWAY,
    **kwargs: Any,
) -> Game:
    kickoff = kickoff or NOW + timedelta(days=4, hours=5)  # Sunday 17:00 UTC
    return Game(
        id=game_id,
        season=kickoff.year,
        week=kwargs.pop("week", 7),
        home_team=home_team,
        away_team=away_team,
        start_time_utc=kickoff,
        **kwargs,
    )


def make_snapshot(
    bookmaker: str,
    market_type: str,
    outcomes: list[dict[str, Any]],
    snapshot_time: datetime | None = None,
    game_id: str = "game-1",
) -> OddsSnapshot:
    return OddsSnapshot(
        game_id=game_id,
        bookmaker=bookmaker,
        market_type=market_type,
        snapshot_time=snapshot_time or NOW,
        odds_data=OddsPayload(outcomes=outcomes),
    )


def h2h(bookmaker: str, home_price: float, away_price: float, **kwargs) -> OddsSnapshot:
    return make_snapshot(
        bookmaker,
        "h2h",
        [{"name": HOME, "price": home_price}, {"name": AWAY, "price": away_price}],
        **kwargs,
    )


def spread(bookmaker: str, home_point: float, **kwargs) -> OddsSnapshot:
    return make_snapshot(
        bookmaker,
        "spreads",
        [
            {"name": HOME, "price": 1.91, "point": home_point},
            {"name": AWAY, "price": 1.91, "point": -home_point},
        ],
        **kwargs,
    )


def totals(bookmaker: str, point: float, **kwargs) -> OddsSnapshot:
    return make_snapshot(
        bookmaker,
        "totals",
        [
            {"name": "Over", "price": 1.91, "point": point},
            {"name": "Under", "price": 1.91, "point": point},
        ],
        **kwargs,
    )


def injury_signal(
    team: str,
    position: str,
    severity: float | None = 1.0,
    confidence: float | None = 0.8,
    player: str = "Player One",
    timestamp: datetime | None = None,
    game_id: str = "game-1",
    **content: Any,
) -> Signal:
    body = {"team": team, "player": player, "position": position, **content}
    if severity is not None:
        body["severity"] = severity
    return Signal(
        game_id=game_id,
        signal_type="injury",
        source="ESPN",
        content=body,
        confidence=confidence,
        timestamp=timestamp or NOW,
    )


def weather_signal(game_id: str = "game-1", **content: Any) -> Signal:
    return Signal(
        game_id=game_id,
        signal_type="weather",
        source="Open-Meteo",
        content=content,
        confidence=0.95,
        timestamp=NOW,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        odds_api_key="test-key",
        http_retry_base_delay=0.0,
        stage_timeout_seconds=5.0,
    )


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def features() -> GameFeatures:
    return GameFeatures(
        consensus_ml_home=1.67,
        consensus_ml_away=2.30,
        consensus_spread=-3.0,
        consensus_total=48.5,
        implied_prob_home=0.58,
        implied_prob_away=0.42,
        injury_impact_home=0.08,
        injury_impact_away=0.16,
        weather_severity=0.3,
        odds_volatility=0.5,
        coverage_quality=1.0,
        bookmaker_count=4,
    )
