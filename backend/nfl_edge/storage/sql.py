"""PostgreSQL implementation of the pipeline store."""

from collections.abc import Sequence
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

import structlog
from sqlalchemy import and_, desc, func, or_, select, text
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from nfl_edge.exceptions import StorageError
from nfl_edge.models import (
    AuditLogRow,
    EvaluationRow,
    FeatureSetRow,
    GameRow,
    OddsSnapshotRow,
    PredictionRow,
    SignalRow,
    SourceRegistryRow,
    UsageBudgetRow,
)
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
from nfl_edge.schemas.common import as_utc

logger = structlog.get_logger()

SCHEDULE_CHANGE_THRESHOLD = timedelta(minutes=5)


def game_from_row(row: GameRow) -> Game:
    return Game.model_validate(row)


def odds_snapshot_from_row(row: OddsSnapshotRow) -> OddsSnapshot:
    return OddsSnapshot(
        id=row.id,
        game_id=row.game_id,
        bookmaker=row.bookmaker,
        market_type=row.market_type,
        snapshot_time=row.snapshot_time,
        odds_data=row.odds_data,
    )


def signal_from_row(row: SignalRow) -> Signal:
    return Signal(
        id=row.id,
        game_id=row.game_id,
        signal_type=row.signal_type,
        source=row.source,
        content=row.content or {},
        confidence=float(row.confidence) if row.confidence is not None else None,
        timestamp=row.timestamp,
    )


def signal_to_values(signal: Signal) -> dict[str, Any]:
    return {
        "game_id": signal.game_id,
        "signal_type": signal.signal_type,
        "source": signal.source,
        "content": signal.content,
        "confidence": (
            Decimal(str(round(signal.confidence, 3)))
            if signal.confidence is not None
            else None
        ),
        "timestamp": signal.timestamp,
    }


def feature_set_from_row(row: FeatureSetRow) -> FeatureSet:
    return FeatureSet(
        id=row.id,
        game_id=row.game_id,
        feature_set=GameFeatures.model_validate(row.feature_set),
        computed_at=row.computed_at,
    )


def prediction_from_row(row: PredictionRow) -> Prediction:
    return Prediction.model_validate(row)


def prediction_to_values(prediction: Prediction) -> dict[str, Any]:
    values = prediction.model_dump(exclude={"id", "created_at"})
    values["created_at"] = prediction.created_at or datetime.now(timezone.utc)
    return values


def evaluation_from_row(row: EvaluationRow) -> Evaluation:
    return Evaluation.model_validate(row)


class SQLStore:
    """Pipeline store backed by the async SQLAlchemy session factory.

    Every operation runs in its own short session so a failure on one record
    never poisons the next.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def _fetch_all(self, stmt) -> list[Any]:
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StorageError(str(e)) from e

    async def _fetch_one(self, stmt) -> Any:
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StorageError(str(e)) from e

    # Core

    async def list_upcoming_games(self, not_before: datetime) -> list[Game]:
        stmt = (
            select(GameRow)
            .where(GameRow.start_time_utc >= not_before)
            .order_by(GameRow.start_time_utc)
        )
        return [game_from_row(r) for r in await self._fetch_all(stmt)]

    async def list_odds_snapshots(self, game_id: str, limit: int) -> list[OddsSnapshot]:
        stmt = (
            select(OddsSnapshotRow)
            .where(OddsSnapshotRow.game_id == game_id)
            .order_by(desc(OddsSnapshotRow.snapshot_time), desc(OddsSnapshotRow.id))
            .limit(limit)
        )
        return [odds_snapshot_from_row(r) for r in await self._fetch_all(stmt)]

    async def list_signals(
        self,
        game_id: str,
        signal_type: str,
        limit: int | None = None,
        since: datetime | None = None,
    ) -> list[Signal]:
        conditions = [SignalRow.game_id == game_id, SignalRow.signal_type == signal_type]
        if since is not None:
            conditions.append(SignalRow.timestamp >= since)
        stmt = (
            select(SignalRow)
            .where(and_(*conditions))
            .order_by(desc(SignalRow.timestamp), desc(SignalRow.id))
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return [signal_from_row(r) for r in await self._fetch_all(stmt)]

    async def write_feature_set(self, game_id: str, features: GameFeatures) -> FeatureSet:
        row = FeatureSetRow(
            game_id=game_id,
            feature_set=features.model_dump(),
            computed_at=datetime.now(timezone.utc),
        )
        try:
            async with self.session_factory() as session:
                session.add(row)
                await session.commit()
                await session.refresh(row)
        except SQLAlchemyError as e:
            raise StorageError(f"write_feature_set({game_id}): {e}") from e
        return feature_set_from_row(row)

    async def read_latest_feature_set(self, game_id: str) -> FeatureSet | None:
        stmt = (
            select(FeatureSetRow)
            .where(FeatureSetRow.game_id == game_id)
            .order_by(desc(FeatureSetRow.computed_at), desc(FeatureSetRow.id))
            .limit(1)
        )
        row = await self._fetch_one(stmt)
        return feature_set_from_row(row) if row else None

    async def upsert_predictions(
        self, game_id: str, predictions: Sequence[Prediction]
    ) -> None:
        if not predictions:
            return
        try:
            async with self.session_factory() as session:
                for prediction in predictions:
                    values = prediction_to_values(prediction)
                    values["game_id"] = game_id
                    stmt = insert(PredictionRow).values(**values)
                    stmt = stmt.on_conflict_do_update(
                        constraint="uq_predictions_game_market",
                        set_={
                            key: stmt.excluded[key]
                            for key in values
                            if key not in ("game_id", "market_type")
                        },
                    )
                    await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"upsert_predictions({game_id}): {e}") from e

    async def list_completed_games_with_scores(self, limit: int) -> list[Game]:
        stmt = (
            select(GameRow)
            .where(
                and_(
                    GameRow.status == "completed",
                    GameRow.home_score.is_not(None),
                    GameRow.away_score.is_not(None),
                )
            )
            .order_by(desc(GameRow.start_time_utc))
            .limit(limit)
        )
        return [game_from_row(r) for r in await self._fetch_all(stmt)]

    async def read_predictions_for_game(self, game_id: str) -> list[Prediction]:
        stmt = select(PredictionRow).where(PredictionRow.game_id == game_id)
        return [prediction_from_row(r) for r in await self._fetch_all(stmt)]

    async def write_evaluation(self, evaluation: Evaluation) -> Evaluation:
        row = EvaluationRow(**evaluation.model_dump(exclude={"id"}))
        try:
            async with self.session_factory() as session:
                session.add(row)
                await session.commit()
                await session.refresh(row)
        except SQLAlchemyError as e:
            raise StorageError(f"write_evaluation({evaluation.game_id}): {e}") from e
        return evaluation_from_row(row)

    # Ingestion

    async def get_game(self, game_id: str) -> Game | None:
        row = await self._fetch_one(select(GameRow).where(GameRow.id == game_id))
        return game_from_row(row) if row else None

    async def upsert_game(self, game: Game) -> Game:
        try:
            async with self.session_factory() as session:
                row = await session.get(GameRow, game.id)
                if row is None:
                    row = GameRow(**game.model_dump())
                    session.add(row)
                else:
                    moved = abs(as_utc(row.start_time_utc) - game.start_time_utc)
                    if moved > SCHEDULE_CHANGE_THRESHOLD:
                        logger.info(
                            "Kickoff moved",
                            game_id=game.id,
                            previous=row.start_time_utc.isoformat(),
                            current=game.start_time_utc.isoformat(),
                        )
                        row.schedule_change = True
                    row.start_time_utc = game.start_time_utc
                    row.week = game.week
                    if game.venue:
                        row.venue = game.venue
                await session.commit()
                await session.refresh(row)
        except SQLAlchemyError as e:
            raise StorageError(f"upsert_game({game.id}): {e}") from e
        return game_from_row(row)

    async def append_odds_snapshots(self, snapshots: Sequence[OddsSnapshot]) -> int:
        if not snapshots:
            return 0
        rows = [
            OddsSnapshotRow(
                game_id=s.game_id,
                bookmaker=s.bookmaker,
                market_type=s.market_type,
                snapshot_time=s.snapshot_time,
                odds_data=s.odds_data.model_dump(),
            )
            for s in snapshots
        ]
        try:
            async with self.session_factory() as session:
                session.add_all(rows)
                await session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"append_odds_snapshots: {e}") from e
        return len(rows)

    async def append_signal(self, signal: Signal) -> Signal:
        row = SignalRow(**signal_to_values(signal))
        try:
            async with self.session_factory() as session:
                session.add(row)
                await session.commit()
                await session.refresh(row)
        except SQLAlchemyError as e:
            raise StorageError(f"append_signal({signal.game_id}): {e}") from e
        return signal_from_row(row)

    async def find_next_game_for_team(
        self, team: str, not_before: datetime, not_after: datetime
    ) -> Game | None:
        name = team.strip().lower()
        stmt = (
            select(GameRow)
            .where(
                and_(
                    or_(
                        func.lower(GameRow.home_team) == name,
                        func.lower(GameRow.away_team) == name,
                    ),
                    GameRow.start_time_utc >= not_before,
                    GameRow.start_time_utc <= not_after,
                )
            )
            .order_by(GameRow.start_time_utc)
            .limit(1)
        )
        row = await self._fetch_one(stmt)
        return game_from_row(row) if row else None

    # Source registry and usage budget

    async def get_source(self, source_type: str) -> SourceStatus | None:
        row = await self._fetch_one(
            select(SourceRegistryRow).where(SourceRegistryRow.source_type == source_type)
        )
        return SourceStatus.model_validate(row) if row else None

    async def record_source_success(self, source_type: str, at: datetime) -> None:
        stmt = insert(SourceRegistryRow).values(
            source_type=source_type,
            is_active=True,
            consecutive_failures=0,
            last_success=at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["source_type"],
            set_={"consecutive_failures": 0, "last_success": at},
        )
        await self._execute(stmt, f"record_source_success({source_type})")

    async def record_source_failure(self, source_type: str, at: datetime) -> None:
        stmt = insert(SourceRegistryRow).values(
            source_type=source_type,
            is_active=True,
            consecutive_failures=1,
            last_failure=at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["source_type"],
            set_={
                "consecutive_failures": SourceRegistryRow.consecutive_failures + 1,
                "last_failure": at,
            },
        )
        await self._execute(stmt, f"record_source_failure({source_type})")

    async def list_sources(self) -> list[SourceStatus]:
        rows = await self._fetch_all(
            select(SourceRegistryRow).order_by(SourceRegistryRow.source_type)
        )
        return [SourceStatus.model_validate(r) for r in rows]

    async def consume_usage_budget(
        self, key: str, window_start: datetime, amount: int, limit: int
    ) -> bool:
        try:
            async with self.session_factory() as session:
                # Row lock keeps concurrent workers from both spending the last request
                row = await session.get(
                    UsageBudgetRow, (key, window_start), with_for_update=True
                )
                if row is None:
                    if amount > limit:
                        return False
                    session.add(
                        UsageBudgetRow(budget_key=key, window_start=window_start, used=amount)
                    )
                else:
                    if row.used + amount > limit:
                        return False
                    row.used += amount
                await session.commit()
                return True
        except SQLAlchemyError as e:
            raise StorageError(f"consume_usage_budget({key}): {e}") from e

    # Audit and observability

    async def write_audit_log(
        self, action: str, target: str, meta: dict[str, Any]
    ) -> AuditRecord:
        row = AuditLogRow(action=action, target=target, meta=meta)
        try:
            async with self.session_factory() as session:
                session.add(row)
                await session.commit()
                await session.refresh(row)
        except SQLAlchemyError as e:
            raise StorageError(f"write_audit_log({action}): {e}") from e
        return AuditRecord.model_validate(row)

    async def list_recent_evaluations(
        self, market_type: str, limit: int
    ) -> list[Evaluation]:
        stmt = (
            select(EvaluationRow)
            .where(EvaluationRow.market_type == market_type)
            .order_by(desc(EvaluationRow.evaluated_at), desc(EvaluationRow.id))
            .limit(limit)
        )
        return [evaluation_from_row(r) for r in await self._fetch_all(stmt)]

    async def latest_odds_snapshot_time(self) -> datetime | None:
        value = await self._fetch_one(select(func.max(OddsSnapshotRow.snapshot_time)))
        return as_utc(value) if value else None

    async def count_predictions_since(self, since: datetime) -> int:
        value = await self._fetch_one(
            select(func.count(PredictionRow.id)).where(PredictionRow.created_at >= since)
        )
        return int(value or 0)

    async def count_games_with_predictions(
        self, start: datetime, end: datetime
    ) -> tuple[int, int]:
        in_window = and_(GameRow.start_time_utc >= start, GameRow.start_time_utc <= end)
        total = await self._fetch_one(select(func.count(GameRow.id)).where(in_window))
        covered = await self._fetch_one(
            select(func.count(func.distinct(PredictionRow.game_id)))
            .join(GameRow, GameRow.id == PredictionRow.game_id)
            .where(in_window)
        )
        return int(total or 0), int(covered or 0)

    async def ping(self) -> bool:
        try:
            async with self.session_factory() as session:
                await session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning("Database ping failed", error=str(e))
            return False

    async def _execute(self, stmt, label: str) -> None:
        try:
            async with self.session_factory() as session:
                await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"{label}: {e}") from e
