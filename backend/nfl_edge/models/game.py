"""Game database model."""

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nfl_edge.database import Base

if TYPE_CHECKING:
    from nfl_edge.models.feature_set import FeatureSetRow
    from nfl_edge.models.prediction import PredictionRow


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GameRow(Base):
    """NFL game information.

    Identity is fixed at creation. Ingestion may move the kickoff; scores are
    written once by the score-update process when the game completes.
    """

    __tablename__ = "games"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    season: Mapped[int] = mapped_column(Integer, nullable=False)
    week: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    home_team: Mapped[str] = mapped_column(String(64), nullable=False)
    away_team: Mapped[str] = mapped_column(String(64), nullable=False)

    start_time_utc: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    venue: Mapped[str | None] = mapped_column(String(100), nullable=True)

    status: Mapped[str] = mapped_column(String(20), default="scheduled")  # scheduled, in_progress, completed
    schedule_change: Mapped[bool] = mapped_column(Boolean, default=False)

    home_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    away_score: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    # Relationships
    feature_sets: Mapped[list["FeatureSetRow"]] = relationship(
        "FeatureSetRow", back_populates="game"
    )
    predictions: Mapped[list["PredictionRow"]] = relationship(
        "PredictionRow", back_populates="game"
    )

    __table_args__ = (
        Index("idx_games_start_time", "start_time_utc"),
        Index("idx_games_status", "status"),
    )
