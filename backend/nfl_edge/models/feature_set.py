"""Feature set database model."""

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nfl_edge.database import Base

if TYPE_CHECKING:
    from nfl_edge.models.game import GameRow


class FeatureSetRow(Base):
    """Feature builder output. One row per (game, computed_at); never updated."""

    __tablename__ = "features"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    game_id: Mapped[str] = mapped_column(String(64), ForeignKey("games.id"), nullable=False)

    feature_set: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    computed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    game: Mapped["GameRow"] = relationship("GameRow", back_populates="feature_sets")

    __table_args__ = (
        Index("idx_features_game_computed", "game_id", "computed_at"),
    )
