"""Model prediction database model."""

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import BigInteger, DateTime, Float, ForeignKey, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from nfl_edge.database import Base
from nfl_edge.models.game import utcnow

if TYPE_CHECKING:
    from nfl_edge.models.game import GameRow


class PredictionRow(Base):
    """Latest model prediction per (game_id, market_type); writers upsert."""

    __tablename__ = "predictions"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    game_id: Mapped[str] = mapped_column(String(64), ForeignKey("games.id"), nullable=False)
    market_type: Mapped[str] = mapped_column(String(20), nullable=False)  # moneyline, spread, total

    predicted_value: Mapped[float] = mapped_column(Float, nullable=False)
    confidence: Mapped[float] = mapped_column(Float, nullable=False)
    uncertainty_band: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)

    # Moneyline/spread edge against the de-vigged market
    model_probability: Mapped[float | None] = mapped_column(Float, nullable=True)
    implied_probability: Mapped[float | None] = mapped_column(Float, nullable=True)
    edge_vs_implied: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Reproducibility
    model_version: Mapped[str] = mapped_column(String(20), nullable=False)
    provenance_hash: Mapped[str] = mapped_column(String(64), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    game: Mapped["GameRow"] = relationship("GameRow", back_populates="predictions")

    __table_args__ = (
        UniqueConstraint("game_id", "market_type", name="uq_predictions_game_market"),
    )
