"""Evaluation database model for post-game outcome tracking."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Float, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from nfl_edge.database import Base


class EvaluationRow(Base):
    """Post-game evaluation of one prediction.

    Written only once the game has final scores; append-only.
    """

    __tablename__ = "evaluations"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)

    # References
    prediction_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("predictions.id"), nullable=True
    )
    game_id: Mapped[str] = mapped_column(String(64), ForeignKey("games.id"), nullable=False)
    market_type: Mapped[str] = mapped_column(String(20), nullable=False)

    predicted_value: Mapped[float] = mapped_column(Float, nullable=False)
    actual_value: Mapped[float] = mapped_column(Float, nullable=False)

    absolute_error: Mapped[float] = mapped_column(Float, nullable=False)
    squared_error: Mapped[float] = mapped_column(Float, nullable=False)

    # Moneyline only
    brier_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    log_loss: Mapped[float | None] = mapped_column(Float, nullable=True)

    evaluated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_eval_game", "game_id"),
        Index("idx_eval_prediction", "prediction_id"),
        Index("idx_eval_market_time", "market_type", "evaluated_at"),
    )
