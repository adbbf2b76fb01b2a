"""Signal database model (injury and weather observations)."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, Numeric, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from nfl_edge.database import Base
from nfl_edge.models.game import utcnow


class SignalRow(Base):
    """Append-only signal attached to a game."""

    __tablename__ = "signals"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    game_id: Mapped[str] = mapped_column(String(64), ForeignKey("games.id"), nullable=False)

    signal_type: Mapped[str] = mapped_column(String(20), nullable=False)  # injury, weather
    source: Mapped[str] = mapped_column(String(50), nullable=False)

    content: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    confidence: Mapped[Decimal | None] = mapped_column(Numeric(4, 3), nullable=True)

    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        Index("idx_signals_game_type_time", "game_id", "signal_type", "timestamp"),
    )
