"""Odds snapshot database model for time-series tracking."""

from datetime import datetime
from typing import Any

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from nfl_edge.database import Base
from nfl_edge.models.game import utcnow


class OddsSnapshotRow(Base):
    """Point-in-time snapshot of one bookmaker market.

    Append-only. The raw quoted outcomes are kept as fetched so consensus can
    be recomputed with different rules later.
    """

    __tablename__ = "odds_snapshots"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)

    game_id: Mapped[str] = mapped_column(String(64), ForeignKey("games.id"), nullable=False)

    # Market identification
    bookmaker: Mapped[str] = mapped_column(String(50), nullable=False)  # draftkings, fanduel, etc.
    market_type: Mapped[str] = mapped_column(String(20), nullable=False)  # h2h, spreads, totals

    snapshot_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # {"outcomes": [{"name", "price", "point"}], "last_update": ...}
    odds_data: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        Index("idx_odds_game_time", "game_id", "snapshot_time"),
        Index("idx_odds_game_book", "game_id", "bookmaker"),
        Index("idx_odds_snapshot_time", "snapshot_time"),
    )
