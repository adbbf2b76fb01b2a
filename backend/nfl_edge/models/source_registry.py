"""Source registry database model."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from nfl_edge.database import Base


class SourceRegistryRow(Base):
    """Per-source ingestion health: active flag and failure bookkeeping."""

    __tablename__ = "source_registry"

    source_type: Mapped[str] = mapped_column(String(20), primary_key=True)  # odds, injury, weather
    source_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    consecutive_failures: Mapped[int] = mapped_column(Integer, default=0)
    last_success: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_failure: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
