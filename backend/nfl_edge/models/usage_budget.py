"""Usage budget database model."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from nfl_edge.database import Base
from nfl_edge.models.game import utcnow


class UsageBudgetRow(Base):
    """Cumulative usage of a rate-limited resource within one window.

    Lives in the database so every worker and invocation shares the count.
    """

    __tablename__ = "usage_budgets"

    budget_key: Mapped[str] = mapped_column(String(50), primary_key=True)
    window_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), primary_key=True)
    used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )
