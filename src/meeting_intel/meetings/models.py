"""Override persistence model.

MeetingOverrideModel stores one manual portfolio-relevance decision per
meeting, keyed by the derived meeting id (the grouping key, not a UUID).
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column

from src.meeting_intel.core.database import Base


class MeetingOverrideModel(Base):
    """Manual relevance decision for a meeting record."""

    __tablename__ = "meeting_overrides"

    meeting_id: Mapped[str] = mapped_column(String(300), primary_key=True)
    is_portfolio_relevant: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        server_default=text("false"),
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        onupdate=func.now(),
        nullable=True,
    )
