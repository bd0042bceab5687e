"""Override repository -- async persistence of manual relevance decisions.

Implements the OverrideStore contract with the session_factory callable
pattern: the factory is an async generator yielding AsyncSession instances
(``core.database.get_session`` in production).
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timezone

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.meeting_intel.meetings.models import MeetingOverrideModel
from src.meeting_intel.meetings.schemas import OverrideSetting

logger = structlog.get_logger(__name__)


# ── Serialization Helpers ───────────────────────────────────────────────────


def _model_to_override(model: MeetingOverrideModel) -> OverrideSetting:
    """Convert MeetingOverrideModel to OverrideSetting schema."""
    return OverrideSetting(
        meeting_id=model.meeting_id,
        is_portfolio_relevant=model.is_portfolio_relevant,
        description=model.description,
        updated_at=model.updated_at or model.created_at or datetime.now(timezone.utc),
    )


def _apply_override(model: MeetingOverrideModel, setting: OverrideSetting) -> None:
    model.is_portfolio_relevant = setting.is_portfolio_relevant
    model.description = setting.description
    model.updated_at = setting.updated_at


# ── Repository ──────────────────────────────────────────────────────────────


class OverrideRepository:
    """Async CRUD for meeting overrides.

    Args:
        session_factory: Async callable that yields AsyncSession instances.
    """

    def __init__(
        self, session_factory: Callable[..., AsyncGenerator[AsyncSession, None]]
    ) -> None:
        self._session_factory = session_factory

    async def get(self, meeting_id: str) -> OverrideSetting | None:
        """Get the override for a meeting.

        Returns:
            OverrideSetting if one was stored, None otherwise.
        """
        async for session in self._session_factory():
            stmt = select(MeetingOverrideModel).where(
                MeetingOverrideModel.meeting_id == meeting_id
            )
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()
            if model is None:
                return None
            return _model_to_override(model)
        return None

    async def put(self, setting: OverrideSetting) -> None:
        """Insert or replace the override for ``setting.meeting_id``."""
        async for session in self._session_factory():
            model = await session.get(MeetingOverrideModel, setting.meeting_id)
            if model is None:
                model = MeetingOverrideModel(meeting_id=setting.meeting_id)
                session.add(model)
            _apply_override(model, setting)
            await session.commit()
            logger.info(
                "override_repository.saved",
                meeting_id=setting.meeting_id,
                is_portfolio_relevant=setting.is_portfolio_relevant,
            )

    async def list_overrides(self) -> list[OverrideSetting]:
        """All stored overrides, most recently updated first."""
        async for session in self._session_factory():
            stmt = select(MeetingOverrideModel).order_by(
                MeetingOverrideModel.updated_at.desc().nulls_last()
            )
            result = await session.execute(stmt)
            return [_model_to_override(m) for m in result.scalars().all()]
        return []


__all__ = ["OverrideRepository"]
