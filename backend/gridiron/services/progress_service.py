"""OnboardingProgressService: the single saved wizard snapshot per athlete.

Responsibilities:
- Load / overwrite / clear the snapshot, with athlete ownership enforced
- Full-overwrite saves inside one transaction (never a partial write)
- Last-write-wins by client wall clock: a save stamped earlier than the
  stored snapshot is acknowledged but not applied
"""

from datetime import UTC, datetime
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gridiron.db.models.onboarding_progress import OnboardingProgress
from gridiron.services.athlete_service import require_owned_athlete

logger = structlog.get_logger(__name__)


def as_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class OnboardingProgressService:
    """Service layer for saved onboarding progress."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get_progress(self, user_id: str, athlete_id: int) -> OnboardingProgress | None:
        """Return the saved snapshot, or None if nothing has been saved.

        Raises:
            HTTPException(404): If the athlete does not exist
            HTTPException(403): If the athlete belongs to another user
        """
        async with self.session_factory() as session:
            await require_owned_athlete(session, user_id, athlete_id)
            return await self._find(session, athlete_id)

    async def save_progress(
        self,
        user_id: str,
        athlete_id: int,
        step: int,
        data: dict[str, Any],
        saved_at: datetime | None = None,
    ) -> tuple[OnboardingProgress | None, bool]:
        """Overwrite the snapshot with the caller's full step and data.

        Args:
            user_id: Authenticated user id
            athlete_id: Subject athlete id
            step: Wizard step index (validated by the request schema)
            data: Full accumulated form data
            saved_at: Client wall clock at call time (defaults to now)

        Returns:
            Tuple of (stored snapshot, applied). applied is False when the
            stored snapshot is newer than saved_at, or when onboarding is
            already finalized (snapshot is then None: finalization removed it).
        """
        saved_at = as_utc(saved_at) if saved_at else datetime.now(UTC)

        async with self.session_factory() as session:
            athlete = await require_owned_athlete(session, user_id, athlete_id)
            if athlete.onboarding_completed:
                logger.info("progress_save_after_finalize_ignored", athlete_id=athlete_id, step=step)
                return None, False

            progress = await self._find(session, athlete_id)
            if progress is not None:
                return await self._overwrite(session, progress, step, data, saved_at)

            session.add(
                OnboardingProgress(athlete_id=athlete_id, step=step, data=data, saved_at=saved_at)
            )
            try:
                await session.commit()
            except IntegrityError:
                # Racing first save inserted the row; fall back to overwrite
                await session.rollback()
                progress = await self._find(session, athlete_id)
                if progress is None:
                    raise
                return await self._overwrite(session, progress, step, data, saved_at)

            progress = await self._find(session, athlete_id)
            logger.info("progress_created", athlete_id=athlete_id, step=step)
            return progress, True

    async def clear_progress(self, user_id: str, athlete_id: int) -> bool:
        """Delete the snapshot. Returns False if there was nothing to delete."""
        async with self.session_factory() as session:
            await require_owned_athlete(session, user_id, athlete_id)

            progress = await self._find(session, athlete_id)
            if progress is None:
                return False

            await session.delete(progress)
            await session.commit()
            logger.info("progress_cleared", athlete_id=athlete_id)
            return True

    # =========================================================================
    # PRIVATE HELPERS
    # =========================================================================

    async def _find(self, session: AsyncSession, athlete_id: int) -> OnboardingProgress | None:
        result = await session.execute(
            select(OnboardingProgress).where(OnboardingProgress.athlete_id == athlete_id)
        )
        return result.scalar_one_or_none()

    async def _overwrite(
        self,
        session: AsyncSession,
        progress: OnboardingProgress,
        step: int,
        data: dict[str, Any],
        saved_at: datetime,
    ) -> tuple[OnboardingProgress, bool]:
        if saved_at < as_utc(progress.saved_at):
            logger.info(
                "progress_stale_write_ignored",
                athlete_id=progress.athlete_id,
                step=step,
                stored_step=progress.step,
            )
            return progress, False

        progress.step = step
        progress.data = data
        progress.saved_at = saved_at

        await session.commit()
        await session.refresh(progress)
        logger.info("progress_saved", athlete_id=progress.athlete_id, step=step)
        return progress, True
