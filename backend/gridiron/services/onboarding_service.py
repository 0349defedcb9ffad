"""OnboardingService: finalization, status and completeness for an athlete.

Finalizing validates the full profile, copies headline fields onto the
athlete, marks onboarding complete and removes the saved draft in one
transaction. Re-finalizing overwrites the profile so a lost response can be
retried safely.
"""

from datetime import UTC, datetime

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gridiron.db.models.athlete import Athlete
from gridiron.db.models.onboarding_progress import OnboardingProgress
from gridiron.domain.completeness import CompletenessResult, score
from gridiron.schemas.onboarding import OnboardingData
from gridiron.services.athlete_service import require_owned_athlete

logger = structlog.get_logger(__name__)


class OnboardingService:
    """Service layer for completing onboarding."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def finalize(self, user_id: str, athlete_id: int, data: OnboardingData) -> Athlete:
        """Store the completed profile and supersede any saved progress.

        Args:
            user_id: Authenticated user id
            athlete_id: Subject athlete id
            data: Validated onboarding profile

        Returns:
            Updated Athlete

        Raises:
            HTTPException(404): If the athlete does not exist
            HTTPException(403): If the athlete belongs to another user
        """
        async with self.session_factory() as session:
            athlete = await require_owned_athlete(session, user_id, athlete_id)
            was_completed = athlete.onboarding_completed

            athlete.profile = data.model_dump(mode="json", by_alias=True)
            athlete.first_name = data.personal_info.first_name
            athlete.last_name = data.personal_info.last_name
            athlete.school = data.personal_info.school
            athlete.graduation_year = data.personal_info.graduation_year
            athlete.position = data.football_info.position
            athlete.onboarding_completed = True
            athlete.onboarding_completed_at = datetime.now(UTC)

            await session.execute(
                delete(OnboardingProgress).where(OnboardingProgress.athlete_id == athlete_id)
            )

            await session.commit()
            await session.refresh(athlete)

            logger.info("onboarding_finalized", athlete_id=athlete_id, resubmitted=was_completed)
            return athlete

    async def get_status(self, user_id: str, athlete_id: int) -> tuple[bool, bool]:
        """Return (onboarding_completed, has_saved_progress)."""
        async with self.session_factory() as session:
            athlete = await require_owned_athlete(session, user_id, athlete_id)
            result = await session.execute(
                select(OnboardingProgress.id).where(OnboardingProgress.athlete_id == athlete_id)
            )
            has_progress = result.first() is not None
            return bool(athlete.onboarding_completed), has_progress

    async def get_completeness(self, user_id: str, athlete_id: int) -> CompletenessResult:
        """Score the finalized profile, or the saved draft while onboarding is open."""
        async with self.session_factory() as session:
            athlete = await require_owned_athlete(session, user_id, athlete_id)
            if athlete.onboarding_completed and athlete.profile:
                return score(athlete.profile)

            result = await session.execute(
                select(OnboardingProgress).where(OnboardingProgress.athlete_id == athlete_id)
            )
            progress = result.scalar_one_or_none()
            return score(progress.data if progress else {})
