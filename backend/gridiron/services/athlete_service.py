"""AthleteService: athlete provisioning and ownership checks."""

import structlog
from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gridiron.db.models.athlete import Athlete

logger = structlog.get_logger(__name__)


async def require_owned_athlete(session: AsyncSession, user_id: str, athlete_id: int) -> Athlete:
    """Load an athlete and verify the caller owns it.

    Raises:
        HTTPException(404): If the athlete does not exist
        HTTPException(403): If the athlete belongs to another user
    """
    athlete = await session.get(Athlete, athlete_id)
    if athlete is None:
        raise HTTPException(status_code=404, detail="Athlete not found")
    if athlete.user_id != user_id:
        logger.warning("athlete_access_denied", athlete_id=athlete_id, user_id=user_id)
        raise HTTPException(status_code=403, detail="Access denied")
    return athlete


class AthleteService:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get_or_create(self, user_id: str) -> Athlete:
        """Return the caller's athlete record, creating an empty one on first use."""
        async with self.session_factory() as session:
            athlete = await self._find_by_user(session, user_id)
            if athlete is not None:
                return athlete

            session.add(Athlete(user_id=user_id, onboarding_completed=False))
            try:
                await session.commit()
            except IntegrityError:
                # A concurrent first request provisioned the same user
                await session.rollback()

            athlete = await self._find_by_user(session, user_id)
            logger.info("athlete_provisioned", athlete_id=athlete.id, user_id=user_id)
            return athlete

    async def get(self, user_id: str, athlete_id: int) -> Athlete:
        async with self.session_factory() as session:
            return await require_owned_athlete(session, user_id, athlete_id)

    async def _find_by_user(self, session: AsyncSession, user_id: str) -> Athlete | None:
        result = await session.execute(select(Athlete).where(Athlete.user_id == user_id))
        return result.scalar_one_or_none()
