"""Athlete API routes: provisioning and profile lookup."""

from fastapi import APIRouter, Depends

from gridiron.core.auth import AuthenticatedUser, require_auth
from gridiron.db.base import get_session_factory
from gridiron.db.models.athlete import Athlete
from gridiron.schemas.onboarding import AthleteResponse
from gridiron.services.athlete_service import AthleteService

router = APIRouter()


def athlete_response(athlete: Athlete) -> AthleteResponse:
    return AthleteResponse(
        id=athlete.id,
        first_name=athlete.first_name,
        last_name=athlete.last_name,
        school=athlete.school,
        graduation_year=athlete.graduation_year,
        position=athlete.position,
        onboarding_completed=bool(athlete.onboarding_completed),
        onboarding_completed_at=athlete.onboarding_completed_at,
        profile=athlete.profile,
    )


@router.get("/me", response_model=AthleteResponse)
async def get_my_athlete(user: AuthenticatedUser = Depends(require_auth)):
    """Return the caller's athlete record, creating it on first call."""
    service = AthleteService(get_session_factory())
    athlete = await service.get_or_create(user.user_id)
    return athlete_response(athlete)


@router.get("/{athlete_id}", response_model=AthleteResponse)
async def get_athlete(athlete_id: int, user: AuthenticatedUser = Depends(require_auth)):
    """Return an athlete profile owned by the caller.

    Raises:
        HTTPException(404): If the athlete does not exist
        HTTPException(403): If the athlete belongs to another user
    """
    service = AthleteService(get_session_factory())
    athlete = await service.get(user.user_id, athlete_id)
    return athlete_response(athlete)
