"""Onboarding API routes: saved progress, completeness and finalization.

All routes are scoped to one athlete and only serve its owner.
"""

from fastapi import APIRouter, Depends

from gridiron.api.routes.athletes import athlete_response
from gridiron.core.auth import AuthenticatedUser, require_auth
from gridiron.db.base import get_session_factory
from gridiron.domain.completeness import completeness_band
from gridiron.schemas.onboarding import AthleteResponse, OnboardingData, OnboardingStatusResponse
from gridiron.schemas.progress import (
    CompletenessResponse,
    CompletenessSectionResponse,
    ProgressAckResponse,
    SaveProgressRequest,
    StoredProgressResponse,
)
from gridiron.services.onboarding_service import OnboardingService
from gridiron.services.progress_service import OnboardingProgressService, as_utc

router = APIRouter()


@router.get("/progress", response_model=StoredProgressResponse)
async def get_progress(athlete_id: int, user: AuthenticatedUser = Depends(require_auth)):
    """Return saved wizard progress; ``exists`` is False when none was saved."""
    service = OnboardingProgressService(get_session_factory())
    progress = await service.get_progress(user.user_id, athlete_id)

    if progress is None:
        return StoredProgressResponse(step=0, data={}, timestamp=None, exists=False)

    return StoredProgressResponse(
        step=progress.step,
        data=progress.data or {},
        timestamp=as_utc(progress.saved_at).isoformat(),
        exists=True,
    )


@router.post("/progress", response_model=ProgressAckResponse)
async def save_progress(
    athlete_id: int,
    request: SaveProgressRequest,
    user: AuthenticatedUser = Depends(require_auth),
):
    """Overwrite saved progress with the full wizard snapshot.

    Raises:
        HTTPException(404): If the athlete does not exist
        HTTPException(403): If the athlete belongs to another user
        HTTPException(422): If step is out of range or data has unknown sections
    """
    service = OnboardingProgressService(get_session_factory())
    progress, applied = await service.save_progress(
        user.user_id, athlete_id, request.step, request.data, request.saved_at
    )
    if progress is None:
        return ProgressAckResponse(applied=False)
    return ProgressAckResponse(
        applied=applied,
        step=progress.step,
        timestamp=as_utc(progress.saved_at).isoformat(),
    )


@router.delete("/progress", response_model=ProgressAckResponse)
async def clear_progress(athlete_id: int, user: AuthenticatedUser = Depends(require_auth)):
    """Discard saved progress (start fresh)."""
    service = OnboardingProgressService(get_session_factory())
    cleared = await service.clear_progress(user.user_id, athlete_id)
    return ProgressAckResponse(applied=cleared)


@router.get("/completeness", response_model=CompletenessResponse)
async def get_completeness(athlete_id: int, user: AuthenticatedUser = Depends(require_auth)):
    """Weighted profile completeness of the profile or saved draft."""
    service = OnboardingService(get_session_factory())
    result = await service.get_completeness(user.user_id, athlete_id)

    return CompletenessResponse(
        percentage=result.percentage,
        completed_count=result.completed_count,
        total_count=result.total_count,
        band=completeness_band(result.percentage),
        sections=[
            CompletenessSectionResponse(key=s.key, name=s.name, weight=s.weight, is_complete=s.is_complete)
            for s in result.sections
        ],
    )


@router.get("/status", response_model=OnboardingStatusResponse)
async def get_onboarding_status(athlete_id: int, user: AuthenticatedUser = Depends(require_auth)):
    service = OnboardingService(get_session_factory())
    completed, has_progress = await service.get_status(user.user_id, athlete_id)
    return OnboardingStatusResponse(onboarding_completed=completed, has_saved_progress=has_progress)


@router.post("", response_model=AthleteResponse)
async def finalize_onboarding(
    athlete_id: int,
    request: OnboardingData,
    user: AuthenticatedUser = Depends(require_auth),
):
    """Submit the completed onboarding profile.

    Raises:
        HTTPException(404): If the athlete does not exist
        HTTPException(403): If the athlete belongs to another user
        HTTPException(422): If any section fails validation
    """
    service = OnboardingService(get_session_factory())
    athlete = await service.finalize(user.user_id, athlete_id, request)
    return athlete_response(athlete)
