from fastapi import APIRouter

from gridiron.api.routes import athletes, health, onboarding

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(athletes.router, prefix="/athletes", tags=["athletes"])
api_router.include_router(onboarding.router, prefix="/athletes/{athlete_id}/onboarding", tags=["onboarding"])
