"""Re-export all models so Base.metadata sees them."""

from gridiron.db.models.athlete import Athlete
from gridiron.db.models.onboarding_progress import OnboardingProgress

__all__ = [
    "Athlete",
    "OnboardingProgress",
]
