"""Athlete model: the subject that owns onboarding progress and profile."""

from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String

from gridiron.db.base import Base


class Athlete(Base):
    __tablename__ = "athletes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), unique=True, nullable=False, index=True)

    # Headline fields copied from the finalized profile
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    school = Column(String(255), nullable=True)
    graduation_year = Column(Integer, nullable=True)
    position = Column(String(50), nullable=True)

    profile = Column(JSON, nullable=True)  # Full OnboardingData submitted at finalization
    onboarding_completed = Column(Boolean, nullable=False, default=False)
    onboarding_completed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
