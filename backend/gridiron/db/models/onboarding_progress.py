"""OnboardingProgress model: the single saved wizard snapshot per athlete."""

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer

from gridiron.db.base import Base


class OnboardingProgress(Base):
    __tablename__ = "onboarding_progress"

    id = Column(Integer, primary_key=True, autoincrement=True)
    athlete_id = Column(Integer, ForeignKey("athletes.id", ondelete="CASCADE"), unique=True, nullable=False, index=True)

    step = Column(Integer, nullable=False, default=0)
    data = Column(JSON, nullable=False, default=dict)  # Full accumulated form data, never a delta

    # Client wall clock at save time; older writes never overwrite newer ones
    saved_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
