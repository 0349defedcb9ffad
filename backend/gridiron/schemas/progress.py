"""Saved-progress and completeness schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from gridiron.domain.wizard_steps import LAST_STEP_INDEX, SECTION_KEYS


class SaveProgressRequest(BaseModel):
    """Full snapshot of the wizard: step index plus all accumulated section data."""

    step: int = Field(..., ge=0, le=LAST_STEP_INDEX)
    data: dict[str, dict[str, Any]] = Field(default_factory=dict)
    saved_at: datetime | None = None

    @field_validator("data")
    @classmethod
    def known_sections_only(cls, v: dict[str, dict[str, Any]]) -> dict[str, dict[str, Any]]:
        """Reject section keys the wizard does not collect."""
        unknown = sorted(set(v) - set(SECTION_KEYS))
        if unknown:
            raise ValueError(f"Unknown onboarding sections: {', '.join(unknown)}")
        return v


class StoredProgressResponse(BaseModel):
    """Saved progress; ``exists`` is False when nothing was saved yet."""

    step: int
    data: dict[str, Any]
    timestamp: str | None
    exists: bool


class ProgressAckResponse(BaseModel):
    """Acknowledgement for save/clear.

    ``applied`` is False when a save was older than the stored snapshot or
    arrived after onboarding was finalized, or when clear found nothing to
    remove.
    """

    applied: bool
    step: int | None = None
    timestamp: str | None = None


class CompletenessSectionResponse(BaseModel):
    key: str
    name: str
    weight: float
    is_complete: bool


class CompletenessResponse(BaseModel):
    percentage: int
    completed_count: int
    total_count: int
    band: str
    sections: list[CompletenessSectionResponse]
