"""Weighted profile-completeness scoring.

Pure functions with no external dependencies. Safe to call on every form
change, including per keystroke.
"""

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import Any


@dataclass(frozen=True)
class ProfileSection:
    """One weighted grouping of onboarding fields.

    ``is_complete`` is derived by ``score``; configuration always leaves it False.
    """

    key: str
    name: str
    weight: float
    required_fields: tuple[str, ...] = field(default=())
    is_complete: bool = False

    def __post_init__(self) -> None:
        if self.weight <= 0:
            raise ValueError(f"Section '{self.name}' must have a positive weight, got {self.weight}")


@dataclass(frozen=True)
class CompletenessResult:
    percentage: int
    completed_count: int
    total_count: int
    sections: list[ProfileSection]


DEFAULT_SECTIONS: tuple[ProfileSection, ...] = (
    ProfileSection(
        key="personalInfo",
        name="Personal Info",
        weight=15,
        required_fields=("firstName", "lastName", "dateOfBirth", "school", "graduationYear"),
    ),
    ProfileSection(
        key="footballInfo",
        name="Football Info",
        weight=15,
        required_fields=("position", "yearsPlayed", "teamLevel"),
    ),
    ProfileSection(
        key="athleticMetrics",
        name="Athletic Metrics",
        weight=15,
        required_fields=("height", "weight", "fortyYard"),
    ),
    ProfileSection(
        key="academicProfile",
        name="Academic Profile",
        weight=15,
        required_fields=("gpa",),
    ),
    ProfileSection(
        key="strengthConditioning",
        name="Strength & Conditioning",
        weight=15,
        required_fields=("yearsTraining", "daysPerWeek"),
    ),
    ProfileSection(
        key="nutrition",
        name="Nutrition",
        weight=10,
        required_fields=("dietType",),
    ),
    ProfileSection(
        key="recruitingGoals",
        name="Recruiting Goals",
        weight=15,
        required_fields=("desiredDivision",),
    ),
)


def is_present(value: Any) -> bool:
    """Return True if a form value counts as filled in.

    Only missing, None, blank strings and empty collections are absent.
    Numeric zero and False are legitimate answers (e.g. ``yearsPlayed: 0``).
    """
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) > 0
    return True


def is_section_complete(section: ProfileSection, form_data: Mapping[str, Any]) -> bool:
    values = form_data.get(section.key)
    if not isinstance(values, Mapping):
        return False
    return all(is_present(values.get(name)) for name in section.required_fields)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_completeness(sections: Sequence[ProfileSection]) -> int:
    """Compute the weighted completion percentage (0-100) of evaluated sections.

    Args:
        sections: Sections whose ``is_complete`` flags are already set

    Returns:
        round(100 * completed weight / total weight), clamped to [0, 100]
    """
    total_weight = sum(s.weight for s in sections)
    if total_weight <= 0:
        return 0

    completed_weight = sum(s.weight for s in sections if s.is_complete)
    percentage = _round_half_up(completed_weight / total_weight * 100)
    return max(0, min(100, percentage))


def score(
    form_data: Mapping[str, Any] | None,
    sections: Sequence[ProfileSection] = DEFAULT_SECTIONS,
) -> CompletenessResult:
    """Score partial onboarding form data against the section configuration.

    Missing sections are incomplete, never an error. The input is only read.
    """
    form_data = form_data or {}
    evaluated = [replace(s, is_complete=is_section_complete(s, form_data)) for s in sections]

    return CompletenessResult(
        percentage=compute_completeness(evaluated),
        completed_count=sum(1 for s in evaluated if s.is_complete),
        total_count=len(evaluated),
        sections=evaluated,
    )


def completeness_band(percentage: int) -> str:
    """Bucket a percentage into the progress indicator's low/medium/high bands."""
    if percentage < 30:
        return "low"
    if percentage < 70:
        return "medium"
    return "high"
