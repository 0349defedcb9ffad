"""Onboarding wizard step sequence.

Each step collects one profile section; the final step reviews and submits.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class WizardStep:
    id: str
    label: str
    section_key: str | None


WIZARD_STEPS: tuple[WizardStep, ...] = (
    WizardStep(id="personal", label="Personal Info", section_key="personalInfo"),
    WizardStep(id="football", label="Football Info", section_key="footballInfo"),
    WizardStep(id="metrics", label="Athletic Metrics", section_key="athleticMetrics"),
    WizardStep(id="academic", label="Academic Profile", section_key="academicProfile"),
    WizardStep(id="strength", label="Strength & Conditioning", section_key="strengthConditioning"),
    WizardStep(id="nutrition", label="Nutrition", section_key="nutrition"),
    WizardStep(id="recruiting", label="Recruiting Goals", section_key="recruitingGoals"),
    WizardStep(id="complete", label="Complete", section_key=None),
)

TOTAL_STEPS = len(WIZARD_STEPS)
LAST_STEP_INDEX = TOTAL_STEPS - 1

SECTION_KEYS: tuple[str, ...] = tuple(s.section_key for s in WIZARD_STEPS if s.section_key is not None)


def clamp_step(index: int, total_steps: int = TOTAL_STEPS) -> int:
    """Clamp a step index into ``0..total_steps - 1``."""
    return max(0, min(total_steps - 1, index))


def step_progress_percent(index: int, total_steps: int = TOTAL_STEPS) -> int:
    """Step-count progress (0-100), independent of profile completeness.

    A single-step wizard is always at 100.
    """
    last_index = total_steps - 1
    if last_index <= 0:
        return 100
    return int(clamp_step(index, total_steps) / last_index * 100 + 0.5)
