"""ProgressRestoreNegotiator: the one-time "resume or start fresh" decision.

States:
    idle -> awaiting_load -> deciding -> resolved
                          \\-----------> resolved   (nothing saved, or load failed)

``resolved`` is terminal. The choice is offered at most once per wizard
lifetime and can never be re-prompted.
"""

import copy
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

import structlog

from gridiron.core.exceptions import GridironError, NegotiationError
from gridiron.domain.wizard_steps import TOTAL_STEPS, clamp_step
from gridiron.onboarding.store import ProgressStore, StoredProgress

logger = structlog.get_logger(__name__)


class RestoreState(str, Enum):
    IDLE = "idle"
    AWAITING_LOAD = "awaiting_load"
    DECIDING = "deciding"
    RESOLVED = "resolved"


class RestoreDecision(str, Enum):
    RESUME = "resume"
    START_FRESH = "start-fresh"


@dataclass(frozen=True)
class RestorePrompt:
    """What the user is shown when saved progress exists."""

    step: int
    timestamp: str | None
    total_steps: int
    saved_ago: str

    def message(self) -> str:
        return (
            f"We found your saved progress from {self.saved_ago}. "
            f"You were on step {self.step + 1} of {self.total_steps}. "
            "Would you like to continue from where you left off or start fresh?"
        )


@dataclass(frozen=True)
class RestoreResolution:
    decision: RestoreDecision
    step: int
    data: dict[str, Any] = field(default_factory=dict)
    restored_from: StoredProgress | None = None


def describe_elapsed(timestamp: str | None, now: datetime) -> str:
    """Render an ISO-8601 timestamp relative to ``now`` ("3 hours ago").

    Unparseable or missing timestamps read as "previously".
    """
    if not timestamp:
        return "previously"
    try:
        then = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return "previously"
    if then.tzinfo is None:
        then = then.replace(tzinfo=UTC)

    seconds = max((now - then).total_seconds(), 0)
    minutes = int(seconds // 60)
    if minutes < 1:
        return "less than a minute ago"
    if minutes < 60:
        return "1 minute ago" if minutes == 1 else f"{minutes} minutes ago"
    hours = minutes // 60
    if hours < 24:
        return "about 1 hour ago" if hours == 1 else f"about {hours} hours ago"
    days = hours // 24
    if days < 30:
        return "1 day ago" if days == 1 else f"{days} days ago"
    months = days // 30
    if months < 12:
        return "about 1 month ago" if months == 1 else f"{months} months ago"
    years = days // 365
    return "about 1 year ago" if years <= 1 else f"about {years} years ago"


class ProgressRestoreNegotiator:
    """Decides, once, whether the wizard resumes saved progress or starts fresh."""

    TRANSITIONS = {
        RestoreState.IDLE: [RestoreState.AWAITING_LOAD],
        RestoreState.AWAITING_LOAD: [RestoreState.DECIDING, RestoreState.RESOLVED],
        RestoreState.DECIDING: [RestoreState.RESOLVED],
        RestoreState.RESOLVED: [],  # Terminal state
    }

    def __init__(
        self,
        store: ProgressStore,
        total_steps: int = TOTAL_STEPS,
        clock: Callable[[], datetime] | None = None,
    ):
        self.store = store
        self.total_steps = total_steps
        self._clock = clock or (lambda: datetime.now(UTC))

        self.state = RestoreState.IDLE
        self.subject_id: int | None = None
        self.stored: StoredProgress | None = None
        self.prompt: RestorePrompt | None = None
        self.resolution: RestoreResolution | None = None

    async def begin(self, subject_id: int) -> RestorePrompt | None:
        """Load saved progress once and either prompt or resolve to start-fresh.

        Returns:
            RestorePrompt when saved progress exists, otherwise None (already
            resolved to start-fresh; a failed load lands here too)

        Raises:
            NegotiationError: If called more than once
        """
        self._transition(RestoreState.AWAITING_LOAD, "begin")
        self.subject_id = subject_id

        try:
            stored = await self.store.load(subject_id)
        except GridironError as exc:
            # An empty wizard is always a safe fallback
            logger.warning(
                "progress_load_failed",
                subject_id=subject_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            stored = None

        if stored is None or not stored.exists:
            self._resolve(RestoreResolution(decision=RestoreDecision.START_FRESH, step=0, data={}))
            return None

        self.stored = stored
        self.prompt = RestorePrompt(
            step=stored.step,
            timestamp=stored.timestamp,
            total_steps=self.total_steps,
            saved_ago=describe_elapsed(stored.timestamp, self._clock()),
        )
        self._transition(RestoreState.DECIDING, "present saved progress")
        logger.info("progress_restore_prompted", subject_id=subject_id, step=stored.step)
        return self.prompt

    async def choose(self, decision: RestoreDecision | str) -> RestoreResolution:
        """Apply the user's single choice.

        Start-fresh clears the saved record; a clear failure is logged and
        never reverses the user's choice.

        Raises:
            NegotiationError: If no prompt is pending
            ValueError: If decision is not a RestoreDecision value
        """
        decision = RestoreDecision(decision)
        if self.state is not RestoreState.DECIDING:
            raise NegotiationError(self.state.value, "choose")

        if decision is RestoreDecision.RESUME:
            resolution = RestoreResolution(
                decision=decision,
                step=clamp_step(self.stored.step, self.total_steps),
                data=copy.deepcopy(self.stored.data),
                restored_from=self.stored,
            )
        else:
            try:
                await self.store.clear(self.subject_id)
            except GridironError as exc:
                logger.warning(
                    "progress_clear_failed",
                    subject_id=self.subject_id,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
            resolution = RestoreResolution(decision=decision, step=0, data={})

        self._resolve(resolution)
        return resolution

    @property
    def is_resolved(self) -> bool:
        return self.state is RestoreState.RESOLVED

    def _resolve(self, resolution: RestoreResolution) -> None:
        self._transition(RestoreState.RESOLVED, "resolve")
        self.resolution = resolution
        logger.info("progress_restore_resolved", subject_id=self.subject_id, decision=resolution.decision.value)

    def _transition(self, new_state: RestoreState, action: str) -> None:
        if new_state not in self.TRANSITIONS[self.state]:
            raise NegotiationError(self.state.value, action)
        self.state = new_state
