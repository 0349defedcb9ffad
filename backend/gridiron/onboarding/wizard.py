"""OnboardingWizardController: step sequencing, form accumulation and persistence.

The controller owns the current step and the accumulated form data for one
wizard session. Collaborators are injected:
- ProgressStore: best-effort persistence of every forward step
- ProgressRestoreNegotiator: the one-time resume/start-fresh decision
- NotificationSink: user-visible save/completion messages
- OnboardingFinalizer: submission of the completed profile

Forward steps save a snapshot in the background; the step never waits for,
or rolls back because of, the save. Retreating does not save.
"""

import asyncio
import copy
from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, datetime
from enum import Enum
from typing import Any

import structlog

from gridiron.core.exceptions import GridironError, ValidationError, WizardStateError
from gridiron.domain.completeness import CompletenessResult, score
from gridiron.domain.wizard_steps import WIZARD_STEPS, WizardStep, clamp_step, step_progress_percent
from gridiron.onboarding.finalizer import OnboardingFinalizer
from gridiron.onboarding.negotiator import (
    ProgressRestoreNegotiator,
    RestoreDecision,
    RestorePrompt,
    RestoreResolution,
    RestoreState,
)
from gridiron.onboarding.notifications import Notification, NotificationSink, Severity
from gridiron.onboarding.store import ProgressStore, StoredProgress

logger = structlog.get_logger(__name__)


class SaveState(str, Enum):
    IDLE = "idle"
    SAVING = "saving"
    ERROR = "error"


class WizardTransition(str, Enum):
    ADVANCED = "advanced"
    COMPLETED = "completed"
    COMPLETION_FAILED = "completion_failed"


class OnboardingWizardController:
    """Drives one onboarding wizard session for a subject (athlete)."""

    def __init__(
        self,
        subject_id: int,
        store: ProgressStore,
        notifier: NotificationSink,
        finalizer: OnboardingFinalizer,
        negotiator: ProgressRestoreNegotiator | None = None,
        steps: Sequence[WizardStep] = WIZARD_STEPS,
        clock: Callable[[], datetime] | None = None,
    ):
        if not steps:
            raise ValueError("A wizard needs at least one step")

        self.subject_id = subject_id
        self.store = store
        self.notifier = notifier
        self.finalizer = finalizer
        self.steps = tuple(steps)
        self._clock = clock or (lambda: datetime.now(UTC))
        self.negotiator = negotiator or ProgressRestoreNegotiator(
            store, total_steps=len(self.steps), clock=self._clock
        )

        self.current_step = 0
        self.form_data: dict[str, dict[str, Any]] = {}
        self.save_state = SaveState.IDLE
        self.completed = False

        self._section_keys = {s.section_key for s in self.steps if s.section_key is not None}
        self._pending_saves: set[asyncio.Task] = set()
        self._save_seq = 0
        self._mounted = False

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @property
    def last_step(self) -> int:
        return self.total_steps - 1

    @property
    def is_last_step(self) -> bool:
        return self.current_step == self.last_step

    @property
    def current(self) -> WizardStep:
        return self.steps[self.current_step]

    @property
    def completeness(self) -> CompletenessResult:
        return score(self.form_data)

    @property
    def step_progress(self) -> int:
        """Step-count progress (0-100), independent of completeness."""
        return step_progress_percent(self.current_step, self.total_steps)

    # =========================================================================
    # RESTORE
    # =========================================================================

    async def mount(self) -> RestorePrompt | None:
        """Run the restore negotiation; at most once per controller.

        Returns:
            RestorePrompt if saved progress awaits a choice, else None (the
            wizard starts fresh at step 0)
        """
        if self._mounted:
            raise WizardStateError("Wizard is already mounted")
        self._mounted = True

        prompt = await self.negotiator.begin(self.subject_id)
        if prompt is None:
            self._apply_resolution(self.negotiator.resolution)
        return prompt

    async def resolve_restore(self, decision: RestoreDecision | str) -> RestoreResolution:
        """Forward the user's resume/start-fresh choice and apply it."""
        resolution = await self.negotiator.choose(decision)
        self._apply_resolution(resolution)
        return resolution

    def restore_from(self, stored: StoredProgress) -> None:
        """Set step and form data directly from saved progress."""
        self.current_step = clamp_step(stored.step, self.total_steps)
        self.form_data = {
            key: dict(fields)
            for key, fields in copy.deepcopy(stored.data).items()
            if isinstance(fields, Mapping)
        }
        logger.info("wizard_restored", subject_id=self.subject_id, step=self.current_step)

    def _apply_resolution(self, resolution: RestoreResolution | None) -> None:
        if (
            resolution is not None
            and resolution.decision is RestoreDecision.RESUME
            and resolution.restored_from is not None
        ):
            self.restore_from(resolution.restored_from)
            return
        self.current_step = 0
        self.form_data = {}

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    async def advance(self, step_data: Mapping[str, Any] | None = None) -> WizardTransition:
        """Merge the step's data and move forward.

        ``step_data`` maps section keys to partial field records, e.g.
        ``{"footballInfo": {"position": "QB"}}``. A mapping of plain field
        names is taken as the current step's section.

        At the last step the merged data is submitted instead of moving past
        the end.

        Raises:
            ValidationError: If step_data has an unusable shape
            WizardStateError: If onboarding already completed or a restore
                choice is still pending
        """
        self._ensure_open()
        self._merge(step_data or {})

        if self.is_last_step:
            completed = await self.complete()
            return WizardTransition.COMPLETED if completed else WizardTransition.COMPLETION_FAILED

        self.current_step += 1
        self._schedule_save()
        return WizardTransition.ADVANCED

    def retreat(self) -> int:
        """Move back one step (never below 0). Does not save."""
        self._ensure_open()
        if self.current_step > 0:
            self.current_step -= 1
        return self.current_step

    async def complete(self) -> bool:
        """Submit the completed onboarding through the finalizer.

        Returns:
            True on success; False after reporting a failure (the wizard
            stays on the last step and complete() can be called again)

        Raises:
            WizardStateError: If not on the last step
        """
        if self.completed:
            return True
        if not self.is_last_step:
            raise WizardStateError(
                f"Onboarding can only be completed from step {self.last_step}, currently at {self.current_step}"
            )

        # A save landing after finalization would resurrect the deleted draft
        await self.wait_for_pending_saves()

        try:
            await self.finalizer.submit(self.subject_id, copy.deepcopy(self.form_data))
        except GridironError as exc:
            logger.warning(
                "onboarding_completion_failed",
                subject_id=self.subject_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            self.notifier.notify(
                Notification(
                    title="Error saving your information",
                    description=str(exc) or "Please try again.",
                    severity=Severity.ERROR,
                )
            )
            return False

        self.completed = True
        logger.info("onboarding_completed", subject_id=self.subject_id)
        self.notifier.notify(
            Notification(
                title="Onboarding complete!",
                description="Your profile has been set up successfully.",
                severity=Severity.SUCCESS,
            )
        )
        return True

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    async def save_now(self) -> bool:
        """Save the current snapshot and wait for it (the "Save Progress" action)."""
        saved = await self._save(
            self._next_save_seq(), self.current_step, copy.deepcopy(self.form_data), self._clock()
        )
        if saved:
            self.notifier.notify(
                Notification(
                    title="Progress saved",
                    description="You can pick up where you left off at any time.",
                    severity=Severity.SUCCESS,
                )
            )
        return saved

    async def wait_for_pending_saves(self) -> None:
        """Wait for background saves. They are never cancelled, even on unmount."""
        if self._pending_saves:
            await asyncio.gather(*list(self._pending_saves), return_exceptions=True)

    def _schedule_save(self) -> None:
        # Snapshot now so later merges never leak into this write
        task = asyncio.create_task(
            self._save(self._next_save_seq(), self.current_step, copy.deepcopy(self.form_data), self._clock())
        )
        self._pending_saves.add(task)
        task.add_done_callback(self._pending_saves.discard)

    def _next_save_seq(self) -> int:
        self._save_seq += 1
        self.save_state = SaveState.SAVING
        return self._save_seq

    async def _save(self, seq: int, step: int, data: dict[str, Any], saved_at: datetime) -> bool:
        """Write one snapshot.

        Only the most recently issued save settles save_state. A superseded
        failure is logged without a toast; the newer snapshot carries its data.
        """
        try:
            ack = await self.store.save(self.subject_id, step, data, saved_at=saved_at)
        except GridironError as exc:
            superseded = seq != self._save_seq
            logger.warning(
                "progress_save_failed",
                subject_id=self.subject_id,
                step=step,
                superseded=superseded,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            if superseded:
                return False

            self.save_state = SaveState.ERROR
            self.notifier.notify(
                Notification(
                    title="Failed to save progress",
                    description="Your progress couldn't be saved. Please try again.",
                    severity=Severity.ERROR,
                )
            )
            return False

        if seq == self._save_seq:
            self.save_state = SaveState.IDLE
        logger.debug("progress_saved", subject_id=self.subject_id, step=step, applied=ack.applied)
        return True

    # =========================================================================
    # PRIVATE HELPERS
    # =========================================================================

    def _ensure_open(self) -> None:
        if self.completed:
            raise WizardStateError("Onboarding is already completed")
        if self.negotiator.state is RestoreState.DECIDING:
            raise WizardStateError("Choose to resume or start fresh before continuing")

    def _merge(self, step_data: Mapping[str, Any]) -> None:
        if not isinstance(step_data, Mapping):
            raise ValidationError("Step data must be a mapping")

        keys = set(step_data)
        section_keys = keys & self._section_keys
        if section_keys and section_keys != keys:
            raise ValidationError("Step data mixes section keys with field names")

        if section_keys:
            sections = dict(step_data)
        elif keys:
            section_key = self.current.section_key
            if section_key is None:
                raise ValidationError(f"Step '{self.current.id}' does not collect profile fields")
            sections = {section_key: step_data}
        else:
            sections = {}

        for key, fields in sections.items():
            if not isinstance(fields, Mapping):
                raise ValidationError(f"Section '{key}' must be a mapping of fields")

        for key, fields in sections.items():
            self.form_data[key] = {**self.form_data.get(key, {}), **copy.deepcopy(dict(fields))}
