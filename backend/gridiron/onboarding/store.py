"""ProgressStore: the only way the wizard core reads or writes saved progress.

Implementations:
- HttpProgressStore: talks to the onboarding API through ApiTransport
- InMemoryProgressStore: scenario-based double for tests and local runs

Every save is a full overwrite (step + all accumulated data), stamped with
the caller's wall clock so an older snapshot never replaces a newer one.
"""

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable

import structlog
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from gridiron.core.config import get_settings
from gridiron.core.exceptions import AuthError, TransportError
from gridiron.onboarding.transport import ApiTransport, ResourceCache

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StoredProgress:
    """Saved wizard snapshot for one subject."""

    step: int
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: str | None = None
    exists: bool = False

    @classmethod
    def missing(cls) -> "StoredProgress":
        return cls(step=0, data={}, timestamp=None, exists=False)

    @classmethod
    def from_payload(cls, payload: Any) -> "StoredProgress":
        """Build from the API's ``{step, data, timestamp, exists}`` body.

        Raises:
            TransportError: If the body is not a well-formed progress record
        """
        if not isinstance(payload, Mapping):
            raise TransportError("Progress response is not an object")
        if not payload.get("exists"):
            return cls.missing()

        step = payload.get("step")
        data = payload.get("data")
        if not isinstance(step, int) or step < 0 or not isinstance(data, Mapping):
            raise TransportError("Progress response has an invalid step or data")

        return cls(step=step, data=dict(data), timestamp=payload.get("timestamp"), exists=True)


@dataclass(frozen=True)
class ProgressAck:
    applied: bool
    step: int | None = None
    timestamp: str | None = None


@runtime_checkable
class ProgressStore(Protocol):
    """Persistence contract for onboarding progress, keyed by subject (athlete) id."""

    async def load(self, subject_id: int) -> StoredProgress:
        """Return saved progress; ``exists=False`` when nothing was saved.

        Raises:
            TransportError: On network/server failure
            AuthError: If the subject is not the authenticated caller
        """
        ...

    async def save(
        self,
        subject_id: int,
        step: int,
        data: Mapping[str, Any],
        saved_at: datetime | None = None,
    ) -> ProgressAck:
        """Overwrite saved progress with the full snapshot. No internal retry."""
        ...

    async def clear(self, subject_id: int) -> ProgressAck:
        """Remove saved progress. Failures propagate."""
        ...


def progress_path(subject_id: int) -> str:
    return f"/athletes/{subject_id}/onboarding/progress"


class HttpProgressStore:
    """ProgressStore backed by the onboarding API.

    ``load`` is served from the ResourceCache once fetched; ``save`` and
    ``clear`` invalidate it. A failed load is retried on TransportError only.
    """

    def __init__(
        self,
        transport: ApiTransport,
        cache: ResourceCache | None = None,
        load_attempts: int | None = None,
        retry_wait=None,
    ):
        self.transport = transport
        self.cache = cache if cache is not None else ResourceCache()
        self.load_attempts = load_attempts or get_settings().progress_load_attempts
        self.retry_wait = retry_wait or wait_exponential(multiplier=0.5, min=0.5, max=4)

    async def load(self, subject_id: int) -> StoredProgress:
        key = progress_path(subject_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(TransportError),
            stop=stop_after_attempt(self.load_attempts),
            wait=self.retry_wait,
            reraise=True,
            before_sleep=lambda rs: logger.warning(
                "progress_load_retrying",
                subject_id=subject_id,
                attempt=rs.attempt_number,
            ),
        ):
            with attempt:
                payload = await self.transport.request("GET", key)

        progress = StoredProgress.from_payload(payload)
        self.cache.set(key, progress)
        return progress

    async def save(
        self,
        subject_id: int,
        step: int,
        data: Mapping[str, Any],
        saved_at: datetime | None = None,
    ) -> ProgressAck:
        key = progress_path(subject_id)
        saved_at = saved_at or datetime.now(UTC)
        try:
            payload = await self.transport.request(
                "POST",
                key,
                json={"step": step, "data": data, "saved_at": saved_at.isoformat()},
            )
        finally:
            self.cache.invalidate(key)

        payload = payload or {}
        return ProgressAck(
            applied=bool(payload.get("applied", True)),
            step=payload.get("step", step),
            timestamp=payload.get("timestamp"),
        )

    async def clear(self, subject_id: int) -> ProgressAck:
        key = progress_path(subject_id)
        try:
            payload = await self.transport.request("DELETE", key)
        finally:
            self.cache.invalidate(key)

        payload = payload or {}
        return ProgressAck(applied=bool(payload.get("applied", True)))


class InMemoryProgressStore:
    """Scenario-based ProgressStore double.

    Scenarios:
    - happy_path: every operation succeeds
    - load_failure: load raises TransportError
    - save_failure: save raises TransportError
    - clear_failure: clear raises TransportError
    - auth_failure: every operation raises AuthError

    Every call is appended to ``calls`` as ``(operation, subject_id)``.
    """

    VALID_SCENARIOS = {"happy_path", "load_failure", "save_failure", "clear_failure", "auth_failure"}

    def __init__(self, scenario: str = "happy_path"):
        if scenario not in self.VALID_SCENARIOS:
            raise ValueError(f"Unknown scenario: {scenario}. Valid scenarios: {self.VALID_SCENARIOS}")
        self.scenario = scenario
        self.records: dict[int, tuple[StoredProgress, datetime]] = {}
        self.calls: list[tuple[str, int]] = []

    def seed(self, subject_id: int, step: int, data: Mapping[str, Any], saved_at: datetime | None = None) -> None:
        """Pre-populate saved progress without going through ``save``."""
        saved_at = saved_at or datetime.now(UTC)
        self.records[subject_id] = (
            StoredProgress(step=step, data=copy.deepcopy(dict(data)), timestamp=saved_at.isoformat(), exists=True),
            saved_at,
        )

    async def load(self, subject_id: int) -> StoredProgress:
        self.calls.append(("load", subject_id))
        self._raise_for("load_failure")

        record = self.records.get(subject_id)
        if record is None:
            return StoredProgress.missing()
        progress, _ = record
        return StoredProgress(
            step=progress.step,
            data=copy.deepcopy(progress.data),
            timestamp=progress.timestamp,
            exists=True,
        )

    async def save(
        self,
        subject_id: int,
        step: int,
        data: Mapping[str, Any],
        saved_at: datetime | None = None,
    ) -> ProgressAck:
        self.calls.append(("save", subject_id))
        self._raise_for("save_failure")

        saved_at = saved_at or datetime.now(UTC)
        current = self.records.get(subject_id)
        if current is not None and saved_at < current[1]:
            progress = current[0]
            return ProgressAck(applied=False, step=progress.step, timestamp=progress.timestamp)

        self.seed(subject_id, step, data, saved_at)
        return ProgressAck(applied=True, step=step, timestamp=saved_at.isoformat())

    async def clear(self, subject_id: int) -> ProgressAck:
        self.calls.append(("clear", subject_id))
        self._raise_for("clear_failure")

        removed = self.records.pop(subject_id, None)
        return ProgressAck(applied=removed is not None)

    def _raise_for(self, failing_scenario: str) -> None:
        if self.scenario == "auth_failure":
            raise AuthError("Subject does not belong to the authenticated caller", status_code=403)
        if self.scenario == failing_scenario:
            raise TransportError("Simulated transport failure", status_code=503)
