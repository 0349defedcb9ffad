"""Finalization collaborator: submits the completed onboarding profile."""

import copy
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from gridiron.core.exceptions import TransportError, ValidationError
from gridiron.onboarding.transport import ApiTransport


@runtime_checkable
class OnboardingFinalizer(Protocol):
    async def submit(self, subject_id: int, form_data: Mapping[str, Any]) -> None:
        """Submit the completed onboarding.

        Raises:
            GridironError: Any subclass on failure; the wizard stays on the
                last step so the user can retry
        """
        ...


class HttpOnboardingFinalizer:
    """Posts the full form data to the athlete's finalize endpoint."""

    def __init__(self, transport: ApiTransport):
        self.transport = transport

    async def submit(self, subject_id: int, form_data: Mapping[str, Any]) -> None:
        await self.transport.request("POST", f"/athletes/{subject_id}/onboarding", json=dict(form_data))


class InMemoryOnboardingFinalizer:
    """Scenario-based OnboardingFinalizer double.

    Scenarios:
    - happy_path: every submission succeeds
    - submit_failure: submit raises TransportError
    - rejected: submit raises ValidationError (server refused the profile)

    Successful submissions are recorded in ``submissions``.
    """

    VALID_SCENARIOS = {"happy_path", "submit_failure", "rejected"}

    def __init__(self, scenario: str = "happy_path"):
        if scenario not in self.VALID_SCENARIOS:
            raise ValueError(f"Unknown scenario: {scenario}. Valid scenarios: {self.VALID_SCENARIOS}")
        self.scenario = scenario
        self.submissions: list[tuple[int, dict[str, Any]]] = []
        self.attempts = 0

    async def submit(self, subject_id: int, form_data: Mapping[str, Any]) -> None:
        self.attempts += 1
        if self.scenario == "submit_failure":
            raise TransportError("Simulated transport failure", status_code=503)
        if self.scenario == "rejected":
            raise ValidationError("Profile is missing required fields")
        self.submissions.append((subject_id, copy.deepcopy(dict(form_data))))
