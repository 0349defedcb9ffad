"""User-facing notifications (toasts) emitted by the wizard core.

Sinks are fire-and-forget: the core never depends on what they do.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable

import structlog

logger = structlog.get_logger(__name__)


class Severity(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    severity: Severity = Severity.INFO


@runtime_checkable
class NotificationSink(Protocol):
    def notify(self, notification: Notification) -> None: ...


class LoggingNotificationSink:
    """Writes notifications to the structured log (headless runs, workers)."""

    def notify(self, notification: Notification) -> None:
        log = logger.warning if notification.severity is Severity.ERROR else logger.info
        log(
            "notification",
            title=notification.title,
            description=notification.description,
            severity=notification.severity.value,
        )


class RecordingNotificationSink:
    """Keeps every notification in memory, in order."""

    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.notifications.append(notification)

    def of_severity(self, severity: Severity) -> list[Notification]:
        return [n for n in self.notifications if n.severity is severity]
