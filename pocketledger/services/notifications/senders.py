"""Concrete notification senders."""

import structlog

from pocketledger.models.notification import NotificationRequest
from pocketledger.services.notifications.interface import (
    NotificationError,
    NotificationSenderInterface,
)


class LoggingNotificationSender(NotificationSenderInterface):
    """Writes each request to the structured log. The default when no platform is wired."""

    def __init__(self):
        self._logger = structlog.get_logger("pocketledger.notifications")

    def send(self, request: NotificationRequest) -> None:
        self._logger.info(
            "notification",
            kind=request.kind.value,
            identifier=request.identifier,
            title=request.title,
            body=request.body,
        )


class InMemoryNotificationSender(NotificationSenderInterface):
    """
    Collects requests in an outbox a UI (or a test) can drain.

    Set failures_remaining to make the next N sends raise.
    """

    def __init__(self):
        self.outbox: list[NotificationRequest] = []
        self.failures_remaining = 0
        self.attempts = 0

    def send(self, request: NotificationRequest) -> None:
        self.attempts += 1
        if self.failures_remaining > 0:
            self.failures_remaining -= 1
            raise NotificationError(f"Simulated delivery failure for {request.identifier}")
        # Same identifier replaces the pending request
        self.outbox = [r for r in self.outbox if r.identifier != request.identifier]
        self.outbox.append(request)

    def drain(self) -> list[NotificationRequest]:
        delivered, self.outbox = self.outbox, []
        return delivered
