"""
Notification Sender Interface

The ledger core only ever *requests* notifications. Actually putting
something on the user's screen is a platform concern behind this interface.
"""

from abc import ABC, abstractmethod

from pocketledger.models.notification import NotificationRequest


class NotificationSenderInterface(ABC):
    """Delivers (or schedules) a single notification request."""

    @abstractmethod
    def send(self, request: NotificationRequest) -> None:
        """
        Hand the request to the platform.

        Raises:
            NotificationError: If delivery failed
        """
        pass


class NotificationError(Exception):
    """Delivery of a notification failed."""
    pass
