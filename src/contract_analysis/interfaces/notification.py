"""Notification interface for the Contract Analysis Agent."""

from abc import ABC, abstractmethod


class INotifier(ABC):
    """Abstract interface for analysis-complete notifications."""

    @abstractmethod
    def send_alert(self, title: str, risk_level: str, summary: str) -> bool:
        """
        Deliver a notification.

        Returns:
            True if a message was sent, False if delivery is not configured.

        Raises:
            NotificationError: If delivery was attempted and failed.
        """
        pass
