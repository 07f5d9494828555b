"""Notifications for the Contract Analysis Agent."""

from .notification_service import NotificationService, get_risk_color

__all__ = ["NotificationService", "get_risk_color"]
