"""Webhook notifications for completed contract analyses."""

import logging
import time
from typing import Any, Dict, Optional

import httpx

from ..config.models import NotificationSettings
from ..exceptions import NotificationError
from ..interfaces.notification import INotifier


logger = logging.getLogger(__name__)

RISK_COLORS = {
    "high": "danger",
    "medium": "warning",
    "low": "good",
}
DEFAULT_COLOR = "#36a64f"


def get_risk_color(risk_level: str) -> str:
    """Map a risk level to a Slack attachment colour."""
    return RISK_COLORS.get((risk_level or "").lower(), DEFAULT_COLOR)


class NotificationService(INotifier):
    """
    Sends Slack-compatible webhook messages.

    With no webhook configured every send is a no-op.
    """

    def __init__(
        self,
        settings: Optional[NotificationSettings] = None,
        client: Optional[httpx.Client] = None,
    ):
        self.settings = settings or NotificationSettings()
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=self.settings.timeout)

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.webhook_url)

    def build_message(self, title: str, risk_level: str, summary: str) -> Dict[str, Any]:
        """Build the webhook payload for an analysis result."""
        return {
            "text": f"Contract Analysis Complete: {title}",
            "attachments": [
                {
                    "color": get_risk_color(risk_level),
                    "fields": [
                        {"title": "Contract", "value": title, "short": True},
                        {"title": "Risk Level", "value": risk_level, "short": True},
                        {"title": "Summary", "value": summary, "short": False},
                    ],
                    "footer": "Smart Contract Analysis Agent",
                    "ts": int(time.time()),
                }
            ],
        }

    def send_alert(self, title: str, risk_level: str, summary: str) -> bool:
        if not self.is_configured:
            logger.info("Webhook not configured, skipping notification")
            return False

        message = self.build_message(title, risk_level, summary)
        try:
            response = self._client.post(self.settings.webhook_url, json=message)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise NotificationError(
                message=f"Webhook delivery failed: {e}",
                details={"title": title},
            ) from e

        logger.info("Webhook notification sent successfully")
        return True

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
