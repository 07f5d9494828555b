"""Unit tests for webhook notifications."""

import json

import httpx
import pytest

from contract_analysis.config.models import NotificationSettings
from contract_analysis.exceptions import NotificationError
from contract_analysis.notifications import NotificationService, get_risk_color


WEBHOOK_URL = "https://hooks.example.com/services/T000/B000"


def make_service(handler, webhook_url=WEBHOOK_URL):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return NotificationService(NotificationSettings(webhook_url=webhook_url), client=client)


class TestRiskColor:
    """Tests for risk colour mapping."""

    @pytest.mark.parametrize(
        "level,color",
        [
            ("High", "danger"),
            ("medium", "warning"),
            ("LOW", "good"),
            ("Unknown", "#36a64f"),
            (None, "#36a64f"),
        ],
    )
    def test_mapping(self, level, color):
        assert get_risk_color(level) == color


class TestSendAlert:
    """Tests for webhook delivery."""

    def test_posts_slack_payload(self):
        captured = []

        def handler(request):
            captured.append((str(request.url), json.loads(request.content)))
            return httpx.Response(200, text="ok")

        service = make_service(handler)

        assert service.send_alert("NDA", "High", "Risky terms") is True

        url, payload = captured[0]
        attachment = payload["attachments"][0]
        assert url == WEBHOOK_URL
        assert payload["text"] == "Contract Analysis Complete: NDA"
        assert attachment["color"] == "danger"
        assert attachment["footer"] == "Smart Contract Analysis Agent"
        assert [f["title"] for f in attachment["fields"]] == ["Contract", "Risk Level", "Summary"]
        assert attachment["fields"][2]["value"] == "Risky terms"

    def test_not_configured_is_a_no_op(self):
        calls = []
        service = make_service(lambda request: calls.append(request), webhook_url=None)

        assert service.is_configured is False
        assert service.send_alert("NDA", "Low", "Fine") is False
        assert calls == []

    def test_http_error_status_raises(self):
        service = make_service(lambda request: httpx.Response(500))

        with pytest.raises(NotificationError):
            service.send_alert("NDA", "Low", "Fine")

    def test_connection_failure_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(NotificationError):
            make_service(handler).send_alert("NDA", "Low", "Fine")

    def test_close_leaves_injected_client_open(self):
        client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
        service = NotificationService(NotificationSettings(webhook_url=WEBHOOK_URL), client=client)

        service.close()

        assert not client.is_closed
        client.close()
