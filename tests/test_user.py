"""
Tests for the POST /user endpoint and the SMS notifier.
"""

import asyncio
import os
import hmac
import hashlib
from urllib.parse import parse_qs

import httpx
import pytest

from zitadel_hooks.errors import ForwardingError
from zitadel_hooks.main import app, get_sms_notifier
from zitadel_hooks.sinks import SmsNotifier


TEST_SIGNING_KEY = os.environ["SIGNING_KEY"]
TIMESTAMP = "1700000000"
BODY = '{"event_type":"user.human.added","aggregateID":"312909075212468632"}'


def signature_header(body: str, secret: str = TEST_SIGNING_KEY, timestamp: str = TIMESTAMP) -> str:
    """Build a ZITADEL-Signature header for `body`."""
    sig = hmac.new(
        secret.encode("utf-8"),
        f"{timestamp}.{body}".encode("utf-8"),
        hashlib.sha256
    ).hexdigest()
    return f"t={timestamp},v1={sig}"


def make_notifier(handler) -> SmsNotifier:
    return SmsNotifier(
        account_sid="ACtest",
        auth_token="twilio-token",
        from_number="+15550000001",
        to_number="+15550000002",
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def twilio():
    """Route /user notifications through a MockTransport; returns the sent requests."""
    sent = []
    state = {"status_code": 201}

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(request)
        return httpx.Response(state["status_code"], json={"sid": "SM123"})

    app.dependency_overrides[get_sms_notifier] = lambda: make_notifier(handler)
    return sent, state


class TestUserNotification:
    """Test /user with valid signatures."""

    def test_sends_sms(self, client, twilio):
        sent, _ = twilio

        response = client.post(
            "/user",
            content=BODY,
            headers={"ZITADEL-Signature": signature_header(BODY)}
        )

        assert response.status_code == 200
        assert response.text == "OK"

        assert len(sent) == 1
        request = sent[0]
        assert str(request.url) == "https://api.twilio.com/2010-04-01/Accounts/ACtest/Messages.json"
        assert request.headers["Authorization"].startswith("Basic ")
        form = parse_qs(request.content.decode("utf-8"))
        assert form == {
            "To": ["+15550000002"],
            "From": ["+15550000001"],
            "Body": ["Webhook received!"],
        }

    def test_twilio_failure_still_returns_200(self, client, twilio):
        """SMS is best effort."""
        sent, state = twilio
        state["status_code"] = 500

        response = client.post(
            "/user",
            content=BODY,
            headers={"ZITADEL-Signature": signature_header(BODY)}
        )

        assert response.status_code == 200
        assert len(sent) == 1

    def test_non_json_body_accepted(self, client, twilio):
        """The body is only authenticated, never parsed."""
        body = "plain text"

        response = client.post(
            "/user",
            content=body,
            headers={"ZITADEL-Signature": signature_header(body)}
        )

        assert response.status_code == 200

    def test_invalid_signature_sends_nothing(self, client, twilio):
        sent, _ = twilio

        response = client.post(
            "/user",
            content=BODY,
            headers={"ZITADEL-Signature": "t=1,v1=abc"}
        )

        assert response.status_code == 400
        assert sent == []

    def test_missing_signature_sends_nothing(self, client, twilio):
        sent, _ = twilio

        response = client.post("/user", content=BODY)

        assert response.status_code == 400
        assert response.json() == {"detail": "missing signature"}
        assert sent == []


class TestUserConfiguration:
    """Test /user without Twilio settings."""

    def test_missing_twilio_setting(self, client, override_settings):
        override_settings(TWILIO_AUTH_TOKEN=None)

        response = client.post(
            "/user",
            content=BODY,
            headers={"ZITADEL-Signature": signature_header(BODY)}
        )

        assert response.status_code == 500
        assert response.json() == {"detail": "missing configuration"}


class TestSmsNotifier:
    """SmsNotifier unit tests."""

    def test_custom_body(self):
        sent = []

        def handler(request):
            sent.append(request)
            return httpx.Response(201)

        notifier = make_notifier(handler)
        notifier.body = "User created"
        asyncio.run(notifier.notify())

        assert parse_qs(sent[0].content.decode("utf-8"))["Body"] == ["User created"]

    def test_non_2xx_raises(self):
        notifier = make_notifier(lambda request: httpx.Response(401))

        with pytest.raises(ForwardingError) as exc_info:
            asyncio.run(notifier.notify())

        assert exc_info.value.sink == "sms"
        assert exc_info.value.status_code == 401

    def test_network_error_raises(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out")

        with pytest.raises(ForwardingError):
            asyncio.run(make_notifier(handler).notify())
