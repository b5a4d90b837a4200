"""
Tests for health probes and the metrics endpoint.
"""

import os
import hmac
import hashlib


def signature_header(body: str, timestamp: str = "1700000000") -> str:
    sig = hmac.new(
        os.environ["SIGNING_KEY"].encode("utf-8"),
        f"{timestamp}.{body}".encode("utf-8"),
        hashlib.sha256
    ).hexdigest()
    return f"t={timestamp},v1={sig}"


class TestHealth:
    """Liveness and readiness probes."""

    def test_live(self, client):
        response = client.get("/health/live")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_ready(self, client):
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_not_ready_without_signing_key(self, client, override_settings):
        override_settings(SIGNING_KEY=None)

        response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json() == {"status": "not_ready", "reason": "SIGNING_KEY not configured"}


class TestMetrics:
    """Prometheus metrics exposition."""

    def test_webhook_outcomes_exposed(self, client):
        body = '{"a":1}'
        client.post("/claim", content=body, headers={"ZITADEL-Signature": signature_header(body)})
        client.post("/claim", content=body, headers={"ZITADEL-Signature": "t=1,v1=abc"})

        response = client.get("/metrics")

        assert response.status_code == 200
        assert 'webhook_requests_total{endpoint="/claim",result="accepted"}' in response.text
        assert 'webhook_requests_total{endpoint="/claim",result="invalid_signature"}' in response.text
        assert "http_requests_total" in response.text

    def test_signing_key_not_exposed(self, client):
        """Secret material never appears in metrics."""
        response = client.get("/metrics")

        assert os.environ["SIGNING_KEY"] not in response.text
