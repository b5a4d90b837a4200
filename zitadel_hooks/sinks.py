"""
Downstream sinks for verified events.

- SplunkForwarder: ships events to a Splunk HTTP Event Collector
- SmsNotifier: sends a notification SMS through the Twilio Messages API

Both raise ForwardingError on transport errors and non-2xx responses. The
routes treat forwarding as best effort: failures are logged and swallowed so
ZITADEL does not retry the delivery.
"""

import json
import logging
from typing import Any, Optional

import httpx

from zitadel_hooks.errors import ForwardingError

logger = logging.getLogger(__name__)

SPLUNK_COLLECTOR_PATH = "/services/collector/event"
TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


class SplunkForwarder:
    """Forwards events to Splunk HEC as `{"event": <data>}`."""

    sink = "splunk"

    def __init__(
        self,
        url: str,
        token: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.endpoint = url.rstrip("/") + SPLUNK_COLLECTOR_PATH
        self._token = token
        self._timeout = timeout
        self._transport = transport

    async def send(self, event: Any) -> str:
        """
        POST one event to the collector.

        Returns:
            The collector's response body

        Raises:
            ForwardingError: on network errors or a non-2xx status
        """
        logger.info(f"Forwarding event to {self.endpoint}")
        payload = json.dumps({"event": event}).encode("utf-8")

        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                transport=self._transport,
            ) as client:
                resp = await client.post(
                    self.endpoint,
                    content=payload,
                    headers={
                        "Authorization": f"Splunk {self._token}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.HTTPError as exc:
            logger.error(f"Network error forwarding to Splunk: {type(exc).__name__}: {exc}")
            raise ForwardingError(self.sink, f"network error: {exc}") from exc

        if not resp.is_success:
            logger.error(f"Splunk returned HTTP {resp.status_code}, response body: {resp.text}")
            raise ForwardingError(
                self.sink,
                f"HTTP {resp.status_code}",
                status_code=resp.status_code
            )

        logger.info(f"Event accepted by Splunk: {resp.status_code}")
        return resp.text


class SmsNotifier:
    """Sends a fixed notification text by SMS via Twilio."""

    sink = "sms"

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        to_number: str,
        body: str = "Webhook received!",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.endpoint = f"{TWILIO_API_BASE}/Accounts/{account_sid}/Messages.json"
        self._auth = (account_sid, auth_token)
        self.from_number = from_number
        self.to_number = to_number
        self.body = body
        self._timeout = timeout
        self._transport = transport

    async def notify(self) -> None:
        """
        Send the notification SMS.

        Raises:
            ForwardingError: on network errors or a non-2xx status
        """
        logger.info("Sending SMS notification")

        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                transport=self._transport,
            ) as client:
                resp = await client.post(
                    self.endpoint,
                    auth=self._auth,
                    data={
                        "To": self.to_number,
                        "From": self.from_number,
                        "Body": self.body,
                    },
                )
        except httpx.HTTPError as exc:
            logger.error(f"Network error sending SMS: {type(exc).__name__}: {exc}")
            raise ForwardingError(self.sink, f"network error: {exc}") from exc

        if not resp.is_success:
            logger.error(f"Twilio returned HTTP {resp.status_code}")
            raise ForwardingError(
                self.sink,
                f"HTTP {resp.status_code}",
                status_code=resp.status_code
            )

        logger.info("SMS notification sent")
