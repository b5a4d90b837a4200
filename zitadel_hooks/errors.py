"""
Exception hierarchy for webhook verification and forwarding.

- VerificationError subclasses map to 400 responses
- ConfigurationError maps to 500 responses
- ForwardingError is logged and swallowed by the routes
"""

from typing import Optional


class WebhookError(Exception):
    """Base class for all gateway errors."""


class VerificationError(WebhookError):
    """The request could not be authenticated."""


class MissingHeader(VerificationError):
    """No signature header was sent."""

    def __init__(self, message: str = "missing signature"):
        super().__init__(message)


class MalformedHeader(VerificationError):
    """Signature header is present but lacks a non-empty `t` or `v1`."""

    def __init__(self, message: str = "malformed signature header"):
        super().__init__(message)


class SignatureMismatch(VerificationError):
    """Header is well-formed but the computed signature disagrees."""

    def __init__(self, message: str = "invalid signature"):
        super().__init__(message)


class ConfigurationError(WebhookError):
    """A required setting (signing key, sink credentials) is not configured."""


class ForwardingError(WebhookError):
    """A downstream sink rejected or never received an event."""

    def __init__(self, sink: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{sink}: {message}")
        self.sink = sink
        self.status_code = status_code
