"""
ZITADEL webhook signature verification.

Header format:  ZITADEL-Signature: t=<timestamp>,v1=<hex HMAC>
Signed payload: <timestamp>.<raw body>
MAC:            HMAC-SHA256(signing key, signed payload), lower-case hex
"""

import hmac
import hashlib
import logging
from dataclasses import dataclass
from typing import Optional, Union

from zitadel_hooks.errors import (
    ConfigurationError,
    MalformedHeader,
    MissingHeader,
    SignatureMismatch,
)

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "ZITADEL-Signature"


@dataclass(frozen=True)
class SignatureHeader:
    """Parsed signature header."""
    timestamp: str
    signature: str


@dataclass(frozen=True)
class Verification:
    """Verdict of a single verification, with the computed signature for diagnostics."""
    valid: bool
    timestamp: str
    computed_signature: str


def parse_signature_header(header: str) -> SignatureHeader:
    """
    Parse a `t=...,v1=...` signature header.

    Elements may come in any order and unknown keys are ignored. Each element
    is split on its first '=' only. The first `t` and first `v1` win.

    Raises:
        MalformedHeader: if `t` or `v1` is missing or empty
    """
    timestamp = None
    signature = None

    for element in header.split(","):
        key, sep, value = element.partition("=")
        if not sep:
            continue
        if key == "t" and timestamp is None:
            timestamp = value
        elif key == "v1" and signature is None:
            signature = value

    if not timestamp or not signature:
        raise MalformedHeader()

    return SignatureHeader(timestamp=timestamp, signature=signature)


def compute_signature(secret: str, timestamp: str, body: Union[bytes, str]) -> str:
    """
    Compute the hex HMAC-SHA256 of `<timestamp>.<body>` keyed with `secret`.

    The body is used exactly as received; a str body is UTF-8 encoded.
    """
    if isinstance(body, str):
        body = body.encode("utf-8")

    signed_payload = timestamp.encode("utf-8") + b"." + body

    return hmac.new(
        secret.encode("utf-8"),
        signed_payload,
        hashlib.sha256
    ).hexdigest()


class SignatureVerifier:
    """
    Verifies signed webhook requests against a single signing key.

    The key is injected at construction and is never logged.
    """

    def __init__(self, secret: Optional[str]):
        if not secret:
            raise ConfigurationError("signing key is not configured")
        self._secret = secret

    def __repr__(self) -> str:
        return "SignatureVerifier(secret=***)"

    def check(self, header: Optional[str], body: Union[bytes, str]) -> Verification:
        """
        Parse the header and compare its `v1` against the computed signature.

        Raises:
            MissingHeader: if the header is absent or empty
            MalformedHeader: if the header lacks `t` or `v1`
        """
        if not header:
            raise MissingHeader()

        parsed = parse_signature_header(header)
        computed = compute_signature(self._secret, parsed.timestamp, body)

        logger.debug(
            f"Signature timestamp: {parsed.timestamp}, "
            f"received: {parsed.signature[:8]}..., computed: {computed[:8]}..."
        )

        # Constant-time comparison to prevent timing attacks
        valid = hmac.compare_digest(
            computed.encode("utf-8"),
            parsed.signature.encode("utf-8")
        )

        return Verification(
            valid=valid,
            timestamp=parsed.timestamp,
            computed_signature=computed
        )

    def verify(self, header: Optional[str], body: Union[bytes, str]) -> bool:
        """Return True only if the header's `v1` matches the computed signature."""
        verification = self.check(header, body)
        logger.info(f"Signature verification: {'valid' if verification.valid else 'invalid'}")
        return verification.valid

    def authenticate(self, header: Optional[str], body: Union[bytes, str]) -> Verification:
        """
        Like `check`, but raises instead of returning an invalid verdict.

        Raises:
            MissingHeader, MalformedHeader, SignatureMismatch
        """
        verification = self.check(header, body)
        if not verification.valid:
            logger.info("Signature verification: invalid")
            raise SignatureMismatch()
        logger.info("Signature verification: valid")
        return verification


def verify_signature(header: Optional[str], body: Union[bytes, str], secret: Optional[str]) -> bool:
    """Convenience wrapper: `SignatureVerifier(secret).verify(header, body)`."""
    return SignatureVerifier(secret).verify(header, body)
