import json
import logging
from typing import Annotated, Any, NoReturn, Optional

from fastapi import FastAPI, Response, Request, Depends, Header, HTTPException, status
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from zitadel_hooks import __version__
from zitadel_hooks.config import Settings, get_settings
from zitadel_hooks.errors import (
    ConfigurationError,
    ForwardingError,
    MalformedHeader,
    MissingHeader,
    SignatureMismatch,
)
from zitadel_hooks.logging_utils import setup_logging, RequestLoggingMiddleware, log_webhook_data
from zitadel_hooks.metrics import (
    get_metrics,
    get_metrics_content_type,
    record_forward_outcome,
    record_webhook_outcome,
)
from zitadel_hooks.schemas import (
    AppendClaim,
    ClaimResponse,
    ErrorResponse,
    HealthResponse,
    ZitadelEvent,
)
from zitadel_hooks.signature import SIGNATURE_HEADER, SignatureVerifier
from zitadel_hooks.sinks import SmsNotifier, SplunkForwarder


# Setup structured JSON logging
setup_logging(get_settings().LOG_LEVEL)
logger = logging.getLogger(__name__)


app = FastAPI(
    title="ZITADEL Webhook Gateway",
    description="Verifies signed ZITADEL webhooks and forwards events to downstream sinks",
    version=__version__,
)

app.add_middleware(RequestLoggingMiddleware)


WEBHOOK_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing, malformed or invalid signature"},
    500: {"model": ErrorResponse, "description": "Gateway not configured"},
}


# =============================================================================
# Verification Dependencies
# =============================================================================

def _reject(request: Request, result: str, status_code: int, detail: str) -> NoReturn:
    """Record a failed webhook request and abort it with `detail`."""
    endpoint = request.url.path
    record_webhook_outcome(endpoint, result)
    log_webhook_data(request=request, endpoint=endpoint, result=result)
    raise HTTPException(status_code=status_code, detail=detail)


async def verified_body(
    request: Request,
    zitadel_signature: Annotated[Optional[str], Header(alias=SIGNATURE_HEADER)] = None,
    settings: Settings = Depends(get_settings),
) -> bytes:
    """
    Return the raw request body once its ZITADEL signature is verified.

    - 500 if SIGNING_KEY is not configured
    - 400 if the signature header is missing, malformed or does not match
    """
    try:
        verifier = SignatureVerifier(settings.SIGNING_KEY)
    except ConfigurationError:
        logger.error("SIGNING_KEY not configured")
        _reject(request, "config_error", status.HTTP_500_INTERNAL_SERVER_ERROR, "missing signing key")

    raw_body = await request.body()
    logger.debug(f"Request body size: {len(raw_body)} bytes")

    try:
        verifier.authenticate(zitadel_signature, raw_body)
    except MissingHeader as e:
        logger.warning("Missing signature header")
        _reject(request, "missing_signature", status.HTTP_400_BAD_REQUEST, str(e))
    except MalformedHeader as e:
        logger.warning("Malformed signature header")
        _reject(request, "malformed_signature", status.HTTP_400_BAD_REQUEST, str(e))
    except SignatureMismatch as e:
        logger.warning("Invalid signature")
        _reject(request, "invalid_signature", status.HTTP_400_BAD_REQUEST, str(e))

    return raw_body


def get_splunk_forwarder(request: Request, settings: Settings = Depends(get_settings)) -> SplunkForwarder:
    """Build the Splunk forwarder; 500 if SPLUNK_URL or SPLUNK_TOKEN is missing."""
    if not settings.SPLUNK_URL or not settings.SPLUNK_TOKEN:
        logger.error("SPLUNK_URL or SPLUNK_TOKEN not configured")
        _reject(request, "config_error", status.HTTP_500_INTERNAL_SERVER_ERROR, "missing configuration")

    return SplunkForwarder(
        url=settings.SPLUNK_URL,
        token=settings.SPLUNK_TOKEN,
        timeout=settings.FORWARD_TIMEOUT_SECONDS,
    )


def get_sms_notifier(request: Request, settings: Settings = Depends(get_settings)) -> SmsNotifier:
    """Build the SMS notifier; 500 if any Twilio setting is missing."""
    required = (
        settings.TWILIO_ACCOUNT_SID,
        settings.TWILIO_AUTH_TOKEN,
        settings.TWILIO_FROM_NUMBER,
        settings.TWILIO_TO_NUMBER,
    )
    if not all(required):
        logger.error("Twilio settings not configured")
        _reject(request, "config_error", status.HTTP_500_INTERNAL_SERVER_ERROR, "missing configuration")

    return SmsNotifier(
        account_sid=settings.TWILIO_ACCOUNT_SID,
        auth_token=settings.TWILIO_AUTH_TOKEN,
        from_number=settings.TWILIO_FROM_NUMBER,
        to_number=settings.TWILIO_TO_NUMBER,
        body=settings.SMS_BODY,
        timeout=settings.FORWARD_TIMEOUT_SECONDS,
    )


def _parse_event(request: Request, raw_body: bytes) -> Any:
    """Parse a verified body as JSON; 400 if it is not valid JSON."""
    try:
        return json.loads(raw_body)
    except ValueError as e:
        logger.error(f"Invalid JSON: {e}")
        _reject(request, "invalid_json", status.HTTP_400_BAD_REQUEST, "invalid JSON")


def _event_type(data: Any) -> Optional[str]:
    if not isinstance(data, dict):
        return None
    try:
        return ZitadelEvent.model_validate(data).event_type
    except ValidationError:
        return None


# =============================================================================
# Health Check Routes
# =============================================================================

@app.get("/health/live", response_model=HealthResponse)
async def health_live() -> HealthResponse:
    """Liveness probe - always returns 200 once the app is running."""
    return HealthResponse(status="ok")


@app.get("/health/ready", response_model=HealthResponse)
async def health_ready(response: Response, settings: Settings = Depends(get_settings)) -> HealthResponse:
    """
    Readiness probe - returns 200 only if SIGNING_KEY is set (non-empty).
    Otherwise returns 503 (Service Unavailable).
    """
    if not settings.SIGNING_KEY:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(
            status="not_ready",
            reason="SIGNING_KEY not configured"
        )

    return HealthResponse(status="ready")


# =============================================================================
# Webhook Routes
# =============================================================================

@app.post("/claim", response_model=ClaimResponse, responses=WEBHOOK_RESPONSES)
async def claim(
    request: Request,
    raw_body: bytes = Depends(verified_body),
    settings: Settings = Depends(get_settings),
) -> ClaimResponse:
    """
    ZITADEL action target that appends a custom claim to issued tokens.

    Headers:
        - ZITADEL-Signature: t=<timestamp>,v1=<hex HMAC-SHA256 of "<t>.<body>">
    """
    data = _parse_event(request, raw_body)
    event_type = _event_type(data)
    logger.info("Received claim request", extra={"event_type": event_type})

    record_webhook_outcome(request.url.path, "accepted")
    log_webhook_data(request=request, endpoint=request.url.path, result="accepted", event_type=event_type)

    return ClaimResponse(
        append_claims=[AppendClaim(key=settings.CLAIM_KEY, value=settings.CLAIM_VALUE)]
    )


@app.post("/user", response_class=PlainTextResponse, responses=WEBHOOK_RESPONSES)
async def user(
    request: Request,
    notifier: SmsNotifier = Depends(get_sms_notifier),
    raw_body: bytes = Depends(verified_body),
) -> PlainTextResponse:
    """
    ZITADEL user event target that sends an SMS notification.

    The notification is best effort: a Twilio failure is logged and the
    request still succeeds, so ZITADEL does not redeliver.
    """
    forwarded = True
    try:
        await notifier.notify()
    except ForwardingError as e:
        logger.error(f"Failed to send SMS notification: {e}")
        forwarded = False
    record_forward_outcome(notifier.sink, forwarded)

    record_webhook_outcome(request.url.path, "accepted")
    log_webhook_data(request=request, endpoint=request.url.path, result="accepted", forwarded=forwarded)

    return PlainTextResponse("OK")


@app.post("/events", response_class=PlainTextResponse, responses=WEBHOOK_RESPONSES)
async def events(
    request: Request,
    forwarder: SplunkForwarder = Depends(get_splunk_forwarder),
    raw_body: bytes = Depends(verified_body),
) -> PlainTextResponse:
    """
    ZITADEL event target that forwards events to Splunk HEC.

    Forwarding is best effort: a Splunk failure is logged and the request
    still returns 200, so retries do not pile up on the ZITADEL side.
    """
    data = _parse_event(request, raw_body)
    event_type = _event_type(data)
    logger.info("Received ZITADEL event", extra={"event_type": event_type})

    forwarded = True
    try:
        await forwarder.send(data)
    except ForwardingError as e:
        logger.error(f"Failed to forward event: {e}")
        forwarded = False
    record_forward_outcome(forwarder.sink, forwarded)

    record_webhook_outcome(request.url.path, "accepted")
    log_webhook_data(
        request=request,
        endpoint=request.url.path,
        result="accepted",
        event_type=event_type,
        forwarded=forwarded
    )

    return PlainTextResponse("Event processed")


# =============================================================================
# Metrics Route
# =============================================================================

@app.get("/metrics")
async def metrics() -> Response:
    """Expose Prometheus-style metrics."""
    return Response(
        content=get_metrics(),
        media_type=get_metrics_content_type()
    )
