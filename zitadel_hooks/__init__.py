"""
ZITADEL webhook gateway.

Verifies signed ZITADEL webhook deliveries and hands verified events to
downstream sinks (claims response, Splunk HEC, Twilio SMS).
"""

__version__ = "1.0.0"
