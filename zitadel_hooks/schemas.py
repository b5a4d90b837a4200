"""
Pydantic schemas for webhook payloads and API responses.

This module contains:
- A permissive model for inbound ZITADEL event payloads
- Response models for the claim, health and error responses
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Pydantic Request Models
# =============================================================================

class ZitadelEvent(BaseModel):
    """
    Inbound ZITADEL event.

    Only the fields used for logging are declared; everything else is kept
    as-is so the full event reaches the downstream sink untouched.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    event_type: Optional[str] = Field(None, description="ZITADEL event type, e.g. user.human.added")
    aggregate_id: Optional[str] = Field(None, alias="aggregateID")
    aggregate_type: Optional[str] = Field(None, alias="aggregateType")
    resource_owner: Optional[str] = Field(None, alias="resourceOwner")
    instance_id: Optional[str] = Field(None, alias="instanceID")
    created_at: Optional[str] = Field(None, description="Event creation time")


# =============================================================================
# Pydantic Response Models
# =============================================================================

class AppendClaim(BaseModel):
    """A claim ZITADEL should add to the issued token."""
    key: str = Field(..., description="Claim name")
    value: Any = Field(..., description="Claim value")


class ClaimResponse(BaseModel):
    """Response model for POST /claim."""
    append_claims: list[AppendClaim] = Field(
        default_factory=list,
        description="Claims to append to the token"
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"append_claims": [{"key": "group", "value": "ADMIN"}]}
            ]
        }
    }


class ErrorResponse(BaseModel):
    """Response model for error responses."""
    detail: str = Field(..., description="Error description")


class HealthResponse(BaseModel):
    """Response model for health check endpoints."""
    status: str = Field(..., description="Health status")
    reason: Optional[str] = Field(None, description="Reason if not ready")
