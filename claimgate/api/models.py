"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Field names are camelCase on the wire (orderNumber, sessionId, ...).

Claim fields are deliberately loose here (optional, length-capped only):
blank or malformed values must reach the workflow so the failed attempt
is counted against the session.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from claimgate.domain.models import ClaimStep, Identity


class CamelModel(BaseModel):
    """Base model serializing to camelCase and accepting either case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class IdentityModel(CamelModel):
    """Resolved platform account."""

    numeric_id: int = Field(..., ge=1, description="Platform user id")
    avatar_ref: str = Field(..., description="Avatar headshot image URL")
    display_name: str = ""

    @classmethod
    def from_identity(cls, identity: Identity) -> "IdentityModel":
        return cls(
            numeric_id=identity.numeric_id,
            avatar_ref=identity.avatar_ref,
            display_name=identity.display_name,
        )


class VerifyRequest(CamelModel):
    """Request model for the verification step."""

    order_number: str | None = Field(None, max_length=64, description="Order number, with or without '#'")
    email: str | None = Field(None, max_length=254, description="Email used at checkout")
    handle: str | None = Field(None, max_length=64, description="Game platform username")
    session_id: str | None = Field(None, max_length=128, description="Existing claim session, if any")


class VerifyResponse(CamelModel):
    """Response model for a successful verification."""

    ok: bool = True
    session_id: str
    step: ClaimStep
    identity: IdentityModel


class ConfirmRequest(CamelModel):
    """Request model for confirming the resolved identity."""

    session_id: str = Field(..., min_length=1, max_length=128)
    order_number: str = Field(..., max_length=64)
    email: str = Field(..., max_length=254)
    handle: str = Field(..., max_length=64)
    identity: IdentityModel


class BackRequest(CamelModel):
    """Request model for returning from CONFIRM to VERIFY."""

    session_id: str = Field(..., min_length=1, max_length=128)


class StepResponse(CamelModel):
    """Response model for a successful step change."""

    ok: bool = True
    session_id: str
    step: ClaimStep


class ErrorResponse(CamelModel):
    """Claim failure envelope."""

    ok: bool = False
    reason: str
    detail: str
    session_id: str | None = None
    step: ClaimStep | None = None
    attempts_remaining: int | None = None


class PresenceResponse(CamelModel):
    """Online flag per agent id."""

    presences: dict[str, bool]


class AgentStatusResponse(CamelModel):
    """Delivery agent status for the final step."""

    agent_id: str
    online: bool
    profile_url: str
    server_url: str | None = Field(None, description="Only present while the agent is online")
