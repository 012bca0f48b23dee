"""
API v1 routes.

Defines REST endpoints for the claim workflow:
- POST /v1/verify  - VERIFY -> CONFIRM
- POST /v1/back    - CONFIRM -> VERIFY
- POST /v1/confirm - CONFIRM -> CLAIM
- GET  /v1/presence, /v1/agent - delivery agent liveness for the final step

Routes are plain ``def`` functions: every one of them waits on outbound
HTTP, so FastAPI runs them in its threadpool.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse

from claimgate.adapters.roblox.identity import profile_url
from claimgate.api.dependencies import (
    get_claim_workflow,
    get_client_key,
    get_presence_poller,
    get_session_store,
)
from claimgate.api.models import (
    AgentStatusResponse,
    BackRequest,
    ConfirmRequest,
    ErrorResponse,
    IdentityModel,
    PresenceResponse,
    StepResponse,
    VerifyRequest,
    VerifyResponse,
)
from claimgate.config.settings import Settings, get_settings
from claimgate.domain.exceptions import (
    ClaimError,
    IdentityNotFound,
    InputInvalid,
    InvalidTransition,
    LookupFailed,
    NotificationFailed,
    OrderInvalid,
    RateLimited,
    SessionBlocked,
    SessionMismatch,
    SessionNotFound,
)
from claimgate.domain.models import ClaimSession
from claimgate.domain.orders import OrderValidator
from claimgate.domain.ports import SessionStore
from claimgate.domain.presence import PresencePoller
from claimgate.domain.workflow import ClaimWorkflow

router = APIRouter(tags=["v1"])

_STATUS_BY_ERROR: dict[type[ClaimError], int] = {
    InputInvalid: status.HTTP_400_BAD_REQUEST,
    SessionBlocked: status.HTTP_403_FORBIDDEN,
    IdentityNotFound: status.HTTP_404_NOT_FOUND,
    SessionNotFound: status.HTTP_404_NOT_FOUND,
    InvalidTransition: status.HTTP_409_CONFLICT,
    SessionMismatch: status.HTTP_409_CONFLICT,
    OrderInvalid: 422,
    RateLimited: status.HTTP_429_TOO_MANY_REQUESTS,
    LookupFailed: status.HTTP_502_BAD_GATEWAY,
    NotificationFailed: status.HTTP_502_BAD_GATEWAY,
}

_FAILURE_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing or malformed fields"},
    403: {"model": ErrorResponse, "description": "Session blocked after too many failures"},
    404: {"model": ErrorResponse, "description": "Game account or session not found"},
    409: {"model": ErrorResponse, "description": "Step change not allowed"},
    422: {"model": ErrorResponse, "description": "Order failed a business rule"},
    429: {"model": ErrorResponse, "description": "Too many attempts from this client"},
    502: {"model": ErrorResponse, "description": "External service failed, retry"},
}


def failure_response(
    error: ClaimError,
    session: ClaimSession | None = None,
    workflow: ClaimWorkflow | None = None,
) -> JSONResponse:
    """Translate a ClaimError into the JSON failure envelope."""
    body = ErrorResponse(
        reason=error.reason,
        detail=error.detail or error.reason,
        session_id=session.session_id if session else None,
        step=session.step if session else None,
        attempts_remaining=workflow.attempts_remaining(session) if session and workflow else None,
    )
    headers = None
    if isinstance(error, RateLimited):
        headers = {"Retry-After": str(get_settings().rate_limit_window_seconds)}
    return JSONResponse(
        status_code=_STATUS_BY_ERROR.get(type(error), status.HTTP_400_BAD_REQUEST),
        content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
        headers=headers,
    )


def _load_session(sessions: SessionStore, session_id: str) -> ClaimSession:
    session = sessions.get(session_id)
    if session is None:
        raise SessionNotFound("Claim session expired, please start again")
    return session


def _check_matches_session(session: ClaimSession, request_data: ConfirmRequest) -> None:
    """The confirmed payload must be the claim that was verified."""
    identity = session.resolved_identity
    if identity is None:
        return
    matches = (
        OrderValidator.normalize_order_number(request_data.order_number)
        == OrderValidator.normalize_order_number(session.order_number)
        and request_data.email.strip().lower() == session.email.lower()
        and request_data.handle.strip() == session.handle
        and request_data.identity.numeric_id == identity.numeric_id
    )
    if not matches:
        raise SessionMismatch("Confirmation does not match the verified claim")


@router.post(
    "/verify",
    response_model=VerifyResponse,
    responses=_FAILURE_RESPONSES,
    summary="Verify order and game account",
    description="Check the order against the store and look up the game account. "
    "On success the claim moves to CONFIRM and the avatar is returned for the buyer to check.",
)
def verify(
    request_data: VerifyRequest,
    client_key: str = Depends(get_client_key),
    workflow: ClaimWorkflow = Depends(get_claim_workflow),
    sessions: SessionStore = Depends(get_session_store),
):
    """
    Verify order ownership and resolve the game account.

    - **orderNumber**: Order number from the confirmation email
    - **email**: Email used at checkout
    - **handle**: Game platform username
    - **sessionId**: Optional; omitted or expired starts a new claim
    """
    session = sessions.get(request_data.session_id) if request_data.session_id else None
    is_new = session is None
    if is_new:
        session = sessions.create()

    try:
        identity = workflow.verify(
            session,
            request_data.order_number,
            request_data.email,
            request_data.handle,
            client_key,
        )
    except ClaimError as e:
        if is_new and isinstance(e, RateLimited):
            # Throttled clients do not get to fill the session registry
            return failure_response(e)
        sessions.save(session)
        return failure_response(e, session, workflow)

    sessions.save(session)
    return VerifyResponse(
        session_id=session.session_id,
        step=session.step,
        identity=IdentityModel.from_identity(identity),
    )


@router.post(
    "/back",
    response_model=StepResponse,
    responses=_FAILURE_RESPONSES,
    summary="Return to the verification step",
)
def back(
    request_data: BackRequest,
    workflow: ClaimWorkflow = Depends(get_claim_workflow),
    sessions: SessionStore = Depends(get_session_store),
):
    """Discard the resolved account so the buyer can correct their input."""
    try:
        session = _load_session(sessions, request_data.session_id)
    except SessionNotFound as e:
        return failure_response(e)

    try:
        workflow.back(session)
    except ClaimError as e:
        return failure_response(e, session)

    sessions.save(session)
    return StepResponse(session_id=session.session_id, step=session.step)


@router.post(
    "/confirm",
    response_model=StepResponse,
    responses=_FAILURE_RESPONSES,
    summary="Confirm the game account and submit the claim",
    description="Submits the claim for fulfillment. The claim only moves to CLAIM "
    "once the staff notification was accepted.",
)
def confirm(
    request_data: ConfirmRequest,
    workflow: ClaimWorkflow = Depends(get_claim_workflow),
    sessions: SessionStore = Depends(get_session_store),
):
    """Confirm the resolved account ("That's me") and submit the claim."""
    try:
        session = _load_session(sessions, request_data.session_id)
    except SessionNotFound as e:
        return failure_response(e)

    try:
        _check_matches_session(session, request_data)
        workflow.confirm(session)
    except ClaimError as e:
        return failure_response(e, session)

    sessions.save(session)
    return StepResponse(session_id=session.session_id, step=session.step)


@router.get(
    "/presence",
    response_model=PresenceResponse,
    summary="Check whether delivery agents are online",
)
def presence(
    ids: list[str] = Query(..., min_length=1, max_length=10, description="Agent ids"),
    poller: PresencePoller = Depends(get_presence_poller),
) -> PresenceResponse:
    """Unreachable or unknown agents read as offline."""
    return PresenceResponse(presences=poller.poll(ids))


@router.get(
    "/agent",
    response_model=AgentStatusResponse,
    response_model_exclude_none=True,
    responses={404: {"description": "No delivery agent configured"}},
    summary="Delivery agent status for the final step",
)
def agent_status(
    settings: Settings = Depends(get_settings),
    poller: PresencePoller = Depends(get_presence_poller),
) -> AgentStatusResponse:
    """
    Status of the configured delivery agent.

    The server link (join call-to-action) is only returned while the
    agent is online; the profile link (add-friend) is always available.
    """
    agent_id = settings.delivery_agent_id
    if not agent_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No delivery agent configured")

    online = poller.is_online(agent_id)
    server_url = settings.delivery_agent_server_url if online else ""
    return AgentStatusResponse(
        agent_id=agent_id,
        online=online,
        profile_url=profile_url(agent_id),
        server_url=server_url or None,
    )

