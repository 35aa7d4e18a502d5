"""
AnaPro Platform - Authentication Endpoints
Wallet challenge/response login with database-backed sessions
"""
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from anapro.core.auth import AuthService, SessionContext
from anapro.dependencies import get_bearer_token, get_db, get_session_context
from anapro.schemas.auth import (
    ChallengeRequest,
    ChallengeResponse,
    LoginRequest,
    LoginResponse,
    SessionResponse,
)
from anapro.schemas.common import Message
from anapro.schemas.user import UserPublic
from anapro.utils.exceptions import SessionExpiredError

router = APIRouter()


def get_client_info(request: Request) -> dict:
    """Extract client information from request for session tracking."""
    return {
        "ip": request.client.host if request.client else "unknown",
        "user_agent": request.headers.get("user-agent", "unknown"),
    }


@router.post(
    "/challenge",
    response_model=ChallengeResponse,
    summary="Request a login challenge",
    description="Return the message the wallet must sign to log in."
)
async def challenge(payload: ChallengeRequest) -> ChallengeResponse:
    return ChallengeResponse(**AuthService.create_challenge(payload.wallet_address))


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Log in with a wallet signature",
    description="Verify the signed challenge and open a session."
)
async def login(
    request: Request,
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db)
) -> LoginResponse:
    """
    Log in with a signed challenge.

    - **walletAddress**: Base58 public key
    - **signature**: Base58 ed25519 signature of the message
    - **message**: The challenge message exactly as signed
    """
    client_info = get_client_info(request)
    token, user = await AuthService(db).login(
        payload.wallet_address,
        payload.signature,
        payload.message,
        ip_address=client_info["ip"],
        user_agent=client_info["user_agent"],
    )
    return LoginResponse(session_token=token, user=UserPublic.model_validate(user))


@router.get(
    "/session",
    response_model=SessionResponse,
    summary="Current session",
    description="Return the user behind the bearer session token."
)
async def get_session(
    context: SessionContext = Depends(get_session_context)
) -> SessionResponse:
    return SessionResponse(user=UserPublic.model_validate(context.user), role=context.role)


@router.post(
    "/logout",
    response_model=Message,
    status_code=status.HTTP_200_OK,
    summary="Log out",
    description="Revoke the bearer session. The token stops working immediately."
)
async def logout(
    token: Optional[str] = Depends(get_bearer_token),
    db: AsyncSession = Depends(get_db)
) -> Message:
    if not token:
        raise SessionExpiredError("Missing session token")
    revoked = await AuthService(db).logout(token)
    if not revoked:
        raise SessionExpiredError()
    return Message(message="Logged out")
