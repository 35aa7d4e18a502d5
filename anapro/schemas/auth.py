"""
AnaPro Platform - Pydantic Schemas
Wallet authentication schemas
"""
from typing import Optional

from pydantic import Field

from anapro.schemas.common import CamelModel
from anapro.schemas.user import UserPublic


class ChallengeRequest(CamelModel):
    """Schema for requesting a login challenge."""
    wallet_address: Optional[str] = None


class ChallengeResponse(CamelModel):
    """Message the wallet must sign."""
    message: str
    timestamp: int
    nonce: str


class LoginRequest(CamelModel):
    """Schema for wallet login."""
    wallet_address: Optional[str] = None
    signature: Optional[str] = None
    message: Optional[str] = None


class LoginResponse(CamelModel):
    """Schema for a successful login."""
    success: bool = True
    session_token: str
    user: UserPublic


class SessionResponse(CamelModel):
    """Schema for the current session."""
    success: bool = True
    user: UserPublic
    role: str = Field("user")
