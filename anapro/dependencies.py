"""
AnaPro Platform - Dependencies
Dependency injection for FastAPI endpoints
"""
import hmac
from typing import AsyncGenerator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from anapro.config import settings
from anapro.core.auth import AuthService, SessionContext
from anapro.core.chain.verifier import ChainVerifier
from anapro.db.models.user import User
from anapro.utils.exceptions import AuthError, PermissionDeniedError, SessionExpiredError


# Bearer scheme; missing headers are reported by our own handlers
bearer_scheme = HTTPBearer(auto_error=False)


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Database session dependency.

    Yields:
        AsyncSession: Session from the application's Database
    """
    async with request.app.state.db.session() as session:
        yield session


def get_chain_verifier(request: Request) -> ChainVerifier:
    """Chain verifier built by the application factory."""
    return request.app.state.verifier


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    if credentials is None or credentials.scheme.lower() != "bearer":
        return None
    return credentials.credentials


async def get_session_context(
    token: Optional[str] = Depends(get_bearer_token),
    db: AsyncSession = Depends(get_db),
) -> SessionContext:
    """
    Resolve the bearer token to an active session.

    Raises:
        SessionExpiredError: No token, or the token/session is not valid
    """
    if not token:
        raise SessionExpiredError("Missing session token")
    return await AuthService(db).verify_session(token)


async def get_current_user(
    context: SessionContext = Depends(get_session_context),
) -> User:
    return context.user


async def require_admin(
    context: SessionContext = Depends(get_session_context),
) -> SessionContext:
    """
    Require an administrator session.

    Raises:
        PermissionDeniedError: If the wallet is not an admin
    """
    if not context.is_admin:
        raise PermissionDeniedError("Admin access required")
    return context


async def verify_cron_secret(token: Optional[str] = Depends(get_bearer_token)) -> None:
    """Authorize the external scheduler by its shared secret."""
    if not token or not hmac.compare_digest(token, settings.CRON_SECRET):
        raise AuthError("Unauthorized")
