"""
AnaPro Platform - Authentication Service

Challenge/response wallet login and database-backed sessions. A session is
valid only while both its JWT and its ``user_sessions`` row are valid, so
logout takes effect before the token expires.
"""
from dataclasses import dataclass
from typing import Optional, Tuple
import uuid

from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from anapro.config import settings
from anapro.core.ledger.balance_ledger import BalanceLedger
from anapro.core.security import (
    build_auth_challenge,
    create_session_token,
    is_valid_wallet_address,
    verify_session_token,
    verify_wallet_signature,
)
from anapro.db.models.user import User
from anapro.db.models.user_session import UserSession
from anapro.db.repositories.session import SessionRepository
from anapro.db.repositories.user import UserRepository
from anapro.utils.clock import utcnow
from anapro.utils.exceptions import (
    InvalidSignatureError,
    SessionExpiredError,
    ValidationError,
)


@dataclass
class SessionContext:
    """An authenticated request's user, session row and role."""
    user: User
    session: UserSession
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def role_for_wallet(wallet_address: str) -> str:
    return "admin" if wallet_address in settings.ADMIN_WALLETS else "user"


class AuthService:
    """Wallet login, session verification and logout."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.users = UserRepository(db)
        self.sessions = SessionRepository(db)
        self.ledger = BalanceLedger(db)

    @staticmethod
    def create_challenge(wallet_address: str) -> dict:
        """Issue a login challenge for a wallet."""
        if not wallet_address:
            raise ValidationError("Wallet address is required")
        if not is_valid_wallet_address(wallet_address):
            raise ValidationError("Invalid wallet address", details={"walletAddress": wallet_address})
        return build_auth_challenge(wallet_address)

    async def login(
        self,
        wallet_address: str,
        signature: str,
        message: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Tuple[str, User]:
        """
        Log a wallet in with a signed challenge.

        Args:
            wallet_address: Base58 public key
            signature: Base58 signature of ``message``
            message: Challenge text as signed
            ip_address: Client address
            user_agent: Client user agent

        Returns:
            Tuple of (session token, user)

        Raises:
            ValidationError: missing fields
            InvalidSignatureError: signature does not verify for this wallet
        """
        if not wallet_address or not signature or not message:
            raise ValidationError("Missing fields")

        if not verify_wallet_signature(wallet_address, message, signature):
            logger.warning(f"Invalid login signature for {wallet_address}")
            raise InvalidSignatureError()

        if wallet_address not in message:
            raise InvalidSignatureError("Signed message does not match wallet")

        user = await self.users.get_by_wallet(wallet_address)
        if user is None:
            user = await self.users.create_for_wallet(wallet_address)
            logger.info(f"New user {user.username} for wallet {wallet_address}")
        if not user.is_active:
            raise SessionExpiredError("Account is disabled")

        user = await self.users.record_login(user)
        await self.ledger.ensure_balance(wallet_address, user.id)

        role = role_for_wallet(wallet_address)
        token, _, expires_at = create_session_token(user.id, wallet_address, role=role)
        await self.sessions.create(
            user_id=user.id,
            wallet_address=wallet_address,
            session_token=token,
            signature=signature,
            message=message,
            expires_at=expires_at,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        await self.db.commit()

        logger.info(f"Login: {wallet_address} ({role})")
        return token, user

    async def verify_session(self, token: str) -> SessionContext:
        """
        Resolve a bearer token to its session.

        Raises:
            SessionExpiredError: token invalid/expired, or the session row is
                missing, inactive or expired
        """
        if not token:
            raise SessionExpiredError("Missing session token")

        payload = verify_session_token(token)
        if payload is None:
            raise SessionExpiredError("Invalid or expired session")

        record = await self.sessions.get_by_token(token)
        if record is None or not record.is_active or record.expires_at <= utcnow():
            raise SessionExpiredError()

        try:
            user_id = uuid.UUID(payload["sub"])
        except ValueError:
            raise SessionExpiredError("Invalid or expired session")

        user = await self.users.get_by_id(user_id)
        if user is None or not user.is_active or user.wallet_address != record.wallet_address:
            raise SessionExpiredError()

        await self.sessions.touch(record)
        await self.db.commit()

        return SessionContext(user=user, session=record, role=payload.get("role", "user"))

    async def logout(self, token: str) -> bool:
        """Revoke a session. Returns True if an active session was revoked."""
        revoked = await self.sessions.deactivate(token)
        await self.db.commit()
        if revoked:
            logger.info("Session revoked")
        return revoked

    async def deactivate_expired_sessions(self) -> int:
        """Deactivate every session past its expiry."""
        count = await self.sessions.deactivate_expired()
        await self.db.commit()
        if count:
            logger.info(f"Deactivated {count} expired sessions")
        return count
