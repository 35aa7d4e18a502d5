"""
AnaPro Platform - Session Repository
"""
from datetime import datetime
from typing import Optional
import uuid

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from anapro.db.models.user_session import UserSession
from anapro.utils.clock import utcnow


class SessionRepository:
    """Repository for UserSession rows."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        user_id: uuid.UUID,
        wallet_address: str,
        session_token: str,
        signature: str,
        message: str,
        expires_at: datetime,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> UserSession:
        """
        Persist a newly issued session.

        Args:
            user_id: Owner of the session
            wallet_address: Wallet that signed the login challenge
            session_token: Issued JWT
            signature: Base58 signature of the challenge
            message: The signed challenge text
            expires_at: Hard expiry of the session
            ip_address: Client address, if known
            user_agent: Client user agent, if known

        Returns:
            Created UserSession
        """
        now = utcnow()
        record = UserSession(
            user_id=user_id,
            wallet_address=wallet_address,
            session_token=session_token,
            signature=signature,
            message=message,
            expires_at=expires_at,
            created_at=now,
            last_activity_at=now,
            ip_address=ip_address,
            user_agent=user_agent,
            is_active=True,
        )
        self.session.add(record)
        await self.session.flush()
        await self.session.refresh(record)
        return record

    async def get_by_token(self, session_token: str) -> Optional[UserSession]:
        result = await self.session.execute(
            select(UserSession).where(UserSession.session_token == session_token)
        )
        return result.scalar_one_or_none()

    async def touch(self, record: UserSession) -> None:
        """Update last activity time."""
        record.last_activity_at = utcnow()
        await self.session.flush()

    async def deactivate(self, session_token: str) -> bool:
        """Revoke a session. Returns True if an active row was revoked."""
        result = await self.session.execute(
            update(UserSession)
            .where(UserSession.session_token == session_token, UserSession.is_active.is_(True))
            .values(is_active=False)
        )
        return result.rowcount == 1

    async def deactivate_expired(self, now: Optional[datetime] = None) -> int:
        """Revoke every active session past its expiry. Returns the count."""
        result = await self.session.execute(
            update(UserSession)
            .where(UserSession.is_active.is_(True), UserSession.expires_at < (now or utcnow()))
            .values(is_active=False)
        )
        return result.rowcount or 0
