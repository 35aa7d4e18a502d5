"""
AnaPro Platform - User Session Model
"""
import uuid
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Text, Uuid
from sqlalchemy.orm import relationship

from anapro.db.database import Base
from anapro.utils.clock import utcnow


class UserSession(Base):
    """
    Bearer session issued after a wallet signature login.

    Logout flips ``is_active``; rows are kept for audit.
    """

    __tablename__ = "user_sessions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    wallet_address = Column(String(44), nullable=False)

    session_token = Column(Text, unique=True, nullable=False)
    signature = Column(String(128), nullable=False)
    message = Column(Text, nullable=False)

    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    last_activity_at = Column(DateTime, default=utcnow, nullable=False)

    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    user = relationship("User", back_populates="sessions")

    def __repr__(self):
        return f"<UserSession {self.wallet_address} active={self.is_active}>"
