"""
AnaPro Platform - User Model
"""
import uuid
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Uuid, CheckConstraint
from sqlalchemy.orm import relationship

from anapro.db.database import Base
from anapro.utils.clock import utcnow


class User(Base):
    """Wallet-bound user account."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint('login_count >= 0', name='ck_users_login_count_non_negative'),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    wallet_address = Column(String(44), unique=True, index=True, nullable=False)
    username = Column(String(30), unique=True, index=True, nullable=False)
    display_name = Column(String(100), nullable=False)

    # Profile
    email = Column(String(255), unique=True, nullable=True)
    phone = Column(String(20), nullable=True)
    country = Column(String(100), nullable=True)
    country_code = Column(String(2), nullable=True)
    profile_complete = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Login tracking
    login_count = Column(Integer, default=0, nullable=False)
    last_login_at = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    balance = relationship("PlatformBalance", back_populates="user", uselist=False)
    sessions = relationship("UserSession", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User {self.username} {self.wallet_address}>"
