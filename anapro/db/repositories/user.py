"""
AnaPro Platform - User Repository
CRUD operations for User model
"""
import secrets
import string
from typing import Optional
import uuid

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from anapro.db.models.user import User
from anapro.utils.clock import utcnow


_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def _random_suffix(length: int) -> str:
    return "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(length))


class UserRepository:
    """Repository for User CRUD operations."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session."""
        self.session = session

    async def get_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        """
        Get user by ID.

        Args:
            user_id: The user's ID

        Returns:
            User object if found, None otherwise
        """
        result = await self.session.execute(
            select(User).where(User.id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_by_wallet(self, wallet_address: str) -> Optional[User]:
        """
        Get user by wallet address.

        Args:
            wallet_address: Base58 public key

        Returns:
            User object if found, None otherwise
        """
        result = await self.session.execute(
            select(User).where(User.wallet_address == wallet_address)
        )
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> Optional[User]:
        """Get user by username."""
        result = await self.session.execute(
            select(User).where(User.username == username)
        )
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email address."""
        result = await self.session.execute(
            select(User).where(User.email == email)
        )
        return result.scalar_one_or_none()

    async def create_for_wallet(self, wallet_address: str) -> User:
        """
        Create a user for a wallet that has never logged in.

        Username and display name derive from the wallet prefix; a random
        suffix is appended if the username is already taken.

        Args:
            wallet_address: Base58 public key

        Returns:
            Created User object
        """
        username = f"user_{wallet_address[:8]}"
        if await self.get_by_username(username) is not None:
            username = f"{username}_{_random_suffix(6)}"

        user = User(
            wallet_address=wallet_address,
            username=username,
            display_name=f"User {wallet_address[:6]}",
            login_count=0,
            profile_complete=False,
            is_active=True,
        )
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def record_login(self, user: User) -> User:
        """Increment the login counter and stamp the login time."""
        await self.session.execute(
            update(User)
            .where(User.id == user.id)
            .values(login_count=User.login_count + 1, last_login_at=utcnow())
        )
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def update_profile(self, user: User, **fields) -> User:
        """
        Update profile fields of a user.

        Args:
            user: User to update
            **fields: Column values; None values are ignored

        Returns:
            Updated User object
        """
        for field, value in fields.items():
            if value is not None and hasattr(user, field):
                setattr(user, field, value)
        user.profile_complete = bool(user.email and user.country)
        await self.session.flush()
        await self.session.refresh(user)
        return user
