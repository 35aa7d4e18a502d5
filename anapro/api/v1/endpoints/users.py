"""
AnaPro Platform - User Profile Endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from anapro.dependencies import get_current_user, get_db
from anapro.db.models.user import User
from anapro.db.repositories.user import UserRepository
from anapro.schemas.user import ProfileUpdate, UserProfile
from anapro.utils.exceptions import NotFoundError, ValidationError

router = APIRouter()


@router.get(
    "/profile",
    response_model=UserProfile,
    summary="Look up a profile",
    description="Public profile of the user owning a wallet."
)
async def get_profile(
    wallet: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db)
) -> UserProfile:
    user = await UserRepository(db).get_by_wallet(wallet)
    if user is None:
        raise NotFoundError("User not found")
    return UserProfile.model_validate(user)


@router.put(
    "/profile",
    response_model=UserProfile,
    summary="Update my profile",
    description="Complete or update profile fields. The wallet address cannot be changed."
)
async def update_profile(
    payload: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> UserProfile:
    users = UserRepository(db)

    if payload.username and payload.username != current_user.username:
        if await users.get_by_username(payload.username):
            raise ValidationError("Username already taken")

    email = str(payload.email).lower() if payload.email else None
    if email and email != current_user.email:
        if await users.get_by_email(email):
            raise ValidationError("Email already registered")

    user = await users.update_profile(
        current_user,
        username=payload.username,
        display_name=payload.display_name,
        email=email,
        phone=payload.phone,
        country=payload.country,
        country_code=payload.country_code.upper() if payload.country_code else None,
    )
    await db.commit()
    return UserProfile.model_validate(user)
