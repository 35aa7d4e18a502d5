"""
AnaPro Platform - Pydantic Schemas
User profile schemas
"""
from datetime import datetime
from typing import Optional
import uuid

from pydantic import EmailStr, Field, ConfigDict

from anapro.schemas.common import CamelModel


class UserPublic(CamelModel):
    """Schema for the user summary returned by login and session checks."""
    id: uuid.UUID
    wallet_address: str
    username: str
    display_name: str


class UserProfile(UserPublic):
    """Schema for the full user profile."""
    email: Optional[str] = None
    phone: Optional[str] = None
    country: Optional[str] = None
    country_code: Optional[str] = None
    profile_complete: bool = False
    is_active: bool = True
    login_count: int = 0
    last_login_at: Optional[datetime] = None
    created_at: datetime


class ProfileUpdate(CamelModel):
    """Schema for completing or updating a profile. The wallet address is not editable."""
    username: Optional[str] = Field(None, min_length=3, max_length=30, pattern=r"^[A-Za-z0-9_]+$")
    display_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, min_length=10, max_length=20)
    country: Optional[str] = Field(None, min_length=2, max_length=100)
    country_code: Optional[str] = Field(None, min_length=2, max_length=2)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "username": "satoshi_n",
                "displayName": "Satoshi",
                "email": "satoshi@example.com",
                "country": "Japan",
                "countryCode": "JP",
            }
        }
    )
