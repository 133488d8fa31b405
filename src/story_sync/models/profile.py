"""
Profile Models

One profile per user, keyed by the user's uid. Profiles are upserted,
never deleted on their own.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ..utils import utc_now
from .base import WIRE_CONFIG


class UserProfileForm(BaseModel):
    """Fields a user fills in when creating a profile."""

    model_config = WIRE_CONFIG

    display_name: str
    favorite_genre: str = ""
    bio: Optional[str] = None
    favorite_author: Optional[str] = None


class UserProfileUpdate(BaseModel):
    """Fields for updating a profile (all optional)."""

    model_config = WIRE_CONFIG

    display_name: Optional[str] = None
    favorite_genre: Optional[str] = None
    bio: Optional[str] = None
    favorite_author: Optional[str] = None


class UserProfile(BaseModel):
    """Full user profile with sync state."""

    model_config = WIRE_CONFIG

    uid: str
    email: str = ""
    display_name: str
    favorite_genre: str = ""
    bio: str = ""
    favorite_author: str = ""
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    pending_sync: bool = False
