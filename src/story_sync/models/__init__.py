"""
Story Sync Models

Pydantic models for stories, comments, drafts and user profiles.
Python attributes are snake_case; the wire/storage form produced by
story_sync.codec uses the camelCase aliases.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, computed_field, field_validator

from ..utils import ANONYMOUS_AUTHOR, ANONYMOUS_USER_ID, utc_now
from .base import WIRE_CONFIG, EntityKind, dedupe

# Re-export profile and sync report models
from .profile import UserProfile, UserProfileForm, UserProfileUpdate
from .sync import MigrationReport, SyncReport


class Comment(BaseModel):
    """Comment on a story.

    user_name is a snapshot taken when the comment was written; later
    renames do not touch it.
    """

    model_config = WIRE_CONFIG

    id: str
    user_id: str
    user_name: str = ANONYMOUS_AUTHOR
    content: str
    created_at: datetime = Field(default_factory=utc_now)


class CommentCreate(BaseModel):
    """Fields for appending a comment. Missing user fields come from the identity provider."""

    model_config = WIRE_CONFIG

    content: str
    user_id: Optional[str] = None
    user_name: Optional[str] = None


class StoryBase(BaseModel):
    """Story fields shared across create/response."""

    model_config = WIRE_CONFIG

    title: str
    content: str
    author: str = ANONYMOUS_AUTHOR
    tags: List[str] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, v: List[str]) -> List[str]:
        return dedupe(v)


class StoryCreate(StoryBase):
    """Fields for creating a story. author defaults to the acting user's display name."""

    author: Optional[str] = None


class StoryUpdate(BaseModel):
    """Fields for updating an existing story (all optional)."""

    model_config = WIRE_CONFIG

    title: Optional[str] = None
    content: Optional[str] = None
    author: Optional[str] = None
    tags: Optional[List[str]] = None


class StoryPatch(StoryUpdate):
    """Partial write sent to the remote store, including collection fields."""

    likes: Optional[List[str]] = None
    comments: Optional[List[Comment]] = None


class Story(StoryBase):
    """Full story with engagement data and sync state."""

    id: str
    user_id: str = ANONYMOUS_USER_ID
    likes: List[str] = Field(default_factory=list)
    comments: List[Comment] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    pending_sync: bool = False

    @field_validator("likes")
    @classmethod
    def dedupe_likes(cls, v: List[str]) -> List[str]:
        return dedupe(v)

    @computed_field(alias="characterCount")
    @property
    def character_count(self) -> int:
        return len(self.content)


class DraftCreate(BaseModel):
    """Fields for saving a new draft."""

    model_config = WIRE_CONFIG

    title: str = ""
    content: str = ""
    author: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class DraftUpdate(BaseModel):
    """Fields for updating a draft (all optional)."""

    model_config = WIRE_CONFIG

    title: Optional[str] = None
    content: Optional[str] = None
    author: Optional[str] = None
    tags: Optional[List[str]] = None


class Draft(BaseModel):
    """Unfinished story kept on-device only."""

    model_config = WIRE_CONFIG

    id: str
    title: str
    content: str
    author: str = ANONYMOUS_AUTHOR
    user_id: str = ANONYMOUS_USER_ID
    tags: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, v: List[str]) -> List[str]:
        return dedupe(v)


__all__ = [
    "WIRE_CONFIG",
    "Comment",
    "CommentCreate",
    "Draft",
    "DraftCreate",
    "DraftUpdate",
    "EntityKind",
    "MigrationReport",
    "Story",
    "StoryBase",
    "StoryCreate",
    "StoryPatch",
    "StoryUpdate",
    "SyncReport",
    "UserProfile",
    "UserProfileForm",
    "UserProfileUpdate",
    "dedupe",
]
