"""Remote store protocol.

The Sync Orchestrator depends on this, not on any specific backend.
Implementations never retry and never cache; every failure is raised as
a RemoteStoreError subclass so the caller can choose a fallback.
"""

from typing import List, Protocol

from ..models import Story, StoryPatch, UserProfile
from ..query import StoryQuery


class RemoteStore(Protocol):
    """Asynchronous CRUD and query access to the authoritative backend."""

    async def list_stories(self) -> List[Story]:
        ...

    async def get_story(self, story_id: str) -> Story:
        """Raises RemoteNotFoundError if the story does not exist."""
        ...

    async def create_story(self, story: Story, preserve_timestamps: bool = False) -> Story:
        """Create a story. The backend assigns the id (and timestamps unless preserved)."""
        ...

    async def update_story(self, story_id: str, patch: StoryPatch) -> Story:
        ...

    async def delete_story(self, story_id: str) -> None:
        ...

    async def query_stories(self, query: StoryQuery) -> List[Story]:
        ...

    async def list_profiles(self) -> List[UserProfile]:
        ...

    async def get_profile(self, uid: str) -> UserProfile:
        ...

    async def upsert_profile(self, profile: UserProfile) -> UserProfile:
        """Create the profile if absent, else merge the given fields into it."""
        ...
