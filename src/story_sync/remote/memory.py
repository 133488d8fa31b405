"""In-memory remote store.

Holds wire records the way a document backend would, assigns ids and
timestamps on create, and supports failure injection for tests. The
reference FastAPI backend serves its HTTP contract over one of these.
"""

import logging
from typing import Dict, List, Optional

from ..codec import decode, encode
from ..errors import RemoteNotFoundError, RemoteStoreError
from ..models import EntityKind, Story, StoryPatch, UserProfile
from ..query import StoryQuery, apply_query
from ..utils import new_entity_id, utc_now

logger = logging.getLogger(__name__)


class InMemoryRemoteStore:
    """Remote store backed by dicts of encoded records."""

    def __init__(self):
        self.stories: Dict[str, dict] = {}
        self.profiles: Dict[str, dict] = {}
        # method name -> error raised on the next calls to it ("*" matches all)
        self.failures: Dict[str, RemoteStoreError] = {}
        self.calls: List[str] = []

    def fail(self, error: RemoteStoreError, method: str = "*") -> None:
        """Make calls to method (or every method) raise error until cleared."""
        self.failures[method] = error

    def clear_failures(self) -> None:
        self.failures.clear()

    def _enter(self, method: str) -> None:
        self.calls.append(method)
        error = self.failures.get(method) or self.failures.get("*")
        if error is not None:
            raise error

    def seed_story(self, story: Story) -> Story:
        """Insert a story as-is, keeping its id and timestamps."""
        stored = story.model_copy(update={"pending_sync": False})
        self.stories[stored.id] = encode(stored)
        return stored

    def _story(self, story_id: str) -> Story:
        record = self.stories.get(story_id)
        if record is None:
            raise RemoteNotFoundError(f"Story {story_id} not found", status=404)
        return decode(EntityKind.STORY, record)

    # -------------------------------------------------------------------------
    # Stories
    # -------------------------------------------------------------------------

    async def list_stories(self) -> List[Story]:
        self._enter("list_stories")
        return [decode(EntityKind.STORY, r) for r in self.stories.values()]

    async def get_story(self, story_id: str) -> Story:
        self._enter("get_story")
        return self._story(story_id)

    async def create_story(self, story: Story, preserve_timestamps: bool = False) -> Story:
        self._enter("create_story")
        now = utc_now()
        update = {"id": new_entity_id(), "pending_sync": False}
        if not preserve_timestamps:
            update.update(created_at=now, updated_at=now)
        created = story.model_copy(update=update)
        self.stories[created.id] = encode(created)
        logger.debug(f"Created remote story {created.id}")
        return created

    async def update_story(self, story_id: str, patch: StoryPatch) -> Story:
        self._enter("update_story")
        current = self._story(story_id)
        changes = patch.model_dump(exclude_unset=True, exclude_none=True)
        updated = Story.model_validate(
            {**current.model_dump(), **changes, "updated_at": utc_now(), "pending_sync": False}
        )
        self.stories[story_id] = encode(updated)
        return updated

    async def delete_story(self, story_id: str) -> None:
        self._enter("delete_story")
        if self.stories.pop(story_id, None) is None:
            raise RemoteNotFoundError(f"Story {story_id} not found", status=404)

    async def query_stories(self, query: StoryQuery) -> List[Story]:
        self._enter("query_stories")
        stories = [decode(EntityKind.STORY, r) for r in self.stories.values()]
        return apply_query(stories, query)

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------

    async def list_profiles(self) -> List[UserProfile]:
        self._enter("list_profiles")
        return [decode(EntityKind.PROFILE, r) for r in self.profiles.values()]

    async def get_profile(self, uid: str) -> UserProfile:
        self._enter("get_profile")
        record = self.profiles.get(uid)
        if record is None:
            raise RemoteNotFoundError(f"Profile {uid} not found", status=404)
        return decode(EntityKind.PROFILE, record)

    async def upsert_profile(self, profile: UserProfile) -> UserProfile:
        self._enter("upsert_profile")
        now = utc_now()
        existing: Optional[dict] = self.profiles.get(profile.uid)
        update = {"updated_at": now, "pending_sync": False}
        if existing is not None:
            update["created_at"] = decode(EntityKind.PROFILE, existing).created_at
        stored = profile.model_copy(update=update)
        self.profiles[stored.uid] = encode(stored)
        return stored
