"""
Story Service

Story reads and mutations routed through the Sync Orchestrator, plus the
reconciliation pass that pushes pending local stories to the remote store.
"""

import logging
from typing import List, Optional

from ..errors import EntityNotFoundError, RemoteNotFoundError, RemoteStoreError
from ..identity import IdentityProvider
from ..models import (
    Comment,
    CommentCreate,
    EntityKind,
    Story,
    StoryCreate,
    StoryPatch,
    StoryUpdate,
    SyncReport,
)
from ..query import DEFAULT_LIMIT, StoryQuery, apply_query
from ..utils import is_local_id, new_entity_id, new_local_id, utc_now
from .sync_orchestrator import ReadPlan, SyncOrchestrator

logger = logging.getLogger(__name__)

STORY = EntityKind.STORY


class StoryService:
    """
    Manages stories across the remote store and the local cache.

    Responsibilities:
    - CRUD with local fallback
    - Query views (search, popular, recent, by owner)
    - Like toggles and comment appends
    - Pushing pending local stories once the remote is reachable
    """

    def __init__(self, orchestrator: SyncOrchestrator, identity: IdentityProvider):
        self.orchestrator = orchestrator
        self.cache = orchestrator.cache
        self.remote = orchestrator.remote
        self.identity = identity

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_all(self) -> List[Story]:
        """All stories, in no particular order."""
        return await self.orchestrator.read(
            ReadPlan(
                remote=self.remote.list_stories,
                local=lambda: self.cache.get_all(STORY),
                on_remote=lambda stories: self.orchestrator.refresh_table(STORY, stories),
            )
        )

    async def get_by_id(self, story_id: str) -> Optional[Story]:
        """Return one story, or None if neither store has it."""
        if story_id in self.cache.tombstones():
            return None
        remote = None if is_local_id(story_id) else (lambda: self.remote.get_story(story_id))
        return await self.orchestrator.read(
            ReadPlan(
                remote=remote,
                local=lambda: self.cache.get_by_id(STORY, story_id),
                on_remote=lambda story: self.orchestrator.refresh_one(STORY, story),
                on_missing=lambda: self.orchestrator.evict_unless_pending(STORY, story_id),
            )
        )

    async def query(self, query: StoryQuery) -> List[Story]:
        """Run a structured query against whichever store is available."""

        def on_remote(stories: List[Story]) -> List[Story]:
            refreshed = self.orchestrator.refresh_records(STORY, stories)
            seen = {s.id for s in refreshed}
            # Pending local stories the remote does not know yet still count
            extra = [s for s in self.cache.pending(STORY) if s.id not in seen]
            return apply_query(refreshed + extra, query)

        return await self.orchestrator.read(
            ReadPlan(
                remote=lambda: self.remote.query_stories(query),
                local=lambda: apply_query(self.cache.get_all(STORY), query),
                on_remote=on_remote,
            )
        )

    async def get_by_owner(self, user_id: str) -> List[Story]:
        return await self.query(StoryQuery.by_owner(user_id))

    async def search(
        self,
        text: str = "",
        tags: Optional[List[str]] = None,
        author: Optional[str] = None,
        min_characters: Optional[int] = None,
        max_characters: Optional[int] = None,
    ) -> List[Story]:
        """Case-insensitive text search over title, content and tags, plus filters."""
        return await self.query(
            StoryQuery(
                text=text,
                tags=tags or [],
                author=author,
                min_characters=min_characters,
                max_characters=max_characters,
            )
        )

    async def get_popular(self, limit: int = DEFAULT_LIMIT) -> List[Story]:
        return await self.query(StoryQuery.popular(limit))

    async def get_recent(self, limit: int = DEFAULT_LIMIT) -> List[Story]:
        return await self.query(StoryQuery.recent(limit))

    async def _require(self, story_id: str) -> Story:
        story = await self.get_by_id(story_id)
        if story is None:
            raise EntityNotFoundError(STORY.value, story_id)
        return story

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def create(self, data: StoryCreate) -> Story:
        """Create a story, stamped with the acting user."""
        user = self.identity.current_user()
        now = utc_now()
        optimistic = Story(
            id=new_local_id(),
            title=data.title,
            content=data.content,
            author=data.author or user.display_name,
            user_id=user.user_id,
            tags=data.tags,
            created_at=now,
            updated_at=now,
        )
        story = await self.orchestrator.mutate(
            STORY, optimistic, lambda: self.remote.create_story(optimistic)
        )
        logger.info(f"Created story {story.id} (pending_sync={story.pending_sync})")
        return story

    @staticmethod
    def _full_patch(story: Story) -> StoryPatch:
        return StoryPatch(
            title=story.title,
            content=story.content,
            author=story.author,
            tags=story.tags,
            likes=story.likes,
            comments=story.comments,
        )

    async def _write(self, current: Story, patch: StoryPatch) -> Story:
        changes = patch.model_dump(exclude_unset=True, exclude_none=True)
        optimistic = Story.model_validate(
            {**current.model_dump(), **changes, "updated_at": utc_now()}
        )
        if current.pending_sync:
            # Unpushed local edits must travel with this write
            patch = self._full_patch(optimistic)
        remote_call = None if is_local_id(current.id) else (
            lambda: self.remote.update_story(current.id, patch)
        )
        return await self.orchestrator.mutate(STORY, optimistic, remote_call)

    async def update(self, story_id: str, changes: StoryUpdate) -> Story:
        """
        Apply field changes to a story.

        Raises:
            EntityNotFoundError: story exists in neither store
        """
        current = await self._require(story_id)
        patch = StoryPatch(**changes.model_dump(exclude_unset=True, exclude_none=True))
        return await self._write(current, patch)

    async def delete(self, story_id: str) -> None:
        """Delete a story. Local removal always happens; no error is surfaced."""
        remote_call = None if is_local_id(story_id) else (
            lambda: self.remote.delete_story(story_id)
        )
        confirmed = await self.orchestrator.remove(STORY, story_id, remote_call)
        if not confirmed:
            logger.info(f"Story {story_id} deleted locally, remote delete pending")

    async def toggle_like(self, story_id: str, user_id: Optional[str] = None) -> Story:
        """Add the user to the story's likes, or remove them if already present."""
        user_id = user_id or self.identity.current_user().user_id
        current = await self._require(story_id)
        if user_id in current.likes:
            likes = [uid for uid in current.likes if uid != user_id]
        else:
            likes = current.likes + [user_id]
        return await self._write(current, StoryPatch(likes=likes))

    async def add_comment(self, story_id: str, data: CommentCreate) -> Story:
        """Append a comment; the author name is snapshotted now."""
        user = self.identity.current_user()
        comment = Comment(
            id=new_entity_id(),
            user_id=data.user_id or user.user_id,
            user_name=data.user_name or user.display_name,
            content=data.content,
            created_at=utc_now(),
        )
        current = await self._require(story_id)
        return await self._write(current, StoryPatch(comments=current.comments + [comment]))

    # -------------------------------------------------------------------------
    # Reconciliation
    # -------------------------------------------------------------------------

    async def sync_pending(self) -> SyncReport:
        """
        Push local-only state to the remote store.

        Retries unconfirmed deletes, creates pending `local-` stories remotely
        (swapping in the server id), and pushes full field sets for other
        pending stories. Individual failures are counted, never raised.
        """
        if not self.orchestrator.is_reachable():
            return SyncReport(reachable=False)

        report = SyncReport(reachable=True)

        for story_id in self.cache.tombstones():
            try:
                await self.remote.delete_story(story_id)
            except RemoteNotFoundError:
                pass
            except RemoteStoreError as e:
                report.failed += 1
                report.errors.append(f"delete {story_id}: {e}")
                logger.warning(f"Pending delete of {story_id} failed: {e}")
                continue
            self.cache.clear_tombstone(story_id)
            report.deleted += 1

        for story in self.cache.pending(STORY):
            try:
                if is_local_id(story.id):
                    confirmed = await self.remote.create_story(story, preserve_timestamps=True)
                    report.id_changes[story.id] = confirmed.id
                else:
                    confirmed = await self.remote.update_story(story.id, self._full_patch(story))
            except RemoteStoreError as e:
                report.failed += 1
                report.errors.append(f"push {story.id}: {e}")
                logger.warning(f"Pending story {story.id} not pushed: {e}")
                continue
            confirmed = confirmed.model_copy(update={"pending_sync": False})
            self.cache.upsert(STORY, confirmed, replaces=story.id)
            report.pushed += 1

        report.synced_at = utc_now()
        logger.info(
            f"Story sync: {report.pushed} pushed, {report.deleted} deleted, {report.failed} failed"
        )
        return report
