"""
Migration Runner

One-time import of stories written by the pre-sync client, which kept
everything in a single local table. Each legacy record is created
remotely unless a story with the same id already exists there.

The remote assigns fresh ids, so the ids of processed legacy records are
remembered under MIGRATION_STATE_KEY; repeated runs never create
duplicates and only retry records that failed before.
"""

import logging
from typing import List

from ..codec import decode
from ..errors import CodecError, LocalCorruptionError, RemoteNotFoundError, RemoteStoreError
from ..models import EntityKind, MigrationReport, Story
from .sync_orchestrator import SyncOrchestrator

logger = logging.getLogger(__name__)

LEGACY_STORY_KEY = "mystery-novels"
MIGRATION_STATE_KEY = "migration-state"


class MigrationRunner:
    """Copies legacy local-only stories into the remote store."""

    def __init__(self, orchestrator: SyncOrchestrator, legacy_key: str = LEGACY_STORY_KEY):
        self.orchestrator = orchestrator
        self.cache = orchestrator.cache
        self.remote = orchestrator.remote
        self.legacy_key = legacy_key

    def _processed(self) -> set:
        state = self.cache.get_meta(MIGRATION_STATE_KEY, {})
        return set(state.get(self.legacy_key, [])) if isinstance(state, dict) else set()

    def _mark_processed(self, legacy_id: str) -> None:
        state = self.cache.get_meta(MIGRATION_STATE_KEY, {})
        if not isinstance(state, dict):
            state = {}
        done = state.setdefault(self.legacy_key, [])
        if legacy_id not in done:
            done.append(legacy_id)
        self.cache.set_meta(MIGRATION_STATE_KEY, state)

    def _valid_legacy_stories(self) -> List[Story]:
        stories = []
        for raw in self.cache.read_records(self.legacy_key):
            try:
                stories.append(decode(EntityKind.STORY, raw))
            except CodecError:
                continue
        return stories

    def has_pending_work(self) -> bool:
        """True if the legacy table holds valid records not yet processed."""
        processed = self._processed()
        return any(story.id not in processed for story in self._valid_legacy_stories())

    async def _exists_remotely(self, story_id: str) -> bool:
        try:
            await self.remote.get_story(story_id)
        except RemoteNotFoundError:
            return False
        return True

    def _cache_migrated(self, created: Story) -> None:
        try:
            self.cache.upsert(EntityKind.STORY, created.model_copy(update={"pending_sync": False}))
        except LocalCorruptionError as e:
            logger.error(f"Migrated story {created.id} not cached, local cache is unusable: {e}")

    async def run(self) -> MigrationReport:
        """
        Migrate every unprocessed legacy story.

        Per-record failures (malformed records included) are logged and
        counted; the run continues.

        Raises:
            LocalCorruptionError: the legacy table is not a JSON list
        """
        report = MigrationReport()
        if not self.orchestrator.is_reachable():
            logger.info("Remote store unreachable, migration deferred")
            return report

        legacy = self.cache.read_records(self.legacy_key)
        if not legacy:
            return report

        processed = self._processed()
        logger.info(f"Migrating {len(legacy)} legacy stories from '{self.legacy_key}'")

        for raw in legacy:
            try:
                # Decoding applies the timestamp and author-name repairs
                story = decode(EntityKind.STORY, raw)
            except CodecError as e:
                legacy_id = raw.get("id") if isinstance(raw, dict) else None
                logger.error(f"Skipping malformed legacy story {legacy_id}: {e}")
                report.failed += 1
                report.errors.append(f"{legacy_id}: {e}")
                continue

            if story.id in processed:
                report.skipped += 1
                continue
            try:
                exists = await self._exists_remotely(story.id)
                created = None if exists else await self.remote.create_story(story, preserve_timestamps=True)
            except RemoteStoreError as e:
                logger.error(f"Failed to migrate story '{story.title}' ({story.id}): {e}")
                report.failed += 1
                report.errors.append(f"{story.id}: {e}")
                continue

            # Recorded before caching: a created copy now exists under a new id
            self._mark_processed(story.id)
            if created is None:
                logger.info(f"Story '{story.title}' ({story.id}) already exists remotely, skipping")
                report.skipped += 1
            else:
                logger.info(f"Migrated story '{story.title}' ({story.id} -> {created.id})")
                report.migrated += 1
                self._cache_migrated(created)

        logger.info(
            f"Migration finished: {report.migrated} migrated, "
            f"{report.skipped} skipped, {report.failed} failed"
        )
        return report
