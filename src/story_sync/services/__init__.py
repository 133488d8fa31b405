"""Story Sync Services."""

from .draft_service import DraftService
from .migration import LEGACY_STORY_KEY, MIGRATION_STATE_KEY, MigrationRunner
from .profile_service import UserProfileService
from .story_service import StoryService
from .sync_orchestrator import ReadPlan, SyncOrchestrator

__all__ = [
    "DraftService",
    "LEGACY_STORY_KEY",
    "MIGRATION_STATE_KEY",
    "MigrationRunner",
    "ReadPlan",
    "StoryService",
    "SyncOrchestrator",
    "UserProfileService",
]
