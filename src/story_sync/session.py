"""
Sync Session

The one object built at session start. It owns the local cache, the remote
adapter and the services, so nothing in the package reaches for ambient
module-level storage.
"""

import logging
from typing import Optional

from .config import SyncConfig
from .connectivity import ConnectivityOracle, HttpConnectivityProbe, StaticConnectivity
from .identity import IdentityProvider, StaticIdentity
from .models import EntityKind, MigrationReport, SyncReport
from .remote import HttpRemoteStore, InMemoryRemoteStore, RemoteStore
from .services import (
    DraftService,
    MigrationRunner,
    StoryService,
    SyncOrchestrator,
    UserProfileService,
)
from .storage import FileKeyValueStore, KeyValueSubstrate, LocalCacheStore

logger = logging.getLogger(__name__)


class SyncSession:
    """Wires the stores and services together for one user session."""

    def __init__(
        self,
        substrate: KeyValueSubstrate,
        remote: RemoteStore,
        connectivity: ConnectivityOracle,
        identity: IdentityProvider,
        legacy_key: Optional[str] = None,
    ):
        self.cache = LocalCacheStore(substrate)
        self.remote = remote
        self.connectivity = connectivity
        self.identity = identity
        self.orchestrator = SyncOrchestrator(self.cache, remote, connectivity)
        self.stories = StoryService(self.orchestrator, identity)
        self.drafts = DraftService(self.cache, identity)
        self.profiles = UserProfileService(self.orchestrator)
        if legacy_key:
            self.migration = MigrationRunner(self.orchestrator, legacy_key)
        else:
            self.migration = MigrationRunner(self.orchestrator)
        self.migration_done = False

    @classmethod
    def from_config(cls, config: SyncConfig) -> "SyncSession":
        """Build a session from settings; without an API URL the session is offline."""
        substrate = FileKeyValueStore(config.cache_dir)
        identity = StaticIdentity(config.user_id, config.user_name)
        if config.api_url:
            remote = HttpRemoteStore(config.api_url, token=config.api_token, timeout=config.timeout)
            connectivity = HttpConnectivityProbe(
                config.health_url,
                timeout=config.connect_timeout,
                ttl=config.connectivity_ttl,
            )
        else:
            logger.warning("STORY_SYNC_API_URL not set, running offline")
            remote = InMemoryRemoteStore()
            connectivity = StaticConnectivity(False)
        return cls(substrate, remote, connectivity, identity, legacy_key=config.legacy_key)

    async def _migrate_once(self) -> Optional[MigrationReport]:
        if self.migration_done or not self.connectivity.is_reachable():
            return None
        report = await self.migration.run()
        # Failed records stay unprocessed and are retried on the next session
        self.migration_done = True
        return report

    async def open(self) -> Optional[MigrationReport]:
        """Run the legacy migration before first read, if the remote is reachable."""
        return await self._migrate_once()

    async def sync(self) -> SyncReport:
        """Run a deferred migration, then push pending stories and profiles."""
        await self._migrate_once()
        report = await self.stories.sync_pending()
        if not report.reachable:
            return report
        profile_report = await self.profiles.sync_pending()
        report.pushed += profile_report.pushed
        report.failed += profile_report.failed
        report.errors.extend(profile_report.errors)
        return report

    def status(self) -> dict:
        """Reachability and local backlog counts."""
        return {
            "reachable": self.connectivity.is_reachable(),
            "pending_stories": len(self.cache.pending(EntityKind.STORY)),
            "pending_profiles": len(self.cache.pending(EntityKind.PROFILE)),
            "pending_deletes": len(self.cache.tombstones()),
            "drafts": len(self.cache.get_all(EntityKind.DRAFT)),
            "migration_done": self.migration_done,
        }
