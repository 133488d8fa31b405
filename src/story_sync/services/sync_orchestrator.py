"""
Sync Orchestrator

Decides, per operation, whether the remote store or the local cache
serves it. This is the single place where remote failures are turned into
the local fallback path; services describe what to call, never how to
recover.

Mutations:
1. The caller builds the optimistic entity.
2. If the remote is reachable, the remote call runs. Its result is
   authoritative: cached with pending_sync=False, replacing the optimistic
   copy (and its local id).
3. Otherwise, or when the remote call raises a RemoteStoreError, the
   optimistic entity is cached with pending_sync=True and returned.

Reads go to the remote when reachable (refreshing the cache from the
response) and degrade to the cached snapshot on any remote failure.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, List, Optional

from ..codec import Entity, entity_id
from ..connectivity import ConnectivityOracle
from ..errors import LocalCorruptionError, RemoteNotFoundError, RemoteStoreError
from ..models import EntityKind
from ..remote import RemoteStore
from ..storage import LocalCacheStore

logger = logging.getLogger(__name__)


@dataclass
class ReadPlan:
    """
    Ordered strategies for one read.

    remote: coroutine factory for the remote read (None skips the remote)
    local: cache read used when the remote is unreachable or fails
    on_remote: turns the remote result into the caller's result, refreshing
        the cache on the way
    on_missing: handles a remote not-found (defaults to the local read)
    """

    remote: Optional[Callable[[], Awaitable[Any]]]
    local: Callable[[], Any]
    on_remote: Optional[Callable[[Any], Any]] = None
    on_missing: Optional[Callable[[], Any]] = None


class SyncOrchestrator:
    """Stateless coordinator over the local cache and the remote store."""

    def __init__(
        self,
        cache: LocalCacheStore,
        remote: RemoteStore,
        connectivity: ConnectivityOracle,
    ):
        self.cache = cache
        self.remote = remote
        self.connectivity = connectivity

    def is_reachable(self) -> bool:
        return self.connectivity.is_reachable()

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def mutate(
        self,
        kind: EntityKind,
        optimistic: Entity,
        remote_call: Optional[Callable[[], Awaitable[Entity]]],
    ) -> Entity:
        """
        Apply one mutation through the remote-then-local protocol.

        Args:
            optimistic: entity as it should look after the mutation
            remote_call: coroutine factory performing the remote write, or
                None when the entity cannot exist remotely yet

        Returns:
            The confirmed entity (pending_sync False) or the optimistic one
            (pending_sync True)
        """
        if remote_call is not None and self.is_reachable():
            try:
                confirmed = await remote_call()
            except RemoteStoreError as e:
                logger.warning(
                    f"Remote {kind.value} write failed ({e.kind.value}), "
                    f"keeping {entity_id(optimistic)} locally: {e}"
                )
            else:
                confirmed = confirmed.model_copy(update={"pending_sync": False})
                try:
                    return self.cache.upsert(kind, confirmed, replaces=entity_id(optimistic))
                except LocalCorruptionError as e:
                    logger.error(f"Remote write succeeded but local cache is unusable: {e}")
                    return confirmed

        pending = optimistic
        if hasattr(optimistic, "pending_sync"):
            pending = optimistic.model_copy(update={"pending_sync": True})
        return self.cache.upsert(kind, pending)

    async def remove(
        self,
        kind: EntityKind,
        id: str,
        remote_call: Optional[Callable[[], Awaitable[None]]],
    ) -> bool:
        """
        Delete locally, attempting the remote delete first when possible.

        The local copy is removed whatever the remote outcome. An unconfirmed
        story delete is recorded as a tombstone so reads keep hiding the
        record and a later sync can retry it.

        Returns:
            True if the remote delete was confirmed (or not needed)
        """
        confirmed = remote_call is None
        if remote_call is not None and self.is_reachable():
            try:
                await remote_call()
                confirmed = True
            except RemoteNotFoundError:
                confirmed = True
            except RemoteStoreError as e:
                logger.warning(f"Remote delete of {kind.value} {id} failed ({e.kind.value}): {e}")

        if not confirmed and kind is EntityKind.STORY:
            self.cache.add_tombstone(id)
        self.cache.delete(kind, id)
        return confirmed

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def read(self, plan: ReadPlan) -> Any:
        """Run a read plan: remote first when reachable, cached snapshot otherwise."""
        if plan.remote is not None and self.is_reachable():
            try:
                result = await plan.remote()
            except RemoteNotFoundError:
                if plan.on_missing is not None:
                    return plan.on_missing()
                return plan.local()
            except RemoteStoreError as e:
                logger.warning(f"Remote read failed ({e.kind.value}), serving cached copy: {e}")
                return plan.local()

            if plan.on_remote is None:
                return result
            try:
                return plan.on_remote(result)
            except LocalCorruptionError as e:
                logger.error(f"Serving remote result without caching: {e}")
                return result

        return plan.local()

    # -------------------------------------------------------------------------
    # Cache refresh helpers
    # -------------------------------------------------------------------------

    def _hidden_ids(self, kind: EntityKind) -> set:
        if kind is EntityKind.STORY:
            return set(self.cache.tombstones())
        return set()

    def refresh_table(self, kind: EntityKind, records: Iterable[Entity]) -> List[Entity]:
        """
        Rewrite a cache table from a full remote listing.

        Pending local versions win by id and pending-only records are kept;
        tombstoned ids are dropped.
        """
        hidden = self._hidden_ids(kind)
        pending = {entity_id(e): e for e in self.cache.pending(kind)}
        merged = {}
        for record in records:
            key = entity_id(record)
            if key not in hidden:
                merged[key] = pending.get(key, record)
        for key, record in pending.items():
            merged.setdefault(key, record)
        self.cache.replace_all(kind, merged.values())
        return list(merged.values())

    def refresh_records(self, kind: EntityKind, records: Iterable[Entity]) -> List[Entity]:
        """
        Fold a partial remote result into the cache in one write.

        Cached pending copies are kept (and returned in place of the remote
        version); tombstoned ids are dropped from the result.
        """
        hidden = self._hidden_ids(kind)
        table = {entity_id(e): e for e in self.cache.get_all(kind)}
        result = []
        for record in records:
            key = entity_id(record)
            if key in hidden:
                continue
            cached = table.get(key)
            if cached is not None and getattr(cached, "pending_sync", False):
                result.append(cached)
                continue
            table[key] = record
            result.append(record)
        self.cache.replace_all(kind, table.values())
        return result

    def refresh_one(self, kind: EntityKind, record: Entity) -> Optional[Entity]:
        refreshed = self.refresh_records(kind, [record])
        return refreshed[0] if refreshed else None

    def evict_unless_pending(self, kind: EntityKind, id: str) -> Optional[Entity]:
        """Handle a remote not-found: keep a pending local copy, drop a stale one."""
        cached = self.cache.get_by_id(kind, id)
        if cached is not None and getattr(cached, "pending_sync", False):
            return cached
        if cached is not None:
            logger.info(f"{kind.value} {id} no longer exists remotely, evicting cached copy")
            self.cache.delete(kind, id)
        return None
