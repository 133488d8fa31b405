"""
User Profile Service

One profile per user, upserted through the Sync Orchestrator with the same
local fallback as stories. Profiles have no delete operation.
"""

import logging
from typing import List, Optional

from ..errors import EntityNotFoundError, RemoteStoreError
from ..models import EntityKind, SyncReport, UserProfile, UserProfileForm, UserProfileUpdate
from ..utils import utc_now
from .sync_orchestrator import ReadPlan, SyncOrchestrator

logger = logging.getLogger(__name__)

PROFILE = EntityKind.PROFILE


class UserProfileService:
    """Manages user profiles across the remote store and the local cache."""

    def __init__(self, orchestrator: SyncOrchestrator):
        self.orchestrator = orchestrator
        self.cache = orchestrator.cache
        self.remote = orchestrator.remote

    async def get_all(self) -> List[UserProfile]:
        return await self.orchestrator.read(
            ReadPlan(
                remote=self.remote.list_profiles,
                local=lambda: self.cache.get_all(PROFILE),
                on_remote=lambda profiles: self.orchestrator.refresh_table(PROFILE, profiles),
            )
        )

    async def get_by_id(self, uid: str) -> Optional[UserProfile]:
        return await self.orchestrator.read(
            ReadPlan(
                remote=lambda: self.remote.get_profile(uid),
                local=lambda: self.cache.get_by_id(PROFILE, uid),
                on_remote=lambda profile: self.orchestrator.refresh_one(PROFILE, profile),
                on_missing=lambda: self.orchestrator.evict_unless_pending(PROFILE, uid),
            )
        )

    async def _save(self, profile: UserProfile) -> UserProfile:
        return await self.orchestrator.mutate(
            PROFILE, profile, lambda: self.remote.upsert_profile(profile)
        )

    async def upsert(self, uid: str, email: str, form: UserProfileForm) -> UserProfile:
        """
        Create the profile if absent, else merge the form into it.

        email is only recorded when the profile is created.
        """
        now = utc_now()
        current = await self.get_by_id(uid)
        if current is None:
            profile = UserProfile(
                uid=uid,
                email=email,
                display_name=form.display_name,
                favorite_genre=form.favorite_genre,
                bio=form.bio or "",
                favorite_author=form.favorite_author or "",
                created_at=now,
                updated_at=now,
            )
            logger.info(f"Creating profile for {uid}")
        else:
            profile = current.model_copy(
                update={**form.model_dump(exclude_none=True), "updated_at": now}
            )
        return await self._save(profile)

    async def update(self, uid: str, changes: UserProfileUpdate) -> UserProfile:
        """
        Merge changes into an existing profile.

        Raises:
            EntityNotFoundError: no profile for uid in either store
        """
        current = await self.get_by_id(uid)
        if current is None:
            raise EntityNotFoundError(PROFILE.value, uid)
        profile = current.model_copy(
            update={**changes.model_dump(exclude_unset=True, exclude_none=True), "updated_at": utc_now()}
        )
        return await self._save(profile)

    async def sync_pending(self) -> SyncReport:
        """Push profiles saved while the remote was unavailable."""
        if not self.orchestrator.is_reachable():
            return SyncReport(reachable=False)

        report = SyncReport(reachable=True)
        for profile in self.cache.pending(PROFILE):
            try:
                confirmed = await self.remote.upsert_profile(profile)
            except RemoteStoreError as e:
                report.failed += 1
                report.errors.append(f"profile {profile.uid}: {e}")
                logger.warning(f"Pending profile {profile.uid} not pushed: {e}")
                continue
            self.cache.upsert(PROFILE, confirmed.model_copy(update={"pending_sync": False}))
            report.pushed += 1
        report.synced_at = utc_now()
        return report
