"""
Draft Service

Unfinished stories kept on-device only. Drafts never reach the remote
store, so every call is synchronous and served by the local cache.
"""

import logging
from typing import List, Optional

from ..errors import EntityNotFoundError
from ..identity import IdentityProvider
from ..models import Draft, DraftCreate, DraftUpdate, EntityKind
from ..storage import LocalCacheStore
from ..utils import new_entity_id, utc_now

logger = logging.getLogger(__name__)

DRAFT = EntityKind.DRAFT


class DraftService:
    """Manages the local draft table."""

    def __init__(self, cache: LocalCacheStore, identity: IdentityProvider):
        self.cache = cache
        self.identity = identity

    def get_all(self) -> List[Draft]:
        return self.cache.get_all(DRAFT)

    def get_by_id(self, draft_id: str) -> Optional[Draft]:
        return self.cache.get_by_id(DRAFT, draft_id)

    def get_by_owner(self, user_id: str) -> List[Draft]:
        """A user's drafts, most recently edited first."""
        drafts = self.cache.filter(DRAFT, lambda d: d.user_id == user_id)
        return sorted(drafts, key=lambda d: d.updated_at, reverse=True)

    def create(self, data: DraftCreate) -> Draft:
        user = self.identity.current_user()
        now = utc_now()
        draft = Draft(
            id=new_entity_id(),
            title=data.title,
            content=data.content,
            author=data.author or user.display_name,
            user_id=user.user_id,
            tags=data.tags,
            created_at=now,
            updated_at=now,
        )
        self.cache.upsert(DRAFT, draft)
        logger.debug(f"Saved draft {draft.id}")
        return draft

    def update(self, draft_id: str, changes: DraftUpdate) -> Draft:
        """
        Apply field changes to a draft.

        Raises:
            EntityNotFoundError: no draft with this id
        """
        current = self.cache.get_by_id(DRAFT, draft_id)
        if current is None:
            raise EntityNotFoundError(DRAFT.value, draft_id)
        updated = Draft.model_validate(
            {
                **current.model_dump(),
                **changes.model_dump(exclude_unset=True, exclude_none=True),
                "updated_at": utc_now(),
            }
        )
        return self.cache.upsert(DRAFT, updated)

    def delete(self, draft_id: str) -> bool:
        """Remove a draft (e.g. after publishing it). Absent ids are a no-op."""
        return self.cache.delete(DRAFT, draft_id)
