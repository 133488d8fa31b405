"""Shared helpers: clock, id generation and anonymous-user constants."""

import time
from datetime import datetime, timezone
from uuid import uuid4

# Owner id and display name stamped on records with no known author
ANONYMOUS_USER_ID = "anonymous"
ANONYMOUS_AUTHOR = "匿名ユーザー"

# Author name the pre-sync composer left in place when the user never typed one
LEGACY_PLACEHOLDER_AUTHOR = "あなたの名前"

# Ids with this prefix were minted on-device and never reached the remote store
LOCAL_ID_PREFIX = "local-"


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_local_id() -> str:
    """Generate a story id for a record created before remote confirmation."""
    return f"{LOCAL_ID_PREFIX}{int(time.time() * 1000)}-{uuid4().hex[:9]}"


def is_local_id(entity_id: str) -> bool:
    return entity_id.startswith(LOCAL_ID_PREFIX)


def new_entity_id() -> str:
    """Generate an id for drafts and comments, which are never re-keyed."""
    return uuid4().hex
