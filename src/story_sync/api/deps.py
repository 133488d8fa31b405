"""
FastAPI Dependency Injection

Provides the store behind the reference backend. Tests replace it through
app.dependency_overrides.
"""

from typing import Optional

from story_sync.remote import InMemoryRemoteStore

_store: Optional[InMemoryRemoteStore] = None


def get_remote_store() -> InMemoryRemoteStore:
    """
    FastAPI dependency for the backing store.

    Usage in endpoints:
        @router.get("/items")
        async def list_items(store = Depends(get_remote_store)):
            return await store.list_stories()
    """
    global _store
    if _store is None:
        _store = InMemoryRemoteStore()
    return _store
