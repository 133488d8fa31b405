"""
Story API Endpoints

CRUD and query endpoints for stories. Request and response bodies use the
camelCase wire format produced by story_sync.codec.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response
from pydantic import BaseModel

from story_sync.api.deps import get_remote_store
from story_sync.codec import decode
from story_sync.errors import CodecError, RemoteNotFoundError
from story_sync.models import EntityKind, Story, StoryPatch
from story_sync.query import StoryOrder, StoryQuery
from story_sync.remote import InMemoryRemoteStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stories", tags=["stories"])


class StoryListResponse(BaseModel):
    stories: List[Story]
    total: int


@router.get("", response_model=StoryListResponse)
async def list_stories(store: InMemoryRemoteStore = Depends(get_remote_store)):
    """List every story."""
    stories = await store.list_stories()
    return StoryListResponse(stories=stories, total=len(stories))


@router.get("/search", response_model=StoryListResponse)
async def search_stories(
    q: str = Query(default="", description="Case-insensitive match on title, content and tags"),
    tags: List[str] = Query(default=[], description="Match any of these tags"),
    author: Optional[str] = Query(default=None),
    user_id: Optional[str] = Query(default=None, alias="userId"),
    min_characters: Optional[int] = Query(default=None, ge=0, alias="minCharacters"),
    max_characters: Optional[int] = Query(default=None, ge=0, alias="maxCharacters"),
    order_by: StoryOrder = Query(default=StoryOrder.CREATED_AT, alias="orderBy"),
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    store: InMemoryRemoteStore = Depends(get_remote_store),
):
    """Filter and order stories (descending)."""
    query = StoryQuery(
        text=q,
        tags=tags,
        author=author,
        user_id=user_id,
        min_characters=min_characters,
        max_characters=max_characters,
        order_by=order_by,
        limit=limit,
    )
    stories = await store.query_stories(query)
    return StoryListResponse(stories=stories, total=len(stories))


@router.get("/{story_id}", response_model=Story)
async def get_story(story_id: str, store: InMemoryRemoteStore = Depends(get_remote_store)):
    try:
        return await store.get_story(story_id)
    except RemoteNotFoundError:
        raise HTTPException(status_code=404, detail="Story not found")


@router.post("", response_model=Story, status_code=201)
async def create_story(
    payload: Dict[str, Any] = Body(...),
    preserve_timestamps: bool = Query(default=False, alias="preserveTimestamps"),
    store: InMemoryRemoteStore = Depends(get_remote_store),
):
    """
    Create a story from a wire record.

    The client id is replaced by a server id. Timestamps are reset to now
    unless preserveTimestamps=true (used by migration and offline sync).
    """
    try:
        story = decode(EntityKind.STORY, payload)
    except CodecError as e:
        raise HTTPException(status_code=422, detail=str(e))
    created = await store.create_story(story, preserve_timestamps=preserve_timestamps)
    logger.info(f"Created story {created.id} (client id {story.id})")
    return created


@router.patch("/{story_id}", response_model=Story)
async def update_story(
    story_id: str,
    patch: StoryPatch,
    store: InMemoryRemoteStore = Depends(get_remote_store),
):
    """Apply a partial update. Omitted fields are left untouched."""
    try:
        return await store.update_story(story_id, patch)
    except RemoteNotFoundError:
        raise HTTPException(status_code=404, detail="Story not found")


@router.delete("/{story_id}", status_code=204)
async def delete_story(story_id: str, store: InMemoryRemoteStore = Depends(get_remote_store)):
    try:
        await store.delete_story(story_id)
    except RemoteNotFoundError:
        raise HTTPException(status_code=404, detail="Story not found")
    return Response(status_code=204)
