"""
User Profile API Endpoints

Profiles are keyed by uid and written with a merge-upsert.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import BaseModel

from story_sync.api.deps import get_remote_store
from story_sync.codec import decode
from story_sync.errors import CodecError, RemoteNotFoundError
from story_sync.models import EntityKind, UserProfile
from story_sync.remote import InMemoryRemoteStore

router = APIRouter(prefix="/api/profiles", tags=["profiles"])


class ProfileListResponse(BaseModel):
    profiles: List[UserProfile]
    total: int


@router.get("", response_model=ProfileListResponse)
async def list_profiles(store: InMemoryRemoteStore = Depends(get_remote_store)):
    profiles = await store.list_profiles()
    return ProfileListResponse(profiles=profiles, total=len(profiles))


@router.get("/{uid}", response_model=UserProfile)
async def get_profile(uid: str, store: InMemoryRemoteStore = Depends(get_remote_store)):
    try:
        return await store.get_profile(uid)
    except RemoteNotFoundError:
        raise HTTPException(status_code=404, detail="Profile not found")


@router.put("/{uid}", response_model=UserProfile)
async def upsert_profile(
    uid: str,
    payload: Dict[str, Any] = Body(...),
    store: InMemoryRemoteStore = Depends(get_remote_store),
):
    """Create the profile if absent, else replace its fields (createdAt is kept)."""
    try:
        profile = decode(EntityKind.PROFILE, {**payload, "uid": uid})
    except CodecError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return await store.upsert_profile(profile)
