"""
HTTP remote store client.

Async client for the story backend's REST contract (see story_sync.api).
Uses aiohttp, one session per call, and maps every failure onto the
RemoteStoreError family:

- connection errors, timeouts, 502/503/504 -> RemoteUnreachableError
- 401/403 -> RemotePermissionError
- 404 -> RemoteNotFoundError
- any other failure -> RemoteStoreError

No retries: retry and fallback policy belongs to the Sync Orchestrator.
"""

import asyncio
import logging
from typing import Any, List, Optional

import aiohttp

from ..codec import decode, encode
from ..errors import (
    CodecError,
    RemoteNotFoundError,
    RemotePermissionError,
    RemoteStoreError,
    RemoteUnreachableError,
)
from ..models import EntityKind, Story, StoryPatch, UserProfile
from ..query import StoryQuery

logger = logging.getLogger(__name__)


class HttpRemoteStore:
    """RemoteStore implementation over HTTP."""

    # (connect_timeout, read_timeout) in seconds
    DEFAULT_TIMEOUT = (5, 15)

    UNAVAILABLE_STATUS_CODES = {502, 503, 504}
    PERMISSION_STATUS_CODES = {401, 403}

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: Optional[tuple] = None,
    ):
        if not base_url:
            raise ValueError("base_url is required")
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout or self.DEFAULT_TIMEOUT

    def _get_aiohttp_session(self) -> aiohttp.ClientSession:
        """Create an aiohttp session with auth headers and bounded timeouts."""
        timeout = aiohttp.ClientTimeout(
            connect=self.timeout[0],
            sock_read=self.timeout[1],
            total=self.timeout[0] + self.timeout[1],
        )
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return aiohttp.ClientSession(timeout=timeout, headers=headers)

    @classmethod
    def _error_for_status(cls, status: int, message: str) -> RemoteStoreError:
        if status in cls.UNAVAILABLE_STATUS_CODES:
            return RemoteUnreachableError(message, status=status)
        if status in cls.PERMISSION_STATUS_CODES:
            return RemotePermissionError(message, status=status)
        if status == 404:
            return RemoteNotFoundError(message, status=status)
        return RemoteStoreError(message, status=status)

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Any] = None,
        json_data: Optional[dict] = None,
    ) -> Any:
        """
        Make one HTTP request and return the parsed JSON body.

        Returns None for 204 responses.

        Raises:
            RemoteStoreError: (or a subclass) on any failure
        """
        url = f"{self.base_url}{endpoint}"
        try:
            async with self._get_aiohttp_session() as session:
                async with session.request(method, url, params=params, json=json_data) as response:
                    if response.status >= 400:
                        body = await response.text()
                        logger.debug(f"{method} {endpoint} -> {response.status}: {body[:200]}")
                        raise self._error_for_status(
                            response.status,
                            f"{method} {endpoint} failed with status {response.status}",
                        )
                    if response.status == 204:
                        return None
                    try:
                        return await response.json()
                    except (aiohttp.ContentTypeError, ValueError) as e:
                        raise RemoteStoreError(
                            f"{method} {endpoint} returned an undecodable body: {e}",
                            status=response.status,
                        ) from e
        except (aiohttp.ClientConnectionError, asyncio.TimeoutError) as e:
            raise RemoteUnreachableError(f"{method} {endpoint} unreachable: {e}") from e
        except aiohttp.ClientError as e:
            raise RemoteStoreError(f"{method} {endpoint} failed: {e}") from e

    @staticmethod
    def _decode(kind: EntityKind, record: Any):
        try:
            return decode(kind, record)
        except CodecError as e:
            raise RemoteStoreError(f"Backend returned an invalid {kind.value}: {e}") from e

    def _decode_list(self, kind: EntityKind, payload: Any, field: str) -> list:
        if not isinstance(payload, dict) or not isinstance(payload.get(field), list):
            raise RemoteStoreError(f"Expected an object with a '{field}' list")
        return [self._decode(kind, r) for r in payload[field]]

    # -------------------------------------------------------------------------
    # Stories
    # -------------------------------------------------------------------------

    async def list_stories(self) -> List[Story]:
        payload = await self._request("GET", "/api/stories")
        return self._decode_list(EntityKind.STORY, payload, "stories")

    async def get_story(self, story_id: str) -> Story:
        payload = await self._request("GET", f"/api/stories/{story_id}")
        return self._decode(EntityKind.STORY, payload)

    async def create_story(self, story: Story, preserve_timestamps: bool = False) -> Story:
        params = {"preserveTimestamps": "true"} if preserve_timestamps else None
        payload = await self._request("POST", "/api/stories", params=params, json_data=encode(story))
        return self._decode(EntityKind.STORY, payload)

    async def update_story(self, story_id: str, patch: StoryPatch) -> Story:
        body = patch.model_dump(mode="json", by_alias=True, exclude_unset=True, exclude_none=True)
        payload = await self._request("PATCH", f"/api/stories/{story_id}", json_data=body)
        return self._decode(EntityKind.STORY, payload)

    async def delete_story(self, story_id: str) -> None:
        await self._request("DELETE", f"/api/stories/{story_id}")

    async def query_stories(self, query: StoryQuery) -> List[Story]:
        payload = await self._request("GET", "/api/stories/search", params=query.to_params())
        return self._decode_list(EntityKind.STORY, payload, "stories")

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------

    async def list_profiles(self) -> List[UserProfile]:
        payload = await self._request("GET", "/api/profiles")
        return self._decode_list(EntityKind.PROFILE, payload, "profiles")

    async def get_profile(self, uid: str) -> UserProfile:
        payload = await self._request("GET", f"/api/profiles/{uid}")
        return self._decode(EntityKind.PROFILE, payload)

    async def upsert_profile(self, profile: UserProfile) -> UserProfile:
        payload = await self._request("PUT", f"/api/profiles/{profile.uid}", json_data=encode(profile))
        return self._decode(EntityKind.PROFILE, payload)
