"""
Sync Session Tests

Session wiring, the run-once migration and combined sync.
Run with: pytest tests/test_session.py -v
"""

import json

import pytest

from story_sync.config import SyncConfig
from story_sync.connectivity import HttpConnectivityProbe, StaticConnectivity
from story_sync.models import StoryCreate, UserProfileForm
from story_sync.remote import HttpRemoteStore, InMemoryRemoteStore
from story_sync.session import SyncSession


class TestOpen:
    @pytest.mark.asyncio
    async def test_open_runs_migration_once(self, session, substrate, remote):
        substrate.set("mystery-novels", json.dumps([{"id": "a", "title": "t", "content": "c"}]))

        first = await session.open()
        second = await session.open()

        assert first.migrated == 1
        assert second is None
        assert len(remote.stories) == 1

    @pytest.mark.asyncio
    async def test_open_offline_defers_migration(self, session, connectivity, substrate, remote):
        substrate.set("mystery-novels", json.dumps([{"id": "a", "title": "t", "content": "c"}]))
        connectivity.set_reachable(False)

        assert await session.open() is None
        assert session.migration_done is False

        connectivity.set_reachable(True)
        await session.sync()

        assert session.migration_done is True
        assert len(remote.stories) == 1


class TestSync:
    @pytest.mark.asyncio
    async def test_sync_pushes_stories_and_profiles(self, session, connectivity):
        connectivity.set_reachable(False)
        await session.stories.create(StoryCreate(title="A", content="b"))
        await session.profiles.upsert("u1", "a@example.com", UserProfileForm(display_name="花子"))
        connectivity.set_reachable(True)

        report = await session.sync()

        assert report.pushed == 2
        assert report.failed == 0
        assert session.status()["pending_stories"] == 0
        assert session.status()["pending_profiles"] == 0

    @pytest.mark.asyncio
    async def test_sync_offline(self, session, connectivity):
        connectivity.set_reachable(False)

        report = await session.sync()

        assert report.reachable is False


class TestStatus:
    @pytest.mark.asyncio
    async def test_counts(self, session, connectivity):
        connectivity.set_reachable(False)
        await session.stories.create(StoryCreate(title="A", content="b"))
        await session.stories.delete("srv-x")

        status = session.status()

        assert status["reachable"] is False
        assert status["pending_stories"] == 1
        assert status["pending_deletes"] == 1


class TestFromConfig:
    def test_offline_without_api_url(self, tmp_path):
        session = SyncSession.from_config(SyncConfig(cache_dir=tmp_path))

        assert isinstance(session.remote, InMemoryRemoteStore)
        assert isinstance(session.connectivity, StaticConnectivity)
        assert session.connectivity.is_reachable() is False

    def test_http_stack_with_api_url(self, tmp_path):
        config = SyncConfig(
            api_url="http://localhost:8000",
            health_url="http://localhost:8000/health",
            cache_dir=tmp_path,
            user_id="u7",
            user_name="七",
        )

        session = SyncSession.from_config(config)

        assert isinstance(session.remote, HttpRemoteStore)
        assert isinstance(session.connectivity, HttpConnectivityProbe)
        assert session.identity.current_user().user_id == "u7"
