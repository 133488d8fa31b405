"""
Migration Runner Tests

Legacy local stories are copied to the remote store once, without
duplicates and without overwriting existing remote records.
Run with: pytest tests/test_migration.py -v
"""

import json

import pytest

from story_sync.errors import LocalCorruptionError, RemoteUnreachableError
from story_sync.models import EntityKind, Story
from story_sync.services import MIGRATION_STATE_KEY, MigrationRunner
from story_sync.utils import ANONYMOUS_AUTHOR


def legacy_record(id, **fields):
    record = {"id": id, "title": f"title-{id}", "content": "本文"}
    record.update(fields)
    return record


@pytest.fixture
def runner(orchestrator):
    return MigrationRunner(orchestrator)


@pytest.fixture
def legacy(substrate):
    def write(*records):
        substrate.set("mystery-novels", json.dumps(list(records), ensure_ascii=False))
    return write


class TestMigrationRunner:
    @pytest.mark.asyncio
    async def test_no_legacy_table(self, runner, remote):
        report = await runner.run()

        assert report.total == 0
        assert remote.stories == {}

    @pytest.mark.asyncio
    async def test_migrates_records_with_repairs(self, runner, remote, legacy, cache):
        legacy(legacy_record("old-1", author="あなたの名前", createdAt="2023-02-01T00:00:00.000Z"))

        report = await runner.run()

        assert report.migrated == 1
        (created,) = remote.stories.values()
        assert created["author"] == ANONYMOUS_AUTHOR
        assert created["createdAt"].startswith("2023-02-01")
        stored = cache.get_by_id(EntityKind.STORY, created["id"])
        assert stored.pending_sync is False

    @pytest.mark.asyncio
    async def test_existing_remote_record_is_not_touched(self, runner, remote, legacy):
        existing = remote.seed_story(Story(id="dup", title="remote title", content="remote"))
        legacy(legacy_record("dup", title="local title"))

        report = await runner.run()

        assert report.skipped == 1
        assert len(remote.stories) == 1
        assert remote.stories["dup"]["title"] == existing.title

    @pytest.mark.asyncio
    async def test_second_run_creates_no_duplicates(self, runner, remote, legacy):
        legacy(legacy_record("a"), legacy_record("b"))

        await runner.run()
        report = await runner.run()

        assert report.migrated == 0
        assert report.skipped == 2
        assert len(remote.stories) == 2

    @pytest.mark.asyncio
    async def test_per_record_failure_does_not_abort(self, runner, remote, legacy, cache):
        legacy(legacy_record("a"), legacy_record("b"))
        calls = {"n": 0}
        real_create = remote.create_story

        async def flaky_create(story, preserve_timestamps=False):
            calls["n"] += 1
            if calls["n"] == 1:
                raise RemoteUnreachableError("blip")
            return await real_create(story, preserve_timestamps=preserve_timestamps)

        remote.create_story = flaky_create

        report = await runner.run()

        assert report.failed == 1
        assert report.migrated == 1
        assert cache.get_meta(MIGRATION_STATE_KEY) == {"mystery-novels": ["b"]}

        retry = await runner.run()

        assert retry.migrated == 1
        assert len(remote.stories) == 2

    @pytest.mark.asyncio
    async def test_unreachable_defers(self, runner, connectivity, legacy, remote):
        legacy(legacy_record("a"))
        connectivity.set_reachable(False)

        report = await runner.run()

        assert report.total == 0
        assert runner.has_pending_work() is True

    @pytest.mark.asyncio
    async def test_corrupt_legacy_table_raises(self, runner, substrate):
        substrate.set("mystery-novels", "not json")

        with pytest.raises(LocalCorruptionError):
            await runner.run()

    @pytest.mark.asyncio
    async def test_non_list_legacy_table_raises(self, runner, substrate):
        substrate.set("mystery-novels", '{"id": "a"}')

        with pytest.raises(LocalCorruptionError):
            await runner.run()

    @pytest.mark.asyncio
    async def test_malformed_record_does_not_stop_the_run(self, runner, remote, legacy):
        legacy(legacy_record("a"), {"id": "b", "content": "no title"})

        report = await runner.run()

        assert report.migrated == 1
        assert report.failed == 1
        assert report.errors[0].startswith("b:")
        assert len(remote.stories) == 1
        assert runner.has_pending_work() is False

    @pytest.mark.asyncio
    async def test_corrupt_story_cache_creates_no_duplicates(self, runner, remote, legacy, substrate):
        legacy(legacy_record("a"))
        substrate.set("stories", "not json")

        first = await runner.run()
        second = await runner.run()

        assert first.migrated == 1
        assert second.skipped == 1
        assert len(remote.stories) == 1

    @pytest.mark.asyncio
    async def test_custom_legacy_key(self, orchestrator, substrate, remote):
        substrate.set("old-stories", json.dumps([legacy_record("x")]))

        report = await MigrationRunner(orchestrator, legacy_key="old-stories").run()

        assert report.migrated == 1
