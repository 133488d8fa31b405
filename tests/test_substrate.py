"""
Key-Value Substrate Tests

File-backed substrate: atomic replace, missing keys, key validation.
Run with: pytest tests/test_substrate.py -v
"""

from unittest.mock import patch

import pytest

from story_sync.models import EntityKind, Story
from story_sync.storage import FileKeyValueStore, LocalCacheStore

pytestmark = pytest.mark.medium


class TestFileKeyValueStore:
    def test_missing_key_is_none(self, tmp_path):
        assert FileKeyValueStore(tmp_path).get("stories") is None

    def test_set_and_get(self, tmp_path):
        store = FileKeyValueStore(tmp_path)

        store.set("stories", "[]")

        assert store.get("stories") == "[]"
        assert (tmp_path / "stories.json").exists()

    def test_creates_root_directory(self, tmp_path):
        root = tmp_path / "nested" / "cache"

        FileKeyValueStore(root).set("drafts", "[]")

        assert (root / "drafts.json").exists()

    def test_no_temp_file_left_behind(self, tmp_path):
        store = FileKeyValueStore(tmp_path)

        store.set("stories", "[1]")
        store.set("stories", "[2]")

        assert sorted(p.name for p in tmp_path.iterdir()) == ["stories.json"]

    def test_failed_replace_keeps_previous_value(self, tmp_path):
        store = FileKeyValueStore(tmp_path)
        store.set("stories", "old")

        with patch("story_sync.storage.substrate.os.replace", side_effect=OSError("boom")):
            with pytest.raises(OSError):
                store.set("stories", "new")

        assert store.get("stories") == "old"
        assert not (tmp_path / "stories.json.tmp").exists()

    def test_delete(self, tmp_path):
        store = FileKeyValueStore(tmp_path)
        store.set("stories", "[]")

        store.delete("stories")
        store.delete("stories")

        assert store.get("stories") is None

    def test_keys(self, tmp_path):
        store = FileKeyValueStore(tmp_path)
        store.set("stories", "[]")
        store.set("user-profiles", "[]")

        assert store.keys() == ["stories", "user-profiles"]

    @pytest.mark.parametrize("key", ["../escape", "a/b", "", ".hidden"])
    def test_rejects_unsafe_keys(self, tmp_path, key):
        with pytest.raises(ValueError):
            FileKeyValueStore(tmp_path).get(key)

    def test_cache_survives_restart(self, tmp_path):
        LocalCacheStore(FileKeyValueStore(tmp_path)).upsert(
            EntityKind.STORY, Story(id="s1", title="t", content="本文")
        )

        reopened = LocalCacheStore(FileKeyValueStore(tmp_path))

        assert reopened.get_by_id(EntityKind.STORY, "s1").content == "本文"
