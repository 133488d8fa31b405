"""
Sync Configuration Tests

Run with: pytest tests/test_config.py -v
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from story_sync.config import SyncConfig
from story_sync.utils import ANONYMOUS_AUTHOR, ANONYMOUS_USER_ID


@pytest.fixture
def no_env_file(tmp_path):
    return tmp_path / "missing.env"


class TestFromEnv:
    def test_defaults(self, no_env_file):
        with patch.dict("os.environ", {}, clear=True):
            config = SyncConfig.from_env(no_env_file)

        assert config.api_url is None
        assert config.health_url is None
        assert config.timeout == (5.0, 15.0)
        assert config.legacy_key == "mystery-novels"
        assert config.user_id == ANONYMOUS_USER_ID
        assert config.user_name == ANONYMOUS_AUTHOR
        assert config.log_level == "INFO"

    def test_health_url_derived_from_api_url(self, no_env_file):
        with patch.dict("os.environ", {"STORY_SYNC_API_URL": "http://backend.test/"}, clear=True):
            config = SyncConfig.from_env(no_env_file)

        assert config.health_url == "http://backend.test/health"

    def test_explicit_health_url_wins(self, no_env_file):
        env = {
            "STORY_SYNC_API_URL": "http://backend.test",
            "STORY_SYNC_HEALTH_URL": "http://status.test/ping",
        }
        with patch.dict("os.environ", env, clear=True):
            config = SyncConfig.from_env(no_env_file)

        assert config.health_url == "http://status.test/ping"

    def test_numeric_values_are_clamped(self, no_env_file):
        env = {
            "STORY_SYNC_CONNECT_TIMEOUT": "0",
            "STORY_SYNC_READ_TIMEOUT": "9999",
            "STORY_SYNC_CONNECTIVITY_TTL": "-5",
        }
        with patch.dict("os.environ", env, clear=True):
            config = SyncConfig.from_env(no_env_file)

        assert config.connect_timeout == 0.5
        assert config.read_timeout == 300.0
        assert config.connectivity_ttl == 0.0

    def test_non_numeric_value_uses_default(self, no_env_file):
        with patch.dict("os.environ", {"STORY_SYNC_READ_TIMEOUT": "soon"}, clear=True):
            config = SyncConfig.from_env(no_env_file)

        assert config.read_timeout == 15.0

    def test_identity_and_paths(self, no_env_file, tmp_path):
        env = {
            "STORY_SYNC_CACHE_DIR": str(tmp_path / "cache"),
            "STORY_SYNC_USER_ID": "u42",
            "STORY_SYNC_USER_NAME": "名探偵",
            "LOG_LEVEL": "debug",
        }
        with patch.dict("os.environ", env, clear=True):
            config = SyncConfig.from_env(no_env_file)

        assert config.cache_dir == Path(tmp_path / "cache")
        assert config.user_id == "u42"
        assert config.user_name == "名探偵"
        assert config.log_level == "DEBUG"

    def test_reads_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("STORY_SYNC_API_URL=http://from-file.test\n")

        with patch.dict("os.environ", {}, clear=True):
            config = SyncConfig.from_env(env_file)

        assert config.api_url == "http://from-file.test"
