"""
Sync configuration.

Settings come from the environment (a project-root .env is loaded first).
Numeric knobs are clamped so a bad value cannot disable timeouts or turn
the connectivity cache into a hot loop.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .utils import ANONYMOUS_AUTHOR, ANONYMOUS_USER_ID

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent.parent

DEFAULT_CACHE_DIR = "~/.story-sync"
DEFAULT_LEGACY_KEY = "mystery-novels"


def _env_float(name: str, default: float, low: float, high: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={raw!r}, using {default}")
        return default
    return max(low, min(high, value))


@dataclass
class SyncConfig:
    """Runtime settings for a sync session."""

    api_url: Optional[str] = None
    api_token: Optional[str] = None
    health_url: Optional[str] = None
    cache_dir: Path = Path(DEFAULT_CACHE_DIR).expanduser()
    connect_timeout: float = 5.0
    read_timeout: float = 15.0
    connectivity_ttl: float = 15.0
    legacy_key: str = DEFAULT_LEGACY_KEY
    user_id: str = ANONYMOUS_USER_ID
    user_name: str = ANONYMOUS_AUTHOR
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "SyncConfig":
        load_dotenv(env_file or PROJECT_ROOT / ".env")

        api_url = os.getenv("STORY_SYNC_API_URL") or None
        health_url = os.getenv("STORY_SYNC_HEALTH_URL") or None
        if health_url is None and api_url:
            health_url = f"{api_url.rstrip('/')}/health"

        return cls(
            api_url=api_url,
            api_token=os.getenv("STORY_SYNC_API_TOKEN") or None,
            health_url=health_url,
            cache_dir=Path(os.getenv("STORY_SYNC_CACHE_DIR", DEFAULT_CACHE_DIR)).expanduser(),
            connect_timeout=_env_float("STORY_SYNC_CONNECT_TIMEOUT", 5.0, 0.5, 60.0),
            read_timeout=_env_float("STORY_SYNC_READ_TIMEOUT", 15.0, 1.0, 300.0),
            connectivity_ttl=_env_float("STORY_SYNC_CONNECTIVITY_TTL", 15.0, 0.0, 3600.0),
            legacy_key=os.getenv("STORY_SYNC_LEGACY_KEY", DEFAULT_LEGACY_KEY),
            user_id=os.getenv("STORY_SYNC_USER_ID") or ANONYMOUS_USER_ID,
            user_name=os.getenv("STORY_SYNC_USER_NAME") or ANONYMOUS_AUTHOR,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    @property
    def timeout(self) -> tuple:
        return (self.connect_timeout, self.read_timeout)
