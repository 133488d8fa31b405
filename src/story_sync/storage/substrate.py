"""
Key-Value Substrate

The persistence mechanism behind the Local Cache Store. A substrate only
stores whole serialized tables by key; it knows nothing about entities.
"""

import logging
import os
import re
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Union

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


class KeyValueSubstrate(Protocol):
    """Protocol for persistent string storage keyed by table name."""

    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key was never written."""
        ...

    def set(self, key: str, value: str) -> None:
        """Persist value under key, replacing any previous value."""
        ...

    def delete(self, key: str) -> None:
        """Remove key. Removing an absent key is a no-op."""
        ...

    def keys(self) -> List[str]:
        ...


class InMemoryKeyValueStore:
    """Dict-backed substrate for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)

    def keys(self) -> List[str]:
        return sorted(self.data)


class FileKeyValueStore:
    """
    Directory-backed substrate: one `<key>.json` file per key.

    Writes go to a sibling temp file that is then renamed over the target,
    so a crash mid-write leaves the previous table intact.
    """

    SUFFIX = ".json"

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).expanduser()
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid substrate key: {key!r}")
        return self.root / f"{key}{self.SUFFIX}"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = path.with_suffix(path.suffix + ".tmp")
        try:
            tmp.write_text(value, encoding="utf-8")
            os.replace(tmp, path)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise
        logger.debug(f"Wrote {len(value)} bytes to {path}")

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def keys(self) -> List[str]:
        return sorted(p.name[: -len(self.SUFFIX)] for p in self.root.glob(f"*{self.SUFFIX}"))
