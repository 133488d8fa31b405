"""Local persistence: key-value substrates and the Local Cache Store."""

from .local_cache import TABLE_KEYS, TOMBSTONE_KEY, LocalCacheStore
from .substrate import FileKeyValueStore, InMemoryKeyValueStore, KeyValueSubstrate

__all__ = [
    "FileKeyValueStore",
    "InMemoryKeyValueStore",
    "KeyValueSubstrate",
    "LocalCacheStore",
    "TABLE_KEYS",
    "TOMBSTONE_KEY",
]
