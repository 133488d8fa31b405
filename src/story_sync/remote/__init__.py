"""Remote Store Adapters."""

from .base import RemoteStore
from .http_client import HttpRemoteStore
from .memory import InMemoryRemoteStore

__all__ = ["HttpRemoteStore", "InMemoryRemoteStore", "RemoteStore"]
