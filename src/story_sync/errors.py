"""
Store Errors

Exception hierarchy shared by the local cache, the remote adapters and the
sync services. Remote failures carry a RemoteErrorKind so the orchestrator
can log what went wrong before taking the local fallback path.
"""

from enum import Enum
from typing import Optional


class RemoteErrorKind(str, Enum):
    UNREACHABLE = "unreachable"
    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    OTHER = "other"


class StoreError(Exception):
    """Base class for all store failures."""


class RemoteStoreError(StoreError):
    """The remote store rejected or could not complete a call."""

    kind = RemoteErrorKind.OTHER

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class RemoteUnreachableError(RemoteStoreError):
    """Network failure, timeout or an unavailable backend."""

    kind = RemoteErrorKind.UNREACHABLE


class RemotePermissionError(RemoteStoreError):
    """The backend refused the call for the current credentials."""

    kind = RemoteErrorKind.PERMISSION_DENIED


class RemoteNotFoundError(RemoteStoreError):
    """The addressed entity does not exist remotely."""

    kind = RemoteErrorKind.NOT_FOUND


class LocalCorruptionError(StoreError):
    """A persisted local table could not be parsed.

    The cache for that entity kind cannot be trusted until it is reset.
    """

    def __init__(self, kind: str, reason: str):
        super().__init__(f"Local {kind} table is unreadable: {reason}")
        self.kind = kind
        self.reason = reason


class EntityNotFoundError(StoreError):
    """A mutation addressed an entity that exists in neither store."""

    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"{kind} {entity_id} not found")
        self.kind = kind
        self.entity_id = entity_id


class CodecError(StoreError, ValueError):
    """A wire record is missing required fields or has the wrong shape."""
