"""
Sync Models

Outcome reports for pending-record reconciliation and legacy migration.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class SyncReport(BaseModel):
    """Result of pushing pending local records to the remote store."""

    reachable: bool
    pushed: int = 0
    deleted: int = 0
    failed: int = 0
    # local id -> server-assigned id for stories created during the pass
    id_changes: Dict[str, str] = Field(default_factory=dict)
    errors: List[str] = Field(default_factory=list)
    synced_at: Optional[datetime] = None


class MigrationReport(BaseModel):
    """Result of one Migration Runner pass over the legacy table."""

    migrated: int = 0
    skipped: int = 0
    failed: int = 0
    errors: List[str] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return self.migrated + self.skipped + self.failed
