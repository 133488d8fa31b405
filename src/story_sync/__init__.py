"""
Story Sync

Resilient dual-store synchronization for user-generated stories: every
mutation succeeds against the remote store or falls back to a persistent
local cache, and local-only records are reconciled once the remote is
reachable again.
"""

__version__ = "0.1.0"
