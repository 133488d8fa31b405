"""
Pytest configuration for Story Sync tests.

Test Tier System:
- fast (default): Pure unit tests, in-memory substrate and remote store
- medium: Filesystem substrate, API TestClient, patched aiohttp sessions
- slow: Tests against a running backend

Run tiers:
- pytest                          # Fast + medium (default)
- pytest -m fast                  # Fast only
- pytest -m medium                # Medium only
- pytest --override-ini="addopts=" -v   # Full suite (all tiers)

Note: Unmarked tests are auto-assigned to 'fast' tier. To add a new test:
- No marker needed for fast (unit) tests
- Add @pytest.mark.medium for filesystem / TestClient tests
- Tests marked @pytest.mark.integration (without tier) default to 'medium'

Environment Safety:
- STORY_SYNC_* variables are cleared so no test talks to a real backend
  or writes into the user's cache directory by accident.
"""

import os
import sys
from pathlib import Path

import pytest

# Add src to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from story_sync.connectivity import StaticConnectivity
from story_sync.identity import StaticIdentity
from story_sync.remote import InMemoryRemoteStore
from story_sync.services import SyncOrchestrator
from story_sync.session import SyncSession
from story_sync.storage import InMemoryKeyValueStore, LocalCacheStore


# =============================================================================
# Tier Auto-Assignment
# =============================================================================

def pytest_collection_modifyitems(config, items):
    """
    Automatically assign tier markers to unmarked tests.

    Tests are fast by default unless explicitly marked as medium or slow.
    Tests marked @pytest.mark.integration (but no tier) are assigned to
    'medium'.
    """
    for item in items:
        has_tier = (
            list(item.iter_markers(name='fast')) or
            list(item.iter_markers(name='medium')) or
            list(item.iter_markers(name='slow'))
        )
        if has_tier:
            continue

        if list(item.iter_markers(name='skip')):
            continue

        if list(item.iter_markers(name='integration')):
            item.add_marker(pytest.mark.medium)
            continue

        item.add_marker(pytest.mark.fast)


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Drop backend settings inherited from the developer's shell or .env."""
    for name in list(os.environ):
        if name.startswith("STORY_SYNC_"):
            del os.environ[name]


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture
def substrate():
    return InMemoryKeyValueStore()


@pytest.fixture
def cache(substrate):
    return LocalCacheStore(substrate)


@pytest.fixture
def remote():
    return InMemoryRemoteStore()


@pytest.fixture
def connectivity():
    """Reachable by default; flip with connectivity.set_reachable(False)."""
    return StaticConnectivity(True)


@pytest.fixture
def identity():
    return StaticIdentity("u1", "探偵太郎")


@pytest.fixture
def orchestrator(cache, remote, connectivity):
    return SyncOrchestrator(cache, remote, connectivity)


@pytest.fixture
def session(substrate, remote, connectivity, identity):
    return SyncSession(substrate, remote, connectivity, identity)
