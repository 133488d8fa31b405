"""
Connectivity Oracle

A synchronous "is the remote store reachable right now" signal, consulted
by the Sync Orchestrator before every remote call.
"""

import logging
import time
from typing import Optional, Protocol

import requests

logger = logging.getLogger(__name__)


class ConnectivityOracle(Protocol):
    def is_reachable(self) -> bool:
        ...


class StaticConnectivity:
    """Fixed answer, flipped by hand. Used in tests and offline sessions."""

    def __init__(self, reachable: bool = True):
        self.reachable = reachable

    def is_reachable(self) -> bool:
        return self.reachable

    def set_reachable(self, reachable: bool) -> None:
        self.reachable = reachable


class HttpConnectivityProbe:
    """
    Probe a health URL with a short GET and cache the answer for ttl seconds.

    Any 2xx response counts as reachable; non-2xx, connection errors and
    timeouts count as unreachable.
    """

    DEFAULT_TIMEOUT = 2.0
    DEFAULT_TTL = 15.0

    def __init__(
        self,
        health_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        ttl: float = DEFAULT_TTL,
        session: Optional[requests.Session] = None,
    ):
        self.health_url = health_url
        self.timeout = timeout
        self.ttl = ttl
        self.session = session or requests.Session()
        self._cached: Optional[bool] = None
        self._checked_at: float = 0.0

    def invalidate(self) -> None:
        """Forget the cached answer so the next call probes again."""
        self._cached = None

    def is_reachable(self) -> bool:
        now = time.monotonic()
        if self._cached is not None and now - self._checked_at < self.ttl:
            return self._cached

        try:
            response = self.session.get(self.health_url, timeout=self.timeout)
            reachable = response.ok
            if not reachable:
                logger.debug(f"Health check returned {response.status_code}")
        except requests.RequestException as e:
            logger.debug(f"Connectivity check failed: {e}")
            reachable = False

        if reachable != self._cached:
            logger.info(f"Remote store {'reachable' if reachable else 'unreachable'} ({self.health_url})")
        self._cached = reachable
        self._checked_at = now
        return reachable
