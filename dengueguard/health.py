"""In-memory health registry for the dashboard's admin panel.

Services record upstream failures and every degraded result (estimated weather,
simulated prediction) here, so an operator can tell how often the dashboard is
running on local fallbacks.
"""
from __future__ import annotations

from datetime import datetime, timezone
from threading import Lock
from typing import Dict, Mapping, Optional

CACHE_COUNTERS = ("hits", "misses", "keys")


class HealthRegistry:
    """Stores upstream error counters, fallback counters and cache stats."""

    def __init__(self) -> None:
        self._upstream_errors: Dict[str, int] = {}
        self._fallbacks: Dict[str, int] = {}
        self._last_fallback_at: Optional[datetime] = None
        self._cache: Dict[str, int] = dict.fromkeys(CACHE_COUNTERS, 0)
        self._lock = Lock()

    # -- Upstream errors ----------------------------------------------------
    def record_upstream_error(self, upstream: str, increment: int = 1) -> None:
        if not upstream:
            raise ValueError("upstream must be provided")
        if increment <= 0:
            raise ValueError("increment must be positive")
        with self._lock:
            self._upstream_errors[upstream] = self._upstream_errors.get(upstream, 0) + increment

    def drain_upstream_errors(self) -> Dict[str, int]:
        with self._lock:
            drained = dict(self._upstream_errors)
            self._upstream_errors.clear()
            return drained

    # -- Fallbacks ----------------------------------------------------------
    def record_fallback(self, kind: str, when: Optional[datetime] = None) -> None:
        """Count one degraded result of ``kind`` ("weather", "prediction")."""
        if not kind:
            raise ValueError("kind must be provided")
        when = when or datetime.now(timezone.utc)
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        with self._lock:
            self._fallbacks[kind] = self._fallbacks.get(kind, 0) + 1
            self._last_fallback_at = when

    # -- Cache --------------------------------------------------------------
    def set_cache_stats(self, stats: Optional[Mapping[str, int]]) -> None:
        stats = stats or {}
        with self._lock:
            self._cache = {name: int(stats.get(name, 0)) for name in CACHE_COUNTERS}

    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            last = self._last_fallback_at
            return {
                "upstream_errors": dict(self._upstream_errors),
                "fallbacks": dict(self._fallbacks),
                "last_fallback_at": last.astimezone(timezone.utc).isoformat() if last else None,
                "cache": dict(self._cache),
            }


__all__ = ["HealthRegistry"]
