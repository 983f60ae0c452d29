#!/usr/bin/env python3
"""
Cache Manager - keeps parsed workout libraries in memory for a limited time

Parsing a directory of .zwo files is the only slow step of a report, so
the parsed list is kept per source directory until its TTL runs out or
the directory is explicitly invalidated.
"""

import time
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    workouts: List[Any]
    expires_at: float  # epoch seconds

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at


class CacheManager:
    """Workout lists keyed by the directory they were parsed from"""

    def __init__(self, default_ttl: int = 300):
        self.default_ttl = default_ttl
        self._entries: Dict[str, CacheEntry] = {}

    def cache_workouts(self, source: str, workouts: List[Any], ttl: Optional[int] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        self._entries[source] = CacheEntry(workouts=list(workouts), expires_at=time.time() + ttl)
        logger.debug(f"Cached {len(workouts)} workouts from {source} for {ttl}s")

    def get_workouts(self, source: str) -> Optional[List[Any]]:
        """Cached workouts for ``source``, None when missing or expired"""
        entry = self._entries.get(source)
        if entry is None:
            return None
        if not entry.is_fresh(time.time()):
            logger.debug(f"Workout cache for {source} expired")
            del self._entries[source]
            return None
        return entry.workouts

    def invalidate_workouts(self, source: str) -> bool:
        removed = self._entries.pop(source, None) is not None
        if removed:
            logger.debug(f"Invalidated workout cache for {source}")
        return removed
