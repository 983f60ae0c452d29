#!/usr/bin/env python3
"""
Workout library - loads and caches every .zwo file in a directory
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

from ..core.cache_manager import CacheManager
from ..data.models import WorkoutTemplate
from .parser import WorkoutParseError, parse_zwo

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = 3600


class WorkoutLibrary:
    """Parsed workout templates from a directory of .zwo files"""

    def __init__(self, workouts_dir: Union[str, Path], cache: Optional[CacheManager] = None,
                 ttl: int = DEFAULT_CACHE_TTL):
        self.workouts_dir = Path(workouts_dir)
        self.cache = cache or CacheManager(default_ttl=ttl)
        self.ttl = ttl

    @property
    def _cache_source(self) -> str:
        return str(self.workouts_dir.resolve())

    def load(self) -> List[WorkoutTemplate]:
        """Return all parsable workouts, from cache when still fresh"""
        cached = self.cache.get_workouts(self._cache_source)
        if cached is not None:
            return cached

        workouts = []
        if not self.workouts_dir.is_dir():
            logger.warning(f"Workout directory not found: {self.workouts_dir}")
        else:
            for path in sorted(self.workouts_dir.glob("*.zwo")):
                try:
                    workouts.append(parse_zwo(path.read_text(encoding="utf-8"), path.name))
                except (WorkoutParseError, OSError, UnicodeDecodeError) as e:
                    logger.warning(f"Skipping workout {path.name}: {e}")

        self.cache.cache_workouts(self._cache_source, workouts, ttl=self.ttl)
        logger.info(f"Loaded {len(workouts)} workouts from {self.workouts_dir}")
        return workouts

    def refresh(self) -> List[WorkoutTemplate]:
        """Drop the cached list and parse the directory again"""
        self.cache.invalidate_workouts(self._cache_source)
        return self.load()
