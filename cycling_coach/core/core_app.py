#!/usr/bin/env python3
"""
Core Application - wires the analysis pipeline end to end
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from ..analysis.activity import analyze_activity
from ..analysis.ftp import calculate_ftp_zones, estimate_ftp
from ..analysis.performance import calculate_performance_metrics
from ..analysis.progress import analyze_overall_progress, days_since_last_activity
from ..analysis.weekly import calculate_weekly_stats
from ..analysis.zones import calculate_zones
from ..config import Config
from ..data.models import (
    Activity, ActivityAnalysis, BloodPressureEntry, BodyCompositionEntry, FTPEstimate, HRZoneTable, Lap,
    LatestWeight, PerformanceMetrics, ProgressAssessment, Serializable, WeeklyStats, WorkoutRecommendation,
    ZoneRange, parse_timestamp,
)
from ..workouts.loader import WorkoutLibrary
from ..workouts.recommender import get_workout_recommendations
from .cache_manager import CacheManager

logger = logging.getLogger(__name__)


@dataclass
class CoachingReport(Serializable):
    """Everything the coach computes for one input snapshot"""
    zones: HRZoneTable
    weekly_stats: List[WeeklyStats]
    performance: PerformanceMetrics
    progress: ProgressAssessment
    ftp_estimate: Optional[FTPEstimate]
    ftp_zones: Dict[str, ZoneRange]
    recommendations: List[WorkoutRecommendation] = field(default_factory=list)
    activity_analyses: List[ActivityAnalysis] = field(default_factory=list)


class CoachingApp:
    """Main application class - orchestrates all components"""

    def __init__(self, config: Config, cache: Optional[CacheManager] = None):
        self.config = config
        self.cache_manager = cache or CacheManager(default_ttl=config.workout_cache_ttl)
        self.workout_library = WorkoutLibrary(
            config.workouts_dir, cache=self.cache_manager, ttl=config.workout_cache_ttl
        )
        self.zones = calculate_zones(config.max_hr, config.resting_hr)

    def weekly_stats(self, activities: List[Activity], now: Optional[datetime] = None) -> List[WeeklyStats]:
        return calculate_weekly_stats(activities, self.zones, now=now, weeks=self.config.weeks_to_show)

    def analyze_activity(self, activity_id: int, stats: List[WeeklyStats],
                         laps: Optional[List[Lap]] = None) -> Optional[ActivityAnalysis]:
        """Analyze one activity from the aggregated weeks, None if it is not in the window"""
        for week in stats:
            for activity in week.activities:
                if activity.id == activity_id:
                    return analyze_activity(activity, laps or [], stats, self.zones)

        logger.warning(f"Activity {activity_id} not found in the last {len(stats)} weeks")
        return None

    def build_report(self, activities: List[Activity],
                     body_composition: Optional[List[BodyCompositionEntry]] = None,
                     blood_pressure: Optional[List[BloodPressureEntry]] = None,
                     latest_weight: Optional[LatestWeight] = None,
                     laps_by_activity: Optional[Dict[int, List[Lap]]] = None,
                     now: Optional[datetime] = None) -> CoachingReport:
        """Run the whole pipeline on one snapshot.

        Without a measured weight, the configured weight is used for the
        power-to-weight figures. Activities listed in ``laps_by_activity``
        get a detailed analysis.
        """
        now = parse_timestamp(now) if now else datetime.now(timezone.utc)
        logger.info(f"Building report for {len(activities)} activities "
                    f"(goal: {self.config.training_goal}, FTP: {self.config.ftp}W)")

        stats = self.weekly_stats(activities, now=now)
        if latest_weight is None and self.config.weight:
            latest_weight = LatestWeight(weight=self.config.weight)

        performance = calculate_performance_metrics(
            stats[-1] if stats else None,
            latest_weight,
            body_composition=body_composition,
            all_stats=stats,
        )
        progress = analyze_overall_progress(
            stats,
            training_goal=self.config.training_goal,
            current_ftp=self.config.ftp,
            latest_weight=latest_weight,
            blood_pressure=blood_pressure,
            now=now,
        )
        ftp_estimate = estimate_ftp(stats, self.config.ftp, now=now)
        recommendations = get_workout_recommendations(
            self.workout_library.load(),
            stats,
            self.config.training_goal,
            days_since_last_activity=days_since_last_activity(stats, now),
        )

        analyses = []
        for activity_id, laps in (laps_by_activity or {}).items():
            analysis = self.analyze_activity(activity_id, stats, laps)
            if analysis:
                analyses.append(analysis)

        return CoachingReport(
            zones=self.zones,
            weekly_stats=stats,
            performance=performance,
            progress=progress,
            ftp_estimate=ftp_estimate,
            ftp_zones=calculate_ftp_zones(self.config.ftp),
            recommendations=recommendations,
            activity_analyses=analyses,
        )
