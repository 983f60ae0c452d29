#!/usr/bin/env python3
"""
Weekly aggregation - buckets activities into Monday-aligned training weeks
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field, fields
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from ..data.models import (
    Activity, BloodPressureEntry, BodyCompositionEntry, EnrichedActivity, HRZoneTable,
    WeeklyStats, empty_zone_map, parse_timestamp,
)
from .zones import estimate_zone_distribution, get_zone_for_hr, zone_percentages

logger = logging.getLogger(__name__)


def week_start(day: Union[date, datetime]) -> date:
    """Monday of the week containing ``day``"""
    if isinstance(day, datetime):
        day = day.date()
    return day - timedelta(days=day.weekday())


def week_label(day: Union[date, datetime]) -> str:
    """Week key shared by weekly stats and body measurements"""
    return week_start(day).isoformat()


def enrich_activity(activity: Activity, zones: HRZoneTable) -> EnrichedActivity:
    """Attach efficiency, work and estimated zone split to an activity"""
    duration_minutes = activity.moving_time / 60
    zone_minutes = None
    zone_pcts = None
    primary_zone = "Z1"

    if activity.average_heartrate:
        primary_zone = get_zone_for_hr(activity.average_heartrate, zones)
        zone_minutes = estimate_zone_distribution(
            activity.average_heartrate,
            activity.max_heartrate or activity.average_heartrate,
            duration_minutes,
            zones,
        )
        zone_pcts = zone_percentages(zone_minutes)

    if activity.average_watts and activity.average_heartrate:
        efficiency_factor = round(activity.average_watts / activity.average_heartrate, 2)
    else:
        efficiency_factor = 0.0

    total_calories = round(activity.average_watts * activity.moving_time / 1000) if activity.average_watts else 0

    return EnrichedActivity(
        **{f.name: getattr(activity, f.name) for f in fields(Activity)},
        efficiency_factor=efficiency_factor,
        total_calories=total_calories,
        time_hours=round(activity.moving_time / 3600, 2),
        primary_zone=primary_zone,
        zone_pcts=zone_pcts,
        zone_minutes=zone_minutes,
    )


@dataclass
class _WeekAccumulator:
    """Running duration-weighted sums for one week"""
    time: int = 0
    hr_sum: float = 0.0
    hr_time: int = 0
    power_sum: float = 0.0
    power_time: int = 0
    cadence_sum: float = 0.0
    cadence_time: int = 0
    zone_minutes: Dict[str, float] = field(default_factory=empty_zone_map)

    def add(self, activity: EnrichedActivity) -> None:
        seconds = activity.moving_time
        self.time += seconds

        if activity.average_heartrate:
            self.hr_sum += activity.average_heartrate * seconds
            self.hr_time += seconds
            for zone, minutes in (activity.zone_minutes or {}).items():
                self.zone_minutes[zone] += minutes

        if activity.average_watts:
            self.power_sum += activity.average_watts * seconds
            self.power_time += seconds

        if activity.average_cadence:
            self.cadence_sum += activity.average_cadence * seconds
            self.cadence_time += seconds

    @staticmethod
    def _weighted(total: float, seconds: int) -> float:
        return total / seconds if seconds > 0 else 0.0

    def finalize(self, week: WeeklyStats) -> None:
        avg_hr = self._weighted(self.hr_sum, self.hr_time)
        avg_power = self._weighted(self.power_sum, self.power_time)
        avg_cadence = self._weighted(self.cadence_sum, self.cadence_time)

        week.avg_heart_rate = round(avg_hr)
        week.avg_power = round(avg_power)
        week.avg_cadence = round(avg_cadence)
        # power is extrapolated over the whole week's riding time
        week.total_calories = round(avg_power * self.time / 1000)
        week.total_seconds = self.time
        week.time_hours = round(self.time / 3600, 2)
        # ratio of the weighted averages, not a mean of per-activity ratios
        week.efficiency_factor = round(avg_power / avg_hr, 2) if avg_power > 0 and avg_hr > 0 else 0.0
        week.zone_minutes = dict(self.zone_minutes)
        week.zone_pcts = zone_percentages(self.zone_minutes)
        week.activities.sort(key=lambda a: a.start_date, reverse=True)


def calculate_weekly_stats(activities: List[Activity], zones: HRZoneTable,
                           now: Optional[datetime] = None, weeks: int = 6) -> List[WeeklyStats]:
    """Aggregate activities into weekly statistics.

    Builds one bucket per week for the trailing ``weeks`` weeks (including
    the current, possibly partial week). Activities outside the window are
    dropped. Empty weeks are kept as zero rows, except the current week
    which is removed when it has no activities yet. Weeks are returned
    oldest to newest.
    """
    if not isinstance(activities, list):
        raise TypeError(f"activities must be a list, got {type(activities).__name__}")

    now = parse_timestamp(now) if now else datetime.now(timezone.utc)
    current_week = week_start(now)

    # index 0 is the current week
    buckets = []
    for i in range(weeks):
        start = current_week - timedelta(weeks=i)
        buckets.append(WeeklyStats(label=start.isoformat(), week_start=start))
    accumulators = [_WeekAccumulator() for _ in buckets]

    dropped = 0
    for activity in activities:
        index = (current_week - week_start(activity.start_date)).days // 7
        if not 0 <= index < weeks:
            dropped += 1
            continue

        enriched = enrich_activity(activity, zones)
        accumulators[index].add(enriched)
        buckets[index].activities.append(enriched)
        buckets[index].count += 1

    for week, acc in zip(buckets, accumulators):
        acc.finalize(week)

    if dropped:
        logger.debug(f"Dropped {dropped} activities outside the {weeks}-week window")

    if buckets and buckets[0].count == 0:
        buckets.pop(0)

    buckets.reverse()
    logger.info(f"Aggregated {len(activities) - dropped} activities into {len(buckets)} weeks")
    return buckets


def _average(values: List[float]) -> Optional[float]:
    if not values:
        return None
    return round(sum(values) / len(values), 1)


def _group_by_week(readings: Iterable[Dict[str, Any]], keys: Iterable[str]) -> Dict[str, Dict[str, List[float]]]:
    weekly = defaultdict(lambda: {key: [] for key in keys})
    for reading in readings:
        label = week_label(parse_timestamp(reading['date']))
        for key in weekly[label]:
            value = reading.get(key)
            if value:
                weekly[label][key].append(value)
    return weekly


def aggregate_body_measurements(readings: Iterable[Dict[str, Any]]) -> List[BodyCompositionEntry]:
    """Average raw body composition readings into one entry per week"""
    weekly = _group_by_week(readings, ("weight", "fat_ratio", "muscle_mass"))
    return [
        BodyCompositionEntry(
            week=label,
            weight=_average(values["weight"]),
            fat_ratio=_average(values["fat_ratio"]),
            muscle_mass=_average(values["muscle_mass"]),
        )
        for label, values in sorted(weekly.items())
    ]


def aggregate_blood_pressure(readings: Iterable[Dict[str, Any]]) -> List[BloodPressureEntry]:
    """Average raw blood pressure readings into one entry per week"""
    weekly = _group_by_week(readings, ("systolic", "diastolic", "pulse"))
    return [
        BloodPressureEntry(
            week=label,
            systolic=_average(values["systolic"]),
            diastolic=_average(values["diastolic"]),
            pulse=_average(values["pulse"]),
        )
        for label, values in sorted(weekly.items())
    ]
