#!/usr/bin/env python3
"""
Activity analysis - cardiac drift, pacing compliance, historical context
and training load for a single activity
"""

import logging
from typing import List, Optional

from ..data.models import (
    ActivityAnalysis, ComplianceAnalysis, DriftAnalysis, EnrichedActivity, HRZoneTable,
    HistoryAnalysis, Lap, LoadAnalysis, WeeklyStats,
)
from .feedback import render_activity_feedback
from .zones import analyze_zones

logger = logging.getLogger(__name__)

# Work laps must be longer than this (s) and above this power (W)
WORK_LAP_MIN_SECONDS = 120
WORK_LAP_MIN_WATTS = 50

DRIFT_THRESHOLD_PCT = 5.0
DRIFT_MAX_POWER_CHANGE = 20.0
CADENCE_TOLERANCE_RPM = 5.0
HISTORY_THRESHOLD_PCT = 5.0
HIGH_LOAD_RATIO = 1.4
LOW_LOAD_RATIO = 0.6


def _mean_ef(laps: List[Lap]) -> float:
    total = sum(
        lap.average_watts / lap.average_heartrate
        if lap.average_watts and lap.average_heartrate else 0
        for lap in laps
    )
    return total / len(laps)


def _mean_power(laps: List[Lap]) -> float:
    return sum(lap.average_watts or 0 for lap in laps) / len(laps)


def analyze_cardiac_drift(laps: List[Lap]) -> Optional[DriftAnalysis]:
    """Compare power/HR efficiency between the first and second half of the work laps"""
    work_laps = [
        lap for lap in laps
        if lap.moving_time > WORK_LAP_MIN_SECONDS and (lap.average_watts or 0) > WORK_LAP_MIN_WATTS
    ]
    if len(work_laps) < 2:
        return None

    mid = len(work_laps) // 2
    first_half, second_half = work_laps[:mid], work_laps[mid:]

    ef_first = _mean_ef(first_half)
    ef_second = _mean_ef(second_half)
    if ef_first == 0:
        return None

    power_difference = _mean_power(second_half) - _mean_power(first_half)
    decoupling = (ef_first - ef_second) / ef_first * 100

    reliable = abs(power_difference) <= DRIFT_MAX_POWER_CHANGE
    if not reliable:
        status = "unreliable"
    elif decoupling > DRIFT_THRESHOLD_PCT:
        status = "significant_drift"
    elif decoupling < -DRIFT_THRESHOLD_PCT:
        status = "improved"
    else:
        status = "stable"

    return DriftAnalysis(
        decoupling=round(decoupling, 1),
        ef_first_half=round(ef_first, 2),
        ef_second_half=round(ef_second, 2),
        power_difference=round(power_difference),
        reliable=reliable,
        status=status,
    )


def analyze_compliance(laps: List[Lap]) -> Optional[ComplianceAnalysis]:
    """Check whether cadence held from the first to the last lap"""
    if len(laps) < 3:
        return None

    first, last = laps[0], laps[-1]
    if not first.average_cadence or not last.average_cadence:
        return None

    cadence_drop = first.average_cadence - last.average_cadence
    if cadence_drop > CADENCE_TOLERANCE_RPM:
        status = "fatigue"
    elif cadence_drop < -CADENCE_TOLERANCE_RPM:
        status = "faster_finish"
    else:
        status = "steady"

    return ComplianceAnalysis(
        first_cadence=first.average_cadence,
        last_cadence=last.average_cadence,
        cadence_drop=round(cadence_drop, 1),
        status=status,
    )


def analyze_history(activity: EnrichedActivity, stats: List[WeeklyStats]) -> Optional[HistoryAnalysis]:
    """Compare the activity's efficiency factor to the weekly average"""
    valid_weeks = [week for week in stats if week.efficiency_factor > 0]
    if not valid_weeks:
        return None

    avg_ef = sum(week.efficiency_factor for week in valid_weeks) / len(valid_weeks)
    current_ef = activity.efficiency_factor or 0
    if current_ef == 0:
        return None

    improvement = (current_ef - avg_ef) / avg_ef * 100
    if improvement > HISTORY_THRESHOLD_PCT:
        status = "strong"
    elif improvement < -HISTORY_THRESHOLD_PCT:
        status = "lower"
    else:
        status = "consistent"

    return HistoryAnalysis(
        avg_ef=round(avg_ef, 2),
        current_ef=round(current_ef, 2),
        improvement=round(improvement, 1),
        status=status,
    )


def analyze_training_load(activity: EnrichedActivity, stats: List[WeeklyStats]) -> Optional[LoadAnalysis]:
    """Compare the activity's work to the average work per session"""
    total_work = sum(week.total_calories or 0 for week in stats)
    total_count = sum(week.count or 0 for week in stats)
    if total_count == 0 or total_work == 0:
        return None

    avg_work = total_work / total_count
    current_work = activity.total_calories or 0
    load_ratio = current_work / avg_work

    if load_ratio > HIGH_LOAD_RATIO:
        status = "high"
    elif load_ratio < LOW_LOAD_RATIO:
        status = "low"
    else:
        status = "normal"

    return LoadAnalysis(
        avg_work=round(avg_work),
        current_work=round(current_work),
        load_ratio=round(load_ratio, 2),
        status=status,
    )


def analyze_activity(activity: EnrichedActivity, laps: List[Lap], stats: List[WeeklyStats],
                     zones: HRZoneTable) -> ActivityAnalysis:
    """Run every sub-analysis that has enough data and render the feedback"""
    laps = laps or []
    analysis = ActivityAnalysis(
        activity_id=activity.id,
        zones=analyze_zones(laps, zones) if laps else None,
        drift=analyze_cardiac_drift(laps),
        compliance=analyze_compliance(laps),
        history=analyze_history(activity, stats),
        load=analyze_training_load(activity, stats),
    )
    analysis.feedback = render_activity_feedback(activity, analysis, has_laps=bool(laps))

    logger.debug(f"Analyzed activity {activity.id} with {len(laps)} laps")
    return analysis
