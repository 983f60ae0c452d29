#!/usr/bin/env python3
"""
Heart rate zones - Karvonen zone table, zone classification and
time-in-zone estimation for activities without HR streams
"""

import math
import logging
from typing import Dict, List, Optional

from ..data.models import HRZoneTable, Lap, ZoneAnalysis, ZoneRange, ZONE_NAMES, empty_zone_map

logger = logging.getLogger(__name__)

# Karvonen cut points as fraction of heart rate reserve
ZONE_CUT_POINTS = (0.60, 0.70, 0.80, 0.90)
ZONE_LABELS = ("Recovery", "Endurance", "Tempo", "Threshold", "VO2 Max")

# Share of the activity assigned to each bucket by estimate_zone_distribution.
# This is a heuristic standing in for missing HR streams, tune freely.
# Shares are additive: an average HR in Z1 puts warmup + primary (62%) in Z1
# instead of letting the primary share replace the warm-up share.
ESTIMATION_POLICY = {
    "warmup": 0.12,   # Z1 warm-up / cool-down
    "primary": 0.50,  # zone of the average HR
    "peak": 0.10,     # zone of the max HR, only if above primary
    "below_share": 0.6,  # remainder split when peak == primary
    "above_share": 0.4,
}


def calculate_zones(max_hr: float, resting_hr: float) -> HRZoneTable:
    """Calculate HR zones with the Karvonen (heart rate reserve) formula.

    Target HR = resting HR + (max HR - resting HR) * intensity, floored to
    whole beats. Zone 1 starts at 0 and zone 5 is open ended.
    """
    hrr = max_hr - resting_hr
    bounds = [0] + [math.floor(resting_hr + hrr * pct) for pct in ZONE_CUT_POINTS] + [math.inf]

    ranges = [
        ZoneRange(min=bounds[i], max=bounds[i + 1], label=ZONE_LABELS[i])
        for i in range(5)
    ]
    return HRZoneTable(*ranges)


def get_zone_for_hr(hr: float, zones: HRZoneTable) -> str:
    """Determine which HR zone a given heart rate falls into"""
    for name, zone in zip(ZONE_NAMES, zones.ranges()):
        if hr < zone.max:
            return name
    return "Z5"


def _zone_number(zone: str) -> int:
    return int(zone[1:])


def estimate_zone_distribution(avg_hr: Optional[float], max_hr: Optional[float],
                               duration_minutes: float, zones: HRZoneTable) -> Optional[Dict[str, float]]:
    """Estimate minutes per HR zone from average and max heart rate.

    Only two scalar values are known, so the split is a fixed policy (see
    ESTIMATION_POLICY): warm-up in Z1, half the time at the zone of the
    average HR, a short share at the zone of the max HR and the remainder
    spread over the zones in between. The fractions are normalised so the
    returned minutes always sum to ``duration_minutes``.
    """
    if not avg_hr:
        return None
    if duration_minutes < 0:
        raise ValueError(f"duration_minutes must not be negative, got {duration_minutes}")

    primary = _zone_number(get_zone_for_hr(avg_hr, zones))
    peak = _zone_number(get_zone_for_hr(max_hr, zones)) if max_hr else primary

    dist = empty_zone_map()
    dist["Z1"] += ESTIMATION_POLICY["warmup"]
    dist[f"Z{primary}"] += ESTIMATION_POLICY["primary"]
    remaining = 1.0 - ESTIMATION_POLICY["warmup"] - ESTIMATION_POLICY["primary"]

    if peak > primary:
        dist[f"Z{peak}"] += ESTIMATION_POLICY["peak"]
        remaining -= ESTIMATION_POLICY["peak"]

        intermediate = peak - primary - 1
        if intermediate > 0:
            per_zone = remaining / (intermediate + 1)
            for z in range(primary + 1, peak):
                dist[f"Z{z}"] += per_zone
                remaining -= per_zone

        # spillover into the zone right above the average
        dist[f"Z{primary + 1}"] += remaining
    else:
        if primary > 1:
            dist[f"Z{primary - 1}"] += remaining * ESTIMATION_POLICY["below_share"]
        if primary < 5:
            dist[f"Z{primary + 1}"] += remaining * ESTIMATION_POLICY["above_share"]

    total = sum(dist.values())
    return {zone: share / total * duration_minutes for zone, share in dist.items()}


def zone_percentages(minutes: Dict[str, float]) -> Dict[str, str]:
    """Convert zone minutes into whole-number percentage strings"""
    total = sum(minutes.values())
    return {
        zone: f"{minutes.get(zone, 0) / total * 100:.0f}" if total > 0 else "0"
        for zone in ZONE_NAMES
    }


def analyze_zones(laps: List[Lap], zones: HRZoneTable) -> Optional[ZoneAnalysis]:
    """Classify each lap by its average HR and weight it by lap duration"""
    distribution = empty_zone_map()
    total_minutes = 0.0

    for lap in laps:
        if not lap.average_heartrate:
            continue
        duration_min = lap.moving_time / 60
        distribution[get_zone_for_hr(lap.average_heartrate, zones)] += duration_min
        total_minutes += duration_min

    if total_minutes == 0:
        return None

    # ties resolve to the lower zone
    primary_zone = max(ZONE_NAMES, key=lambda z: (distribution[z], -_zone_number(z)))
    pcts = zone_percentages(distribution)

    logger.debug(f"Lap zone distribution: {pcts}, primary {primary_zone}")
    return ZoneAnalysis(
        minutes={zone: round(value, 1) for zone, value in distribution.items()},
        pcts=pcts,
        primary_zone=primary_zone,
        primary_pct=pcts[primary_zone],
    )
