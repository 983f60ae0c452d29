#!/usr/bin/env python3
"""
Performance metrics - combines weekly training stats with body composition
"""

import logging
from typing import List, Optional

from ..data.models import (
    BodyCompTrend, BodyCompositionEntry, LatestWeight, PerformanceMetrics,
    PowerToWeightTrend, WeeklyStats, WeightTrend,
)

logger = logging.getLogger(__name__)

WEIGHT_STABLE_KG = 0.5
BODY_COMP_STABLE = 0.5
POWER_TO_WEIGHT_STABLE_PCT = 2.0

# (minimum W/kg, label), checked top down
POWER_TO_WEIGHT_TIERS = [
    (4.0, "Spitzenniveau"),
    (3.5, "Fortgeschritten"),
    (3.0, "Ambitioniert"),
    (2.5, "Moderat"),
    (0.0, "Einsteiger"),
]


def _direction(change: float, threshold: float, up: str = "up", down: str = "down") -> str:
    if change > threshold:
        return up
    if change < -threshold:
        return down
    return "stable"


def power_to_weight_level(power_to_weight: float) -> str:
    for minimum, label in POWER_TO_WEIGHT_TIERS:
        if power_to_weight >= minimum:
            return label
    return POWER_TO_WEIGHT_TIERS[-1][1]


def calculate_weight_trend(entries: List[BodyCompositionEntry]) -> Optional[WeightTrend]:
    """Compare the earliest and latest weekly weight"""
    with_weight = sorted((e for e in entries if e.weight), key=lambda e: e.week)
    if len(with_weight) < 2:
        return None

    first, last = with_weight[0].weight, with_weight[-1].weight
    change = last - first
    return WeightTrend(
        change=round(change, 1),
        direction=_direction(change, WEIGHT_STABLE_KG),
        start_weight=first,
        end_weight=last,
        weeks=len(with_weight),
    )


def calculate_body_comp_trend(entries: List[BodyCompositionEntry]) -> Optional[BodyCompTrend]:
    """Compare earliest and latest fat ratio and muscle mass independently"""
    ordered = sorted(entries, key=lambda e: e.week)
    with_fat = [e.fat_ratio for e in ordered if e.fat_ratio]
    with_muscle = [e.muscle_mass for e in ordered if e.muscle_mass]

    if len(with_fat) < 2 and len(with_muscle) < 2:
        return None

    trend = BodyCompTrend()
    if len(with_fat) >= 2:
        fat_change = with_fat[-1] - with_fat[0]
        trend.fat_change = round(fat_change, 1)
        trend.fat_direction = _direction(fat_change, BODY_COMP_STABLE)
    if len(with_muscle) >= 2:
        muscle_change = with_muscle[-1] - with_muscle[0]
        trend.muscle_change = round(muscle_change, 1)
        trend.muscle_direction = _direction(muscle_change, BODY_COMP_STABLE)
    return trend


def calculate_power_to_weight_trend(all_stats: List[WeeklyStats],
                                    entries: List[BodyCompositionEntry]) -> Optional[PowerToWeightTrend]:
    """W/kg change between the first and last week that has both power and weight"""
    weights = {e.week: e.weight for e in entries if e.weight}
    matched = [
        week.avg_power / weights[week.label]
        for week in all_stats
        if week.label in weights and week.avg_power > 0
    ]
    if len(matched) < 2:
        return None

    change = (matched[-1] - matched[0]) / matched[0] * 100
    return PowerToWeightTrend(
        change=round(change, 1),
        direction=_direction(change, POWER_TO_WEIGHT_STABLE_PCT, up="improving", down="declining"),
    )


def calculate_performance_metrics(current_stats: Optional[WeeklyStats],
                                  latest_weight: Optional[LatestWeight],
                                  body_composition: Optional[List[BodyCompositionEntry]] = None,
                                  all_stats: Optional[List[WeeklyStats]] = None) -> PerformanceMetrics:
    """Calculate performance metrics combining weight and training data.

    Every field is computed independently and stays ``None`` when its
    inputs are missing.
    """
    body_composition = body_composition or []
    all_stats = all_stats or []
    metrics = PerformanceMetrics()

    weight = latest_weight.weight if latest_weight else None
    if current_stats and weight and weight > 0:
        if current_stats.avg_power > 0:
            metrics.power_to_weight = round(current_stats.avg_power / weight, 2)
        if current_stats.efficiency_factor > 0:
            metrics.efficiency_per_kg = round(current_stats.efficiency_factor * 100 / weight, 2)

    metrics.weight_trend = calculate_weight_trend(body_composition)
    metrics.body_comp_trend = calculate_body_comp_trend(body_composition)
    metrics.power_to_weight_trend = calculate_power_to_weight_trend(all_stats, body_composition)
    metrics.insights = generate_performance_insights(metrics)

    logger.debug(f"Performance metrics: W/kg={metrics.power_to_weight}, "
                 f"weight trend={metrics.weight_trend.direction if metrics.weight_trend else None}")
    return metrics


def _weight_insight(trend: WeightTrend, bc: Optional[BodyCompTrend]) -> Optional[str]:
    muscle = bc.muscle_direction if bc else None
    fat = bc.fat_direction if bc else None

    if trend.direction == "down":
        if muscle == "down" and fat != "down":
            return f"⚠️ Gewicht: **{trend.change} kg** – Achtung: Muskelverlust ({bc.muscle_change} kg)!"
        if fat == "down":
            return f"✅ Gewicht: **{trend.change} kg** – Fett ↓ {abs(bc.fat_change)}% (optimal!)"
        return f"📉 Gewicht: **{trend.change} kg** über {trend.weeks} Wochen – gut für W/kg!"

    if trend.direction == "up":
        gain = abs(trend.change)
        if muscle == "up" and fat != "up":
            return f"💪 Gewicht: **+{gain} kg** – davon +{bc.muscle_change} kg Muskeln!"
        if muscle == "up" and fat == "up":
            return f"📈 Gewicht: **+{gain} kg** – Muskeln +{bc.muscle_change} kg, Fett +{bc.fat_change}%"
        if fat == "up":
            return f"📈 Gewicht: **+{gain} kg** – hauptsächlich Fett (+{bc.fat_change}%)"
        return f"📈 Gewicht: **+{gain} kg** – prüfe ob Muskelaufbau oder Fett."

    return None


def generate_performance_insights(metrics: PerformanceMetrics) -> Optional[List[str]]:
    """Short, prioritized insight strings derived from the metrics"""
    insights = []

    if metrics.power_to_weight:
        level = power_to_weight_level(metrics.power_to_weight)
        insights.append(f"**{metrics.power_to_weight:.2f} W/kg** ({level})")

    bc = metrics.body_comp_trend
    if metrics.weight_trend:
        message = _weight_insight(metrics.weight_trend, bc)
        if message:
            insights.append(message)
    elif bc:
        if bc.fat_direction == "down" and bc.muscle_direction != "down":
            insights.append(f"✅ Ideale Körperkomposition: Fett ↓ {abs(bc.fat_change)}%")
        elif bc.muscle_direction == "up":
            insights.append(f"💪 Muskelaufbau: +{bc.muscle_change} kg")

    if metrics.power_to_weight_trend and metrics.power_to_weight_trend.direction == "improving":
        insights.append(f"🚀 W/kg verbessert sich um {metrics.power_to_weight_trend.change}%!")

    return insights or None
