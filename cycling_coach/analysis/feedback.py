#!/usr/bin/env python3
"""
Feedback rendering - turns numeric activity analysis into Markdown text
"""

from ..data.models import ActivityAnalysis, EnrichedActivity, ZoneAnalysis

ZONE_DESCRIPTIONS = {
    "Z1": "Active Recovery",
    "Z2": "Endurance",
    "Z3": "Tempo",
    "Z4": "Threshold",
    "Z5": "VO2 Max",
}

DRIFT_MESSAGES = {
    "unreliable": "Power output varied between halves, so drift analysis is less reliable.",
    "significant_drift": "Significant cardiac drift detected (>5%). HR rose relative to Power in the second half.",
    "improved": "Your efficiency improved in the second half.",
    "stable": "Good aerobic stability. HR/Power relationship remained constant.",
}

COMPLIANCE_MESSAGES = {
    "fatigue": "Cadence dropped >5rpm towards the end. Try to hold the prescribed RPM even when fatigued.",
    "faster_finish": "You spun faster at the end of the session than prescribed.",
    "steady": "Great execution! You held the cadence steady throughout the session, matching the workout demands.",
}

LOAD_MESSAGES = {
    "high": "High load session (>40% above avg). **Prioritize recovery.**",
    "low": "Recovery session. **Expect freshness tomorrow.**",
    "normal": "Normal load. Maintain rhythm.",
}


def zone_message(zones: ZoneAnalysis) -> str:
    zone = zones.primary_zone
    return (f"You spent **{zones.primary_pct}%** of this activity in **Zone {zone[1:]}** "
            f"({ZONE_DESCRIPTIONS[zone]}).")


def history_message(improvement: float, status: str) -> str:
    if status == "strong":
        return f"Strong (+{improvement:.1f}%) vs 6wk avg."
    if status == "lower":
        return f"Lower ({abs(improvement):.1f}%) vs avg. Monitor fatigue."
    return "Consistent with history."


def render_activity_feedback(activity: EnrichedActivity, analysis: ActivityAnalysis,
                             has_laps: bool = True) -> str:
    lines = [
        f"## {activity.name or f'Activity {activity.id}'}",
        f"**Work Done**: {activity.total_calories} kcal",
    ]

    if not has_laps:
        lines.append("\nNo interval data available for detailed lap analysis.")

    if analysis.zones:
        lines.append(f"\n**Heart Rate Zones**: {zone_message(analysis.zones)}")

    if analysis.load:
        lines.append(f"\n**Training Load**: {LOAD_MESSAGES[analysis.load.status]}")

    if analysis.history:
        lines.append(f"\n**Historical Context**: "
                     f"{history_message(analysis.history.improvement, analysis.history.status)}")

    if analysis.drift:
        lines.append(f"\n**Cardiac Drift**: {DRIFT_MESSAGES[analysis.drift.status]}")
        if analysis.drift.status == "significant_drift":
            lines.append(f"(Decoupling: {analysis.drift.decoupling}%)")

    if analysis.compliance:
        lines.append(f"\n**Workout Compliance**: {COMPLIANCE_MESSAGES[analysis.compliance.status]}")

    return "\n".join(lines)
