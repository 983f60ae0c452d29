#!/usr/bin/env python3
"""
Workout recommendations - scores the workout library against the training
goal and the current week
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from ..data.models import WeeklyStats, WorkoutRecommendation, WorkoutTemplate

logger = logging.getLogger(__name__)

GOAL_TO_TYPES = {
    "weight_loss": ("endurance", "recovery"),
    "increase_ftp": ("ftp-builder", "sweetspot", "tempo"),
    "build_endurance": ("endurance", "mixed"),
    "improve_vo2max": ("vo2max",),
    "build_base": ("endurance", "recovery"),
    "race_prep": ("mixed", "ftp-builder", "vo2max"),
    "maintenance": ("tempo", "mixed"),
    "general_fitness": ("mixed", "endurance", "tempo"),
}

GOAL_LABELS = {
    "weight_loss": "Gewicht verlieren",
    "increase_ftp": "FTP steigern",
    "build_endurance": "Ausdauer aufbauen",
    "improve_vo2max": "VO2max verbessern",
    "build_base": "Grundlagenausdauer aufbauen",
    "race_prep": "Wettkampfvorbereitung",
    "maintenance": "Formerhaltung",
    "general_fitness": "Allgemeine Fitness",
}

INTENSITY_CLASSES = ("sweet-spot", "threshold", "vo2max")
EASY_CLASSES = ("endurance", "recovery")
ENDURANCE_GOALS = ("build_endurance", "build_base")

BASE_SCORE = 50
MAX_SCORE = 100
TOP_N = 3


@dataclass
class WeekContext:
    """What the current week looked like, as seen by the scoring rules"""
    z2_pct: float
    z3_pct: float
    intensity_pct: float
    intensity_sessions: int
    endurance_sessions: int
    days_since_last_activity: Optional[int]


def build_week_context(current_week: WeeklyStats, days_since_last_activity: Optional[int] = None) -> WeekContext:
    def pct(zone_pcts, zone):
        return float((zone_pcts or {}).get(zone) or 0)

    # >20% in Z4/Z5 counts as an intensity session, at least half in Z2 as endurance
    intensity_sessions = sum(
        1 for a in current_week.activities if pct(a.zone_pcts, "Z4") + pct(a.zone_pcts, "Z5") > 20
    )
    endurance_sessions = sum(1 for a in current_week.activities if pct(a.zone_pcts, "Z2") >= 50)

    return WeekContext(
        z2_pct=current_week.zone_pct("Z2"),
        z3_pct=current_week.zone_pct("Z3"),
        intensity_pct=current_week.zone_pct("Z4") + current_week.zone_pct("Z5"),
        intensity_sessions=intensity_sessions,
        endurance_sessions=endurance_sessions,
        days_since_last_activity=days_since_last_activity,
    )


def score_workout(workout: WorkoutTemplate, training_goal: str, ctx: WeekContext) -> int:
    intensity = workout.estimated_intensity
    score = BASE_SCORE

    if workout.type in GOAL_TO_TYPES.get(training_goal, ()):
        score += 40

    # Zone corrections
    if ctx.z3_pct > 30:
        if intensity in EASY_CLASSES:
            score += 30
        elif intensity in ("threshold", "vo2max"):
            score += 25

    if training_goal == "increase_ftp" and ctx.intensity_pct < 15:
        if intensity in ("sweet-spot", "threshold"):
            score += 30

    if training_goal in ENDURANCE_GOALS and ctx.z2_pct < 70 and intensity == "endurance":
        score += 30

    # Weekly balance: 2x intensity + 2x endurance for FTP, 3+ endurance for base
    if training_goal == "increase_ftp":
        if ctx.intensity_sessions < 2 and intensity in INTENSITY_CLASSES:
            score += 25
        elif ctx.intensity_sessions >= 2 and intensity in EASY_CLASSES:
            score += 25
        elif ctx.endurance_sessions < 2 and intensity in EASY_CLASSES:
            score += 20

    if training_goal in ENDURANCE_GOALS:
        if ctx.endurance_sessions < 3 and intensity in EASY_CLASSES:
            score += 25
        elif ctx.endurance_sessions >= 3 and ctx.intensity_sessions == 0 and intensity in ("tempo", "sweet-spot"):
            score += 15

    # Recovery
    days = ctx.days_since_last_activity
    if days is not None:
        if days > 7 and intensity in EASY_CLASSES:
            score += 20
        elif days < 1 and intensity == "recovery":
            score += 15

    if 45 <= workout.duration / 60 <= 75:
        score += 10

    return min(score, MAX_SCORE)


def generate_reasoning(workout: WorkoutTemplate, training_goal: str, ctx: WeekContext) -> str:
    intensity = workout.estimated_intensity
    parts = [f"**Passt zu deinem Ziel \"{GOAL_LABELS.get(training_goal, training_goal)}\"**"]

    if training_goal == "increase_ftp":
        if ctx.intensity_sessions < 2 and intensity in INTENSITY_CLASSES:
            suffix = "" if ctx.intensity_sessions == 1 else "en"
            parts.append(f"Diese Woche erst {ctx.intensity_sessions} Intervall-Einheit{suffix}. "
                         f"Ziel: 2x Intensität + 2x Basis pro Woche.")
        elif ctx.intensity_sessions >= 2 and intensity in EASY_CLASSES:
            parts.append(f"Schon {ctx.intensity_sessions} intensive Einheiten diese Woche - "
                         f"jetzt lockere Kilometer für Erholung.")

    if training_goal in ENDURANCE_GOALS and ctx.endurance_sessions < 3 and intensity in EASY_CLASSES:
        suffix = "" if ctx.endurance_sessions == 1 else "en"
        parts.append(f"Bisher {ctx.endurance_sessions} Grundlagen-Einheit{suffix}. Ziel: 3-4x Z2-Training pro Woche.")

    if ctx.z3_pct > 30:
        if intensity in EASY_CLASSES:
            parts.append(f"Du hast aktuell {ctx.z3_pct:.0f}% in Zone 3 (Junk Miles). "
                         f"Dieses Workout bringt dich zurück in Zone 2.")
        elif intensity in ("threshold", "vo2max"):
            parts.append("Statt weiter in Zone 3 zu fahren, nutze dieses Workout für echte Intensität in Z4/Z5.")

    if training_goal == "increase_ftp" and ctx.intensity_pct < 15:
        parts.append(f"Aktuell nur {ctx.intensity_pct:.0f}% in Z4/Z5. Dieses {intensity}-Training hebt deine FTP.")

    if training_goal in ENDURANCE_GOALS and ctx.z2_pct < 70:
        parts.append(f"Für Ausdauer-Aufbau brauchst du mehr Z2 (aktuell {ctx.z2_pct:.0f}%). Dieses Workout hilft dabei.")

    days = ctx.days_since_last_activity
    if days is not None:
        if days > 7:
            parts.append(f"Nach {days} Tagen Pause ein idealer Wiedereinstieg.")
        elif days < 1 and intensity == "recovery":
            parts.append("Aktive Erholung nach deiner letzten Einheit - sanft aber effektiv.")

    parts.append(f"**{workout.duration_formatted}** @ ~{round(workout.avg_power * 100)}% FTP")
    return " • ".join(parts)


def priority_for(score: int) -> str:
    if score > 70:
        return "high"
    if score > 50:
        return "medium"
    return "low"


def get_workout_recommendations(workouts: List[WorkoutTemplate], stats: List[WeeklyStats],
                                training_goal: str,
                                days_since_last_activity: Optional[int] = None) -> List[WorkoutRecommendation]:
    """Top three workouts for the current week, best first.

    Returns an empty list when there are no workouts or no weekly stats.
    An empty current week still gets recommendations from its zero context.
    """
    if not workouts or not stats:
        return []

    ctx = build_week_context(stats[-1], days_since_last_activity)
    # sorted() is stable, so equal scores keep library order
    scored = sorted(
        ((score_workout(workout, training_goal, ctx), workout) for workout in workouts),
        key=lambda item: item[0],
        reverse=True,
    )

    recommendations = [
        WorkoutRecommendation(
            workout=workout,
            score=score,
            reasoning=generate_reasoning(workout, training_goal, ctx),
            priority=priority_for(score),
        )
        for score, workout in scored[:TOP_N]
    ]
    logger.info(f"Recommended {len(recommendations)} of {len(workouts)} workouts for goal '{training_goal}'")
    return recommendations
