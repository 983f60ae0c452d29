#!/usr/bin/env python3
"""
FTP estimation from training data
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from ..data.models import EnrichedActivity, FTPEstimate, WeeklyStats, ZoneRange
from .progress import LONG_BREAK_DAYS, SHORT_BREAK_DAYS, days_since_last_activity, detraining_loss_pct

logger = logging.getLogger(__name__)

SHORT_BREAK_FACTOR = 0.97
EFFICIENCY_DECLINE_RATIO = 0.90
COMPARISON_TOLERANCE = 0.05

THRESHOLD_MIN_Z4_PCT = 30
THRESHOLD_MIN_MINUTES = 30
THRESHOLD_FACTOR = 0.95
LONG_RIDE_MIN_MINUTES = 45
LONG_RIDE_FACTOR = 0.90
MIN_POWER_WATTS = 100
BEST_EFFORT_FACTOR = 0.85
BEST_EFFORT_CAVEAT = "Unsichere Schätzung - mache einen strukturierten 20min-Test für genaue Werte!"

# Coggan power zones as (name, lower fraction, upper fraction, label)
FTP_ZONE_BOUNDS = [
    ("recovery", None, 0.55, "Recovery (<55%)"),
    ("endurance", 0.56, 0.75, "Endurance (56-75%)"),
    ("tempo", 0.76, 0.90, "Tempo (76-90%)"),
    ("threshold", 0.91, 1.05, "Threshold (91-105%)"),
    ("vo2max", 1.06, 1.20, "VO2max (106-120%)"),
    ("anaerobic", 1.21, None, "Anaerobic (>121%)"),
]
ANAEROBIC_CEILING = 999


def compare_to_current(estimated_ftp: int, current_ftp: float) -> str:
    if estimated_ftp > current_ftp * (1 + COMPARISON_TOLERANCE):
        return "raise"
    if estimated_ftp < current_ftp * (1 - COMPARISON_TOLERANCE):
        return "lower"
    return "confirm"


def check_for_detraining(stats: List[WeeklyStats], current_ftp: float,
                         now: Optional[datetime] = None) -> Optional[FTPEstimate]:
    """Downgraded FTP suggestion after a training break, else None"""
    days_off = days_since_last_activity(stats, now)
    if days_off is None:
        return None

    if days_off >= LONG_BREAK_DAYS:
        weeks_off = days_off // 7
        loss = detraining_loss_pct(days_off)
        estimated = round(current_ftp * (1 - loss / 100))
        return FTPEstimate(
            estimated_ftp=estimated,
            confidence="medium",
            method="Trainingspause-Anpassung",
            explanation=f"{days_off} Tage ohne Training (≈{weeks_off} Wochen)",
            recommendation=f"⚠️ Nach {days_off} Tagen Pause empfehle ich FTP auf **{estimated}W** zu senken "
                           f"(war: {current_ftp:.0f}W). Detraining-Effekt: ~{round(loss)}%. "
                           f"Starte sanft und teste nach 2-3 Wochen neu!",
            comparison="lower",
        )

    if days_off >= SHORT_BREAK_DAYS:
        estimated = round(current_ftp * SHORT_BREAK_FACTOR)
        return FTPEstimate(
            estimated_ftp=estimated,
            confidence="low",
            method="Kurze Pause",
            explanation=f"{days_off} Tage Trainingspause",
            recommendation=f"💡 Nach {days_off} Tagen Pause: Starte mit reduzierten Intensitäten. Wenn die ersten "
                           f"Einheiten schwerfallen, senke FTP vorübergehend auf **{estimated}W**.",
            comparison="lower",
        )

    return None


def _with_efficiency(weeks: List[WeeklyStats]) -> List[EnrichedActivity]:
    activities = [a for week in weeks for a in week.activities if a.efficiency_factor > 0]
    return sorted(activities, key=lambda a: a.start_date, reverse=True)


def _check_efficiency_decline(stats: List[WeeklyStats], current_ftp: float) -> Optional[FTPEstimate]:
    recent = _with_efficiency(stats[-4:])[:3]
    older = _with_efficiency(stats[-8:-4])[:3]
    if len(recent) < 3 or len(older) < 3:
        return None

    recent_ef = sum(a.efficiency_factor for a in recent) / len(recent)
    older_ef = sum(a.efficiency_factor for a in older) / len(older)
    if recent_ef >= older_ef * EFFICIENCY_DECLINE_RATIO:
        return None

    decline = round((1 - recent_ef / older_ef) * 100)
    estimated = round(current_ftp * (recent_ef / older_ef))
    return FTPEstimate(
        estimated_ftp=estimated,
        confidence="medium",
        method="Effizienz-Analyse",
        explanation=f"Effizienz-Faktor gefallen: {older_ef:.2f} → {recent_ef:.2f} (-{decline}%)",
        recommendation=f"⚠️ Deine Effizienz ist um {decline}% gesunken. Das deutet auf Ermüdung, Übertraining "
                       f"oder Krankheit hin. Reduziere FTP vorübergehend auf **{estimated}W** und gönne dir "
                       f"mehr Erholung.",
        comparison="lower",
    )


def _power_recommendation(estimated: int, current_ftp: float, comparison: str, raise_hint: str) -> str:
    if comparison == "raise":
        return f"🎉 Dein FTP ist wahrscheinlich **{estimated}W** (aktuell: {current_ftp:.0f}W). {raise_hint}"
    if comparison == "lower":
        return (f"⚠️ Geschätzter FTP: **{estimated}W** (aktuell: {current_ftp:.0f}W). "
                f"Möglicherweise zu hoch eingestellt oder du bist ermüdet.")
    return f"✅ Dein FTP von **{current_ftp:.0f}W** scheint gut zu passen (geschätzt: {estimated}W)."


def _mean_weighted_watts(activities: List[EnrichedActivity]) -> float:
    return sum(a.weighted_average_watts or 0 for a in activities) / len(activities)


def estimate_ftp(stats: List[WeeklyStats], current_ftp: float,
                 now: Optional[datetime] = None) -> Optional[FTPEstimate]:
    """Estimate FTP from training data.

    Methods are tried in order of reliability and the first one with
    enough data wins:

    1. training break (detraining adjustment)
    2. efficiency decline against the four weeks before
    3. threshold workouts (>30% Z4, >30 min)
    4. long rides (>45 min, >100 W weighted)
    5. best efforts (top 3 weighted power)
    """
    if not stats:
        return None

    estimate = check_for_detraining(stats, current_ftp, now) or _check_efficiency_decline(stats, current_ftp)
    if estimate:
        logger.info(f"FTP estimate via {estimate.method}: {estimate.estimated_ftp}W")
        return estimate

    activities = [a for week in stats[-4:] for a in week.activities]
    if not activities:
        return None

    threshold = [
        a for a in activities
        if float((a.zone_pcts or {}).get("Z4") or 0) > THRESHOLD_MIN_Z4_PCT
        and a.moving_time / 60 > THRESHOLD_MIN_MINUTES
        and a.weighted_average_watts
    ]
    if threshold:
        estimated = round(_mean_weighted_watts(threshold) * THRESHOLD_FACTOR)
        comparison = compare_to_current(estimated, current_ftp)
        estimate = FTPEstimate(
            estimated_ftp=estimated,
            confidence="high",
            method="Schwellenintervalle",
            explanation=f"Basierend auf {len(threshold)} Schwellen-Einheiten mit ≥30% Z4-Zeit",
            recommendation=_power_recommendation(estimated, current_ftp, comparison,
                                                 "Erwäge einen FTP-Test zur Bestätigung!"),
            comparison=comparison,
        )
    else:
        long_rides = [
            a for a in activities
            if a.moving_time / 60 > LONG_RIDE_MIN_MINUTES and (a.weighted_average_watts or 0) > MIN_POWER_WATTS
        ]
        powered = [a for a in activities if (a.weighted_average_watts or 0) > MIN_POWER_WATTS]

        if long_rides:
            avg_watts = _mean_weighted_watts(long_rides)
            estimated = round(avg_watts * LONG_RIDE_FACTOR)
            comparison = compare_to_current(estimated, current_ftp)
            estimate = FTPEstimate(
                estimated_ftp=estimated,
                confidence="medium",
                method="Lange Ausfahrten",
                explanation=f"Basierend auf {len(long_rides)} Fahrten >45min (Ø{round(avg_watts)}W)",
                recommendation=_power_recommendation(estimated, current_ftp, comparison,
                                                     "Mache einen 20min-Test zur Bestätigung!"),
                comparison=comparison,
            )
        elif powered:
            top3 = sorted(powered, key=lambda a: a.weighted_average_watts, reverse=True)[:3]
            avg_best = _mean_weighted_watts(top3)
            estimated = round(avg_best * BEST_EFFORT_FACTOR)
            comparison = compare_to_current(estimated, current_ftp)
            recommendation = _power_recommendation(estimated, current_ftp, comparison, BEST_EFFORT_CAVEAT)
            if comparison != "raise":
                recommendation = f"{recommendation} {BEST_EFFORT_CAVEAT}"
            estimate = FTPEstimate(
                estimated_ftp=estimated,
                confidence="low",
                method="Beste Leistungen",
                explanation=f"Basierend auf Top-3 gewichteten Durchschnittsleistungen (Ø{round(avg_best)}W)",
                recommendation=recommendation,
                comparison=comparison,
            )

    if estimate:
        logger.info(f"FTP estimate via {estimate.method}: {estimate.estimated_ftp}W ({estimate.comparison})")
    else:
        logger.debug("Not enough power data for an FTP estimate")
    return estimate


def calculate_ftp_zones(ftp: float) -> Dict[str, ZoneRange]:
    """Power zones in watts for the given FTP"""
    zones = {}
    for name, lower, upper, label in FTP_ZONE_BOUNDS:
        zones[name] = ZoneRange(
            min=round(ftp * lower) if lower is not None else 0,
            max=round(ftp * upper) if upper is not None else ANAEROBIC_CEILING,
            label=label,
        )
    return zones
