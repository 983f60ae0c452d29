#!/usr/bin/env python3
"""
Progress assessment - training status, breaks, zone balance per training
goal and blood pressure trend
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from ..data.models import (
    BloodPressureEntry, BloodPressureInsight, BloodPressureReading, LatestWeight,
    ProgressAssessment, WeeklyStats, WeightInsight, parse_timestamp,
)

logger = logging.getLogger(__name__)

LONG_BREAK_DAYS = 14
SHORT_BREAK_DAYS = 7
DETRAINING_PCT_PER_WEEK = 1.5
DETRAINING_MAX_PCT = 15.0

EF_IMPROVING_PCT = 2.0
EF_DECLINING_PCT = -3.0
FATIGUE_VOLUME_RATIO = 1.2
PRODUCTIVE_VOLUME_RATIO = 1.1

# status -> (color, severity)
STATUS_STYLES = {
    "Insufficient Data": ("gray", "neutral"),
    "Training Break": ("orange", "warning"),
    "Short Break": ("yellow", "info"),
    "Building Fitness": ("green", "positive"),
    "High Load / Fatigue": ("orange", "warning"),
    "Stagnating": ("gray", "neutral"),
    "Productive Load": ("indigo", "positive"),
    "Maintenance": ("blue", "info"),
    "Maintaining": ("blue", "info"),
}


@dataclass(frozen=True)
class ZoneBalanceRule:
    """Zone distribution targets for one training goal (percent of weekly time)"""
    min_z2: float
    max_z3: float
    max_z5: float
    min_intensity: Optional[float]  # Z4 + Z5
    max_intensity: Optional[float]
    low_z2: str
    low_intensity: str
    high_intensity: str
    balanced: str


GREY_ZONE_WARNING = ("⚠️ **Vermeide 'Junk Miles'!** {z3}% deiner Zeit war in Zone 3 (Grey Zone). "
                     "Fahre entweder wirklich locker (Z2) oder gezielt hart (Z4), aber weniger dazwischen.")
Z5_WARNING = ("🔥 **Vorsicht, Ausbrennen droht!** {z5}% in Zone 5 ist extrem hart. "
              "Reduziere die Intensität nächste Woche und fahre mehr lockere Kilometer zur Erholung.")

GOAL_ZONE_RULES: Dict[str, ZoneBalanceRule] = {
    "general_fitness": ZoneBalanceRule(
        min_z2=40, max_z3=30, max_z5=20, min_intensity=10, max_intensity=None,
        low_z2="🚴 **Grundlagen-Fokus fehlt!** Nur {z2}% deiner Zeit war in Zone 2. Versuche, 1-2 ruhige "
               "Einheiten (60-90min) einzubauen, um die aerobe Basis zu stärken.",
        low_intensity="⚡ **Basis ist stark, Intensität fehlt!** Du hast eine super Grundlage ({z2}% Z2). "
                      "Füge jetzt 1x pro Woche Intervalle (z.B. 4x8min Z4) hinzu, um die Schwelle zu heben.",
        high_intensity="",
        balanced="✅ **Super Balance!** Dein Mix aus Grundlage und Intensität passt gut. Behalte diesen "
                 "Rhythmus bei und steigere langsam das Volumen.",
    ),
    "weight_loss": ZoneBalanceRule(
        min_z2=50, max_z3=30, max_z5=15, min_intensity=None, max_intensity=20,
        low_z2="🔥 **Fettstoffwechsel-Zone fehlt!** Nur {z2}% in Zone 2. Lange, lockere Einheiten (75-120min) "
               "verbrennen am meisten Fett.",
        low_intensity="",
        high_intensity="🧘 **Zu viel Intensität für dein Ziel!** {intensity}% in Z4/Z5 macht hungrig und müde. "
                       "Setze auf ruhige, längere Fahrten.",
        balanced="✅ **Perfekt fürs Abnehmen!** Viel Zone 2 ({z2}%) und wenig Spitzen. Bleib konstant und "
                 "steigere die Dauer.",
    ),
    "increase_ftp": ZoneBalanceRule(
        min_z2=30, max_z3=30, max_z5=20, min_intensity=15, max_intensity=35,
        low_z2="🚴 **Zu wenig Basis für FTP-Aufbau!** Nur {z2}% in Zone 2. Ohne aerobe Basis verpuffen die "
               "Intervalle, plane 2 lockere Einheiten pro Woche.",
        low_intensity="⚡ **Schwellenreize fehlen!** Nur {intensity}% in Z4/Z5. Plane 2x pro Woche Sweet-Spot- "
                      "oder Schwellenintervalle (z.B. 2x20min @ 90-95% FTP).",
        high_intensity="🛑 **Zu viele harte Einheiten!** {intensity}% in Z4/Z5. Mehr als 2 Intervalltage pro "
                       "Woche bremsen die Anpassung, ersetze einen durch lockere Z2.",
        balanced="✅ **Gute FTP-Struktur!** Basis ({z2}% Z2) und Schwellenarbeit ({intensity}% Z4/Z5) "
                 "sind im Gleichgewicht. Steigere die Intervalldauer schrittweise.",
    ),
    "build_endurance": ZoneBalanceRule(
        min_z2=60, max_z3=25, max_z5=10, min_intensity=None, max_intensity=15,
        low_z2="🚴 **Mehr Zone 2!** Nur {z2}% deiner Zeit war in Zone 2. Für Ausdauer brauchst du 3-4 ruhige "
               "Einheiten pro Woche, eine davon lang (2h+).",
        low_intensity="",
        high_intensity="🐢 **Zu schnell unterwegs!** {intensity}% in Z4/Z5. Für Ausdaueraufbau fahre die meisten "
                       "Einheiten bewusst locker.",
        balanced="✅ **Ausdauer wächst!** {z2}% in Zone 2. Verlängere die lange Ausfahrt jede Woche um "
                 "10-15 Minuten.",
    ),
    "improve_vo2max": ZoneBalanceRule(
        min_z2=30, max_z3=30, max_z5=20, min_intensity=15, max_intensity=40,
        low_z2="🚴 **Erholung zwischen den Intervallen fehlt!** Nur {z2}% in Zone 2. VO2max-Training braucht "
               "lockere Tage dazwischen.",
        low_intensity="⚡ **Zu wenig harte Reize!** Nur {intensity}% in Z4/Z5. Plane 1-2x pro Woche VO2max-"
                      "Intervalle (z.B. 5x4min @ 110-120% FTP).",
        high_intensity="🛑 **Intensität zu hoch!** {intensity}% in Z4/Z5. Maximal 2 harte Einheiten pro Woche, "
                       "sonst drohen Übertraining und Stagnation.",
        balanced="✅ **Starker VO2max-Block!** Harte Intervalle und lockere Erholung passen zusammen.",
    ),
    "build_base": ZoneBalanceRule(
        min_z2=70, max_z3=20, max_z5=10, min_intensity=None, max_intensity=10,
        low_z2="🏗️ **Basisphase heißt Zone 2!** Nur {z2}% in Zone 2, Ziel sind 70%+. Fahre fast alle "
               "Einheiten im Gesprächstempo.",
        low_intensity="",
        high_intensity="🐢 **Zu viel Intensität in der Basisphase!** {intensity}% in Z4/Z5. Hebe dir harte "
                       "Einheiten für später in der Saison auf.",
        balanced="✅ **Saubere Basisphase!** {z2}% in Zone 2. Steigere das Wochenvolumen um maximal 10%.",
    ),
    "race_prep": ZoneBalanceRule(
        min_z2=35, max_z3=30, max_z5=20, min_intensity=20, max_intensity=40,
        low_z2="🚴 **Basis nicht vernachlässigen!** Nur {z2}% in Zone 2. Auch vor dem Wettkampf braucht es "
               "lockere Regenerationseinheiten.",
        low_intensity="🏁 **Wettkampfspezifische Reize fehlen!** Nur {intensity}% in Z4/Z5. Baue renntypische "
                      "Intervalle und Tempowechsel ein.",
        high_intensity="🛑 **Zu viel Intensität!** {intensity}% in Z4/Z5. Komm frisch an die Startlinie, "
                       "reduziere die harten Einheiten.",
        balanced="✅ **Gute Wettkampfvorbereitung!** Intensität und Erholung sind ausgewogen.",
    ),
    "maintenance": ZoneBalanceRule(
        min_z2=40, max_z3=30, max_z5=20, min_intensity=5, max_intensity=25,
        low_z2="🚴 **Mehr ruhige Kilometer!** Nur {z2}% in Zone 2. 1-2 lockere Einheiten halten die Basis.",
        low_intensity="⚡ **Ein kurzer Reiz fehlt!** Nur {intensity}% in Z4/Z5. Eine Intervalleinheit pro "
                      "Woche erhält deine Form.",
        high_intensity="🧘 **Mehr als nötig!** {intensity}% in Z4/Z5. Zur Formerhaltung reicht weniger "
                       "Intensität.",
        balanced="✅ **Form gehalten!** Dein Mix passt zur Formerhaltung.",
    ),
}


def find_last_activity_date(stats: List[WeeklyStats]) -> Optional[datetime]:
    """Start time of the most recent activity across all weeks"""
    dates = [activity.start_date for week in stats for activity in week.activities]
    return max(dates) if dates else None


def days_since_last_activity(stats: List[WeeklyStats], now: Optional[datetime] = None) -> Optional[int]:
    last = find_last_activity_date(stats)
    if last is None:
        return None
    now = parse_timestamp(now) if now else datetime.now(timezone.utc)
    return int((now - last).total_seconds() // 86400)


def detraining_loss_pct(days_off: int) -> float:
    """Estimated FTP loss after ``days_off`` days without training"""
    weeks_off = days_off // 7
    return min(weeks_off * DETRAINING_PCT_PER_WEEK, DETRAINING_MAX_PCT)


def zone_balance_recommendation(week: WeeklyStats, training_goal: str) -> str:
    """Goal specific coaching sentence for the week's zone distribution"""
    rule = GOAL_ZONE_RULES.get(training_goal, GOAL_ZONE_RULES["general_fitness"])

    z2 = round(week.zone_pct("Z2"))
    z3 = round(week.zone_pct("Z3"))
    z5 = round(week.zone_pct("Z5"))
    intensity = round(week.zone_pct("Z4") + week.zone_pct("Z5"))
    values = {"z2": z2, "z3": z3, "z5": z5, "intensity": intensity}

    if z2 < rule.min_z2:
        message = rule.low_z2
    elif rule.min_intensity is not None and intensity < rule.min_intensity:
        message = rule.low_intensity
    elif rule.max_intensity is not None and intensity > rule.max_intensity:
        message = rule.high_intensity
    else:
        message = rule.balanced

    warnings = []
    if z3 > rule.max_z3:
        warnings.append(GREY_ZONE_WARNING)
    if z5 > rule.max_z5:
        warnings.append(Z5_WARNING)

    return " ".join(part.format(**values) for part in warnings + [message])


def _assessment(status: str, message: str, next_step: str) -> ProgressAssessment:
    color, severity = STATUS_STYLES[status]
    return ProgressAssessment(status=status, message=message, next_step=next_step,
                              color=color, severity=severity)


def _break_assessment(days_off: int, current_ftp: Optional[float]) -> Optional[ProgressAssessment]:
    if days_off >= LONG_BREAK_DAYS:
        loss = detraining_loss_pct(days_off)
        if current_ftp:
            reduced = round(current_ftp * (1 - loss / 100))
            ftp_hint = f"Senke dein FTP vorübergehend auf **{reduced}W** (-{loss:g}%)."
        else:
            ftp_hint = f"Senke dein FTP vorübergehend um etwa {loss:g}%."
        return _assessment(
            "Training Break",
            f"Du hast seit **{days_off} Tagen** nicht trainiert. Etwas Form ist verloren gegangen, "
            f"das kommt schnell zurück.",
            f"**Sanfter Wiedereinstieg!** {ftp_hint} Starte mit 2-3 lockeren Z2-Einheiten "
            f"und teste nach 2-3 Wochen neu.",
        )
    if days_off >= SHORT_BREAK_DAYS:
        return _assessment(
            "Short Break",
            f"Kurze Pause von **{days_off} Tagen**. Deine Fitness ist noch weitgehend da.",
            "**Locker wieder einsteigen.** Die erste Einheit ruhig in Zone 2 fahren, "
            "danach normal weitertrainieren.",
        )
    return None


def _classify(stats: List[WeeklyStats], training_goal: str) -> ProgressAssessment:
    recent = stats[-4:]
    current = recent[-1]
    previous = recent[:-1]

    valid_ef = [w.efficiency_factor for w in previous if w.efficiency_factor > 0]
    baseline_ef = sum(valid_ef) / len(valid_ef) if valid_ef else 0.0
    current_ef = current.efficiency_factor or 0.0

    baseline_work = sum(w.total_calories or 0 for w in previous) / len(previous)
    current_work = current.total_calories or 0

    zone_recommendation = zone_balance_recommendation(current, training_goal)

    if baseline_ef <= 0 or current_ef <= 0:
        return _assessment("Maintaining", "Deine Fitness ist stabil.", zone_recommendation)

    ef_change = (current_ef - baseline_ef) / baseline_ef * 100
    logger.debug(f"EF baseline {baseline_ef:.2f} -> current {current_ef:.2f} ({ef_change:+.1f}%), "
                 f"work {baseline_work:.0f} -> {current_work}")

    if ef_change > EF_IMPROVING_PCT:
        return _assessment(
            "Building Fitness",
            f"Starker Trend! Deine Effizienz hat sich um **{ef_change:.1f}%** verbessert.",
            zone_recommendation,
        )

    if ef_change < EF_DECLINING_PCT:
        if current_work > baseline_work * FATIGUE_VOLUME_RATIO:
            return _assessment(
                "High Load / Fatigue",
                f"Deine Effizienz sinkt bei hohem Volumen (-{abs(ef_change):.1f}%). Du könntest ermüdet sein.",
                "**Erholungswoche einplanen!** Kürze das Volumen um 30-50% und fahre nur locker (Z1/Z2), "
                "damit sich der Körper anpassen kann.",
            )
        return _assessment(
            "Stagnating",
            f"Deine Effizienz ist leicht gesunken (-{abs(ef_change):.1f}%).",
            f"**Reiz verändern!** Dein Training könnte zu monoton sein. {zone_recommendation}",
        )

    if current_work > baseline_work * PRODUCTIVE_VOLUME_RATIO:
        return _assessment(
            "Productive Load",
            "Du steigerst das Volumen erfolgreich und hältst dabei deine Effizienz.",
            zone_recommendation,
        )

    return _assessment(
        "Maintenance",
        "Deine Fitness ist stabil. Keine großen Sprünge, aber auch kein Einbruch.",
        "**Plateau durchbrechen.** Wenn du dich frisch fühlst, erhöhe die Dauer der langen Ausfahrt "
        "oder die Intensität der Intervalle.",
    )


def analyze_weight(latest_weight: Optional[LatestWeight]) -> Optional[WeightInsight]:
    if not latest_weight or not latest_weight.weight:
        return None
    message = f"Aktuelles Gewicht: **{latest_weight.weight} kg**"
    if latest_weight.fat_ratio:
        message += f" (Fett: {latest_weight.fat_ratio}%)"
    return WeightInsight(current=latest_weight.weight, message=message)


def _bp_category(systolic: float, diastolic: float) -> Tuple[str, str]:
    if systolic < 120 and diastolic < 80:
        return "optimal", "optimal"
    if systolic < 130 and diastolic < 85:
        return "good", "gut"
    return "borderline", "grenzwertig"


def analyze_blood_pressure(entries: Optional[List[BloodPressureEntry]]) -> Optional[BloodPressureInsight]:
    """Compare the latest reading with the mean of all earlier readings"""
    valid = sorted((e for e in entries or [] if e.systolic and e.diastolic), key=lambda e: e.week)
    if not valid:
        return None

    latest = valid[-1]
    current = BloodPressureReading(systolic=latest.systolic, diastolic=latest.diastolic, pulse=latest.pulse)
    reading = f"{latest.systolic:.0f}/{latest.diastolic:.0f} mmHg"

    if len(valid) < 2:
        return BloodPressureInsight(
            current=current,
            trend="insufficient_data",
            message=f"Aktueller Blutdruck: **{reading}**. Für einen Trend brauche ich mehr Messungen.",
        )

    earlier = valid[:-1]
    avg_sys = sum(e.systolic for e in earlier) / len(earlier)
    avg_dia = sum(e.diastolic for e in earlier) / len(earlier)
    sys_delta = latest.systolic - avg_sys
    dia_delta = latest.diastolic - avg_dia
    previous = f"{avg_sys:.0f}/{avg_dia:.0f}"

    if sys_delta < -5 or dia_delta < -3:
        return BloodPressureInsight(
            current=current,
            trend="improving",
            message=f"📉 Dein Blutdruck sinkt: **{reading}** (vorher Ø {previous}).",
            note="Regelmäßiges Ausdauertraining wirkt – weiter so!",
        )

    if sys_delta > 5 or dia_delta > 3:
        if latest.systolic >= 140 or latest.diastolic >= 90:
            return BloodPressureInsight(
                current=current,
                trend="worsening",
                message=f"🩺 Blutdruck erhöht: **{reading}** (vorher Ø {previous}). "
                        f"Bitte ärztlich abklären lassen.",
                note="Verzichte auf maximale Intensitäten, bis das geklärt ist.",
            )
        return BloodPressureInsight(
            current=current,
            trend="worsening",
            message=f"📈 Dein Blutdruck steigt: **{reading}** (vorher Ø {previous}).",
            note="Achte auf Erholung, Schlaf und Stress. Lockere Z2-Einheiten helfen.",
        )

    category, label = _bp_category(latest.systolic, latest.diastolic)
    notes = {
        "optimal": "Ausgezeichnete Werte.",
        "good": "Gute Werte, Ausdauertraining hält sie stabil.",
        "borderline": "Grenzwertig, behalte die Werte im Blick.",
    }
    return BloodPressureInsight(
        current=current,
        trend="stable",
        message=f"Blutdruck stabil bei **{reading}** ({label}).",
        note=notes[category],
    )


def analyze_overall_progress(stats: List[WeeklyStats],
                             training_goal: str = "general_fitness",
                             current_ftp: Optional[float] = None,
                             latest_weight: Optional[LatestWeight] = None,
                             blood_pressure: Optional[List[BloodPressureEntry]] = None,
                             now: Optional[datetime] = None) -> ProgressAssessment:
    """Assess training progress over the last four weeks.

    Breaks short-circuit the efficiency comparison. Weight and blood
    pressure insights are attached to every outcome.
    """
    if len(stats or []) < 2 or not any(w.count or w.efficiency_factor for w in stats):
        assessment = _assessment(
            "Insufficient Data",
            "Keep training! I need a few more weeks of data to analyze your long-term trends.",
            "Keep logging consistent rides.",
        )
    else:
        days_off = days_since_last_activity(stats, now)
        assessment = None
        if days_off is not None:
            assessment = _break_assessment(days_off, current_ftp)
            if assessment:
                logger.info(f"Training break detected: {days_off} days since last activity")
        if assessment is None:
            assessment = _classify(stats, training_goal)

    assessment.weight_insight = analyze_weight(latest_weight)
    assessment.blood_pressure_insight = analyze_blood_pressure(blood_pressure)

    logger.info(f"Progress status: {assessment.status}")
    return assessment
