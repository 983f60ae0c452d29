"""
Data models for activities, weekly aggregates and analysis results

Every model is a plain dataclass without behaviour so results can be
rendered directly or sent over JSON via ``to_dict()``.
"""

import math
from dataclasses import dataclass, field, asdict
from datetime import datetime, date, timezone
from typing import Any, Dict, List, Optional

ZONE_NAMES = ("Z1", "Z2", "Z3", "Z4", "Z5")


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO timestamp (``Z`` suffix allowed) into an aware UTC datetime"""
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def empty_zone_map() -> Dict[str, float]:
    return {zone: 0.0 for zone in ZONE_NAMES}


def _json_fields(items) -> Dict[str, Any]:
    # open-ended bounds (math.inf) have no JSON literal, they become null
    return {
        key: None if isinstance(value, float) and not math.isfinite(value) else value
        for key, value in items
    }


class Serializable:
    def to_dict(self) -> Dict[str, Any]:
        return asdict(self, dict_factory=_json_fields)


@dataclass(frozen=True)
class Activity(Serializable):
    """Activity summary as delivered by the fitness tracking API"""
    id: int
    start_date: datetime
    moving_time: int
    name: str = ""
    type: str = "Ride"
    elapsed_time: int = 0
    distance: float = 0.0
    total_elevation_gain: float = 0.0

    average_heartrate: Optional[float] = None
    max_heartrate: Optional[float] = None
    average_watts: Optional[float] = None
    weighted_average_watts: Optional[float] = None
    average_cadence: Optional[float] = None
    kilojoules: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Activity":
        return cls(
            id=data['id'],
            start_date=parse_timestamp(data['start_date']),
            moving_time=int(data.get('moving_time') or 0),
            name=data.get('name', ''),
            type=data.get('type', 'Ride'),
            elapsed_time=int(data.get('elapsed_time') or 0),
            distance=data.get('distance') or 0.0,
            total_elevation_gain=data.get('total_elevation_gain') or 0.0,
            average_heartrate=data.get('average_heartrate'),
            max_heartrate=data.get('max_heartrate'),
            average_watts=data.get('average_watts'),
            weighted_average_watts=data.get('weighted_average_watts'),
            average_cadence=data.get('average_cadence'),
            kilojoules=data.get('kilojoules'),
        )


@dataclass(frozen=True)
class Lap(Serializable):
    """Single lap of a detailed activity"""
    moving_time: int
    elapsed_time: int = 0
    distance: float = 0.0
    average_watts: Optional[float] = None
    average_heartrate: Optional[float] = None
    max_heartrate: Optional[float] = None
    average_cadence: Optional[float] = None
    name: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Lap":
        return cls(
            moving_time=int(data.get('moving_time') or 0),
            elapsed_time=int(data.get('elapsed_time') or 0),
            distance=data.get('distance') or 0.0,
            average_watts=data.get('average_watts'),
            average_heartrate=data.get('average_heartrate'),
            max_heartrate=data.get('max_heartrate'),
            average_cadence=data.get('average_cadence'),
            name=data.get('name', ''),
        )


@dataclass(frozen=True)
class EnrichedActivity(Activity):
    """Activity with values derived during weekly aggregation"""
    efficiency_factor: float = 0.0
    total_calories: int = 0
    time_hours: float = 0.0
    primary_zone: str = "Z1"
    zone_pcts: Optional[Dict[str, str]] = None
    zone_minutes: Optional[Dict[str, float]] = None


# --- HR zones ---

@dataclass(frozen=True)
class ZoneRange(Serializable):
    min: float
    max: float
    label: str


@dataclass(frozen=True)
class HRZoneTable(Serializable):
    """Five contiguous heart rate zones"""
    z1: ZoneRange
    z2: ZoneRange
    z3: ZoneRange
    z4: ZoneRange
    z5: ZoneRange

    def ranges(self) -> List[ZoneRange]:
        return [self.z1, self.z2, self.z3, self.z4, self.z5]


# --- Weekly stats ---

@dataclass
class WeeklyStats(Serializable):
    """Aggregated stats for one Monday-aligned training week"""
    label: str
    week_start: date
    avg_power: int = 0
    avg_heart_rate: int = 0
    avg_cadence: int = 0
    efficiency_factor: float = 0.0
    total_calories: int = 0
    total_seconds: int = 0
    time_hours: float = 0.0
    count: int = 0
    activities: List[EnrichedActivity] = field(default_factory=list)
    zone_minutes: Dict[str, float] = field(default_factory=empty_zone_map)
    zone_pcts: Dict[str, str] = field(default_factory=dict)

    def zone_pct(self, zone: str) -> float:
        return float(self.zone_pcts.get(zone) or 0)


# --- Body metrics ---

@dataclass
class BodyCompositionEntry(Serializable):
    week: str
    weight: Optional[float] = None
    fat_ratio: Optional[float] = None
    muscle_mass: Optional[float] = None


@dataclass
class BloodPressureEntry(Serializable):
    week: str
    systolic: Optional[float] = None
    diastolic: Optional[float] = None
    pulse: Optional[float] = None


@dataclass
class LatestWeight(Serializable):
    weight: Optional[float] = None
    fat_ratio: Optional[float] = None
    muscle_mass: Optional[float] = None
    date: Optional[datetime] = None


# --- Performance metrics ---

@dataclass
class WeightTrend(Serializable):
    change: float
    direction: str  # "up", "down", "stable"
    start_weight: float
    end_weight: float
    weeks: int


@dataclass
class BodyCompTrend(Serializable):
    fat_change: Optional[float] = None
    fat_direction: Optional[str] = None
    muscle_change: Optional[float] = None
    muscle_direction: Optional[str] = None


@dataclass
class PowerToWeightTrend(Serializable):
    change: float  # % change between first and last matched week
    direction: str  # "improving", "stable", "declining"


@dataclass
class PerformanceMetrics(Serializable):
    power_to_weight: Optional[float] = None
    power_to_weight_trend: Optional[PowerToWeightTrend] = None
    efficiency_per_kg: Optional[float] = None
    weight_trend: Optional[WeightTrend] = None
    body_comp_trend: Optional[BodyCompTrend] = None
    insights: Optional[List[str]] = None


# --- Coach assessment ---

@dataclass
class WeightInsight(Serializable):
    current: float
    message: str


@dataclass
class BloodPressureReading(Serializable):
    systolic: float
    diastolic: float
    pulse: Optional[float] = None


@dataclass
class BloodPressureInsight(Serializable):
    current: BloodPressureReading
    trend: str  # "improving", "stable", "worsening", "insufficient_data"
    message: str
    note: Optional[str] = None


@dataclass
class ProgressAssessment(Serializable):
    status: str
    message: str
    next_step: str
    color: str
    severity: str
    weight_insight: Optional[WeightInsight] = None
    blood_pressure_insight: Optional[BloodPressureInsight] = None


@dataclass
class FTPEstimate(Serializable):
    estimated_ftp: int
    confidence: str  # "high", "medium", "low"
    method: str
    explanation: str
    recommendation: str
    comparison: Optional[str] = None  # "raise", "lower", "confirm"


# --- Workouts ---

@dataclass(frozen=True)
class WorkoutTemplate(Serializable):
    """Structured workout parsed from the workout library"""
    id: str
    name: str
    type: str
    duration: int  # seconds
    avg_power: float  # fraction of FTP
    max_power: float  # fraction of FTP
    estimated_intensity: str
    description: str = ""
    filename: str = ""
    author: Optional[str] = None
    tags: tuple = ()
    duration_formatted: str = ""


@dataclass
class WorkoutRecommendation(Serializable):
    workout: WorkoutTemplate
    score: int
    reasoning: str
    priority: str  # "high", "medium", "low"


# --- Activity analysis ---

@dataclass
class ZoneAnalysis(Serializable):
    minutes: Dict[str, float]
    pcts: Dict[str, str]
    primary_zone: str
    primary_pct: str


@dataclass
class DriftAnalysis(Serializable):
    decoupling: float
    ef_first_half: float
    ef_second_half: float
    power_difference: float
    reliable: bool
    status: str  # "significant_drift", "improved", "stable", "unreliable"


@dataclass
class ComplianceAnalysis(Serializable):
    first_cadence: float
    last_cadence: float
    cadence_drop: float
    status: str  # "fatigue", "faster_finish", "steady"


@dataclass
class HistoryAnalysis(Serializable):
    avg_ef: float
    current_ef: float
    improvement: float
    status: str  # "strong", "lower", "consistent"


@dataclass
class LoadAnalysis(Serializable):
    avg_work: float
    current_work: float
    load_ratio: float
    status: str  # "high", "low", "normal"


@dataclass
class ActivityAnalysis(Serializable):
    activity_id: int
    zones: Optional[ZoneAnalysis] = None
    drift: Optional[DriftAnalysis] = None
    compliance: Optional[ComplianceAnalysis] = None
    history: Optional[HistoryAnalysis] = None
    load: Optional[LoadAnalysis] = None
    feedback: str = ""
