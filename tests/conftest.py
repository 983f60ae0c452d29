# Tests configuration for cycling_coach
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from cycling_coach.analysis.zones import calculate_zones
from cycling_coach.data.models import Activity, Lap, WeeklyStats


@pytest.fixture
def zones():
    """Karvonen zones for max HR 182 / resting 60.

    Z1 < 133, Z2 133-144, Z3 145-156, Z4 157-168, Z5 >= 169
    """
    return calculate_zones(182, 60)


@pytest.fixture
def now():
    """Fixed reference time: Wednesday 2024-05-15 12:00 UTC"""
    return datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_activity(now):
    """Factory for activities, placed ``days_ago`` days before ``now``."""
    counter = {"id": 0}

    def _make(days_ago=0.0, moving_time=3600, watts=200, hr=140, max_hr=None, cadence=85,
              weighted=None, name=None, **kwargs):
        counter["id"] += 1
        return Activity(
            id=kwargs.pop("id", counter["id"]),
            name=name or f"Ride {counter['id']}",
            start_date=now - timedelta(days=days_ago),
            moving_time=moving_time,
            elapsed_time=moving_time,
            average_watts=watts,
            average_heartrate=hr,
            max_heartrate=max_hr,
            average_cadence=cadence,
            weighted_average_watts=weighted,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_week():
    """Factory for WeeklyStats with just the fields the assessors read."""
    def _make(label="2024-05-13", ef=0.0, calories=0, activities=None, zone_pcts=None, avg_power=0, **kwargs):
        activities = activities or []
        return WeeklyStats(
            label=label,
            week_start=datetime.strptime(label, "%Y-%m-%d").date(),
            efficiency_factor=ef,
            total_calories=calories,
            avg_power=avg_power,
            activities=activities,
            count=len(activities),
            zone_pcts=zone_pcts or {},
            **kwargs,
        )

    return _make


@pytest.fixture
def interval_laps():
    """Warm-up, four steady work laps and a cool-down"""
    return [
        Lap(moving_time=600, average_watts=150, average_heartrate=120, average_cadence=88),
        Lap(moving_time=480, average_watts=250, average_heartrate=150, average_cadence=92),
        Lap(moving_time=480, average_watts=250, average_heartrate=152, average_cadence=91),
        Lap(moving_time=480, average_watts=250, average_heartrate=153, average_cadence=90),
        Lap(moving_time=480, average_watts=250, average_heartrate=154, average_cadence=90),
        Lap(moving_time=600, average_watts=140, average_heartrate=125, average_cadence=86),
    ]
