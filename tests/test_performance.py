"""
Tests for performance metrics combining training and body composition.
"""
import pytest

from cycling_coach.analysis.performance import (
    calculate_body_comp_trend, calculate_performance_metrics, calculate_power_to_weight_trend,
    calculate_weight_trend, power_to_weight_level,
)
from cycling_coach.data.models import BodyCompositionEntry, LatestWeight


def _entry(week, weight=None, fat=None, muscle=None):
    return BodyCompositionEntry(week=week, weight=weight, fat_ratio=fat, muscle_mass=muscle)


class TestPowerToWeight:
    """Tests for W/kg and efficiency per kg."""

    def test_values(self, make_week):
        metrics = calculate_performance_metrics(make_week(avg_power=240, ef=1.6), LatestWeight(weight=80))
        assert metrics.power_to_weight == 3.0
        assert metrics.efficiency_per_kg == 2.0

    def test_no_weight(self, make_week):
        metrics = calculate_performance_metrics(make_week(avg_power=240, ef=1.6), None)
        assert metrics.power_to_weight is None
        assert metrics.efficiency_per_kg is None
        assert metrics.insights is None

    def test_no_power(self, make_week):
        metrics = calculate_performance_metrics(make_week(avg_power=0), LatestWeight(weight=80))
        assert metrics.power_to_weight is None

    def test_no_current_week(self):
        metrics = calculate_performance_metrics(None, LatestWeight(weight=80))
        assert metrics.power_to_weight is None

    @pytest.mark.parametrize("wkg,level", [
        (4.2, "Spitzenniveau"), (3.5, "Fortgeschritten"), (3.1, "Ambitioniert"), (2.5, "Moderat"), (1.8, "Einsteiger"),
    ])
    def test_levels(self, wkg, level):
        assert power_to_weight_level(wkg) == level

    def test_insight_mentions_level(self, make_week):
        metrics = calculate_performance_metrics(make_week(avg_power=240), LatestWeight(weight=80))
        assert metrics.insights[0] == "**3.00 W/kg** (Ambitioniert)"


class TestWeightTrend:
    """Tests for the weight trend."""

    def test_down(self):
        trend = calculate_weight_trend([_entry("2024-04-29", 82.0), _entry("2024-05-13", 80.8)])
        assert trend.direction == "down"
        assert trend.change == -1.2
        assert trend.weeks == 2

    def test_stable_within_half_kilo(self):
        trend = calculate_weight_trend([_entry("2024-04-29", 80.0), _entry("2024-05-13", 80.4)])
        assert trend.direction == "stable"

    def test_sorted_by_week(self):
        trend = calculate_weight_trend([_entry("2024-05-13", 80.0), _entry("2024-04-29", 78.0)])
        assert trend.direction == "up"
        assert trend.start_weight == 78.0

    def test_needs_two_weights(self):
        assert calculate_weight_trend([_entry("2024-05-13", 80.0), _entry("2024-05-06")]) is None
        assert calculate_weight_trend([]) is None


class TestBodyCompTrend:
    """Tests for fat and muscle trends."""

    def test_independent_fields(self):
        trend = calculate_body_comp_trend([
            _entry("2024-04-29", fat=22.0, muscle=38.0),
            _entry("2024-05-06", fat=21.0),
            _entry("2024-05-13", fat=20.5),
        ])
        assert trend.fat_direction == "down"
        assert trend.fat_change == -1.5
        assert trend.muscle_direction is None

    def test_none_without_data(self):
        assert calculate_body_comp_trend([_entry("2024-05-13", fat=20.0)]) is None


class TestPowerToWeightTrend:
    """Tests for the W/kg trend across weeks."""

    def test_improving(self, make_week):
        stats = [make_week("2024-04-29", avg_power=200), make_week("2024-05-06", avg_power=0),
                 make_week("2024-05-13", avg_power=220)]
        entries = [_entry("2024-04-29", 80.0), _entry("2024-05-06", 80.0), _entry("2024-05-13", 79.0)]
        trend = calculate_power_to_weight_trend(stats, entries)
        assert trend.direction == "improving"
        assert trend.change == pytest.approx(11.4, abs=0.1)

    def test_needs_two_matched_weeks(self, make_week):
        stats = [make_week("2024-04-29", avg_power=200), make_week("2024-05-13", avg_power=220)]
        assert calculate_power_to_weight_trend(stats, [_entry("2024-05-13", 79.0)]) is None


class TestInsights:
    """Tests for the insight strings."""

    def test_fat_loss_insight(self, make_week):
        entries = [_entry("2024-04-29", 82.0, fat=22.0), _entry("2024-05-13", 80.0, fat=20.0)]
        metrics = calculate_performance_metrics(make_week(avg_power=200), LatestWeight(weight=80),
                                                body_composition=entries)
        assert any("Fett ↓" in insight for insight in metrics.insights)

    def test_muscle_loss_warning(self, make_week):
        entries = [_entry("2024-04-29", 82.0, fat=20.0, muscle=40.0), _entry("2024-05-13", 80.0, fat=20.0, muscle=39.0)]
        metrics = calculate_performance_metrics(make_week(), LatestWeight(weight=80), body_composition=entries)
        assert any("Muskelverlust" in insight for insight in metrics.insights)

    def test_body_comp_without_weight_trend(self, make_week):
        entries = [_entry("2024-04-29", fat=22.0, muscle=38.0), _entry("2024-05-13", fat=21.0, muscle=38.0)]
        metrics = calculate_performance_metrics(make_week(), None, body_composition=entries)
        assert metrics.insights == ["✅ Ideale Körperkomposition: Fett ↓ 1.0%"]

    def test_improving_power_to_weight_insight(self, make_week):
        stats = [make_week("2024-04-29", avg_power=200), make_week("2024-05-13", avg_power=230)]
        entries = [_entry("2024-04-29", 80.0), _entry("2024-05-13", 80.0)]
        metrics = calculate_performance_metrics(stats[-1], LatestWeight(weight=80), body_composition=entries,
                                                all_stats=stats)
        assert metrics.power_to_weight_trend.direction == "improving"
        assert metrics.insights[-1].startswith("🚀")
