"""
Tests for single activity analysis and feedback rendering.
"""
from dataclasses import replace

from cycling_coach.analysis.activity import (
    analyze_activity, analyze_cardiac_drift, analyze_compliance, analyze_history, analyze_training_load,
)
from cycling_coach.analysis.feedback import render_activity_feedback
from cycling_coach.analysis.weekly import enrich_activity
from cycling_coach.data.models import ActivityAnalysis, Lap


def _lap(watts, hr, seconds=480, cadence=90):
    return Lap(moving_time=seconds, average_watts=watts, average_heartrate=hr, average_cadence=cadence)


class TestCardiacDrift:
    """Tests for first-half vs second-half decoupling."""

    def test_stable(self, interval_laps):
        drift = analyze_cardiac_drift(interval_laps)
        assert drift.status == "stable"
        assert drift.reliable is True
        assert abs(drift.decoupling) <= 5

    def test_significant_drift(self):
        laps = [_lap(250, 140), _lap(250, 142), _lap(250, 160), _lap(250, 165)]
        drift = analyze_cardiac_drift(laps)
        assert drift.status == "significant_drift"
        assert drift.decoupling > 5

    def test_improved_second_half(self):
        laps = [_lap(250, 165), _lap(250, 160), _lap(250, 140), _lap(250, 142)]
        assert analyze_cardiac_drift(laps).status == "improved"

    def test_power_change_makes_it_unreliable(self):
        laps = [_lap(200, 140), _lap(200, 140), _lap(260, 160), _lap(260, 160)]
        drift = analyze_cardiac_drift(laps)
        assert drift.status == "unreliable"
        assert drift.reliable is False
        assert drift.power_difference == 60

    def test_short_and_easy_laps_are_not_work(self):
        laps = [_lap(250, 150, seconds=60), _lap(40, 110), _lap(250, 150)]
        assert analyze_cardiac_drift(laps) is None

    def test_needs_two_work_laps(self):
        assert analyze_cardiac_drift([_lap(250, 150)]) is None
        assert analyze_cardiac_drift([]) is None

    def test_missing_heart_rate_in_first_half(self):
        laps = [_lap(250, None), _lap(250, 150)]
        assert analyze_cardiac_drift(laps) is None


class TestCompliance:
    """Tests for cadence compliance."""

    def test_steady(self, interval_laps):
        assert analyze_compliance(interval_laps).status == "steady"

    def test_fatigue(self):
        laps = [_lap(250, 150, cadence=95), _lap(250, 150, cadence=90), _lap(250, 150, cadence=85)]
        result = analyze_compliance(laps)
        assert result.status == "fatigue"
        assert result.cadence_drop == 10

    def test_faster_finish(self):
        laps = [_lap(250, 150, cadence=80), _lap(250, 150, cadence=85), _lap(250, 150, cadence=92)]
        assert analyze_compliance(laps).status == "faster_finish"

    def test_needs_three_laps(self):
        assert analyze_compliance([_lap(250, 150), _lap(250, 150)]) is None

    def test_needs_cadence(self):
        laps = [_lap(250, 150, cadence=None), _lap(250, 150), _lap(250, 150)]
        assert analyze_compliance(laps) is None


class TestHistory:
    """Tests for the historical efficiency comparison."""

    def test_strong(self, zones, make_activity, make_week):
        activity = enrich_activity(make_activity(watts=220, hr=140), zones)  # EF 1.57
        stats = [make_week(ef=1.4), make_week(ef=1.5), make_week(ef=0.0)]
        result = analyze_history(activity, stats)
        assert result.status == "strong"
        assert result.avg_ef == 1.45

    def test_lower(self, zones, make_activity, make_week):
        activity = enrich_activity(make_activity(watts=180, hr=150), zones)  # EF 1.2
        result = analyze_history(activity, [make_week(ef=1.4)])
        assert result.status == "lower"
        assert result.improvement < -5

    def test_consistent(self, zones, make_activity, make_week):
        activity = enrich_activity(make_activity(watts=200, hr=140), zones)
        assert analyze_history(activity, [make_week(ef=1.42)]).status == "consistent"

    def test_no_history(self, zones, make_activity, make_week):
        activity = enrich_activity(make_activity(), zones)
        assert analyze_history(activity, [make_week(ef=0.0)]) is None
        assert analyze_history(activity, []) is None

    def test_activity_without_power(self, zones, make_activity, make_week):
        activity = enrich_activity(make_activity(watts=None), zones)
        assert analyze_history(activity, [make_week(ef=1.4)]) is None


class TestTrainingLoad:
    """Tests for the training load ratio."""

    def _stats(self, make_week, make_activity):
        # 4 sessions, 4000 kcal in total -> 1000 per session
        return [
            make_week(calories=2000, activities=[make_activity(), make_activity()]),
            make_week(calories=2000, activities=[make_activity(), make_activity()]),
        ]

    def test_high(self, zones, make_activity, make_week):
        activity = enrich_activity(make_activity(watts=250, moving_time=6000), zones)  # 1500 kcal
        result = analyze_training_load(activity, self._stats(make_week, make_activity))
        assert result.status == "high"
        assert result.load_ratio == 1.5
        assert result.avg_work == 1000

    def test_low(self, zones, make_activity, make_week):
        activity = enrich_activity(make_activity(watts=150, moving_time=3000), zones)  # 450 kcal
        assert analyze_training_load(activity, self._stats(make_week, make_activity)).status == "low"

    def test_normal(self, zones, make_activity, make_week):
        activity = enrich_activity(make_activity(watts=250, moving_time=4000), zones)
        assert analyze_training_load(activity, self._stats(make_week, make_activity)).status == "normal"

    def test_no_sessions(self, zones, make_activity, make_week):
        activity = enrich_activity(make_activity(), zones)
        assert analyze_training_load(activity, [make_week()]) is None


class TestAnalyzeActivity:
    """Tests for the combined analysis."""

    def test_full_analysis(self, zones, make_activity, make_week, interval_laps):
        activity = enrich_activity(make_activity(name="Sweet Spot 4x8"), zones)
        stats = [make_week(ef=1.4, calories=1500, activities=[make_activity(), make_activity()])]

        result = analyze_activity(activity, interval_laps, stats, zones)

        assert result.activity_id == activity.id
        assert result.zones.primary_zone == "Z3"
        assert result.drift.status == "stable"
        assert result.compliance.status == "steady"
        assert result.history is not None
        assert result.load is not None
        assert result.feedback.startswith("## Sweet Spot 4x8")
        assert "**Work Done**: 720 kcal" in result.feedback

    def test_without_laps_or_history(self, zones, make_activity):
        activity = enrich_activity(make_activity(), zones)
        result = analyze_activity(activity, [], [], zones)
        assert result.zones is None
        assert result.drift is None
        assert result.compliance is None
        assert result.history is None
        assert result.load is None
        assert "No interval data available" in result.feedback

    def test_laps_none_is_tolerated(self, zones, make_activity):
        activity = enrich_activity(make_activity(), zones)
        assert analyze_activity(activity, None, [], zones).feedback


class TestFeedback:
    """Tests for the Markdown renderer."""

    def test_section_order(self, zones, make_activity, make_week, interval_laps):
        activity = enrich_activity(make_activity(), zones)
        stats = [make_week(ef=1.4, calories=1500, activities=[make_activity(), make_activity()])]
        text = analyze_activity(activity, interval_laps, stats, zones).feedback

        positions = [text.index(heading) for heading in (
            "**Heart Rate Zones**", "**Training Load**", "**Historical Context**",
            "**Cardiac Drift**", "**Workout Compliance**",
        )]
        assert positions == sorted(positions)

    def test_decoupling_shown_only_for_drift(self, zones, make_activity):
        activity = enrich_activity(make_activity(), zones)
        laps = [_lap(250, 140), _lap(250, 142), _lap(250, 160), _lap(250, 165)]
        result = analyze_activity(activity, laps, [], zones)
        assert "(Decoupling:" in result.feedback

    def test_unnamed_activity(self, zones, make_activity):
        activity = replace(enrich_activity(make_activity(), zones), name="")
        text = render_activity_feedback(activity, ActivityAnalysis(activity_id=activity.id))
        assert text.startswith(f"## Activity {activity.id}")

    def test_zone_sentence(self, zones, make_activity, interval_laps):
        activity = enrich_activity(make_activity(), zones)
        text = analyze_activity(activity, interval_laps, [], zones).feedback
        assert "in **Zone 3** (Tempo)" in text
