"""
End-to-end tests for the coaching pipeline and the command line interface.
"""
import json
from datetime import timedelta

import pytest

from cycling_coach.cli_interface import load_snapshot, main
from cycling_coach.config import Config, load_config
from cycling_coach.core.core_app import CoachingApp
from cycling_coach.data.models import Lap, LatestWeight

ENDURANCE_ZWO = """<workout_file>
    <name>Endurance 1h</name>
    <workout>
        <SteadyState Duration="3600" Power="0.65"/>
    </workout>
</workout_file>
"""

TEMPO_ZWO = """<workout_file>
    <name>Tempo 2x15</name>
    <workout>
        <Warmup Duration="600" PowerLow="0.5" PowerHigh="0.75"/>
        <IntervalsT Repeat="2" OnDuration="900" OffDuration="300" OnPower="0.85" OffPower="0.6"/>
        <Cooldown Duration="600" PowerLow="0.7" PowerHigh="0.5"/>
    </workout>
</workout_file>
"""


@pytest.fixture
def workouts_dir(tmp_path):
    path = tmp_path / "workouts"
    path.mkdir()
    (path / "endurance-01.zwo").write_text(ENDURANCE_ZWO, encoding="utf-8")
    (path / "tempo-01.zwo").write_text(TEMPO_ZWO, encoding="utf-8")
    return path


@pytest.fixture
def app(workouts_dir):
    return CoachingApp(Config(workouts_dir=str(workouts_dir), training_goal="build_endurance"))


@pytest.fixture
def activities(make_activity):
    """Three weeks of riding with rising efficiency"""
    return [
        make_activity(id=1, days_ago=15, watts=170, hr=140, weighted=180),
        make_activity(id=2, days_ago=12, watts=175, hr=142, weighted=185),
        make_activity(id=3, days_ago=8, watts=185, hr=140, weighted=195),
        make_activity(id=4, days_ago=1, watts=210, hr=138, weighted=220, name="Tuesday Tempo"),
    ]


class TestCoachingApp:

    def test_build_report(self, app, activities, now):
        laps = {4: [Lap(moving_time=900, average_watts=210, average_heartrate=136, average_cadence=90),
                    Lap(moving_time=900, average_watts=212, average_heartrate=138, average_cadence=89),
                    Lap(moving_time=900, average_watts=208, average_heartrate=139, average_cadence=88)]}
        report = app.build_report(activities, laps_by_activity=laps, now=now)

        assert [w.count for w in report.weekly_stats] == [0, 0, 0, 2, 1, 1]
        assert report.progress.status == "Building Fitness"
        assert report.ftp_estimate.method == "Lange Ausfahrten"
        assert len(report.recommendations) == 2
        assert report.recommendations[0].workout.id == "endurance-01"
        assert len(report.activity_analyses) == 1
        assert report.activity_analyses[0].feedback.startswith("## Tuesday Tempo")

    def test_configured_weight_is_fallback(self, app, activities, now):
        report = app.build_report(activities, now=now)
        assert report.performance.power_to_weight == round(210 / 85.0, 2)
        assert report.progress.weight_insight.current == 85.0

    def test_measured_weight_wins(self, app, activities, now):
        report = app.build_report(activities, latest_weight=LatestWeight(weight=70.0), now=now)
        assert report.performance.power_to_weight == 3.0

    def test_unknown_activity_is_skipped(self, app, activities, now):
        report = app.build_report(activities, laps_by_activity={999: []}, now=now)
        assert report.activity_analyses == []

    def test_no_activities(self, app, now):
        report = app.build_report([], now=now)
        assert report.progress.status == "Insufficient Data"
        assert report.ftp_estimate is None
        # an empty week still ranks the library: endurance matches the goal
        assert [r.workout.id for r in report.recommendations] == ["endurance-01", "tempo-01"]

    def test_report_is_deterministic(self, app, activities, now):
        first = app.build_report(activities, now=now).to_dict()
        second = app.build_report(activities, now=now).to_dict()
        assert first == second

    def test_report_serializes(self, app, activities, now):
        data = app.build_report(activities, now=now).to_dict()
        text = json.dumps(data, default=str, allow_nan=False)
        decoded = json.loads(text)
        assert decoded["progress"]["status"] == "Building Fitness"
        assert decoded["zones"]["z5"]["max"] is None
        assert decoded["zones"]["z4"]["max"] == 169


@pytest.fixture
def snapshot_file(tmp_path, activities, now):
    def _activity_dict(a):
        return {
            "id": a.id, "name": a.name, "start_date": a.start_date.isoformat().replace("+00:00", "Z"),
            "moving_time": a.moving_time, "average_watts": a.average_watts,
            "average_heartrate": a.average_heartrate, "weighted_average_watts": a.weighted_average_watts,
        }

    data = {
        "now": now.isoformat(),
        "activities": [_activity_dict(a) for a in activities],
        "laps": {"4": [{"moving_time": 900, "average_watts": 210, "average_heartrate": 136}]},
        "body_composition": [
            {"date": (now - timedelta(days=14)).isoformat(), "weight": 81.0, "fat_ratio": 21.0},
            {"date": (now - timedelta(days=1)).isoformat(), "weight": 80.0, "fat_ratio": 20.0},
        ],
        "blood_pressure": [{"week": "2024-05-13", "systolic": 118, "diastolic": 76}],
        "latest_weight": {"weight": 80.0, "fat_ratio": 20.0, "date": (now - timedelta(days=1)).isoformat()},
    }
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestCli:

    def test_load_snapshot(self, snapshot_file, now):
        snapshot = load_snapshot(snapshot_file)
        assert len(snapshot["activities"]) == 4
        assert snapshot["now"] == now
        assert list(snapshot["laps_by_activity"]) == [4]
        assert [e.week for e in snapshot["body_composition"]] == ["2024-04-29", "2024-05-13"]
        assert snapshot["blood_pressure"][0].systolic == 118
        assert snapshot["latest_weight"].weight == 80.0

    def test_json_output(self, snapshot_file, tmp_path, capsys):
        assert main([str(snapshot_file), "--config", str(tmp_path / "none.yaml"), "--json"]) == 0
        report = json.loads(capsys.readouterr().out)
        assert report["progress"]["status"] == "Building Fitness"
        assert report["performance"]["weight_trend"]["direction"] == "down"
        assert len(report["activity_analyses"]) == 1

    def test_text_output(self, snapshot_file, tmp_path, capsys):
        assert main([str(snapshot_file), "--config", str(tmp_path / "none.yaml"), "--activity", "4"]) == 0
        out = capsys.readouterr().out
        assert "Status: Building Fitness" in out
        assert "## Tuesday Tempo" in out

    def test_missing_snapshot(self, tmp_path, capsys):
        assert main([str(tmp_path / "nope.json"), "--config", str(tmp_path / "none.yaml")]) == 1
        assert "Error" in capsys.readouterr().err

    def test_activities_must_be_a_list(self, tmp_path, capsys):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"activities": {"id": 1}}), encoding="utf-8")
        assert main([str(path), "--config", str(tmp_path / "none.yaml")]) == 1

    def test_json_output_is_strict(self, snapshot_file, tmp_path, capsys):
        assert main([str(snapshot_file), "--config", str(tmp_path / "none.yaml"), "--json"]) == 0

        def reject(constant):
            raise ValueError(f"non-standard JSON constant {constant}")

        report = json.loads(capsys.readouterr().out, parse_constant=reject)
        assert report["zones"]["z5"]["max"] is None

    def test_init_config(self, tmp_path):
        path = tmp_path / "config.yaml"
        assert main(["--init-config", "--config", str(path)]) == 0
        assert load_config(str(path)) == Config()

    def test_snapshot_required_without_init_config(self, tmp_path):
        with pytest.raises(SystemExit) as exc:
            main(["--config", str(tmp_path / "none.yaml")])
        assert exc.value.code == 2
