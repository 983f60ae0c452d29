#!/usr/bin/env python3
"""
CLI Interface - runs the coach on a JSON snapshot and prints the report
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .analysis.weekly import aggregate_blood_pressure, aggregate_body_measurements
from .config import create_sample_config, load_config
from .core.core_app import CoachingApp, CoachingReport
from .data.models import (
    Activity, BloodPressureEntry, BodyCompositionEntry, Lap, LatestWeight, parse_timestamp,
)

logger = logging.getLogger(__name__)


def _body_composition(items: List[Dict[str, Any]]) -> List[BodyCompositionEntry]:
    # raw dated readings are grouped into weeks, weekly entries pass through
    if items and "date" in items[0]:
        return aggregate_body_measurements(items)
    return [BodyCompositionEntry(**item) for item in items]


def _blood_pressure(items: List[Dict[str, Any]]) -> List[BloodPressureEntry]:
    if items and "date" in items[0]:
        return aggregate_blood_pressure(items)
    return [BloodPressureEntry(**item) for item in items]


def load_snapshot(path: Path) -> Dict[str, Any]:
    """Read a snapshot file into keyword arguments for CoachingApp.build_report"""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    activities = data.get("activities")
    if not isinstance(activities, list):
        raise TypeError(f"'activities' in {path} must be a list")

    latest = data.get("latest_weight")
    if latest and latest.get("date"):
        latest = dict(latest, date=parse_timestamp(latest["date"]))

    return {
        "activities": [Activity.from_dict(item) for item in activities],
        "laps_by_activity": {
            int(activity_id): [Lap.from_dict(lap) for lap in laps]
            for activity_id, laps in (data.get("laps") or {}).items()
        },
        "body_composition": _body_composition(data.get("body_composition") or []),
        "blood_pressure": _blood_pressure(data.get("blood_pressure") or []),
        "latest_weight": LatestWeight(**latest) if latest else None,
        "now": parse_timestamp(data["now"]) if data.get("now") else None,
    }


class CLI:
    """Command line interface"""

    def __init__(self, config_file: str = "config.yaml"):
        self.config = load_config(config_file)
        self.app = CoachingApp(self.config)

    def run(self, snapshot_path: Path, as_json: bool = False, activity_id: Optional[int] = None) -> None:
        snapshot = load_snapshot(snapshot_path)
        if activity_id is not None:
            snapshot["laps_by_activity"] = {
                activity_id: snapshot["laps_by_activity"].get(activity_id, [])
            }

        report = self.app.build_report(**snapshot)
        if as_json:
            print(json.dumps(report.to_dict(), indent=2, default=str, ensure_ascii=False,
                             allow_nan=False))
        else:
            self._print_report(report)

    def _print_report(self, report: CoachingReport) -> None:
        print("Cycling Coach")
        print("=" * 40)

        print("\nWeekly stats:")
        for week in report.weekly_stats:
            print(f"  {week.label}: {week.count} rides, {week.time_hours}h, "
                  f"{week.avg_power}W / {week.avg_heart_rate}bpm, EF {week.efficiency_factor}, "
                  f"{week.total_calories} kcal")

        progress = report.progress
        print(f"\nStatus: {progress.status}")
        print(f"  {progress.message}")
        print(f"  {progress.next_step}")
        if progress.weight_insight:
            print(f"  {progress.weight_insight.message}")
        if progress.blood_pressure_insight:
            print(f"  {progress.blood_pressure_insight.message}")

        if report.performance.insights:
            print("\nPerformance:")
            for insight in report.performance.insights:
                print(f"  - {insight}")

        if report.ftp_estimate:
            ftp = report.ftp_estimate
            print(f"\nFTP estimate: {ftp.estimated_ftp}W ({ftp.confidence}, {ftp.method})")
            print(f"  {ftp.explanation}")
            print(f"  {ftp.recommendation}")

        if report.recommendations:
            print("\nRecommended workouts:")
            for rec in report.recommendations:
                print(f"  [{rec.priority}] {rec.workout.name or rec.workout.id} ({rec.score})")
                print(f"    {rec.reasoning}")

        for analysis in report.activity_analyses:
            print()
            print(analysis.feedback)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Training analysis for cyclists")
    parser.add_argument("snapshot", type=Path, nargs="?", help="JSON file with activities and body measurements")
    parser.add_argument("--config", default="config.yaml", help="Path to config file")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    parser.add_argument("--activity", type=int, help="Only analyze laps of this activity id")
    parser.add_argument("--init-config", action="store_true",
                        help="Write a sample config file unless one exists, then exit")
    args = parser.parse_args(argv)

    if args.init_config:
        create_sample_config(args.config)
        return 0
    if args.snapshot is None:
        parser.error("the following arguments are required: snapshot")

    try:
        cli = CLI(args.config)
        logging.basicConfig(level=getattr(logging, cli.config.log_level.upper(), logging.INFO))
        cli.run(args.snapshot, as_json=args.json, activity_id=args.activity)
    except KeyboardInterrupt:
        print("\nGoodbye!")
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        logger.error(f"CLI error: {e}", exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
