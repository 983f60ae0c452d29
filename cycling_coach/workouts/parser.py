#!/usr/bin/env python3
"""
Parser for Zwift ``.zwo`` workout files
"""

import logging
import xml.etree.ElementTree as ET
from typing import List, Optional, Tuple

from ..data.models import WorkoutTemplate

logger = logging.getLogger(__name__)

SEGMENT_TAGS = ("Warmup", "SteadyState", "Cooldown", "IntervalsT", "FreeRide", "Ramp")

# (upper bound of average power as FTP fraction, intensity class)
INTENSITY_CLASSES = [
    (0.60, "recovery"),
    (0.75, "endurance"),
    (0.85, "tempo"),
    (0.95, "sweet-spot"),
    (1.05, "threshold"),
]


class WorkoutParseError(ValueError):
    """Raised when a workout file cannot be parsed"""


def _int_attr(element: ET.Element, name: str) -> int:
    value = element.get(name)
    if not value:
        return 0
    try:
        return int(float(value))
    except ValueError:
        raise WorkoutParseError(f"Invalid {name} value '{value}' on <{element.tag}>")


def _float_attr(element: ET.Element, name: str) -> Optional[float]:
    value = element.get(name)
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        raise WorkoutParseError(f"Invalid {name} value '{value}' on <{element.tag}>")


def _text(parent: ET.Element, tag: str) -> Optional[str]:
    element = parent.find(tag)
    if element is None or element.text is None:
        return None
    return element.text.strip() or None


def _segments(workout: ET.Element) -> List[ET.Element]:
    return [child for child in workout if child.tag in SEGMENT_TAGS]


def segment_duration(segment: ET.Element) -> int:
    """Duration of one segment in seconds, repeats included for intervals"""
    if segment.tag == "IntervalsT":
        repeat = _int_attr(segment, "Repeat") or 1
        on_off = _int_attr(segment, "OnDuration") + _int_attr(segment, "OffDuration")
        if on_off:
            return repeat * on_off
    return _int_attr(segment, "Duration")


def _segment_powers(segment: ET.Element) -> Tuple[List[float], List[Tuple[float, int]]]:
    """Power values seen in a segment plus (power, seconds) pairs for the weighted average"""
    powers = []
    weighted = []

    if segment.tag == "IntervalsT":
        repeat = _int_attr(segment, "Repeat") or 1
        for power_attr, duration_attr in (("OnPower", "OnDuration"), ("OffPower", "OffDuration")):
            power = _float_attr(segment, power_attr)
            seconds = _int_attr(segment, duration_attr) * repeat
            if power is not None:
                powers.append(power)
                if seconds > 0:
                    weighted.append((power, seconds))
        return powers, weighted

    duration = _int_attr(segment, "Duration")
    power = _float_attr(segment, "Power")
    if power is not None:
        powers.append(power)
        if duration > 0:
            weighted.append((power, duration))

    low = _float_attr(segment, "PowerLow")
    high = _float_attr(segment, "PowerHigh")
    powers.extend(p for p in (low, high) if p is not None)
    if low is not None and high is not None and duration > 0:
        weighted.append(((low + high) / 2, duration))

    return powers, weighted


def analyze_power_profile(segments: List[ET.Element]) -> Tuple[float, float]:
    """Return (max_power, avg_power) as fractions of FTP"""
    powers = []
    weighted = []
    for segment in segments:
        segment_powers, segment_weighted = _segment_powers(segment)
        powers.extend(segment_powers)
        weighted.extend(segment_weighted)

    total_seconds = sum(seconds for _, seconds in weighted)
    if total_seconds > 0:
        avg_power = sum(power * seconds for power, seconds in weighted) / total_seconds
    elif powers:
        avg_power = sum(powers) / len(powers)
    else:
        avg_power = 0.0

    return (max(powers) if powers else 0.0), avg_power


def estimate_intensity(avg_power: float) -> str:
    for upper, label in INTENSITY_CLASSES:
        if avg_power < upper:
            return label
    return "vo2max"


def format_duration(seconds: int) -> str:
    minutes, secs = divmod(seconds, 60)
    return f"{minutes}:{secs:02d}"


def _extract_tags(workout_file: ET.Element) -> Tuple[str, ...]:
    tags = []
    for tag in workout_file.findall("tags/tag"):
        name = tag.get("name") or (tag.text or "").strip()
        if name:
            tags.append(name)
    return tuple(tags)


def parse_zwo(xml_content: str, filename: str) -> WorkoutTemplate:
    """Parse the content of a ``.zwo`` file into a WorkoutTemplate.

    The workout type is taken from the filename prefix, e.g.
    ``sweetspot-01.zwo`` is a ``sweetspot`` workout.
    """
    try:
        root = ET.fromstring(xml_content)
    except ET.ParseError as e:
        raise WorkoutParseError(f"XML parsing error in {filename}: {e}") from e

    if root.tag != "workout_file":
        raise WorkoutParseError(f"Invalid .zwo file {filename}: missing workout_file element")

    workout = root.find("workout")
    if workout is None:
        raise WorkoutParseError(f"Invalid .zwo file {filename}: missing workout element")

    segments = _segments(workout)
    duration = sum(segment_duration(segment) for segment in segments)
    max_power, avg_power = analyze_power_profile(segments)

    stem = filename[:-4] if filename.endswith(".zwo") else filename
    return WorkoutTemplate(
        id=stem,
        filename=filename,
        name=_text(root, "name") or "",
        description=_text(root, "description") or "",
        type=filename.split("-")[0],
        author=_text(root, "author"),
        tags=_extract_tags(root),
        duration=duration,
        duration_formatted=format_duration(duration),
        max_power=max_power,
        avg_power=avg_power,
        estimated_intensity=estimate_intensity(avg_power),
    )
