#!/usr/bin/env python3
"""
Configuration management
"""

import os
import logging
import yaml
from pathlib import Path
from dataclasses import dataclass, fields

logger = logging.getLogger(__name__)

TRAINING_GOALS = (
    "general_fitness",
    "weight_loss",
    "increase_ftp",
    "build_endurance",
    "improve_vo2max",
    "build_base",
    "race_prep",
    "maintenance",
)

@dataclass
class Config:
    """Athlete profile and application configuration"""
    # Athlete profile
    max_hr: int = 182
    resting_hr: int = 60
    ftp: int = 200
    weight: float = 85.0
    training_goal: str = "general_fitness"

    # Analysis settings
    weeks_to_show: int = 6

    # Workout library
    workouts_dir: str = "data/zwift-workouts"
    workout_cache_ttl: int = 3600  # Cache TTL in seconds

    # Logging
    log_level: str = "INFO"

    def __post_init__(self):
        if self.training_goal not in TRAINING_GOALS:
            logger.warning(f"Unknown training goal '{self.training_goal}', using 'general_fitness'")
            self.training_goal = "general_fitness"

def _env_number(name: str, default, cast):
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return cast(value)
    except ValueError:
        raise ValueError(f"Invalid value for {name}: {value!r}")

def load_config(config_file: str = "config.yaml") -> Config:
    """Load configuration from file or environment variables"""
    config_path = Path(config_file)

    # Load from file if exists
    if config_path.exists():
        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f) or {}
        known = {f.name for f in fields(Config)}
        unknown = set(config_data) - known
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {sorted(unknown)}")
        return Config(**{k: v for k, v in config_data.items() if k in known})

    # Load from environment variables
    return Config(
        max_hr=_env_number("COACH_MAX_HR", 182, int),
        resting_hr=_env_number("COACH_RESTING_HR", 60, int),
        ftp=_env_number("COACH_FTP", 200, int),
        weight=_env_number("COACH_WEIGHT", 85.0, float),
        training_goal=os.getenv("COACH_TRAINING_GOAL", "general_fitness"),
        weeks_to_show=_env_number("COACH_WEEKS_TO_SHOW", 6, int),
        workouts_dir=os.getenv("COACH_WORKOUTS_DIR", "data/zwift-workouts"),
        workout_cache_ttl=_env_number("COACH_WORKOUT_CACHE_TTL", 3600, int),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )

def create_sample_config(config_file: str = "config.yaml") -> None:
    """Create a sample configuration file"""
    config_path = Path(config_file)
    if config_path.exists():
        return

    sample_config = {
        "max_hr": 182,
        "resting_hr": 60,
        "ftp": 200,
        "weight": 85.0,
        "training_goal": "general_fitness",
        "weeks_to_show": 6,
        "workouts_dir": "data/zwift-workouts",
        "workout_cache_ttl": 3600,
        "log_level": "INFO"
    }

    with open(config_path, 'w') as f:
        yaml.dump(sample_config, f, default_flow_style=False)

    print(f"Created sample config file: {config_file}")
    print("Please edit with your heart rate, FTP and training goal.")
