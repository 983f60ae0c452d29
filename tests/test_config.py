"""
Tests for configuration loading.
"""
import pytest
import yaml

from cycling_coach.config import Config, create_sample_config, load_config

ENV_VARS = (
    "COACH_MAX_HR", "COACH_RESTING_HR", "COACH_FTP", "COACH_WEIGHT", "COACH_TRAINING_GOAL",
    "COACH_WEEKS_TO_SHOW", "COACH_WORKOUTS_DIR", "COACH_WORKOUT_CACHE_TTL", "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestLoadConfig:

    def test_defaults(self, tmp_path):
        config = load_config(str(tmp_path / "missing.yaml"))
        assert config == Config()
        assert config.max_hr == 182
        assert config.training_goal == "general_fitness"
        assert config.workout_cache_ttl == 3600

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"max_hr": 190, "ftp": 250, "training_goal": "increase_ftp"}))
        config = load_config(str(path))
        assert config.max_hr == 190
        assert config.ftp == 250
        assert config.training_goal == "increase_ftp"
        assert config.resting_hr == 60

    def test_unknown_yaml_keys_are_ignored(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("ftp: 240\nopenrouter_api_key: abc\n")
        assert load_config(str(path)).ftp == 240

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(str(path)) == Config()

    def test_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("COACH_FTP", "275")
        monkeypatch.setenv("COACH_WEIGHT", "72.5")
        monkeypatch.setenv("COACH_TRAINING_GOAL", "build_base")
        config = load_config(str(tmp_path / "missing.yaml"))
        assert config.ftp == 275
        assert config.weight == 72.5
        assert config.training_goal == "build_base"

    def test_invalid_number_in_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("COACH_MAX_HR", "fast")
        with pytest.raises(ValueError):
            load_config(str(tmp_path / "missing.yaml"))

    def test_unknown_goal_falls_back(self):
        assert Config(training_goal="get_rich").training_goal == "general_fitness"


class TestSampleConfig:

    def test_writes_loadable_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        create_sample_config(str(path))
        assert load_config(str(path)) == Config()

    def test_keeps_existing_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("ftp: 300\n")
        create_sample_config(str(path))
        assert path.read_text() == "ftp: 300\n"
