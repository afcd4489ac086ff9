"""Tests for configuration loading and validation."""

import pytest
from pathlib import Path

from orgpick.engine.config import Config
from orgpick.engine.errors import ConfigError
from orgpick.engine.temporal import DEFAULT_BUCKETS, DEFAULT_WEIGHT, FrecencyScorer


def test_defaults():
    """Defaults match the documented configuration surface."""
    config = Config()

    assert config.ranking.threshold_frecency == 50
    assert config.ranking.snooze_horizon_days == 3
    assert config.ranking.comparator == "two-tier"
    assert config.grouping.dimension == "none"
    assert config.grouping.sort == "frecency"
    assert config.display.dim_blocked is True
    assert config.outline.project_tag == "project"


def test_load_yaml(tmp_path):
    """Test loading a partial config file."""
    path = tmp_path / "orgpick.yaml"
    path.write_text(
        "ranking:\n"
        "  threshold_frecency: 75\n"
        "  snooze_horizon_days: null\n"
        "grouping:\n"
        "  dimension: remote\n"
        "outline:\n"
        "  files: [notes/todo.org]\n"
    )

    config = Config.load(path)

    assert config.ranking.threshold_frecency == 75
    assert config.ranking.snooze_horizon_days is None
    assert config.grouping.dimension == "remote"
    assert config.outline.files == [Path("notes/todo.org")]
    assert config.display.width is None


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")

    assert Config.load(path) == Config()


def test_save_and_reload(tmp_path):
    config = Config()
    config.ranking.threshold_frecency = 20
    config.frecency.default_weight = 1
    path = tmp_path / "nested" / "config.yaml"

    config.save(path)

    assert Config.load(path) == config


@pytest.mark.parametrize("body", [
    "ranking:\n  threshold_frecency: -1\n",
    "ranking:\n  snooze_horizon_days: -2\n",
    "grouping:\n  dimension: author\n",
    "display:\n  width: 2\n",
    "frecency:\n  default_weight: -5\n",
    "ranking:\n  comparator: nonsense\n",
    "log_level: loud\n",
    "- just\n- a list\n",
    "ranking: [unclosed\n",
])
def test_invalid_config(tmp_path, body):
    """Invalid values surface as ConfigError."""
    path = tmp_path / "bad.yaml"
    path.write_text(body)

    with pytest.raises(ConfigError):
        Config.load(path)


def test_missing_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))

    with pytest.raises(FileNotFoundError):
        Config.load()


def test_default_location_is_used(tmp_path, monkeypatch):
    (tmp_path / "orgpick.yaml").write_text("log_level: DEBUG\n")
    monkeypatch.chdir(tmp_path)

    assert Config.load().log_level == "DEBUG"


def test_scorer_from_config():
    config = Config()
    config.frecency.buckets = config.frecency.buckets[:1]
    config.frecency.default_weight = 0

    scorer = FrecencyScorer.from_config(config.frecency)

    assert scorer.buckets == [(4, 100)]
    assert scorer.default_weight == 0


def test_frecency_defaults_match_scorer():
    config = Config().frecency

    assert [(b.max_age_days, b.weight) for b in config.buckets] == list(DEFAULT_BUCKETS)
    assert config.default_weight == DEFAULT_WEIGHT


@pytest.mark.parametrize("name", ["two-tier", "urgency", "frecency", "arrival"])
def test_registered_comparators_accepted(tmp_path, name):
    path = tmp_path / "orgpick.yaml"
    path.write_text(f"ranking:\n  comparator: {name}\n")

    assert Config.load(path).ranking.comparator == name


def test_log_level_is_normalized(tmp_path):
    path = tmp_path / "orgpick.yaml"
    path.write_text("log_level: debug\n")

    assert Config.load(path).log_level == "DEBUG"
