# tests/test_config.py

"""
Tests for configuration models and loading in solashift.config.
"""

import os

import pytest
from pathlib import Path

from solashift.config import SolashiftConfig, load_configuration
from solashift.config.loaders import _deep_merge_dicts, _get_config_from_env


@pytest.fixture
def clean_env(monkeypatch):
    """Removes SOLASHIFT_* variables set in the outer environment."""
    for key in list(os.environ):
        if key.startswith("SOLASHIFT_"):
            monkeypatch.delenv(key)
    return monkeypatch


def test_defaults():
    config = SolashiftConfig()
    assert config.defaults.sample_rate == 16000
    assert config.defaults.time_scale == 0.87
    assert config.defaults.num_channels == 4
    assert config.defaults.filter_order == 2
    assert (config.sola.sequence_ms, config.sola.overlap_ms, config.sola.seek_window_ms) == (100.0, 20.0, 15.0)
    assert config.logging.log_file_enabled is False
    assert config.paths.output_dir.is_absolute()


def test_default_paths_resolved_against_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    paths = SolashiftConfig().paths
    assert paths.output_dir == (tmp_path / "solashift_output").resolve()
    assert paths.log_directory == (tmp_path / "solashift_logs").resolve()

def test_invalid_log_level():
    with pytest.raises(ValueError):
        SolashiftConfig(logging={"log_level_file": "LOUD"})

def test_deep_merge():
    merged = _deep_merge_dicts({"a": {"x": 1, "y": 2}, "b": 1}, {"a": {"y": 3}, "c": 4})
    assert merged == {"a": {"x": 1, "y": 3}, "b": 1, "c": 4}

def test_env_parsing():
    env = {
        "SOLASHIFT_DEFAULTS_TIME_SCALE": "1.3",
        "SOLASHIFT_DEFAULTS_SAMPLE_RATE": "8000",
        "SOLASHIFT_LOGGING_LOG_FILE_ENABLED": "true",
        "SOLASHIFT_NOSECTION": "x",
        "OTHER_VAR": "1",
    }
    assert _get_config_from_env(env) == {
        "defaults": {"time_scale": 1.3, "sample_rate": 8000},
        "logging": {"log_file_enabled": True},
    }

def test_load_from_file(tmp_path: Path, clean_env):
    config_file = tmp_path / "custom.toml"
    config_file.write_text("[defaults]\ntime_scale = 1.3\n[sola]\nseek_window_ms = 10.0\n")
    config = load_configuration([config_file], disable_project_config=True, disable_user_config=True)
    assert config.defaults.time_scale == 1.3
    assert config.sola.seek_window_ms == 10.0
    assert config.defaults.sample_rate == 16000

def test_env_overrides_file(tmp_path: Path, clean_env):
    config_file = tmp_path / "custom.toml"
    config_file.write_text("[defaults]\ntime_scale = 1.3\n")
    clean_env.setenv("SOLASHIFT_DEFAULTS_TIME_SCALE", "0.5")
    config = load_configuration([config_file], disable_project_config=True, disable_user_config=True)
    assert config.defaults.time_scale == 0.5

def test_invalid_values_fall_back_to_defaults(tmp_path: Path, clean_env):
    config_file = tmp_path / "bad.toml"
    config_file.write_text("[defaults]\ntime_scale = -2.0\n")
    config = load_configuration([config_file], disable_project_config=True, disable_user_config=True)
    assert config == SolashiftConfig()

def test_malformed_toml_is_skipped(tmp_path: Path, clean_env):
    config_file = tmp_path / "broken.toml"
    config_file.write_text("[defaults\ntime_scale = ")
    config = load_configuration([config_file], disable_project_config=True, disable_user_config=True)
    assert config.defaults.time_scale == 0.87
