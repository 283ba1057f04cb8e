"""
Tests for config.py - config file loading and layering.
"""

import json

import pytest
from proxyscan.config import DEFAULTS, build_config, load_config, merge_settings
from proxyscan.core import ConfigurationError, default_workers


class TestLoadConfig:
    """Tests for config file parsing."""

    def test_yaml(self, tmp_path):
        path = tmp_path / "scan.yaml"
        path.write_text("timeout: 5\nworkers: 32\noutput_dir: out\nlog_level: debug\n")

        settings = load_config(str(path))
        assert settings == {
            "timeout": 5.0, "workers": 32, "output_dir": "out", "log_level": "debug"
        }

    def test_json(self, tmp_path):
        path = tmp_path / "scan.json"
        path.write_text(json.dumps({
            "timeout": 2, "workers": 10, "refresh_interval": 30,
            "output_dir": "/tmp/x", "log_level": "quiet"
        }))

        settings = load_config(str(path))
        assert settings["timeout"] == 2.0
        assert settings["workers"] == 10
        assert settings["refresh_interval"] == 30
        assert settings["log_level"] == "quiet"

    def test_zero_and_empty_values_ignored(self, tmp_path):
        path = tmp_path / "scan.json"
        path.write_text(json.dumps({"timeout": 0, "output_dir": "", "workers": 4}))

        assert load_config(str(path)) == {"workers": 4}

    def test_dashed_keys(self, tmp_path):
        path = tmp_path / "scan.yaml"
        path.write_text("refresh-interval: 15\n")

        assert load_config(str(path)) == {"refresh_interval": 15}

    def test_unknown_key_ignored(self, tmp_path):
        path = tmp_path / "scan.yaml"
        path.write_text("colour: blue\nworkers: 2\n")

        assert load_config(str(path)) == {"workers": 2}

    def test_empty_file(self, tmp_path):
        path = tmp_path / "scan.yaml"
        path.write_text("")

        assert load_config(str(path)) == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(str(tmp_path / "nope.yaml"))

    def test_invalid_syntax(self, tmp_path):
        path = tmp_path / "scan.json"
        path.write_text('{"timeout": [1, 2')

        with pytest.raises(ConfigurationError):
            load_config(str(path))

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "scan.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigurationError):
            load_config(str(path))

    def test_bad_value(self, tmp_path):
        path = tmp_path / "scan.yaml"
        path.write_text("workers: many\n")

        with pytest.raises(ConfigurationError):
            load_config(str(path))


class TestMergeSettings:
    """Tests for CLI > file > defaults layering."""

    def test_defaults(self):
        assert merge_settings({}) == DEFAULTS

    def test_file_over_defaults(self):
        merged = merge_settings({}, {"timeout": 7.0})
        assert merged["timeout"] == 7.0

    def test_cli_over_file(self):
        merged = merge_settings({"timeout": 1.0, "workers": None}, {"timeout": 7.0, "workers": 9})
        assert merged["timeout"] == 1.0
        assert merged["workers"] == 9

    def test_ignores_non_setting_args(self):
        merged = merge_settings({"config": "scan.yaml", "log_file": "x.log"})
        assert "config" not in merged
        assert "log_file" not in merged


class TestBuildConfig:
    """Tests for ScanConfig construction from settings."""

    def test_defaults(self):
        config = build_config(merge_settings({}))
        assert config.connect_timeout == 3.0
        assert config.read_timeout == 3.0
        assert config.workers == default_workers()
        assert config.refresh_interval == 60
        assert config.output_dir == "."
        assert config.log_level == "info"

    def test_read_timeout_follows_timeout(self):
        config = build_config(merge_settings({"timeout": 5.0}))
        assert config.read_timeout == 5.0

    def test_separate_read_timeout(self):
        config = build_config(merge_settings({"timeout": 2.0, "read_timeout": 4.0}))
        assert config.connect_timeout == 2.0
        assert config.read_timeout == 4.0

    def test_log_level_case_insensitive(self):
        config = build_config(merge_settings({"log_level": "DEBUG"}))
        assert config.log_level == "debug"

    def test_invalid_log_level(self):
        with pytest.raises(ConfigurationError):
            build_config(merge_settings({"log_level": "verbose"}))

    def test_invalid_workers(self):
        with pytest.raises(ConfigurationError):
            build_config(merge_settings({"workers": -3}))
