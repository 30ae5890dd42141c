"""Tests for configuration loading utilities."""

import json
import os
from unittest import mock

import numpy as np
import pytest

from crazyflie_lqr.utils import DataLogger, get_default_config, load_config


def test_get_default_config_has_required_keys():
    """Test that default config has all required keys."""
    config = get_default_config()

    assert "gains" in config
    for key in ("directory", "k_file", "u_ref_file", "x_ref_file"):
        assert key in config["gains"]
    assert "cmd_vel" in config
    assert "logging" in config


def test_get_default_config_values():
    """Test that default config has expected values."""
    config = get_default_config()

    assert config["gains"]["k_file"] == "K.txt"
    assert config["cmd_vel"]["max_thrust_pwm"] == 60000.0
    assert config["logging"]["level"] == "INFO"


def test_load_config_without_file():
    """Test config loading with defaults only."""
    config = load_config(config_path=None, load_env=False)

    assert config["gains"]["directory"] == "config/gains"


def test_load_config_yaml_merges(tmp_path):
    """Test YAML values are deep-merged over defaults."""
    path = tmp_path / "config.yaml"
    path.write_text("gains:\n  directory: /opt/gains\ncmd_vel:\n  gravity: 9.8\n")

    config = load_config(config_path=path, load_env=False)

    assert config["gains"]["directory"] == "/opt/gains"
    assert config["gains"]["k_file"] == "K.txt"
    assert config["cmd_vel"]["gravity"] == 9.8
    assert config["cmd_vel"]["max_thrust_pwm"] == 60000.0


def test_load_config_json(tmp_path):
    """Test JSON configuration files."""
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"logging": {"level": "DEBUG"}}))

    config = load_config(config_path=path, load_env=False)
    assert config["logging"]["level"] == "DEBUG"


def test_load_config_missing_file(tmp_path):
    """Test a missing file raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        load_config(config_path=tmp_path / "missing.yaml", load_env=False)


def test_load_config_unsupported_format(tmp_path):
    """Test unsupported suffixes raise ValueError."""
    path = tmp_path / "config.toml"
    path.write_text("[gains]\n")
    with pytest.raises(ValueError, match="Unsupported config format"):
        load_config(config_path=path, load_env=False)


def test_load_config_malformed(tmp_path):
    """Test malformed YAML raises ValueError."""
    path = tmp_path / "config.yaml"
    path.write_text("gains: [unclosed\n")
    with pytest.raises(ValueError, match="Malformed"):
        load_config(config_path=path, load_env=False)


def test_load_config_non_mapping(tmp_path):
    """Test a YAML list at top level raises ValueError."""
    path = tmp_path / "config.yaml"
    path.write_text("- a\n- b\n")
    with pytest.raises(ValueError, match="mapping"):
        load_config(config_path=path, load_env=False)


def test_load_config_env_override():
    """Test that environment variables override defaults."""
    with mock.patch.dict(
        os.environ,
        {"CRAZYFLIE_LQR_GAINS_DIR": "/tmp/gains", "CRAZYFLIE_LQR_LOG_LEVEL": "debug"},
    ):
        config = load_config(config_path=None, load_env=True)
        assert config["gains"]["directory"] == "/tmp/gains"
        assert config["logging"]["level"] == "DEBUG"


def test_load_config_invalid_env_value_ignored():
    """Test invalid numeric env values keep the default."""
    with mock.patch.dict(os.environ, {"CRAZYFLIE_LQR_MAX_THRUST_PWM": "lots"}):
        config = load_config(config_path=None, load_env=True)
        assert config["cmd_vel"]["max_thrust_pwm"] == 60000.0


def test_shipped_config_loads():
    """Test config/crazyflie_lqr.yaml is valid."""
    from pathlib import Path

    path = Path(__file__).resolve().parent.parent / "config" / "crazyflie_lqr.yaml"
    config = load_config(config_path=path, load_env=False)
    assert config["gains"]["u_ref_file"] == "u_ref.txt"


class TestDataLogger:
    """Tests for DataLogger."""

    def test_logs_every_interval(self):
        """Test only every log_interval-th step is kept."""
        logger = DataLogger(log_interval=3)
        for _ in range(7):
            logger.log(np.zeros(12), np.zeros(12), np.zeros(7))
        assert [entry["step"] for entry in logger.data] == [3, 6]

    def test_save_writes_json(self, tmp_path):
        """Test saved logs contain plain lists."""
        logger = DataLogger(output_dir=tmp_path, experiment_name="run", log_interval=1)
        logger.log(np.arange(12.0), np.zeros(12), np.ones(7))
        path = logger.save()

        data = json.loads(path.read_text())
        assert path == tmp_path / "run.json"
        assert data[0]["state"] == list(range(12))
        assert data[0]["command"] == [1.0] * 7

    def test_reset(self):
        """Test reset clears data and the step counter."""
        logger = DataLogger(log_interval=1)
        logger.log(np.zeros(12), np.zeros(12), np.zeros(7))
        logger.reset()
        assert logger.data == []
        logger.log(np.zeros(12), np.zeros(12), np.zeros(7))
        assert logger.data[0]["step"] == 1

    def test_invalid_interval(self):
        """Test log_interval must be positive."""
        with pytest.raises(ValueError, match="log_interval"):
            DataLogger(log_interval=0)
