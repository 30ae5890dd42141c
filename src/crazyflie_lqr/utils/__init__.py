"""
Crazyflie LQR Utilities Package

This package provides shared utilities for the controller:
- Configuration loading (YAML/JSON with environment variable overrides)
- Data logging of state/reference/command triples
- Angle conversion and wrapping (see angles)

Design Philosophy:
- Utilities are stateless where possible
- Configuration supports both file-based and environment variable sources
- Logging captures enough data for post-hoc analysis
"""

import datetime
import json
import logging
import os
from pathlib import Path

import numpy as np
import yaml
from dotenv import load_dotenv

from .angles import (
    degrees_to_radians,
    radians_to_degrees,
    wrap_angle,
    wrap_angle_degrees,
    wrap_angle_radians,
)

__all__ = [
    "load_config",
    "get_default_config",
    "DataLogger",
    "degrees_to_radians",
    "radians_to_degrees",
    "wrap_angle",
    "wrap_angle_degrees",
    "wrap_angle_radians",
]

logger = logging.getLogger(__name__)


def get_default_config() -> dict:
    """
    Get default configuration values.

    Returns sensible defaults for all configuration parameters.
    These defaults are used when no configuration file is provided
    or when specific values are missing.

    Returns:
        Dictionary with default configuration values.
    """
    return {
        "gains": {
            "directory": "config/gains",
            "k_file": "K.txt",  # 7x12 feedback gain matrix
            "u_ref_file": "u_ref.txt",  # 7 values, hover control
            "x_ref_file": "x_ref.txt",  # 12 values, hover state
        },
        "controller": {
            "check_finite": True,
        },
        "cmd_vel": {
            "max_thrust_pwm": 60000.0,
            "gravity": 9.81,  # m/s^2
        },
        "logging": {
            "level": "INFO",
            "enabled": False,
            "output_dir": "experiments",
            "log_interval": 10,  # steps between log entries
        },
    }


def load_config(
    config_path: str | Path | None = None,
    load_env: bool = True,
) -> dict:
    """
    Load configuration from file with environment variable overrides.

    Configuration loading follows this priority (highest to lowest):
    1. Environment variables (from .env file or system)
    2. Config file (YAML or JSON)
    3. Default values

    Environment variables override config file values using a naming convention:
    - CRAZYFLIE_LQR_GAINS_DIR -> config["gains"]["directory"]
    - CRAZYFLIE_LQR_K_FILE -> config["gains"]["k_file"]
    - CRAZYFLIE_LQR_U_REF_FILE -> config["gains"]["u_ref_file"]
    - CRAZYFLIE_LQR_X_REF_FILE -> config["gains"]["x_ref_file"]
    - CRAZYFLIE_LQR_LOG_LEVEL -> config["logging"]["level"]
    - CRAZYFLIE_LQR_MAX_THRUST_PWM -> config["cmd_vel"]["max_thrust_pwm"]

    Args:
        config_path: Path to YAML or JSON configuration file.
                    If None, only defaults and env vars are used.
        load_env: Whether to load .env file and apply env var overrides.

    Returns:
        Merged configuration dictionary.

    Raises:
        FileNotFoundError: If config_path is specified but file doesn't exist.
        PermissionError: If config file cannot be read.
        ValueError: If config file format is unsupported or malformed.
    """
    # Start with defaults
    config = get_default_config()

    # Load from file if provided
    if config_path is not None:
        config_path = Path(config_path)

        # Validate file exists and is readable
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        if not config_path.is_file():
            raise ValueError(f"Configuration path is not a file: {config_path}")

        try:
            with open(config_path) as f:
                if config_path.suffix in (".yaml", ".yml"):
                    file_config = yaml.safe_load(f)
                elif config_path.suffix == ".json":
                    file_config = json.load(f)
                else:
                    raise ValueError(f"Unsupported config format: {config_path.suffix}")
        except PermissionError as e:
            raise PermissionError(
                f"Cannot read configuration file: {config_path}"
            ) from e
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ValueError(f"Malformed configuration file: {config_path}") from e

        if file_config:
            if not isinstance(file_config, dict):
                raise ValueError(
                    f"Configuration file must contain a mapping: {config_path}"
                )
            config = _deep_merge(config, file_config)

    # Apply environment variable overrides
    if load_env:
        load_dotenv()
        config = _apply_env_overrides(config)

    return config


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary.
        override: Override dictionary (values take precedence).

    Returns:
        Merged dictionary.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _json_serializer(obj):
    """
    Custom JSON serializer for objects not serializable by default json.dump.

    Handles common types found in controller logging:
    - numpy arrays -> lists
    - numpy scalars -> Python numbers
    - datetime objects -> ISO format strings
    - Path objects -> strings

    Args:
        obj: Object to serialize.

    Returns:
        JSON-serializable representation.

    Raises:
        TypeError: If object type is not supported.
    """
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, np.generic):
        return obj.item()
    if isinstance(obj, (datetime.datetime, datetime.date)):
        return obj.isoformat()
    if isinstance(obj, Path):
        return str(obj)
    # Raise for unsupported types to catch serialization issues
    raise TypeError("Object is not JSON serializable")


def _apply_env_overrides(config: dict) -> dict:
    """
    Apply environment variable overrides to configuration.

    Args:
        config: Configuration dictionary.

    Returns:
        Configuration with env var overrides applied.
    """
    env_mappings = {
        "CRAZYFLIE_LQR_GAINS_DIR": ("gains", "directory", str),
        "CRAZYFLIE_LQR_K_FILE": ("gains", "k_file", str),
        "CRAZYFLIE_LQR_U_REF_FILE": ("gains", "u_ref_file", str),
        "CRAZYFLIE_LQR_X_REF_FILE": ("gains", "x_ref_file", str),
        "CRAZYFLIE_LQR_LOG_LEVEL": ("logging", "level", str.upper),
        "CRAZYFLIE_LQR_MAX_THRUST_PWM": ("cmd_vel", "max_thrust_pwm", float),
    }

    for env_var, (section, config_key, type_fn) in env_mappings.items():
        value = os.getenv(env_var)
        if value is not None:
            try:
                config.setdefault(section, {})[config_key] = type_fn(value)
            except ValueError:
                logger.warning(
                    "Invalid value for %s: '%s', using default", env_var, value
                )

    return config


class DataLogger:
    """
    Data logging utility for controller runs.

    Records measured state, reference and command at configurable intervals
    for post-run analysis.

    Attributes:
        output_dir (Path): Directory for log files.
        experiment_name (str): Name of current run.
        log_interval (int): Steps between log entries.
    """

    def __init__(
        self,
        output_dir: str | Path = "experiments",
        experiment_name: str | None = None,
        log_interval: int = 10,
    ):
        """
        Initialize data logger.

        Args:
            output_dir: Directory for log output.
            experiment_name: Name for this run (timestamped if None).
            log_interval: Number of steps between log entries.

        Raises:
            ValueError: If log_interval is not positive.
        """
        if log_interval < 1:
            raise ValueError(f"log_interval must be >= 1, got {log_interval}")

        self.output_dir = Path(output_dir)
        self.experiment_name = experiment_name or datetime.datetime.now(
            datetime.timezone.utc
        ).strftime("lqr_%Y%m%d_%H%M%S")
        self.log_interval = log_interval
        self.data = []
        self._step_count = 0

    def log(self, state, reference, command) -> None:
        """
        Log a single control step.

        Args:
            state: Measured state vector.
            reference: Reference state vector in use.
            command: Control command vector produced.
        """
        self._step_count += 1
        if self._step_count % self.log_interval == 0:
            self.data.append(
                {
                    "step": self._step_count,
                    "state": np.asarray(state),
                    "reference": np.asarray(reference),
                    "command": np.asarray(command),
                }
            )

    def save(self) -> Path:
        """
        Save logged data to file.

        Returns:
            Path to saved log file.
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        log_path = self.output_dir / f"{self.experiment_name}.json"
        with open(log_path, "w") as f:
            json.dump(self.data, f, indent=2, default=_json_serializer)
        return log_path

    def reset(self) -> None:
        """Reset logger state for a new run."""
        self.data = []
        self._step_count = 0
