"""
Gain Store Module

Holds the precomputed LQR gain matrix and the hover offsets, loaded once at
start-up from plain-text numeric tables.

File Format:
    One matrix row per line, values separated by whitespace. Lines starting
    with '#' are comments. Vectors may be written as a single column (one
    value per line) or as a single row.

        K.txt      7 rows x 12 columns
        u_ref.txt  7 values  (hover control, thrust channel fights gravity)
        x_ref.txt  12 values (nominal hover state)

The gains are never computed here; they are produced offline.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from crazyflie_lqr.errors import ConfigurationError, DimensionError

from .base import CONTROL_DIM, STATE_DIM, State, as_vector

logger = logging.getLogger(__name__)

K_SHAPE = (CONTROL_DIM, STATE_DIM)


@dataclass(frozen=True, eq=False)
class LQRGains:
    """
    Immutable LQR gain set.

    Attributes:
        K (ndarray): Feedback gain matrix (7x12), read-only.
        u_ref (ndarray): Reference control offset (7,), read-only.
        x_ref (ndarray): Reference state offset (12,), read-only.

    Raises:
        DimensionError: If any array has the wrong shape.
    """

    K: np.ndarray
    u_ref: np.ndarray
    x_ref: np.ndarray

    def __post_init__(self):
        K = np.array(self.K, dtype=float)
        if K.shape != K_SHAPE:
            raise DimensionError(f"K matrix must have shape {K_SHAPE}, got {K.shape}")
        K.setflags(write=False)

        object.__setattr__(self, "K", K)
        object.__setattr__(self, "u_ref", as_vector(self.u_ref, CONTROL_DIM, "u_ref"))
        object.__setattr__(self, "x_ref", as_vector(self.x_ref, STATE_DIM, "x_ref"))

    @property
    def hover_state(self) -> State:
        """x_ref as a State."""
        return State(self.x_ref)

    @classmethod
    def zeros(cls) -> "LQRGains":
        """All-zero gains. Only meant for tests and dry runs."""
        return cls(np.zeros(K_SHAPE), np.zeros(CONTROL_DIM), np.zeros(STATE_DIM))


def _read_table(path: str | Path, name: str) -> np.ndarray:
    """
    Read one whitespace-separated numeric table.

    Raises:
        ConfigurationError: If the file is missing, unreadable, non-numeric,
            empty or contains non-finite values.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"{name} file not found: {path}")

    try:
        table = np.loadtxt(path, dtype=float, comments="#", ndmin=2)
    except PermissionError as e:
        raise ConfigurationError(f"Cannot read {name} file: {path}") from e
    except ValueError as e:
        raise ConfigurationError(f"Malformed {name} file {path}: {e}") from e

    if table.size == 0:
        raise ConfigurationError(f"{name} file is empty: {path}")
    if not np.all(np.isfinite(table)):
        raise ConfigurationError(f"{name} file contains non-finite values: {path}")

    return table


def load_gains(
    k_path: str | Path,
    u_ref_path: str | Path,
    x_ref_path: str | Path,
) -> LQRGains:
    """
    Load K, u_ref and x_ref from text files.

    All three tables are read and checked before the gain set is built, so a
    failure never leaves a partial gain set behind.

    Args:
        k_path: Path to the 7x12 gain matrix.
        u_ref_path: Path to the 7-element reference control.
        x_ref_path: Path to the 12-element reference state.

    Returns:
        LQRGains instance.

    Raises:
        ConfigurationError: If any table is unreadable or has the wrong shape.
    """
    K = _read_table(k_path, "K")
    u_ref = _read_table(u_ref_path, "u_ref")
    x_ref = _read_table(x_ref_path, "x_ref")

    try:
        gains = LQRGains(K=K, u_ref=u_ref, x_ref=x_ref)
    except DimensionError as e:
        raise ConfigurationError(f"Invalid gain tables: {e}") from e

    logger.info(
        "Loaded LQR gains: K %s from %s, u_ref from %s, x_ref from %s",
        gains.K.shape, k_path, u_ref_path, x_ref_path,
    )
    return gains


def resolve_gain_paths(gains_config: dict) -> tuple[Path, Path, Path]:
    """
    Resolve the three gain file paths from the ``gains`` config section.

    Relative file names are resolved against ``gains_config["directory"]``.
    """
    directory = Path(gains_config.get("directory", "."))
    paths = []
    for key in ("k_file", "u_ref_file", "x_ref_file"):
        filename = gains_config.get(key)
        if not filename:
            raise ConfigurationError(f"gains.{key} is not set")
        path = Path(filename)
        paths.append(path if path.is_absolute() else directory / path)
    return paths[0], paths[1], paths[2]


def load_gains_from_config(config: dict) -> LQRGains:
    """
    Load gains using the ``gains`` section of a full configuration.

    Raises:
        ConfigurationError: If the section is missing or the files are invalid.
    """
    gains_config = config.get("gains")
    if not isinstance(gains_config, dict):
        raise ConfigurationError("Configuration has no 'gains' section")
    return load_gains(*resolve_gain_paths(gains_config))


def save_gains(
    gains: LQRGains,
    directory: str | Path,
    k_file: str = "K.txt",
    u_ref_file: str = "u_ref.txt",
    x_ref_file: str = "x_ref.txt",
) -> tuple[Path, Path, Path]:
    """
    Write a gain set in the format read by load_gains.

    Vectors are written as single columns.

    Returns:
        Paths of the written K, u_ref and x_ref files.
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    k_path = directory / k_file
    u_ref_path = directory / u_ref_file
    x_ref_path = directory / x_ref_file

    np.savetxt(k_path, gains.K, fmt="%.12g", header="LQR gain matrix K (7x12)")
    np.savetxt(u_ref_path, gains.u_ref, fmt="%.12g", header="reference control u_ref")
    np.savetxt(x_ref_path, gains.x_ref, fmt="%.12g", header="reference state x_ref")

    return k_path, u_ref_path, x_ref_path
