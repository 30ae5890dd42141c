"""
Crazyflie LQR Control Package

Hover/track LQR feedback controller for the Crazyflie quadrotor with a
precomputed gain matrix.

Subpackages:
- controllers: State/command types, gain store, reference tracker, LQR
  control law and the cmd_vel gate
- utils: Configuration, data logging and angle utilities
- node: Callback host that owns the controller lifecycle
- replay: Command-line replay of recorded states
"""

import importlib.metadata

try:
    # Retrieve the version from installed package metadata
    __version__ = importlib.metadata.version("crazyflie-lqr")
except importlib.metadata.PackageNotFoundError:
    # Fallback for when the package is not installed
    __version__ = "0.0.0-dev"

from crazyflie_lqr.controllers import (
    BaseController,
    CmdVelConverter,
    ControlCommand,
    LQRController,
    LQRGains,
    ReferenceTracker,
    State,
    load_gains,
)
from crazyflie_lqr.errors import (
    ConfigurationError,
    CrazyflieLQRError,
    DimensionError,
)
from crazyflie_lqr.node import CrazyflieLQRNode
from crazyflie_lqr.utils import (
    DataLogger,
    get_default_config,
    load_config,
    wrap_angle_degrees,
    wrap_angle_radians,
)

__all__ = [
    "BaseController",
    "LQRController",
    "LQRGains",
    "ReferenceTracker",
    "State",
    "ControlCommand",
    "CmdVelConverter",
    "CrazyflieLQRNode",
    "load_gains",
    "load_config",
    "get_default_config",
    "DataLogger",
    "wrap_angle_degrees",
    "wrap_angle_radians",
    # Errors
    "CrazyflieLQRError",
    "ConfigurationError",
    "DimensionError",
]
