"""
Crazyflie Controllers Package

This package provides the hover/track LQR controller and the pieces around
it. Controllers receive state measurements and produce control commands.

Components:
- base: State / ControlCommand value types and BaseController
- gains: Precomputed gain matrix K and hover offsets (u_ref, x_ref)
- reference: Last-write-wins reference holder
- lqr: The LQR control law u = u_ref + K (x - reference)
- cmd_vel: In-flight gate and conversion to velocity commands

Control Schema:
    All controllers return a 7-element ControlCommand:
    - roll: Desired roll angle in rad
    - pitch: Desired pitch angle in rad
    - yaw_dot: Desired yaw rate in rad/s
    - thrust: Collective thrust in m/s^2
    - three reserved channels

Design Philosophy:
- Gains are loaded once and never mutated
- The controller is a pure function of gains, reference and measurement
- Reference updates and state measurements may come from different threads
"""

from .base import (
    ANGLE_INDICES,
    CONTROL_DIM,
    CONTROL_KEYS,
    STATE_DIM,
    STATE_GROUPS,
    STATE_KEYS,
    BaseController,
    ControlCommand,
    State,
    to_state,
)
from .cmd_vel import CmdVelConverter, Twist, thrust_to_pwm
from .gains import (
    LQRGains,
    load_gains,
    load_gains_from_config,
    resolve_gain_paths,
    save_gains,
)
from .lqr import LQRController, compute_error
from .reference import ReferenceTracker

__all__ = [
    "BaseController",
    "LQRController",
    "ReferenceTracker",
    "LQRGains",
    "load_gains",
    "load_gains_from_config",
    "resolve_gain_paths",
    "save_gains",
    "compute_error",
    "State",
    "ControlCommand",
    "to_state",
    "STATE_DIM",
    "CONTROL_DIM",
    "STATE_KEYS",
    "STATE_GROUPS",
    "CONTROL_KEYS",
    "ANGLE_INDICES",
    "CmdVelConverter",
    "Twist",
    "thrust_to_pwm",
]
