"""
Command Velocity Converter Module

Converts LQR control commands into the velocity-command layout the Crazyflie
driver expects, and gates output on the in-flight flag.

Mapping (in flight):
    linear.y  = roll
    linear.x  = -pitch
    angular.z = yaw_dot
    linear.z  = thrust converted to PWM

When grounded every field is zero. The flag is set by takeoff() and cleared
by land().
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from .base import ControlCommand

logger = logging.getLogger(__name__)

# Crazyflie thrust PWM ceiling
DEFAULT_MAX_THRUST_PWM = 60000.0
DEFAULT_GRAVITY = 9.81


@dataclass(frozen=True)
class Twist:
    """Velocity command sent to the driver."""

    linear_x: float = 0.0
    linear_y: float = 0.0
    linear_z: float = 0.0
    angular_z: float = 0.0

    def to_dict(self) -> dict:
        return {
            "linear": {"x": self.linear_x, "y": self.linear_y, "z": self.linear_z},
            "angular": {"x": 0.0, "y": 0.0, "z": self.angular_z},
        }


def thrust_to_pwm(
    thrust: float,
    max_thrust_pwm: float = DEFAULT_MAX_THRUST_PWM,
    gravity: float = DEFAULT_GRAVITY,
) -> float:
    """
    Convert a thrust command (m/s^2) to a PWM value.

    Hover thrust (one g) maps to half of max_thrust_pwm. The result is clipped
    to [0, max_thrust_pwm].

    Args:
        thrust: Collective thrust as an acceleration.
        max_thrust_pwm: PWM value at full thrust.
        gravity: Gravitational acceleration in m/s^2.

    Returns:
        PWM value as a float.
    """
    pwm = thrust * max_thrust_pwm / (2.0 * gravity)
    return float(np.clip(pwm, 0.0, max_thrust_pwm))


class CmdVelConverter:
    """
    In-flight gate and remapping from ControlCommand to Twist.

    Attributes:
        in_flight (bool): Whether commands are passed through.
        max_thrust_pwm (float): PWM value at full thrust.
        gravity (float): Gravity used by the thrust conversion.
    """

    def __init__(self, config: dict | None = None):
        """
        Initialize the converter (grounded).

        Args:
            config: Optional parameters:
                - max_thrust_pwm: PWM at full thrust (default: 60000.0)
                - gravity: Gravitational acceleration (default: 9.81)

        Raises:
            ValueError: If max_thrust_pwm or gravity is not positive.
        """
        config = config or {}
        self.max_thrust_pwm = float(config.get("max_thrust_pwm", DEFAULT_MAX_THRUST_PWM))
        self.gravity = float(config.get("gravity", DEFAULT_GRAVITY))

        if self.max_thrust_pwm <= 0:
            raise ValueError(f"max_thrust_pwm must be positive, got {self.max_thrust_pwm}")
        if self.gravity <= 0:
            raise ValueError(f"gravity must be positive, got {self.gravity}")

        self.in_flight = False
        self._subscribers: list[Callable[[Twist], None]] = []

    def takeoff(self) -> None:
        """Start passing commands through."""
        logger.info("Takeoff requested.")
        self.in_flight = True

    def land(self) -> None:
        """Stop passing commands through; output zeros."""
        logger.info("Landing requested.")
        self.in_flight = False

    def convert(self, command: ControlCommand) -> Twist:
        """Map a control command to a Twist, honouring the in-flight gate."""
        if not self.in_flight:
            return Twist()

        command = ControlCommand(command)
        return Twist(
            linear_x=-command.pitch,
            linear_y=command.roll,
            linear_z=thrust_to_pwm(command.thrust, self.max_thrust_pwm, self.gravity),
            angular_z=command.yaw_dot,
        )

    def add_subscriber(self, callback: Callable[[Twist], None]) -> None:
        """Register a callback receiving every converted Twist."""
        self._subscribers.append(callback)

    def control_callback(self, command: ControlCommand) -> Twist:
        """Convert one command and publish it to all subscribers."""
        twist = self.convert(command)
        for callback in self._subscribers:
            callback(twist)
        return twist
