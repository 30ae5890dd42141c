"""
LQR Controller Module

Hover/track LQR controller using a precomputed gain matrix. For each state
measurement x and the current reference r:

    e = x - r                       (orientation components wrapped)
    u = u_ref + K @ e

where K (7x12) is fixed for the lifetime of the process and u_ref is the hover
control that counteracts gravity. The error for roll, pitch and yaw is
wrapped into (-pi, pi] so that crossing the +/-pi boundary never produces a
near-full-turn error.

Usage:
    gains = load_gains("K.txt", "u_ref.txt", "x_ref.txt")
    tracker = ReferenceTracker(initial=gains.hover_state)
    controller = LQRController(gains, reference_tracker=tracker)

    tracker.set_reference(new_reference)      # reference stream
    command = controller.compute(measured)    # state stream
"""

import logging

import numpy as np

from crazyflie_lqr.errors import DimensionError
from crazyflie_lqr.utils.angles import wrap_angle_radians

from .base import ANGLE_INDICES, BaseController, ControlCommand, State
from .gains import LQRGains
from .reference import ReferenceTracker

logger = logging.getLogger(__name__)

_ANGLES = list(ANGLE_INDICES)


def compute_error(measured: State, reference: State) -> np.ndarray:
    """
    Compute the state error measured - reference.

    Orientation components are wrapped into (-pi, pi]; all other components
    are plain differences.

    Args:
        measured: Measured state.
        reference: Reference state.

    Returns:
        12-element error vector.
    """
    error = measured.values - reference.values
    error[_ANGLES] = wrap_angle_radians(error[_ANGLES])
    return error


class LQRController(BaseController):
    """
    LQR controller with a constant, externally computed gain matrix.

    The controller keeps no mutable state of its own apart from diagnostics:
    every command is a function of (K, u_ref, current reference, measurement).

    State vector (12 dimensions):
        [x, y, z, roll, pitch, yaw, vx, vy, vz, p, q, r]

    Control vector (7 dimensions):
        [roll, pitch, yaw_dot, thrust, reserved x3]

    Attributes:
        gains (LQRGains): Gain matrix and offsets (read-only).
        reference_tracker (ReferenceTracker): Source of the current reference.
        check_finite (bool): Reject measurements containing NaN/inf.
        last_control_components (dict | None): Error and feedback terms of the
            most recent command, for diagnostics.
    """

    def __init__(
        self,
        gains: LQRGains,
        reference_tracker: ReferenceTracker | None = None,
        config: dict | None = None,
    ):
        """
        Initialize the LQR controller.

        Args:
            gains: Loaded gain set.
            reference_tracker: Shared reference holder. A new tracker starting
                at gains.x_ref is created when omitted.
            config: Optional parameters:
                - check_finite: Reject non-finite measurements (default: True)

        Raises:
            TypeError: If gains is not an LQRGains instance.
        """
        super().__init__(name="lqr", config=config)

        if not isinstance(gains, LQRGains):
            raise TypeError(f"gains must be LQRGains, got {type(gains).__name__}")

        self.gains = gains
        self.reference_tracker = reference_tracker or ReferenceTracker(
            initial=gains.hover_state
        )
        self.check_finite = self.config.get("check_finite", True)

        self.last_control_components: dict | None = None

        logger.debug(
            "LQR controller ready: K %s, hover thrust %.3f",
            gains.K.shape, gains.u_ref[3],
        )

    @property
    def K(self) -> np.ndarray:
        return self.gains.K

    @property
    def u_ref(self) -> np.ndarray:
        return self.gains.u_ref

    def compute(self, measured: State) -> ControlCommand:
        """
        Compute the control command for one state measurement.

        Args:
            measured: Measured state (State or 12-element sequence).

        Returns:
            ControlCommand u = u_ref + K @ (measured - reference).

        Raises:
            DimensionError: If the measurement does not have 12 finite values.
        """
        measured = State(measured)
        if self.check_finite and not np.all(np.isfinite(measured.values)):
            raise DimensionError(f"Measured state is not finite: {measured.values}")

        # Single snapshot of the reference for this computation
        reference = self.reference_tracker.get_reference()

        error = compute_error(measured, reference)
        u_feedback = self.gains.K @ error
        u = self.gains.u_ref + u_feedback

        self.last_control_components = {
            "reference": reference.values,
            "error": error,
            "feedback_u": u_feedback,
            "u_ref": self.gains.u_ref,
        }

        return ControlCommand(u)

    def get_control_components(self) -> dict | None:
        """
        Get the last computed control terms for diagnostics.

        Returns:
            Dictionary with reference, error, feedback_u and u_ref,
            or None if compute hasn't been called yet.
        """
        return self.last_control_components

    def reset(self) -> None:
        """Clear diagnostics. The reference is owned by the tracker."""
        self.last_control_components = None
