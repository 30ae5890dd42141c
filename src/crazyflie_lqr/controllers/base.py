"""
Base Controller Module

Provides the state/command value types shared by every controller and the
abstract base class for controllers.

State Schema (12 dimensions):
    Index  Key     Unit    Meaning
    0-2    x y z   m       position (world frame)
    3-5    roll    rad     orientation angles (roll, pitch, yaw)
           pitch
           yaw
    6-8    vx vy   m/s     linear velocity
           vz
    9-11   p q r   rad/s   body angular rates

Control Schema (7 dimensions):
    Index  Key      Meaning
    0      roll     desired roll angle
    1      pitch    desired pitch angle
    2      yaw_dot  desired yaw rate
    3      thrust   collective thrust (acceleration, m/s^2)
    4-6    -        reserved, carried through unchanged

Only the orientation indices (3, 4, 5) are angles. Wrapping any other index
would corrupt the control law.
"""

from dataclasses import dataclass

import numpy as np

from crazyflie_lqr.errors import DimensionError

STATE_DIM = 12
CONTROL_DIM = 7

STATE_KEYS = (
    "x", "y", "z",
    "roll", "pitch", "yaw",
    "vx", "vy", "vz",
    "p", "q", "r",
)

# Grouped form accepted by State.from_dict, 3 values each
STATE_GROUPS = ("position", "attitude", "velocity", "angular_velocity")

# Canonical control keys; reserved channels are named for serialization only
CONTROL_KEYS = ("roll", "pitch", "yaw_dot", "thrust", "aux_0", "aux_1", "aux_2")

# Orientation indices in the State vector (roll, pitch, yaw)
ANGLE_INDICES = (3, 4, 5)


def as_vector(values, size: int, name: str = "vector") -> np.ndarray:
    """
    Convert a sequence into a read-only float vector of a fixed size.

    Column (n x 1) and row (1 x n) shapes are flattened.

    Args:
        values: Sequence or array of numbers.
        size: Required number of elements.
        name: Name used in error messages.

    Returns:
        Read-only 1-D float array of length ``size``.

    Raises:
        DimensionError: If the number of elements or rank is wrong.
    """
    try:
        array = np.array(values, dtype=float)
    except (TypeError, ValueError) as e:
        raise DimensionError(f"{name} must be numeric: {e}") from e

    if array.ndim == 2 and 1 in array.shape:
        array = array.reshape(-1)

    if array.shape != (size,):
        raise DimensionError(
            f"{name} must have shape ({size},), got {array.shape}"
        )

    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class State:
    """Immutable 12-dimensional quadrotor state."""

    values: np.ndarray

    def __post_init__(self):
        values = self.values
        if isinstance(values, State):
            values = values.values
        object.__setattr__(self, "values", as_vector(values, STATE_DIM, name="State"))

    @classmethod
    def zeros(cls) -> "State":
        """Hover-at-origin state."""
        return cls(np.zeros(STATE_DIM))

    @classmethod
    def from_array(cls, values) -> "State":
        return cls(values)

    @classmethod
    def from_dict(cls, data: dict) -> "State":
        """
        Build a State from named fields.

        Accepts either flat keys (``x``, ``roll``, ...) or the grouped form
        ``{"position": [...], "attitude": [...], "velocity": [...],
        "angular_velocity": [...]}``. Missing fields default to zero.

        Raises:
            DimensionError: If the dictionary is empty, contains a key that
                belongs to neither form, or a field has the wrong size.
        """
        if not data:
            raise DimensionError("State dictionary has no fields")

        grouped = any(key in STATE_GROUPS for key in data)
        allowed = STATE_GROUPS if grouped else STATE_KEYS
        unknown = sorted(str(key) for key in data if key not in allowed)
        if unknown:
            raise DimensionError(
                f"Unknown state fields {unknown}; expected keys from {allowed}"
            )

        if grouped:
            parts = [
                as_vector(data.get(key, np.zeros(3)), 3, name=key)
                for key in STATE_GROUPS
            ]
            return cls(np.concatenate(parts))
        return cls([data.get(key, 0.0) for key in STATE_KEYS])

    def as_array(self) -> np.ndarray:
        """Return a writable copy of the state vector."""
        return self.values.copy()

    def to_dict(self) -> dict:
        return {key: float(v) for key, v in zip(STATE_KEYS, self.values)}

    @property
    def position(self) -> np.ndarray:
        return self.values[0:3]

    @property
    def attitude(self) -> np.ndarray:
        return self.values[3:6]

    @property
    def velocity(self) -> np.ndarray:
        return self.values[6:9]

    @property
    def angular_velocity(self) -> np.ndarray:
        return self.values[9:12]

    def __eq__(self, other) -> bool:
        if not isinstance(other, State):
            return NotImplemented
        return bool(np.array_equal(self.values, other.values))


@dataclass(frozen=True, eq=False)
class ControlCommand:
    """Immutable 7-dimensional control command."""

    values: np.ndarray

    def __post_init__(self):
        values = self.values
        if isinstance(values, ControlCommand):
            values = values.values
        object.__setattr__(
            self, "values", as_vector(values, CONTROL_DIM, name="ControlCommand")
        )

    @classmethod
    def from_array(cls, values) -> "ControlCommand":
        return cls(values)

    @classmethod
    def from_dict(cls, data: dict) -> "ControlCommand":
        unknown = sorted(str(key) for key in data if key not in CONTROL_KEYS)
        if unknown:
            raise DimensionError(f"Unknown control fields {unknown}")
        return cls([data.get(key, 0.0) for key in CONTROL_KEYS])

    def as_array(self) -> np.ndarray:
        return self.values.copy()

    def to_dict(self) -> dict:
        return {key: float(v) for key, v in zip(CONTROL_KEYS, self.values)}

    @property
    def roll(self) -> float:
        return float(self.values[0])

    @property
    def pitch(self) -> float:
        return float(self.values[1])

    @property
    def yaw_dot(self) -> float:
        return float(self.values[2])

    @property
    def thrust(self) -> float:
        return float(self.values[3])

    def __eq__(self, other) -> bool:
        if not isinstance(other, ControlCommand):
            return NotImplemented
        return bool(np.array_equal(self.values, other.values))


def to_state(msg) -> State:
    """
    Coerce an inbound state message into a State.

    Accepts a State, a 12-element sequence, a dictionary with a ``"state"``
    entry holding a 12-vector, or the named fields accepted by
    State.from_dict.

    Raises:
        DimensionError: If the message cannot be read as a 12-element state.
    """
    if isinstance(msg, dict):
        if "state" in msg:
            if len(msg) > 1:
                extra = sorted(str(key) for key in msg if key != "state")
                raise DimensionError(f"Unexpected fields next to 'state': {extra}")
            return State(msg["state"])
        return State.from_dict(msg)
    return State(msg)


class BaseController:
    """
    Abstract base class for quadrotor controllers.

    All controllers should inherit from this class and implement
    the compute method.

    Attributes:
        name (str): Controller identifier for logging/comparison.
        config (dict): Controller-specific configuration.
    """

    def __init__(self, name: str = "base", config: dict | None = None):
        """
        Initialize the controller.

        Args:
            name: Human-readable controller name.
            config: Controller configuration parameters.
        """
        self.name = name
        self.config = config or {}

    def compute(self, measured: State) -> ControlCommand:
        """
        Compute a control command from a state measurement.

        Raises:
            NotImplementedError: Must be implemented by subclasses.
        """
        raise NotImplementedError("Subclasses must implement compute")

    def compute_action(self, observation: dict) -> dict:
        """
        Compute a control action from a state dictionary.

        Args:
            observation: Any message accepted by to_state.

        Returns:
            Action dictionary keyed by CONTROL_KEYS.

        Raises:
            DimensionError: If the observation is not a valid state.
        """
        return self.compute(to_state(observation)).to_dict()

    def reset(self) -> None:
        """Reset controller state (for stateful controllers)."""
        pass
