"""
LQR Node

Host that owns the controller lifecycle: loads the gains, builds the
reference tracker and controller, and exposes one callback per inbound
stream. Transport is left to the caller; outbound commands go to plain
Python callbacks registered with add_control_subscriber().

    node = CrazyflieLQRNode()
    if not node.initialize(load_config("config/crazyflie_lqr.yaml")):
        sys.exit(1)
    node.add_control_subscriber(converter.control_callback)

    node.reference_callback(reference)   # reference stream
    node.state_callback(measured)        # state stream, one command per call

The node refuses to start if the gains cannot be loaded; it never runs with
zero or partial gains.
"""

import logging
from collections.abc import Callable

from crazyflie_lqr.controllers import (
    ControlCommand,
    LQRController,
    LQRGains,
    ReferenceTracker,
    load_gains_from_config,
    to_state,
)
from crazyflie_lqr.errors import ConfigurationError
from crazyflie_lqr.utils import DataLogger

logger = logging.getLogger(__name__)


class CrazyflieLQRNode:
    """
    Callback host for the LQR controller.

    Attributes:
        name (str): Node name used in log messages.
        gains (LQRGains | None): Loaded gains, None until initialized.
        reference_tracker (ReferenceTracker | None): Shared reference holder.
        controller (LQRController | None): The control law.
        data_logger (DataLogger | None): Optional step recorder.
        initialized (bool): True once initialize() succeeded.
    """

    def __init__(self, name: str = "crazyflie_lqr"):
        self.name = name
        self.gains: LQRGains | None = None
        self.reference_tracker: ReferenceTracker | None = None
        self.controller: LQRController | None = None
        self.data_logger: DataLogger | None = None
        self.initialized = False
        self._subscribers: list[Callable[[ControlCommand], None]] = []

    def initialize(self, config: dict, gains: LQRGains | None = None) -> bool:
        """
        Load gains and build the controller.

        Args:
            config: Full configuration (see utils.get_default_config).
            gains: Pre-loaded gains; skips file loading when given.

        Returns:
            True on success, False if the gains could not be loaded or the
            logging section is invalid.
        """
        self.initialized = False
        try:
            self.gains = gains if gains is not None else load_gains_from_config(config)
        except ConfigurationError as e:
            logger.error("%s: Failed to load gains: %s", self.name, e)
            self.gains = None
            return False

        data_logger = None
        log_config = config.get("logging", {})
        if log_config.get("enabled", False):
            try:
                data_logger = DataLogger(
                    output_dir=log_config.get("output_dir", "experiments"),
                    log_interval=log_config.get("log_interval", 10),
                )
            except (TypeError, ValueError) as e:
                logger.error("%s: Invalid logging configuration: %s", self.name, e)
                return False

        self.data_logger = data_logger
        self.reference_tracker = ReferenceTracker(initial=self.gains.hover_state)
        self.controller = LQRController(
            self.gains,
            reference_tracker=self.reference_tracker,
            config=config.get("controller", {}),
        )

        self.initialized = True
        logger.info("%s: Initialized.", self.name)
        return True

    def add_control_subscriber(self, callback: Callable[[ControlCommand], None]) -> None:
        """Register a callback receiving every published ControlCommand."""
        self._subscribers.append(callback)

    def reference_callback(self, msg) -> None:
        """Process an incoming reference point."""
        self._require_initialized()
        self.reference_tracker.set_reference(to_state(msg))

    def state_callback(self, msg) -> ControlCommand:
        """
        Process an incoming state measurement.

        Computes exactly one command and publishes it to every subscriber.

        Returns:
            The published ControlCommand.

        Raises:
            RuntimeError: If called before a successful initialize().
            DimensionError: If the measurement is malformed.
        """
        self._require_initialized()
        measured = to_state(msg)
        command = self.controller.compute(measured)

        if self.data_logger is not None:
            self.data_logger.log(
                measured.values,
                self.controller.last_control_components["reference"],
                command.values,
            )

        for callback in self._subscribers:
            callback(command)
        return command

    def _require_initialized(self) -> None:
        if not self.initialized:
            raise RuntimeError(f"{self.name}: not initialized")
