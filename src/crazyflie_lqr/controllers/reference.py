"""
Reference Tracker Module

Holds the most recently received desired state. Reference updates and state
measurements arrive on independent streams, possibly on different threads.

The held value is an immutable State, so a reader always gets one complete
snapshot. Writers are serialised with a lock; readers never take it.
"""

import logging
import threading

from .base import State

logger = logging.getLogger(__name__)


class ReferenceTracker:
    """
    Last-write-wins holder for the reference state.

    Attributes:
        initial (State): Reference returned before any update, and after reset.
    """

    def __init__(self, initial: State | None = None):
        """
        Initialize the tracker.

        Args:
            initial: Starting reference. Defaults to hover at the origin
                (all-zero state).
        """
        self.initial = State(initial) if initial is not None else State.zeros()
        self._reference = self.initial
        self._lock = threading.Lock()
        self._update_count = 0

    def set_reference(self, reference) -> None:
        """
        Replace the held reference.

        Args:
            reference: State or any 12-element sequence.

        Raises:
            DimensionError: If reference does not have 12 elements.
        """
        # Validate outside the lock
        new_reference = State(reference)
        with self._lock:
            self._reference = new_reference
            self._update_count += 1
        logger.debug("Reference updated: %s", new_reference.values)

    def get_reference(self) -> State:
        """Return the most recently set reference."""
        return self._reference

    @property
    def update_count(self) -> int:
        """Number of set_reference calls since construction or reset."""
        return self._update_count

    def reset(self) -> None:
        """Restore the initial reference."""
        with self._lock:
            self._reference = self.initial
            self._update_count = 0
