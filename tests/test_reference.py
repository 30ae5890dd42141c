"""Tests for the reference tracker and the State value type."""

import threading

import numpy as np
import pytest

from crazyflie_lqr.controllers import STATE_KEYS, ReferenceTracker, State, to_state
from crazyflie_lqr.errors import DimensionError


class TestState:
    """Tests for the State value type."""

    def test_zeros(self):
        """Test the default hover-at-origin state."""
        state = State.zeros()
        assert state.values.shape == (12,)
        assert np.all(state.values == 0.0)

    def test_wrong_length_raises(self):
        """Test states must have exactly 12 values."""
        with pytest.raises(DimensionError, match="State must have shape"):
            State(np.zeros(11))
        with pytest.raises(DimensionError):
            State(np.zeros((2, 12)))

    def test_non_numeric_raises(self):
        """Test non-numeric values raise DimensionError."""
        with pytest.raises(DimensionError, match="numeric"):
            State(["a"] * 12)

    def test_values_read_only(self):
        """Test the stored vector cannot be mutated."""
        state = State(np.arange(12))
        with pytest.raises(ValueError):
            state.values[0] = 1.0

    def test_as_array_returns_copy(self):
        """Test as_array gives an independent writable copy."""
        state = State(np.arange(12))
        array = state.as_array()
        array[0] = 100.0
        assert state.values[0] == 0.0

    def test_named_groups(self):
        """Test position/attitude/velocity/angular_velocity slices."""
        state = State(np.arange(12))
        assert np.array_equal(state.position, [0, 1, 2])
        assert np.array_equal(state.attitude, [3, 4, 5])
        assert np.array_equal(state.velocity, [6, 7, 8])
        assert np.array_equal(state.angular_velocity, [9, 10, 11])

    def test_dict_round_trip(self):
        """Test to_dict/from_dict preserve values."""
        state = State(np.linspace(-1.0, 1.0, 12))
        data = state.to_dict()
        assert tuple(data) == STATE_KEYS
        assert State.from_dict(data) == state

    def test_from_grouped_dict(self):
        """Test the grouped observation layout."""
        state = State.from_dict({
            "position": [1.0, 2.0, 3.0],
            "attitude": [0.1, 0.2, 0.3],
            "velocity": [4.0, 5.0, 6.0],
            "angular_velocity": [0.4, 0.5, 0.6],
        })
        assert state.values[2] == 3.0
        assert state.values[5] == 0.3
        assert state.values[11] == 0.6

    def test_from_partial_flat_dict(self):
        """Test missing flat keys default to zero."""
        state = State.from_dict({"z": 1.0, "yaw": 0.5})
        assert state.values[2] == 1.0
        assert state.values[5] == 0.5
        assert np.count_nonzero(state.values) == 2

    def test_flat_dict_unknown_keys_raise(self):
        """Test keys outside the state layout are rejected, not zeroed."""
        with pytest.raises(DimensionError, match="yaw_rate"):
            State.from_dict({"yaw_rate": 5.0, "X": 3.0})

    def test_grouped_dict_unknown_keys_raise(self):
        """Test a misspelled group name is rejected."""
        with pytest.raises(DimensionError, match="positon"):
            State.from_dict(
                {"positon": [1.0, 2.0, 3.0], "attitude": [0.0, 0.0, 0.0]}
            )

    def test_mixed_flat_and_grouped_keys_raise(self):
        """Test flat keys cannot be mixed into the grouped form."""
        with pytest.raises(DimensionError, match="Unknown state fields"):
            State.from_dict({"position": [1.0, 2.0, 3.0], "yaw": 0.5})

    def test_empty_dict_raises(self):
        """Test an empty dictionary is not read as the zero state."""
        with pytest.raises(DimensionError, match="no fields"):
            State.from_dict({})

    def test_grouped_field_wrong_size_raises(self):
        """Test grouped fields need exactly 3 values."""
        with pytest.raises(DimensionError, match="velocity"):
            State.from_dict(
                {"position": [0.0, 0.0, 0.0], "velocity": [1.0, 2.0]}
            )

    def test_equality(self):
        """Test value equality."""
        assert State(np.ones(12)) == State(np.ones(12))
        assert State(np.ones(12)) != State(np.zeros(12))

    def test_copy_constructor(self):
        """Test State(State) keeps the values."""
        state = State(np.arange(12))
        assert State(state) == state


class TestReferenceTracker:
    """Tests for ReferenceTracker."""

    def test_default_reference_is_zero(self):
        """Test the initial reference is the all-zero state."""
        tracker = ReferenceTracker()
        assert tracker.get_reference() == State.zeros()
        assert tracker.update_count == 0

    def test_custom_initial_reference(self):
        """Test a provided initial reference is used."""
        initial = State([0, 0, 1.0] + [0.0] * 9)
        tracker = ReferenceTracker(initial=initial)
        assert tracker.get_reference() == initial

    def test_set_then_get(self):
        """Test get_reference returns exactly the value set."""
        tracker = ReferenceTracker()
        reference = State(np.linspace(0.5, 6.0, 12))
        tracker.set_reference(reference)
        assert tracker.get_reference() == reference
        assert tracker.update_count == 1

    def test_accepts_sequences(self):
        """Test plain lists are accepted."""
        tracker = ReferenceTracker()
        tracker.set_reference([1.0] * 12)
        assert np.all(tracker.get_reference().values == 1.0)

    def test_last_write_wins(self):
        """Test later references replace earlier ones."""
        tracker = ReferenceTracker()
        for value in (1.0, 2.0, 3.0):
            tracker.set_reference(np.full(12, value))
        assert np.all(tracker.get_reference().values == 3.0)
        assert tracker.update_count == 3

    def test_wrong_shape_rejected_and_kept(self):
        """Test a wrong-size reference raises and keeps the old one."""
        tracker = ReferenceTracker()
        tracker.set_reference(np.ones(12))
        with pytest.raises(DimensionError):
            tracker.set_reference(np.ones(7))
        assert np.all(tracker.get_reference().values == 1.0)

    def test_caller_mutation_does_not_leak(self):
        """Test mutating the source array after set has no effect."""
        tracker = ReferenceTracker()
        source = np.ones(12)
        tracker.set_reference(source)
        source[:] = 99.0
        assert np.all(tracker.get_reference().values == 1.0)

    def test_reset(self):
        """Test reset restores the initial reference."""
        tracker = ReferenceTracker()
        tracker.set_reference(np.ones(12))
        tracker.reset()
        assert tracker.get_reference() == State.zeros()
        assert tracker.update_count == 0

    def test_concurrent_readers_see_whole_values(self):
        """Test readers never observe a mix of two references."""
        tracker = ReferenceTracker()
        stop = threading.Event()
        torn = []

        def writer():
            value = 0.0
            while not stop.is_set():
                value += 1.0
                tracker.set_reference(np.full(12, value))

        def reader():
            for _ in range(5000):
                values = tracker.get_reference().values
                if not np.all(values == values[0]):
                    torn.append(values.copy())

        writers = [threading.Thread(target=writer) for _ in range(2)]
        for thread in writers:
            thread.start()
        try:
            reader()
        finally:
            stop.set()
            for thread in writers:
                thread.join()

        assert torn == []


class TestToState:
    """Tests for inbound state message coercion."""

    def test_accepts_state(self):
        """Test a State passes through unchanged."""
        state = State(np.arange(12))
        assert to_state(state) == state

    def test_accepts_sequence(self):
        """Test a plain 12-element list."""
        assert to_state([1.0] * 12) == State(np.ones(12))

    def test_accepts_state_entry(self):
        """Test the {"state": [...]} form keeps the recorded values."""
        assert to_state({"state": [1.0] * 12}) == State(np.ones(12))

    def test_accepts_named_fields(self):
        """Test named fields go through State.from_dict."""
        assert to_state({"z": 2.0}).values[2] == 2.0

    def test_state_entry_with_extra_fields_raises(self):
        """Test stray fields next to the state vector are rejected."""
        with pytest.raises(DimensionError, match="Unexpected fields"):
            to_state({"state": [0.0] * 12, "stamp": 1.5})

    def test_wrong_length_raises(self):
        """Test a short state vector is rejected."""
        with pytest.raises(DimensionError):
            to_state({"state": [1.0] * 6})
