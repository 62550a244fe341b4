"""Tests for circular buffer index arithmetic."""

import pytest

from starlink_exporter.circular import wraparound_indices


class TestWraparoundIndices:
    """Ordered index windows over a circular buffer."""

    def test_window_inside_buffer(self):
        assert list(wraparound_indices(101, 3, 900)) == [101, 102, 103]

    def test_start_is_taken_modulo_length(self):
        """Sequence 1000 + 1 on a 900 slot buffer starts at slot 101."""
        assert list(wraparound_indices(1001, 3, 900)) == [101, 102, 103]

    def test_window_wraps_past_end(self):
        assert list(wraparound_indices(898, 4, 900)) == [898, 899, 0, 1]

    def test_zero_count_is_empty(self):
        assert list(wraparound_indices(5, 0, 10)) == []

    def test_full_buffer_visits_every_slot_once(self):
        for start in (0, 1, 7, 123, 10**12 + 3):
            indices = list(wraparound_indices(start, 10, 10))
            assert sorted(indices) == list(range(10))
            assert indices[0] == start % 10

    def test_indices_are_consecutive_modulo_length(self):
        """Every step advances exactly one slot, wrapping to 0 after the end."""
        length = 17
        for start in range(0, 3 * length):
            for count in range(0, length + 1):
                indices = list(wraparound_indices(start, count, length))
                assert len(indices) == count
                assert len(set(indices)) == count
                for prev, nxt in zip(indices, indices[1:]):
                    assert nxt == (prev + 1) % length

    def test_length_one_buffer(self):
        assert list(wraparound_indices(99, 1, 1)) == [0]

    @pytest.mark.parametrize("length", [0, -1])
    def test_rejects_non_positive_length(self, length):
        with pytest.raises(ValueError):
            list(wraparound_indices(0, 0, length))

    @pytest.mark.parametrize("count", [-1, 11])
    def test_rejects_count_outside_buffer(self, count):
        with pytest.raises(ValueError):
            list(wraparound_indices(0, count, 10))
