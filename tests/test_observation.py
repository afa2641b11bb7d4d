"""
Unit tests for observation module.
"""

import numpy as np
import pytest

from cluster_tracker.observation import Observation, ObservationFrame


class TestObservation:
    """Tests for Observation dataclass."""

    def test_properties(self):
        obs = Observation(point=np.array([1.0, 2.0, 3.0]))

        assert obs.x == 1.0
        assert obs.y == 2.0
        assert obs.z == 3.0
        np.testing.assert_array_equal(obs.position, [1.0, 2.0])


class TestObservationFrame:
    """Tests for ObservationFrame container."""

    def test_empty_frame(self):
        frame = ObservationFrame.from_points([])

        assert len(frame) == 0
        assert frame.to_numpy().shape == (0, 3)

    def test_from_points(self):
        frame = ObservationFrame.from_points([[0, 0, 0], [5, 5, 1]], frame_idx=3)

        assert len(frame) == 2
        assert frame.frame_idx == 3
        np.testing.assert_array_equal(frame.to_numpy(), [[0, 0, 0], [5, 5, 1]])

    def test_short_point_skipped(self):
        frame = ObservationFrame.from_points([[0, 0, 0], [1, 2], [3, 4, 5]])

        assert len(frame) == 2
        np.testing.assert_array_equal(frame[1].point, [3, 4, 5])

    def test_non_finite_skipped(self):
        frame = ObservationFrame.from_points([[np.nan, 0, 0], [1, np.inf, 0], [1, 1, 1]])
        assert len(frame) == 1

    def test_non_numeric_skipped(self):
        frame = ObservationFrame.from_points([["a", "b", "c"], [1, 1, 1]])
        assert len(frame) == 1

    def test_extra_coordinates_ignored(self):
        frame = ObservationFrame.from_points([[1, 2, 3, 4]])
        np.testing.assert_array_equal(frame[0].point, [1, 2, 3])

    def test_min_coordinates_relaxed(self):
        frame = ObservationFrame.from_points([[1, 2]], min_coordinates=2)

        assert len(frame) == 1
        np.testing.assert_array_equal(frame[0].point, [1, 2, 0])

    def test_from_flat(self):
        frame = ObservationFrame.from_flat([0, 0, 0, 5, 5, 0])

        assert len(frame) == 2
        np.testing.assert_array_equal(frame[1].point, [5, 5, 0])

    def test_from_flat_drops_partial_triple(self):
        frame = ObservationFrame.from_flat([0, 0, 0, 5, 5])
        assert len(frame) == 1

    def test_iteration(self):
        frame = ObservationFrame.from_points([[0, 0, 0], [1, 1, 1]])
        assert [o.x for o in frame] == pytest.approx([0.0, 1.0])

    def test_source_indices_track_raw_input(self):
        frame = ObservationFrame.from_points([[np.nan, 0, 0], [1, 1, 1], [2], [3, 3, 3]])

        assert len(frame) == 2
        assert frame.num_source_points == 4
        assert frame.source_indices() == [1, 3]

    def test_source_indices_default_to_position(self):
        frame = ObservationFrame(observations=[Observation(point=np.zeros(3))])

        assert frame.source_indices() == [0]
        assert frame.num_source_points == 1
