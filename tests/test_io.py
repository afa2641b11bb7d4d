"""
Unit tests for I/O module.
"""

import json
import tempfile
from pathlib import Path

import numpy as np
import pytest
import yaml

from cluster_tracker.config import MarkerConfig
from cluster_tracker.io import (
    FrameReader,
    MarkerBuilder,
    StaticTransformer,
    TrackingExporter,
    TransformError,
    find_frame_files,
    marker_color,
)
from cluster_tracker.observation import ObservationFrame
from cluster_tracker.tracking import ClusterTracker


@pytest.fixture
def tmpdir_path():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


class TestFrameReader:
    """Tests for reading recorded frames."""

    def test_json_list(self, tmpdir_path):
        path = tmpdir_path / "rec.json"
        path.write_text(json.dumps([[[0, 0, 0], [5, 5, 0]], [[0.1, 0, 0]]]))

        reader = FrameReader(path)
        frames = reader.read_all()

        assert len(reader) == 2
        assert [len(f) for f in frames] == [2, 1]
        assert [f.frame_idx for f in frames] == [0, 1]
        assert reader.metadata.observation_count == 3
        assert reader.name == "rec"

    def test_json_mapping_with_flat_frames(self, tmpdir_path):
        path = tmpdir_path / "rec.json"
        path.write_text(json.dumps({"frames": [[0, 0, 0, 5, 5, 0], []]}))

        frames = FrameReader(path).read_all()
        assert [len(f) for f in frames] == [2, 0]

    def test_yaml(self, tmpdir_path):
        path = tmpdir_path / "rec.yaml"
        path.write_text(yaml.dump({"frames": [[[1, 2, 3]], [[1, 2, 3], [4, 5, 6]]]}))

        frames = FrameReader(path).read_all()
        assert [len(f) for f in frames] == [1, 2]

    def test_csv_with_header(self, tmpdir_path):
        path = tmpdir_path / "rec.csv"
        path.write_text("frame,x,y,z\n0,0,0,0\n0,5,5,0\n2,1,1,0\n")

        frames = FrameReader(path).read_all()

        assert [len(f) for f in frames] == [2, 0, 1]
        np.testing.assert_array_equal(frames[2].to_numpy(), [[1, 1, 0]])

    def test_malformed_points_skipped(self, tmpdir_path):
        path = tmpdir_path / "rec.json"
        path.write_text(json.dumps([[[0, 0, 0], [1, 2], [3, 3, 3]]]))

        frames = FrameReader(path).read_all()
        assert len(frames[0]) == 2

    def test_missing_file(self, tmpdir_path):
        with pytest.raises(FileNotFoundError):
            FrameReader(tmpdir_path / "nope.json")

    def test_unsupported_format(self, tmpdir_path):
        path = tmpdir_path / "rec.bag"
        path.write_text("")
        with pytest.raises(ValueError):
            FrameReader(path)

    def test_mapping_without_frames(self, tmpdir_path):
        path = tmpdir_path / "rec.json"
        path.write_text(json.dumps({"points": []}))
        with pytest.raises(ValueError):
            FrameReader(path)

    def test_non_list_frame(self, tmpdir_path):
        path = tmpdir_path / "rec.json"
        path.write_text(json.dumps([[[0, 0, 0]], 5]))

        with pytest.raises(ValueError, match="Frame 1"):
            FrameReader(path)

    def test_null_frame_is_empty(self, tmpdir_path):
        path = tmpdir_path / "rec.yaml"
        path.write_text(yaml.dump({"frames": [[[0, 0, 0]], None]}))

        frames = FrameReader(path).read_all()
        assert [len(f) for f in frames] == [1, 0]

    def test_find_frame_files(self, tmpdir_path):
        for name in ["a.json", "b.csv", "skip_c.json", "notes.txt"]:
            (tmpdir_path / name).write_text("[]")

        files = find_frame_files(tmpdir_path, exclude_patterns=["skip"])
        assert [f.name for f in files] == ["a.json", "b.csv"]


class TestStaticTransformer:
    """Tests for the static frame transformer."""

    def test_translation(self):
        transformer = StaticTransformer({"laser->map": [1.0, 2.0, 3.0, 0.0]})

        point = transformer(np.array([1.0, 1.0, 1.0]), "laser", "map")
        np.testing.assert_array_almost_equal(point, [2.0, 3.0, 4.0])

    def test_yaw(self):
        transformer = StaticTransformer({"laser->map": [0.0, 0.0, 0.0, np.pi / 2]})

        point = transformer(np.array([1.0, 0.0, 0.0]), "laser", "map")
        np.testing.assert_array_almost_equal(point, [0.0, 1.0, 0.0])

    def test_inverse(self):
        transformer = StaticTransformer({"laser->map": [1.0, 2.0, 0.0, 0.3]})

        there = transformer(np.array([4.0, -2.0, 1.0]), "laser", "map")
        back = transformer(there, "map", "laser")
        np.testing.assert_array_almost_equal(back, [4.0, -2.0, 1.0])

    def test_unknown_transform(self):
        with pytest.raises(TransformError):
            StaticTransformer()(np.zeros(3), "laser", "map")

    def test_bad_key(self):
        with pytest.raises(ValueError):
            StaticTransformer({"laser": [0, 0, 0, 0]})


class TestMarkerBuilder:
    """Tests for marker construction."""

    def _two_frames(self):
        tracker = ClusterTracker()
        first = ObservationFrame.from_points([[0, 0, 1.5], [10, 10, 2.5]])
        second = ObservationFrame.from_points([[0, 0, 1.0]])
        return tracker.update(first), first, tracker.update(second), second

    def test_one_marker_per_track(self):
        result, frame, _, _ = self._two_frames()

        markers = MarkerBuilder().build(result, frame)

        assert [m.id for m in markers] == [0, 1]
        assert markers[0].position == (0.0, 0.0, 1.5)
        assert markers[1].position == (10.0, 10.0, 2.5)
        assert all(m.scale == 0.2 for m in markers)
        assert all(m.matched for m in markers)

    def test_unmatched_marker_uses_prediction(self):
        _, _, result, frame = self._two_frames()

        markers = MarkerBuilder().build(result, frame)

        assert len(markers) == 2
        assert not markers[1].matched
        x, y = result.predicted_positions[1]
        assert markers[1].position == (pytest.approx(x), pytest.approx(y), 0.0)

    def test_malformed_point_does_not_shift_anchor(self):
        tracker = ClusterTracker()
        tracker.update([[0, 0, 1.5], [10, 10, 2.5]])
        frame = ObservationFrame.from_points([[np.nan, 0, 0], [0, 0, 1.0], [10, 10, 2.0]])

        markers = MarkerBuilder().build(tracker.update(frame), frame)

        assert markers[0].position == (0.0, 0.0, 1.0)
        assert markers[1].position == (10.0, 10.0, 2.0)
        assert all(m.matched for m in markers)

    def test_colour_pattern(self):
        assert marker_color(0) == (0.0, 0.0, 0.0, 1.0)
        assert marker_color(1) == (1.0, 1.0, 1.0, 1.0)
        assert marker_color(3) == (1.0, 0.0, 1.0, 1.0)
        assert marker_color(4) == (0.0, 1.0, 0.0, 1.0)

    def test_transform_applied(self):
        result, frame, _, _ = self._two_frames()
        config = MarkerConfig(
            target_frame="map",
            static_transforms={"laser->map": [1.0, 0.0, 0.0, 0.0]}
        )

        markers = MarkerBuilder(config).build(result, frame)

        assert markers[0].position == (1.0, 0.0, 1.5)
        assert markers[0].frame_id == "map"

    def test_failed_transform_skips_only_that_marker(self):
        result, frame, _, _ = self._two_frames()

        def flaky(point, source, target):
            if point[0] > 5:
                raise TransformError("lookup timed out")
            return point

        config = MarkerConfig(target_frame="map")
        markers = MarkerBuilder(config, transform=flaky).build(result, frame)

        assert [m.id for m in markers] == [0]

    def test_to_dict(self):
        result, frame, _, _ = self._two_frames()
        data = MarkerBuilder().build(result, frame)[0].to_dict()

        assert data["id"] == 0
        assert data["type"] == "cube"
        assert data["position"] == [0.0, 0.0, 1.5]


class TestTrackingExporter:
    """Tests for JSON export."""

    def test_export(self, tmpdir_path):
        tracker = ClusterTracker()
        builder = MarkerBuilder()
        exporter = TrackingExporter()

        for points in ([[0, 0, 0], [5, 5, 0]], [[0, 0, 0], [5, 5, 0], [9, 9, 0]]):
            frame = ObservationFrame.from_points(points)
            result = tracker.update(frame)
            exporter.add_tracking_result(result, markers=builder.build(result, frame))

        path = tmpdir_path / "out" / "tracks.json"
        exporter.save(path)

        data = json.loads(path.read_text())
        assert data["summary"]["frames"] == 2
        assert data["summary"]["unique_tracks"] == 3
        assert data["summary"]["active_tracks"] == 3
        assert data["frames"][0]["bootstrap"] is True
        assert data["frames"][1]["created_ids"] == [2]
        assert data["frames"][1]["observation_track_ids"] == [0, 1, 2]
        assert len(data["frames"][1]["markers"]) == 3

    def test_without_markers(self):
        tracker = ClusterTracker()
        exporter = TrackingExporter(include_markers=False)
        exporter.add_tracking_result(tracker.update([[0, 0, 0]]))

        data = exporter.to_dict()
        assert "markers" not in data["frames"][0]
        assert len(exporter) == 1

        exporter.reset()
        assert len(exporter) == 0
