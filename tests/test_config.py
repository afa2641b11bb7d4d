"""
Unit tests for configuration module.
"""

import tempfile
from pathlib import Path

import pytest

from cluster_tracker.config import (
    TrackerConfig,
    InputConfig,
    MarkerConfig,
    OutputConfig,
    PipelineConfig,
    get_default_config,
)


class TestTrackerConfig:
    """Tests for TrackerConfig."""

    def test_default_values(self):
        config = TrackerConfig()
        assert config.process_noise == 0.01
        assert config.measurement_noise == 0.1
        assert config.prune_interval == 20
        assert config.prune_policy == "per_track"

    def test_unknown_prune_policy(self):
        with pytest.raises(ValueError):
            TrackerConfig(prune_policy="never")

    def test_negative_interval(self):
        with pytest.raises(ValueError):
            TrackerConfig(prune_interval=-1)


class TestInputConfig:
    """Tests for InputConfig."""

    def test_supported_formats(self):
        config = InputConfig()
        assert ".json" in config.supported_formats
        assert ".csv" in config.supported_formats

    def test_queue_size_defaults_to_cpus(self):
        assert InputConfig().queue_size is None


class TestMarkerConfig:
    """Tests for MarkerConfig."""

    def test_same_frame_needs_no_transform(self):
        assert not MarkerConfig().needs_transform

    def test_different_frame_needs_transform(self):
        config = MarkerConfig(source_frame="laser", target_frame="map")
        assert config.needs_transform


class TestPipelineConfig:
    """Tests for PipelineConfig."""

    def test_nested_configs(self):
        config = get_default_config()
        assert isinstance(config.tracker, TrackerConfig)
        assert isinstance(config.input, InputConfig)
        assert isinstance(config.markers, MarkerConfig)
        assert isinstance(config.output, OutputConfig)

    def test_yaml_roundtrip(self):
        """Test saving and loading config from YAML."""
        config = get_default_config()
        config.tracker.prune_interval = 10
        config.tracker.prune_policy = "global"
        config.markers.target_frame = "map"
        config.markers.static_transforms = {"laser->map": [1.0, 2.0, 0.0, 0.5]}

        with tempfile.TemporaryDirectory() as tmpdir:
            yaml_path = Path(tmpdir) / "config.yaml"

            # Save
            config.to_yaml(yaml_path)
            assert yaml_path.exists()

            # Load
            loaded = PipelineConfig.from_yaml(yaml_path)
            assert loaded.tracker.prune_interval == 10
            assert loaded.tracker.prune_policy == "global"
            assert loaded.markers.target_frame == "map"
            assert loaded.markers.static_transforms == {"laser->map": [1.0, 2.0, 0.0, 0.5]}
            assert loaded.input.supported_formats == config.input.supported_formats
            assert loaded.output.output_dir == Path("output")

    def test_partial_yaml(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            yaml_path = Path(tmpdir) / "config.yaml"
            yaml_path.write_text("tracker:\n  prune_interval: 5\n")

            loaded = PipelineConfig.from_yaml(yaml_path)
            assert loaded.tracker.prune_interval == 5
            assert loaded.tracker.process_noise == 0.01
            assert loaded.log_level == "INFO"
