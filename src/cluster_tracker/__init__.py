"""
Cluster Tracker - Multi-object tracking of point cloud cluster centroids.

Maintains a consistent identity for each physical object across sensor
frames, given only the unordered centroids of the clusters detected in
each frame.

Example:
    >>> from cluster_tracker import ClusterTracker
    >>> tracker = ClusterTracker()
    >>> result = tracker.update([[0, 0, 0], [5, 5, 0]])
    >>> result.track_ids
    [0, 1]

For recorded frames:
    >>> from cluster_tracker import run_pipeline
    >>> results = run_pipeline("recordings/", output_dir="output/")
"""

__version__ = "0.1.0"
__author__ = "Your Name"

from .config import (
    PipelineConfig,
    TrackerConfig,
    InputConfig,
    MarkerConfig,
    OutputConfig,
    get_default_config,
)
from .observation import Observation, ObservationFrame
from .tracking import ClusterTracker, TrackingResult
from .pipeline import FrameQueue, TrackingPipeline, run_pipeline

__all__ = [
    # Version info
    "__version__",
    "__author__",
    # Configuration
    "PipelineConfig",
    "TrackerConfig",
    "InputConfig",
    "MarkerConfig",
    "OutputConfig",
    "get_default_config",
    # Observations
    "Observation",
    "ObservationFrame",
    # Tracking
    "ClusterTracker",
    "TrackingResult",
    # Pipeline
    "FrameQueue",
    "TrackingPipeline",
    "run_pipeline",
]
