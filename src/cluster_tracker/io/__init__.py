"""
I/O module for Cluster Tracker.

This module provides recorded-frame reading, per-track marker
construction and result serialization.

Example:
    >>> from cluster_tracker.io import FrameReader, TrackingExporter
    >>> reader = FrameReader("recording.json")
    >>> frames = reader.read_all()
"""

from .frames import (
    FrameReader,
    FrameFileMetadata,
    find_frame_files,
)
from .markers import (
    Marker,
    MarkerBuilder,
    StaticTransformer,
    TransformError,
    marker_color,
)
from .export import (
    FrameRecord,
    TrackingExporter,
)

__all__ = [
    # Frame input
    "FrameReader",
    "FrameFileMetadata",
    "find_frame_files",
    # Markers
    "Marker",
    "MarkerBuilder",
    "StaticTransformer",
    "TransformError",
    "marker_color",
    # Export
    "FrameRecord",
    "TrackingExporter",
]
