"""
Observation module for Cluster Tracker.

This module defines the centroid observations consumed by the tracker
and the interface for sources that produce them.

Example:
    >>> from cluster_tracker.observation import ObservationFrame
    >>> frame = ObservationFrame.from_points([[0, 0, 0], [5, 5, 0]])
    >>> len(frame)
    2
"""

from .base import BaseCentroidSource, Observation, ObservationFrame

__all__ = [
    "BaseCentroidSource",
    "Observation",
    "ObservationFrame",
]
