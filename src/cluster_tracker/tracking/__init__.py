"""
Tracking module for Cluster Tracker.

This module provides multi-object tracking of cluster centroids using
constant-velocity Kalman filters and greedy nearest-neighbour association.

Example:
    >>> from cluster_tracker.tracking import ClusterTracker
    >>> tracker = ClusterTracker()
    >>> result = tracker.update([[0, 0, 0], [5, 5, 0]], frame_idx=0)
"""

from .kalman import KalmanPointTracker, KalmanState
from .association import (
    Assignment,
    compute_distance_matrix,
    greedy_assignment,
    associate_observations_to_tracks,
)
from .track_bank import Track, TrackBank
from .lifecycle import LifecycleManager, LifecycleUpdate, PrunePolicy
from .tracker import ClusterTracker, TrackerPhase, TrackingResult

__all__ = [
    # Kalman filter
    "KalmanPointTracker",
    "KalmanState",
    # Association
    "Assignment",
    "compute_distance_matrix",
    "greedy_assignment",
    "associate_observations_to_tracks",
    # Track bank
    "Track",
    "TrackBank",
    # Lifecycle
    "LifecycleManager",
    "LifecycleUpdate",
    "PrunePolicy",
    # Tracker
    "ClusterTracker",
    "TrackerPhase",
    "TrackingResult",
]
