"""
Visualization markers for tracked objects.

One cube marker is produced per track. A marker sits on the track's
matched observation, or on its predicted position when the track went
unmatched this frame. Markers can be moved into another reference frame
through a pluggable transform callable; a failed transform drops only
the affected marker.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from ..config import MarkerConfig
from ..observation import ObservationFrame
from ..tracking import TrackingResult

logger = logging.getLogger(__name__)

# transform(point, source_frame, target_frame) -> point
TransformFn = Callable[[np.ndarray, str, str], np.ndarray]


class TransformError(Exception):
    """Raised when a point cannot be moved between reference frames."""


@dataclass
class Marker:
    """A cube marker for one track."""
    id: int
    position: Tuple[float, float, float]
    color: Tuple[float, float, float, float]  # r, g, b, a
    scale: float
    frame_id: str
    matched: bool
    type: str = "cube"

    def to_dict(self) -> dict:
        data = asdict(self)
        data["position"] = list(self.position)
        data["color"] = list(self.color)
        return data


def marker_color(track_id: int) -> Tuple[float, float, float, float]:
    """Deterministic on/off colour pattern keyed by track ID."""
    return (
        1.0 if track_id % 2 else 0.0,
        1.0 if track_id % 3 else 0.0,
        1.0 if track_id % 4 else 0.0,
        1.0,
    )


class StaticTransformer:
    """
    Transform points between frames using fixed planar poses.

    Each pose is [tx, ty, tz, yaw] describing the source frame in the
    target frame. The inverse direction is derived automatically.

    Args:
        transforms: Mapping "source->target" -> [tx, ty, tz, yaw]

    Example:
        >>> transformer = StaticTransformer({"laser->map": [1.0, 0.0, 0.0, 0.0]})
        >>> transformer(np.array([0.0, 0.0, 0.0]), "laser", "map")
        array([1., 0., 0.])
    """

    def __init__(self, transforms: Optional[Dict[str, List[float]]] = None):
        self._matrices: Dict[Tuple[str, str], np.ndarray] = {}
        for key, pose in (transforms or {}).items():
            source, sep, target = key.partition("->")
            if not sep or not source or not target:
                raise ValueError(f"Transform key must be 'source->target', got {key!r}")
            if len(pose) != 4:
                raise ValueError(f"Transform {key} must be [tx, ty, tz, yaw], got {pose}")

            matrix = self._pose_to_matrix(*pose)
            self._matrices[(source.strip(), target.strip())] = matrix
            self._matrices[(target.strip(), source.strip())] = np.linalg.inv(matrix)

    @staticmethod
    def _pose_to_matrix(tx: float, ty: float, tz: float, yaw: float) -> np.ndarray:
        c, s = np.cos(yaw), np.sin(yaw)
        return np.array([
            [c, -s, 0, tx],
            [s,  c, 0, ty],
            [0,  0, 1, tz],
            [0,  0, 0, 1],
        ], dtype=np.float64)

    def __call__(self, point: np.ndarray, source_frame: str, target_frame: str) -> np.ndarray:
        if source_frame == target_frame:
            return np.asarray(point, dtype=np.float64)

        matrix = self._matrices.get((source_frame, target_frame))
        if matrix is None:
            raise TransformError(
                f"No transform from '{source_frame}' to '{target_frame}'")

        homogeneous = np.append(np.asarray(point, dtype=np.float64)[:3], 1.0)
        return (matrix @ homogeneous)[:3]


class MarkerBuilder:
    """
    Build visualization markers from tracking results.

    Args:
        config: Marker configuration
        transform: Callable moving a point between frames. Defaults to a
                   StaticTransformer built from the configured transforms.
    """

    def __init__(
        self,
        config: Optional[MarkerConfig] = None,
        transform: Optional[TransformFn] = None
    ):
        self._config = config or MarkerConfig()
        self._transform = transform or StaticTransformer(self._config.static_transforms)

    def _anchor(
        self,
        result: TrackingResult,
        index: int,
        observations: Dict[int, np.ndarray]
    ) -> np.ndarray:
        """
        Matched observation, else the predicted position at z = 0.

        ``observations`` maps raw input indices to validated points.
        """
        obs_idx = result.assignment[index]
        if obs_idx is not None:
            return observations[obs_idx].copy()

        x, y = result.predicted_positions[index]
        return np.array([x, y, 0.0], dtype=np.float64)

    def build(
        self,
        result: TrackingResult,
        frame: ObservationFrame
    ) -> List[Marker]:
        """
        Create one marker per track.

        Args:
            result: TrackingResult of the frame
            frame: Observations the result was computed from

        Returns:
            Markers for every track whose position could be transformed
        """
        observations = dict(zip(
            frame.source_indices(), (o.point for o in frame.observations)
        ))
        target = self._config.target_frame
        markers = []

        for i, track_id in enumerate(result.track_ids):
            point = self._anchor(result, i, observations)

            if self._config.needs_transform:
                try:
                    point = self._transform(point, self._config.source_frame, target)
                except TransformError as e:
                    logger.warning(f"Skipping marker for track {track_id}: {e}")
                    continue

            markers.append(Marker(
                id=track_id,
                position=tuple(float(v) for v in point[:3]),
                color=marker_color(track_id),
                scale=self._config.scale,
                frame_id=target,
                matched=result.assignment[i] is not None
            ))

        return markers
