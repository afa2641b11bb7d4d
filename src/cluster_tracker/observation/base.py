"""
Observation types and the centroid source interface.

Centroids are produced outside this package (spatial clustering of a point
cloud). This module defines how those centroids are represented once they
reach the tracker, and how malformed input is filtered out.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class Observation:
    """
    A single detected cluster centroid.

    Attributes:
        point: Centroid as [x, y, z]. z is carried through but not tracked.
        source_index: Position of this point in the caller's raw input
    """
    point: np.ndarray  # Shape: (3,)
    source_index: Optional[int] = None

    @property
    def x(self) -> float:
        return float(self.point[0])

    @property
    def y(self) -> float:
        return float(self.point[1])

    @property
    def z(self) -> float:
        return float(self.point[2])

    @property
    def position(self) -> np.ndarray:
        """Planar position [x, y] used by the motion model."""
        return self.point[:2]


@dataclass
class ObservationFrame:
    """
    Container for all valid observations in a single frame.

    Attributes:
        observations: List of Observation objects
        frame_idx: Index of the frame in its sequence, if known
        source_count: Number of raw points before malformed ones were
            dropped. Defaults to the number of observations.
    """
    observations: List[Observation]
    frame_idx: Optional[int] = None
    source_count: Optional[int] = None

    @property
    def num_source_points(self) -> int:
        if self.source_count is None:
            return len(self.observations)
        return self.source_count

    def source_indices(self) -> List[int]:
        """Map each observation back to its position in the raw input."""
        return [
            i if o.source_index is None else o.source_index
            for i, o in enumerate(self.observations)
        ]

    def __len__(self) -> int:
        return len(self.observations)

    def __iter__(self) -> Iterator[Observation]:
        return iter(self.observations)

    def __getitem__(self, idx: int) -> Observation:
        return self.observations[idx]

    @classmethod
    def from_points(
        cls,
        points: Sequence[Sequence[float]],
        frame_idx: Optional[int] = None,
        min_coordinates: int = 3
    ) -> "ObservationFrame":
        """
        Build a frame from a sequence of points, skipping malformed ones.

        A point is malformed if it has fewer than ``min_coordinates``
        coordinates or any non-finite coordinate. Extra coordinates
        beyond z are ignored.
        """
        observations = []
        for i, raw in enumerate(points):
            try:
                values = np.asarray(raw, dtype=np.float64).ravel()
            except (TypeError, ValueError):
                logger.warning(f"Skipping observation {i}: not numeric ({raw!r})")
                continue

            if values.size < min_coordinates:
                logger.warning(
                    f"Skipping observation {i}: expected {min_coordinates} "
                    f"coordinates, got {values.size}"
                )
                continue

            point = np.zeros(3, dtype=np.float64)
            n = min(values.size, 3)
            point[:n] = values[:n]

            if not np.all(np.isfinite(point)):
                logger.warning(f"Skipping observation {i}: non-finite {point}")
                continue

            observations.append(Observation(point=point, source_index=i))

        return cls(
            observations=observations,
            frame_idx=frame_idx,
            source_count=len(points)
        )

    @classmethod
    def from_flat(
        cls,
        data: Sequence[float],
        frame_idx: Optional[int] = None
    ) -> "ObservationFrame":
        """
        Build a frame from a flat [x0, y0, z0, x1, y1, z1, ...] array.

        A trailing partial triple is dropped with a warning.
        """
        values = np.asarray(data, dtype=np.float64).ravel()
        remainder = values.size % 3
        if remainder:
            logger.warning(
                f"Flat observation array has {values.size} values; "
                f"dropping trailing {remainder}"
            )
            values = values[:values.size - remainder]

        return cls.from_points(values.reshape(-1, 3), frame_idx=frame_idx)

    def to_numpy(self) -> np.ndarray:
        """
        Convert to a numpy array for batch processing.

        Returns:
            (N, 3) array of centroids
        """
        if not self.observations:
            return np.empty((0, 3), dtype=np.float64)

        return np.array([o.point for o in self.observations], dtype=np.float64)


class BaseCentroidSource(ABC):
    """
    Abstract base class for anything that yields observation frames.

    Clustering front-ends and recorded-frame readers implement this so
    the pipeline can consume them interchangeably.
    """

    @abstractmethod
    def frames(self) -> Iterator[ObservationFrame]:
        """Yield observation frames in arrival order."""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Return a human-readable source identifier."""
        pass
