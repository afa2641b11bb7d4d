"""
Association utilities for multi-object tracking.

This module provides the distance cost between predicted track positions
and observed centroids, and a deterministic greedy solver for the
assignment problem between them.
"""

from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Tuple

import numpy as np
from scipy.spatial.distance import cdist


@dataclass
class Assignment:
    """
    Partial one-to-one pairing between tracks and observations.

    Attributes:
        matches: One entry per track, holding the matched observation
                 index or None when the track is unmatched
        unmatched_observations: Observation indices no track claimed,
                                in ascending order
    """
    matches: List[Optional[int]]
    unmatched_observations: List[int] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.matches)

    def __getitem__(self, track_idx: int) -> Optional[int]:
        return self.matches[track_idx]

    def __iter__(self) -> Iterator[Optional[int]]:
        return iter(self.matches)

    @property
    def num_matched(self) -> int:
        """Number of tracks with a matched observation."""
        return sum(1 for m in self.matches if m is not None)

    def matched_pairs(self) -> List[Tuple[int, int]]:
        """
        Get all real pairings.

        Returns:
            List of (track_idx, observation_idx) tuples
        """
        return [(t, o) for t, o in enumerate(self.matches) if o is not None]

    def unmatched_tracks(self) -> List[int]:
        """Track indices without a matched observation."""
        return [t for t, o in enumerate(self.matches) if o is None]

    def extend(self, observation_indices: Iterable[int]) -> None:
        """Append entries for newly created tracks seeded by these observations."""
        claimed = list(observation_indices)
        self.matches.extend(claimed)
        claimed_set = set(claimed)
        self.unmatched_observations = [
            o for o in self.unmatched_observations if o not in claimed_set
        ]

    def remove_tracks(self, track_indices: Iterable[int]) -> None:
        """Drop entries for deleted tracks, keeping the others in order."""
        doomed = set(track_indices)
        self.matches = [m for t, m in enumerate(self.matches) if t not in doomed]


def compute_distance_matrix(
    predictions: np.ndarray,
    observations: np.ndarray
) -> np.ndarray:
    """
    Compute the Euclidean distance matrix between two point sets.

    Only the leading dimensions both sets share are compared, so planar
    predictions are matched against the x, y of 3D observations.

    Args:
        predictions: Predicted positions, shape (N, D1)
        observations: Observed centroids, shape (M, D2)

    Returns:
        Distance matrix of shape (N, M)
    """
    predictions = np.atleast_2d(np.asarray(predictions, dtype=np.float64))
    observations = np.atleast_2d(np.asarray(observations, dtype=np.float64))

    if predictions.size == 0 or observations.size == 0:
        return np.empty((len(predictions), len(observations)), dtype=np.float64)

    dims = min(predictions.shape[1], observations.shape[1])
    return cdist(predictions[:, :dims], observations[:, :dims])


def greedy_assignment(cost_matrix: np.ndarray) -> Assignment:
    """
    Solve the assignment problem by repeated global-minimum selection.

    Each round picks the smallest remaining cell, records the pairing and
    invalidates its row and column. Ties resolve to the first cell in
    row-major order. This is deterministic but not globally optimal.

    Args:
        cost_matrix: Cost matrix of shape (N, M) where N is the number of
                     tracks and M the number of observations.

    Returns:
        Assignment with one entry per row
    """
    n_rows, n_cols = cost_matrix.shape
    matches: List[Optional[int]] = [None] * n_rows

    if n_rows == 0 or n_cols == 0:
        return Assignment(matches=matches, unmatched_observations=list(range(n_cols)))

    cost = np.array(cost_matrix, dtype=np.float64, copy=True)
    used = np.zeros(n_cols, dtype=bool)

    for _ in range(n_rows):
        # argmin scans the flattened matrix in row-major order
        flat_idx = int(np.argmin(cost))
        row, col = np.unravel_index(flat_idx, cost.shape)
        if not np.isfinite(cost[row, col]):
            break

        matches[row] = int(col)
        used[col] = True
        cost[row, :] = np.inf
        cost[:, col] = np.inf

    unmatched = [int(c) for c in np.flatnonzero(~used)]
    return Assignment(matches=matches, unmatched_observations=unmatched)


def associate_observations_to_tracks(
    observations: np.ndarray,
    predictions: np.ndarray
) -> Assignment:
    """
    Associate observed centroids to predicted track positions.

    This is the main function called by the tracker to determine
    which observation corresponds to which existing track.

    Args:
        observations: Observed centroids, shape (M, 3)
        predictions: Predicted track positions, shape (N, 2)

    Returns:
        Assignment with one entry per track
    """
    n_tracks = len(predictions)
    n_obs = len(observations)

    if n_tracks == 0:
        return Assignment(matches=[], unmatched_observations=list(range(n_obs)))

    if n_obs == 0:
        return Assignment(matches=[None] * n_tracks, unmatched_observations=[])

    cost_matrix = compute_distance_matrix(predictions, observations)
    return greedy_assignment(cost_matrix)
