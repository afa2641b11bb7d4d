"""
Track bank: the ordered pool of per-object motion estimators.

Bank positions are only meaningful inside a single tracking cycle.
Callers that need an identity across frames must use ``Track.track_id``.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence

import numpy as np

from .kalman import KalmanPointTracker
from ..config import TrackerConfig

logger = logging.getLogger(__name__)


@dataclass
class Track:
    """
    Represents a tracked object.

    Attributes:
        track_id: Unique identifier, never reused within a bank
        kalman: Kalman filter for state estimation
        misses: Consecutive cycles without a matched observation
        predicted_position: Output of the last prediction step
    """
    track_id: int
    kalman: KalmanPointTracker
    misses: int = 0
    predicted_position: Optional[np.ndarray] = None

    @property
    def position(self) -> np.ndarray:
        """Current position estimate [x, y]."""
        return self.kalman.get_position()

    @property
    def velocity(self) -> np.ndarray:
        """Current velocity estimate [vx, vy]."""
        return self.kalman.get_state().velocity

    @property
    def hits(self) -> int:
        return self.kalman.hits

    @property
    def age(self) -> int:
        return self.kalman.age


class TrackBank:
    """
    Owns the active tracks and evolves their estimators.

    Args:
        config: Tracker configuration holding the shared noise parameters

    Example:
        >>> bank = TrackBank()
        >>> bank.create([[0.0, 0.0], [5.0, 5.0]])
        [0, 1]
        >>> predictions = bank.predict_all()
        >>> bank.correct(0, [0.1, 0.0])
    """

    def __init__(self, config: Optional[TrackerConfig] = None):
        self._config = config or TrackerConfig()
        self._tracks: List[Track] = []
        self._next_id = 0

    def __len__(self) -> int:
        return len(self._tracks)

    def __iter__(self) -> Iterator[Track]:
        return iter(self._tracks)

    def __getitem__(self, index: int) -> Track:
        return self._tracks[index]

    @property
    def track_ids(self) -> List[int]:
        """Track IDs in bank order."""
        return [t.track_id for t in self._tracks]

    def _get_next_id(self) -> int:
        track_id = self._next_id
        self._next_id += 1
        return track_id

    def predict_all(self) -> np.ndarray:
        """
        Run one prediction step for every track.

        Returns:
            Predicted positions in track order, shape (N, 2)
        """
        if not self._tracks:
            return np.empty((0, 2), dtype=np.float64)

        predictions = []
        for track in self._tracks:
            track.predicted_position = track.kalman.predict()
            predictions.append(track.predicted_position)

        return np.array(predictions, dtype=np.float64)

    def create(self, seed_positions: Sequence[Sequence[float]]) -> List[int]:
        """
        Append one new track per seed position, with zero velocity.

        Args:
            seed_positions: Initial positions; only x and y are used

        Returns:
            IDs of the created tracks, in creation order
        """
        created = []
        for seed in seed_positions:
            seed = np.asarray(seed, dtype=np.float64).ravel()
            kalman = KalmanPointTracker(
                position=seed[:2],
                process_noise=self._config.process_noise,
                measurement_noise=self._config.measurement_noise,
                position_variance=self._config.initial_position_variance,
                velocity_variance=self._config.initial_velocity_variance
            )
            track = Track(track_id=self._get_next_id(), kalman=kalman)
            self._tracks.append(track)
            created.append(track.track_id)

            logger.debug(f"Created track {track.track_id} at {seed[:2]}")

        return created

    def correct(self, track_index: int, observed_position: Sequence[float]) -> None:
        """
        Fold a matched position measurement into one track.

        Args:
            track_index: Position of the track in the bank
            observed_position: Matched observation; only x and y are used
        """
        self._tracks[track_index].kalman.update(np.asarray(observed_position))

    def delete_at(self, indices: Iterable[int]) -> List[Track]:
        """
        Remove tracks by bank position, keeping the others in order.

        Returns:
            The removed tracks
        """
        doomed = set(indices)
        removed = [t for i, t in enumerate(self._tracks) if i in doomed]
        self._tracks = [t for i, t in enumerate(self._tracks) if i not in doomed]

        for track in removed:
            logger.debug(
                f"Deleted track {track.track_id} after {track.misses} misses")

        return removed

    def positions(self) -> np.ndarray:
        """Current position estimates in track order, shape (N, 2)."""
        if not self._tracks:
            return np.empty((0, 2), dtype=np.float64)
        return np.array([t.position for t in self._tracks], dtype=np.float64)

    def reset(self) -> None:
        """Drop all tracks and restart ID allocation."""
        self._tracks.clear()
        self._next_id = 0
