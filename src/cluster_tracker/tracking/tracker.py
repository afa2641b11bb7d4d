"""
Centroid tracker: one predict-assign-reconcile-correct cycle per frame.

The very first frame bootstraps the track bank directly from its
observations. Every later frame runs the full cycle:

    1. predict every track one tick forward
    2. greedily associate observations to the predictions
    3. reconcile: spawn tracks for leftovers, prune stale tracks
    4. correct every track that has a matched observation
    5. emit the per-track assignment

Tracks left unmatched are not corrected; their predicted state stands.
"""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from .association import associate_observations_to_tracks
from .lifecycle import LifecycleManager
from .track_bank import TrackBank
from ..config import TrackerConfig
from ..observation import ObservationFrame

logger = logging.getLogger(__name__)


class TrackerPhase(Enum):
    """Phase of the tracker state machine."""
    BOOTSTRAP = auto()  # No frame seen yet
    STEADY = auto()     # Full cycle on every frame


@dataclass
class TrackingResult:
    """
    Container for tracking results from a single frame.

    All per-track sequences are aligned with ``track_ids``.

    Attributes:
        frame_idx: Index of the processed frame
        track_ids: IDs of all tracks alive after the cycle
        assignment: Matched observation index per track, None if unmatched.
                    Indices refer to the raw input, before malformed
                    points were dropped
        positions: Position estimates after correction, shape (N, 2)
        predicted_positions: Predicted positions, shape (N, 2); for tracks
                             born this cycle this is the seed position
        created_ids: IDs of tracks born this cycle
        pruned_ids: IDs of tracks deleted this cycle
        num_observations: Number of raw points in the frame, malformed
                          ones included
        bootstrap: True for the frame that initialized the tracker
    """
    frame_idx: int
    track_ids: List[int]
    assignment: List[Optional[int]]
    positions: np.ndarray
    predicted_positions: np.ndarray
    created_ids: List[int] = field(default_factory=list)
    pruned_ids: List[int] = field(default_factory=list)
    num_observations: int = 0
    bootstrap: bool = False

    def __len__(self) -> int:
        return len(self.track_ids)

    def observation_track_ids(self) -> List[Optional[int]]:
        """
        Get the track ID explaining each observation.

        Returns:
            List aligned with the raw input points; None where no
            track claimed the point or the point was malformed
        """
        result: List[Optional[int]] = [None] * self.num_observations
        for track_id, obs_idx in zip(self.track_ids, self.assignment):
            if obs_idx is not None:
                result[obs_idx] = track_id
        return result

    def get_all_tracks(self) -> List[Tuple[int, Optional[int], np.ndarray]]:
        """
        Get all tracks as flat list.

        Returns:
            List of (track_id, observation_idx, position) tuples
        """
        return [
            (track_id, obs_idx, self.positions[i])
            for i, (track_id, obs_idx) in enumerate(zip(self.track_ids, self.assignment))
        ]


class ClusterTracker:
    """
    Multi-object tracker for unordered cluster centroids.

    One call to :meth:`update` runs one complete cycle. The cycle holds a
    single lock, so a tracker shared between threads processes frames
    one at a time.

    Args:
        config: Tracker configuration

    Example:
        >>> tracker = ClusterTracker(TrackerConfig(prune_interval=20))
        >>>
        >>> for frame_idx, centroids in enumerate(all_centroids):
        ...     result = tracker.update(centroids, frame_idx)
        ...     for track_id, obs_idx, position in result.get_all_tracks():
        ...         print(f"Track {track_id} -> observation {obs_idx}: {position}")
    """

    def __init__(self, config: Optional[TrackerConfig] = None):
        """Initialize the tracker."""
        self._config = config or TrackerConfig()
        self._bank = TrackBank(self._config)
        self._lifecycle = LifecycleManager(self._config)
        self._phase = TrackerPhase.BOOTSTRAP
        self._frame_count = 0
        self._lock = threading.Lock()

        logger.info(
            f"Initialized ClusterTracker (prune_interval={self._config.prune_interval}, "
            f"prune_policy={self._config.prune_policy}, "
            f"process_noise={self._config.process_noise}, "
            f"measurement_noise={self._config.measurement_noise})"
        )

    @property
    def phase(self) -> TrackerPhase:
        return self._phase

    @property
    def bank(self) -> TrackBank:
        """The underlying track bank."""
        return self._bank

    @property
    def frame_count(self) -> int:
        """Number of frames processed since the last reset."""
        return self._frame_count

    @staticmethod
    def _to_frame(
        observations: Union[ObservationFrame, np.ndarray, Sequence[Sequence[float]]]
    ) -> ObservationFrame:
        """Validate raw points into an ObservationFrame."""
        if isinstance(observations, ObservationFrame):
            return observations
        return ObservationFrame.from_points(observations)

    @staticmethod
    def _to_source(
        assignment: Sequence[Optional[int]],
        source: List[int]
    ) -> List[Optional[int]]:
        """Translate filtered observation indices to raw input indices."""
        return [None if m is None else source[m] for m in assignment]

    def _bootstrap(self, frame: ObservationFrame, frame_idx: int) -> TrackingResult:
        """Seed one track per observation; no assignment or correction."""
        created_ids = self._bank.create(frame.to_numpy())
        self._phase = TrackerPhase.STEADY

        logger.info(f"Bootstrapped {len(created_ids)} tracks from frame {frame_idx}")

        positions = self._bank.positions()
        return TrackingResult(
            frame_idx=frame_idx,
            track_ids=self._bank.track_ids,
            assignment=frame.source_indices(),
            positions=positions,
            predicted_positions=positions.copy(),
            created_ids=created_ids,
            num_observations=frame.num_source_points,
            bootstrap=True
        )

    def _cycle(self, frame: ObservationFrame, frame_idx: int) -> TrackingResult:
        """Run predict, associate, reconcile, correct and emit."""
        observations = frame.to_numpy()
        predictions = self._bank.predict_all()

        assignment = associate_observations_to_tracks(observations, predictions)

        update = self._lifecycle.reconcile(self._bank, assignment, observations)

        # Tracks born this cycle sit at the end of the bank and already
        # hold their seed observation
        n_existing = len(self._bank) - len(update.created_ids)
        for track_idx, obs_idx in update.assignment.matched_pairs():
            if track_idx < n_existing:
                self._bank.correct(track_idx, observations[obs_idx])

        predicted = np.array(
            [
                t.predicted_position if t.predicted_position is not None
                else t.position
                for t in self._bank
            ],
            dtype=np.float64
        ).reshape(-1, 2)

        return TrackingResult(
            frame_idx=frame_idx,
            track_ids=self._bank.track_ids,
            assignment=self._to_source(update.assignment, frame.source_indices()),
            positions=self._bank.positions(),
            predicted_positions=predicted,
            created_ids=update.created_ids,
            pruned_ids=update.pruned_ids,
            num_observations=frame.num_source_points
        )

    def update(
        self,
        observations: Union[ObservationFrame, np.ndarray, Sequence[Sequence[float]]],
        frame_idx: Optional[int] = None
    ) -> TrackingResult:
        """
        Update tracker with the observations of one frame.

        Args:
            observations: ObservationFrame or sequence of [x, y, z] points.
                          Malformed points are skipped with a warning.
            frame_idx: Current frame index; defaults to a running counter

        Returns:
            TrackingResult for all tracks alive after the cycle
        """
        frame = self._to_frame(observations)

        with self._lock:
            if frame_idx is None:
                frame_idx = self._frame_count
            self._frame_count += 1

            if self._phase is TrackerPhase.BOOTSTRAP:
                return self._bootstrap(frame, frame_idx)
            return self._cycle(frame, frame_idx)

    def reset(self) -> None:
        """Reset all tracking state."""
        with self._lock:
            self._bank.reset()
            self._lifecycle.reset()
            self._phase = TrackerPhase.BOOTSTRAP
            self._frame_count = 0
        logger.info("Tracker reset")

    def get_track_count(self) -> int:
        """Get number of active tracks."""
        return len(self._bank)
