"""
Track lifecycle management.

Reconciles the track bank's population with the outcome of association:
unmatched observations give birth to tracks immediately, while unmatched
tracks are only pruned after a hysteresis interval so that short detector
dropouts do not discard a real object.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import numpy as np

from .association import Assignment
from .track_bank import TrackBank
from ..config import TrackerConfig

logger = logging.getLogger(__name__)


class PrunePolicy(Enum):
    """How staleness of unmatched tracks is measured."""
    PER_TRACK = "per_track"  # Each track counts its own consecutive misses
    GLOBAL = "global"        # One shared counter, prunes all unmatched at once


@dataclass
class LifecycleUpdate:
    """
    Outcome of one reconcile step.

    Attributes:
        assignment: Revised assignment, one entry per track in the bank
        created_ids: IDs of tracks born this cycle
        pruned_ids: IDs of tracks deleted this cycle
    """
    assignment: Assignment
    created_ids: List[int] = field(default_factory=list)
    pruned_ids: List[int] = field(default_factory=list)


class LifecycleManager:
    """
    Decides which tracks are born and which are pruned each cycle.

    Args:
        config: Tracker configuration (prune interval and policy)

    Example:
        >>> manager = LifecycleManager(TrackerConfig(prune_interval=20))
        >>> update = manager.reconcile(bank, assignment, observations)
        >>> len(update.assignment) == len(bank)
        True
    """

    def __init__(self, config: Optional[TrackerConfig] = None):
        self._config = config or TrackerConfig()
        self._policy = PrunePolicy(self._config.prune_policy)
        self._prune_counter = 0

    @property
    def policy(self) -> PrunePolicy:
        return self._policy

    @property
    def prune_counter(self) -> int:
        """Shared staleness counter (only advanced by the global policy)."""
        return self._prune_counter

    def reconcile(
        self,
        bank: TrackBank,
        assignment: Assignment,
        observations: np.ndarray
    ) -> LifecycleUpdate:
        """
        Grow and shrink the bank to match this cycle's assignment.

        Args:
            bank: Track bank, already predicted for this cycle
            assignment: Assignment for the bank's current tracks
            observations: Observed centroids, shape (M, 3)

        Returns:
            LifecycleUpdate whose assignment is aligned with the bank
        """
        if len(assignment) != len(bank):
            raise ValueError(
                f"Assignment covers {len(assignment)} tracks, bank has {len(bank)}"
            )

        pruned_ids = self._shrink(bank, assignment)
        created_ids = self._grow(bank, assignment, observations)

        return LifecycleUpdate(
            assignment=assignment,
            created_ids=created_ids,
            pruned_ids=pruned_ids
        )

    def _grow(
        self,
        bank: TrackBank,
        assignment: Assignment,
        observations: np.ndarray
    ) -> List[int]:
        """Seed one new track per unmatched observation, in index order."""
        seeds = list(assignment.unmatched_observations)
        if not seeds:
            return []

        created_ids = bank.create([observations[i] for i in seeds])
        assignment.extend(seeds)

        logger.debug(f"Created {len(created_ids)} tracks: {created_ids}")
        return created_ids

    def _shrink(self, bank: TrackBank, assignment: Assignment) -> List[int]:
        """Update staleness and delete tracks past the prune interval."""
        for track_idx, obs_idx in enumerate(assignment):
            track = bank[track_idx]
            track.misses = 0 if obs_idx is not None else track.misses + 1

        unmatched = assignment.unmatched_tracks()
        if not unmatched:
            return []

        if self._policy is PrunePolicy.PER_TRACK:
            doomed = [
                i for i in unmatched
                if bank[i].misses > self._config.prune_interval
            ]
        else:
            self._prune_counter += 1
            if self._prune_counter <= self._config.prune_interval:
                return []
            doomed = unmatched
            self._prune_counter = 0

        if not doomed:
            return []

        removed = bank.delete_at(doomed)
        assignment.remove_tracks(doomed)

        pruned_ids = [t.track_id for t in removed]
        logger.debug(f"Pruned {len(pruned_ids)} stale tracks: {pruned_ids}")
        return pruned_ids

    def reset(self) -> None:
        self._prune_counter = 0
