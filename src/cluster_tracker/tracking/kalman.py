"""
Kalman filter implementation for centroid tracking.

This module provides a 4-dimensional constant-velocity Kalman filter
for tracking a point on the ground plane, observed by its position only.
"""

import numpy as np
from filterpy.kalman import KalmanFilter as FilterPyKalman
from dataclasses import dataclass


@dataclass
class KalmanState:
    """
    Represents the state of a Kalman filter.

    State vector: [x, y, vx, vy]
    where:
        - x, y: planar position
        - vx, vy: velocity per tick
    """
    position: np.ndarray  # [x, y]
    velocity: np.ndarray  # [vx, vy]


class KalmanPointTracker:
    """
    4D Kalman filter for tracking a cluster centroid.

    Uses a constant velocity model with a fixed unit tick and state
    [x, y, vx, vy]. Observations are [x, y].

    Args:
        position: Initial position [x, y]; velocity starts at zero
        process_noise: Process noise variance (default: 0.01)
        measurement_noise: Measurement noise variance (default: 0.1)
        position_variance: Initial position uncertainty (default: 1.0)
        velocity_variance: Initial velocity uncertainty (default: 10.0)

    Example:
        >>> tracker = KalmanPointTracker([1.0, 2.0])
        >>> tracker.predict()
        >>> tracker.update([1.1, 2.1])
        >>> state = tracker.get_state()
    """

    def __init__(
        self,
        position: np.ndarray,
        process_noise: float = 0.01,
        measurement_noise: float = 0.1,
        position_variance: float = 1.0,
        velocity_variance: float = 10.0
    ):
        self._kf = self._create_filter(
            process_noise, measurement_noise,
            position_variance, velocity_variance
        )
        self._initialize_state(position)
        self._hits = 0
        self._age = 0

    def _create_filter(
        self,
        process_noise: float,
        measurement_noise: float,
        position_variance: float,
        velocity_variance: float
    ) -> FilterPyKalman:
        """Create and configure the Kalman filter."""
        kf = FilterPyKalman(dim_x=4, dim_z=2)
        dt = 1.0

        # State transition matrix (constant velocity model)
        kf.F = np.array([
            [1, 0, dt, 0],
            [0, 1, 0,  dt],
            [0, 0, 1,  0],
            [0, 0, 0,  1],
        ], dtype=np.float64)

        # Measurement matrix (observe position only)
        kf.H = np.array([
            [1, 0, 0, 0],
            [0, 1, 0, 0],
        ], dtype=np.float64)

        kf.R = np.eye(2, dtype=np.float64) * measurement_noise
        kf.Q = np.eye(4, dtype=np.float64) * process_noise

        kf.P = np.diag([
            position_variance, position_variance,
            velocity_variance, velocity_variance,
        ]).astype(np.float64)

        return kf

    def _initialize_state(self, position: np.ndarray) -> None:
        """Initialize state from a position with zero velocity."""
        position = np.asarray(position, dtype=np.float64).ravel()
        self._kf.x = np.zeros((4, 1), dtype=np.float64)
        self._kf.x[:2, 0] = position[:2]

    def predict(self) -> np.ndarray:
        """
        Advance state prediction by one time step.

        Returns:
            Predicted position [x, y]
        """
        self._kf.predict()
        self._age += 1
        return self._kf.x[:2, 0].copy()

    def update(self, position: np.ndarray) -> None:
        """
        Update state with a new position measurement.

        Args:
            position: Observed position; only [x, y] is used
        """
        self._hits += 1
        measurement = np.asarray(position, dtype=np.float64).ravel()[:2]
        self._kf.update(measurement.reshape(2, 1))

    def get_state(self) -> KalmanState:
        """Get current state as KalmanState object."""
        state = self._kf.x[:, 0]
        return KalmanState(
            position=state[:2].copy(),
            velocity=state[2:].copy()
        )

    def get_position(self) -> np.ndarray:
        """Get current position estimate."""
        return self._kf.x[:2, 0].copy()

    @property
    def covariance(self) -> np.ndarray:
        """Current estimation-error covariance (4x4)."""
        return self._kf.P.copy()

    @property
    def hits(self) -> int:
        """Number of successful updates."""
        return self._hits

    @property
    def age(self) -> int:
        """Total prediction steps this tracker has run."""
        return self._age
