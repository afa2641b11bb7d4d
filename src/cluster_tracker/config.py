"""
Centralized configuration management for Cluster Tracker.

This module provides typed, validated configuration using dataclasses.
Configuration can be loaded from YAML files or constructed programmatically.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple
import yaml


# =============================================================================
# Constants
# =============================================================================

PRUNE_POLICIES: Tuple[str, ...] = ("per_track", "global")


# =============================================================================
# Configuration Dataclasses
# =============================================================================

@dataclass
class TrackerConfig:
    """Configuration for the centroid tracker."""

    # Kalman filter parameters (shared by every track)
    process_noise: float = 0.01
    measurement_noise: float = 0.1
    initial_position_variance: float = 1.0
    initial_velocity_variance: float = 10.0

    # Track pruning
    prune_interval: int = 20  # Cycles a track may stay unmatched
    prune_policy: str = "per_track"  # "per_track" or "global"

    def __post_init__(self):
        if self.prune_policy not in PRUNE_POLICIES:
            raise ValueError(
                f"Unknown prune policy: {self.prune_policy}. "
                f"Supported: {PRUNE_POLICIES}"
            )
        if self.prune_interval < 0:
            raise ValueError("prune_interval must be non-negative")


@dataclass
class InputConfig:
    """Configuration for observation input."""

    min_coordinates: int = 3  # x, y, z
    queue_size: Optional[int] = None  # None -> number of CPUs
    supported_formats: Tuple[str, ...] = (".json", ".yaml", ".yml", ".csv")


@dataclass
class MarkerConfig:
    """Configuration for per-track visualization markers."""

    enabled: bool = True
    scale: float = 0.2
    source_frame: str = "laser"
    target_frame: str = "laser"

    # "source->target" -> [tx, ty, tz, yaw]
    static_transforms: Dict[str, List[float]] = field(default_factory=dict)

    @property
    def needs_transform(self) -> bool:
        """Whether marker positions must be moved to another frame."""
        return self.source_frame != self.target_frame


@dataclass
class OutputConfig:
    """Configuration for output generation."""

    output_dir: Path = field(default_factory=lambda: Path("output"))
    save_markers: bool = True
    indent: int = 2


@dataclass
class PipelineConfig:
    """Master configuration combining all sub-configs."""

    tracker: TrackerConfig = field(default_factory=TrackerConfig)
    input: InputConfig = field(default_factory=InputConfig)
    markers: MarkerConfig = field(default_factory=MarkerConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    # Logging configuration
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    @classmethod
    def from_yaml(cls, path: Path) -> "PipelineConfig":
        """Load configuration from a YAML file."""
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}

        input_data = dict(data.get('input', {}))
        if 'supported_formats' in input_data:
            input_data['supported_formats'] = tuple(
                input_data['supported_formats'])

        return cls(
            tracker=TrackerConfig(**data.get('tracker', {})),
            input=InputConfig(**input_data),
            markers=MarkerConfig(**data.get('markers', {})),
            output=OutputConfig(
                output_dir=Path(data.get('output', {}).get(
                    'output_dir', 'output')),
                **{k: v for k, v in data.get('output', {}).items() if k != 'output_dir'}
            ),
            log_level=data.get('log_level', 'INFO'),
            log_file=Path(data['log_file']) if data.get('log_file') else None,
        )

    def to_dict(self) -> dict:
        """Convert to a plain dictionary suitable for YAML."""
        return {
            'tracker': {
                'process_noise': self.tracker.process_noise,
                'measurement_noise': self.tracker.measurement_noise,
                'initial_position_variance': self.tracker.initial_position_variance,
                'initial_velocity_variance': self.tracker.initial_velocity_variance,
                'prune_interval': self.tracker.prune_interval,
                'prune_policy': self.tracker.prune_policy,
            },
            'input': {
                'min_coordinates': self.input.min_coordinates,
                'queue_size': self.input.queue_size,
                'supported_formats': list(self.input.supported_formats),
            },
            'markers': {
                'enabled': self.markers.enabled,
                'scale': self.markers.scale,
                'source_frame': self.markers.source_frame,
                'target_frame': self.markers.target_frame,
                'static_transforms': {
                    k: list(v) for k, v in self.markers.static_transforms.items()
                },
            },
            'output': {
                'output_dir': str(self.output.output_dir),
                'save_markers': self.output.save_markers,
                'indent': self.output.indent,
            },
            'log_level': self.log_level,
            'log_file': str(self.log_file) if self.log_file else None,
        }

    def to_yaml(self, path: Path) -> None:
        """Save configuration to a YAML file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)


# =============================================================================
# Default Configuration Factory
# =============================================================================

def get_default_config() -> PipelineConfig:
    """Create default configuration suitable for most use cases."""
    return PipelineConfig()
