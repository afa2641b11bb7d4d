"""
Observation frame input utilities.

This module reads recorded sequences of cluster centroids from disk so
they can be replayed through the tracker. Supported layouts:

    JSON / YAML: a list of frames, or a mapping with a "frames" key.
                 Each frame is a list of [x, y, z] points or a flat
                 [x0, y0, z0, x1, ...] array.
    CSV:         rows of "frame,x,y,z" (an optional header row is skipped).
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Union

import numpy as np
import yaml

from ..config import InputConfig
from ..observation import BaseCentroidSource, ObservationFrame

logger = logging.getLogger(__name__)


@dataclass
class FrameFileMetadata:
    """Metadata about a recorded frame file."""
    path: Path
    frame_count: int
    observation_count: int

    def __str__(self) -> str:
        return (
            f"Frames({self.path.name}: {self.frame_count} frames, "
            f"{self.observation_count} observations)"
        )


class FrameReader(BaseCentroidSource):
    """
    Reader for recorded observation frames.

    Args:
        path: Path to a .json, .yaml/.yml or .csv file
        config: Input configuration for supported formats and validation

    Example:
        >>> reader = FrameReader("recording.json")
        >>> print(reader.metadata)
        >>> for frame in reader.frames():
        ...     result = tracker.update(frame, frame.frame_idx)
    """

    def __init__(
        self,
        path: Union[str, Path],
        config: Optional[InputConfig] = None
    ):
        self._path = Path(path)
        self._config = config or InputConfig()

        self._validate_path()
        self._raw_frames = self._load()
        self._metadata = FrameFileMetadata(
            path=self._path,
            frame_count=len(self._raw_frames),
            observation_count=sum(len(f) for f in self.frames())
        )
        logger.info(f"Loaded frames: {self._metadata}")

    def _validate_path(self) -> None:
        """Validate frame file exists and has supported format."""
        if not self._path.exists():
            raise FileNotFoundError(f"Frame file not found: {self._path}")

        suffix = self._path.suffix.lower()
        if suffix not in self._config.supported_formats:
            raise ValueError(
                f"Unsupported frame format: {suffix}. "
                f"Supported: {self._config.supported_formats}"
            )

    def _load(self) -> List[list]:
        suffix = self._path.suffix.lower()
        if suffix == ".csv":
            return self._load_csv()

        with open(self._path, 'r') as f:
            if suffix == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)

        if isinstance(data, dict):
            if "frames" not in data:
                raise ValueError(f"No 'frames' key in {self._path}")
            data = data["frames"]

        if not isinstance(data, list):
            raise ValueError(
                f"Expected a list of frames in {self._path}, got {type(data).__name__}"
            )

        frames = []
        for i, frame in enumerate(data):
            if frame is None:
                frame = []
            if not isinstance(frame, list):
                raise ValueError(
                    f"Frame {i} in {self._path} is not a list "
                    f"(got {type(frame).__name__})"
                )
            frames.append(frame)
        return frames

    def _load_csv(self) -> List[list]:
        """Group "frame,x,y,z" rows by frame index."""
        table = np.genfromtxt(
            self._path, delimiter=",", dtype=np.float64, ndmin=2,
            invalid_raise=False
        )
        # Header rows parse as NaN in the frame column
        table = table[np.isfinite(table[:, 0])] if table.size else table

        if table.size == 0:
            return []

        if table.shape[1] < 4:
            raise ValueError(
                f"Expected columns frame,x,y,z in {self._path}, got {table.shape[1]}"
            )

        frame_ids = table[:, 0].astype(int)
        n_frames = int(frame_ids.max()) + 1
        frames: List[list] = [[] for _ in range(n_frames)]
        for frame_id, row in zip(frame_ids, table[:, 1:4]):
            if frame_id < 0:
                logger.warning(f"Skipping row with negative frame index {frame_id}")
                continue
            frames[frame_id].append(row.tolist())

        return frames

    @property
    def metadata(self) -> FrameFileMetadata:
        """Get frame file metadata."""
        return self._metadata

    @property
    def name(self) -> str:
        return self._path.stem

    def __len__(self) -> int:
        return len(self._raw_frames)

    def _to_frame(self, raw: list, frame_idx: int) -> ObservationFrame:
        # A flat list of numbers is the multi-array wire layout
        if raw and all(isinstance(v, (int, float)) for v in raw):
            return ObservationFrame.from_flat(raw, frame_idx=frame_idx)

        return ObservationFrame.from_points(
            raw,
            frame_idx=frame_idx,
            min_coordinates=self._config.min_coordinates
        )

    def frames(self) -> Iterator[ObservationFrame]:
        """Yield one ObservationFrame per recorded frame."""
        for frame_idx, raw in enumerate(self._raw_frames):
            yield self._to_frame(raw, frame_idx)

    def read_all(self) -> List[ObservationFrame]:
        """Read all frames into memory."""
        return list(self.frames())


def find_frame_files(
    directory: Union[str, Path],
    config: Optional[InputConfig] = None,
    exclude_patterns: Optional[List[str]] = None
) -> List[Path]:
    """
    Find all frame files in a directory.

    Args:
        directory: Directory to search
        config: Input configuration for supported formats
        exclude_patterns: Filename patterns to exclude

    Returns:
        Sorted list of frame file paths
    """
    directory = Path(directory)
    config = config or InputConfig()
    exclude_patterns = exclude_patterns or []

    if not directory.is_dir():
        raise NotADirectoryError(f"Not a directory: {directory}")

    files = []
    for path in directory.iterdir():
        if not path.is_file():
            continue
        if path.suffix.lower() not in config.supported_formats:
            continue
        if any(pattern in path.name for pattern in exclude_patterns):
            logger.debug(f"Excluding {path.name}")
            continue
        files.append(path)

    files.sort()
    logger.info(f"Found {len(files)} frame files in {directory}")
    return files
