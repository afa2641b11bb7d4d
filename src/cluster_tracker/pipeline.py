"""
Main pipeline for centroid tracking.

This module orchestrates the complete processing pipeline, from frame
ingestion through tracking, marker generation and output export.
"""

import logging
import os
import threading
from collections import deque
from pathlib import Path
from typing import Deque, Iterable, List, Optional, Union

from tqdm import tqdm

from .config import PipelineConfig, get_default_config
from .io import (
    FrameReader,
    MarkerBuilder,
    TrackingExporter,
    find_frame_files,
)
from .observation import ObservationFrame
from .tracking import ClusterTracker, TrackingResult

logger = logging.getLogger(__name__)


class FrameQueue:
    """
    Bounded, thread-safe frame buffer in front of the tracker.

    When full, the oldest frame is dropped to make room so the tracker
    always works on the freshest data.

    Args:
        maxsize: Capacity. Defaults to the number of available CPUs.
    """

    def __init__(self, maxsize: Optional[int] = None):
        self._maxsize = maxsize or os.cpu_count() or 1
        self._frames: Deque[ObservationFrame] = deque()
        self._lock = threading.Lock()
        self._dropped = 0

    @property
    def maxsize(self) -> int:
        return self._maxsize

    @property
    def dropped(self) -> int:
        """Total frames discarded due to overflow."""
        return self._dropped

    def __len__(self) -> int:
        with self._lock:
            return len(self._frames)

    def put(self, frame: ObservationFrame) -> Optional[ObservationFrame]:
        """
        Enqueue a frame.

        Returns:
            The frame dropped to make room, or None
        """
        with self._lock:
            dropped = None
            if len(self._frames) >= self._maxsize:
                dropped = self._frames.popleft()
                self._dropped += 1
                logger.warning(
                    f"Frame queue full ({self._maxsize}); dropped frame "
                    f"{dropped.frame_idx}"
                )
            self._frames.append(frame)
            return dropped

    def get(self) -> Optional[ObservationFrame]:
        """Pop the oldest frame, or None when empty."""
        with self._lock:
            return self._frames.popleft() if self._frames else None

    def clear(self) -> None:
        with self._lock:
            self._frames.clear()


class TrackingPipeline:
    """
    End-to-end pipeline for centroid tracking.

    This class orchestrates the complete workflow:
    1. Frame ingestion (recorded files or live submission)
    2. Multi-object tracking across frames
    3. Marker generation for each track
    4. Result export (JSON)

    Args:
        config: Pipeline configuration. Uses defaults if None.

    Example:
        >>> pipeline = TrackingPipeline()
        >>> results = pipeline.process_file("recording.json", output_dir="output/")
        >>>
        >>> # Or feed frames as they arrive
        >>> pipeline.submit(ObservationFrame.from_points(centroids))
        >>> result = pipeline.step()
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        """Initialize the pipeline with configuration."""
        self._config = config or get_default_config()
        self._setup_logging()

        # Initialize components (lazy loading)
        self._tracker: Optional[ClusterTracker] = None
        self._marker_builder: Optional[MarkerBuilder] = None
        self._queue = FrameQueue(self._config.input.queue_size)

    def _setup_logging(self) -> None:
        """Configure logging based on config."""
        logging.basicConfig(
            level=getattr(logging, self._config.log_level.upper()),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            handlers=[
                logging.StreamHandler(),
                *(
                    [logging.FileHandler(self._config.log_file)]
                    if self._config.log_file else []
                )
            ]
        )

    @property
    def tracker(self) -> ClusterTracker:
        """Get or create the tracker (lazy initialization)."""
        if self._tracker is None:
            logger.info("Initializing tracker...")
            self._tracker = ClusterTracker(self._config.tracker)
        return self._tracker

    @property
    def marker_builder(self) -> MarkerBuilder:
        """Get or create the marker builder."""
        if self._marker_builder is None:
            self._marker_builder = MarkerBuilder(self._config.markers)
        return self._marker_builder

    @property
    def queue(self) -> FrameQueue:
        return self._queue

    def submit(self, frame: ObservationFrame) -> None:
        """Queue a live frame for tracking."""
        self._queue.put(frame)

    def step(self) -> Optional[TrackingResult]:
        """Track the oldest queued frame, if any."""
        frame = self._queue.get()
        if frame is None:
            return None
        return self.tracker.update(frame, frame.frame_idx)

    def track_frames(
        self,
        frames: Iterable[ObservationFrame],
        exporter: Optional[TrackingExporter] = None,
        show_progress: bool = True
    ) -> List[TrackingResult]:
        """
        Run tracking over a sequence of frames.

        Args:
            frames: Observation frames in arrival order
            exporter: If given, every result (and its markers) is added
            show_progress: Whether to show a progress bar

        Returns:
            List of TrackingResult, one per frame
        """
        # Reset tracker for a new sequence
        self.tracker.reset()

        results = []
        iterator = tqdm(frames, desc="Tracking") if show_progress else frames

        for frame in iterator:
            result = self.tracker.update(frame, frame.frame_idx)
            results.append(result)

            if exporter is not None:
                markers = (
                    self.marker_builder.build(result, frame)
                    if self._config.markers.enabled else None
                )
                exporter.add_tracking_result(result, markers=markers)

        logger.info(
            f"Tracking complete: {len(results)} frames, "
            f"{self.tracker.get_track_count()} active tracks"
        )
        return results

    def process_file(
        self,
        path: Union[str, Path],
        output_dir: Optional[Union[str, Path]] = None,
        show_progress: bool = True
    ) -> List[TrackingResult]:
        """
        Process a single recorded frame file.

        Args:
            path: Path to the frame file
            output_dir: Directory for outputs. Uses config default if None.
            show_progress: Whether to show progress bars

        Returns:
            List of TrackingResult for each frame
        """
        path = Path(path)
        output_dir = Path(output_dir or self._config.output.output_dir)

        logger.info(f"Processing frames: {path}")

        reader = FrameReader(path, self._config.input)
        exporter = TrackingExporter(
            include_markers=self._config.output.save_markers
            and self._config.markers.enabled
        )

        results = self.track_frames(
            reader.frames(), exporter=exporter, show_progress=show_progress)

        json_path = output_dir / f"{reader.name}_tracks.json"
        exporter.save(json_path, indent=self._config.output.indent)

        return results

    def process_directory(
        self,
        input_dir: Union[str, Path],
        output_dir: Optional[Union[str, Path]] = None,
        exclude_patterns: Optional[List[str]] = None,
        show_progress: bool = True
    ) -> dict:
        """
        Process all frame files in a directory.

        Args:
            input_dir: Directory containing frame files
            output_dir: Directory for outputs
            exclude_patterns: Filename patterns to exclude
            show_progress: Whether to show progress bars

        Returns:
            Dictionary mapping file names to their TrackingResults
        """
        input_dir = Path(input_dir)
        output_dir = Path(output_dir or self._config.output.output_dir)

        files = find_frame_files(
            input_dir,
            self._config.input,
            exclude_patterns=exclude_patterns
        )

        if not files:
            logger.warning(f"No frame files found in {input_dir}")
            return {}

        results = {}
        for i, path in enumerate(files, 1):
            logger.info(f"Processing file {i}/{len(files)}: {path.name}")

            try:
                results[path.stem] = self.process_file(
                    path,
                    output_dir=output_dir,
                    show_progress=show_progress
                )
            except (OSError, ValueError) as e:
                logger.error(f"Failed to process {path}: {e}")
                continue

        logger.info(f"Completed processing {len(results)}/{len(files)} files")
        return results


def run_pipeline(
    input_path: Union[str, Path],
    output_dir: Optional[Union[str, Path]] = None,
    config: Optional[PipelineConfig] = None,
    **kwargs
) -> dict:
    """
    Convenience function to run the pipeline.

    Args:
        input_path: Frame file or directory of frame files
        output_dir: Output directory
        config: Pipeline configuration
        **kwargs: Additional arguments passed to process methods

    Returns:
        Dictionary of results
    """
    pipeline = TrackingPipeline(config)
    input_path = Path(input_path)

    if input_path.is_file():
        kwargs.pop("exclude_patterns", None)
        results = pipeline.process_file(input_path, output_dir, **kwargs)
        return {input_path.stem: results}
    else:
        return pipeline.process_directory(input_path, output_dir, **kwargs)
