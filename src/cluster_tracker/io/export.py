"""
Export utilities for tracking results.

This module serializes per-frame tracking results, optionally with their
visualization markers, into a single JSON document.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Union

from ..tracking import TrackingResult
from .markers import Marker

logger = logging.getLogger(__name__)


@dataclass
class FrameRecord:
    """Serialized form of one frame's tracking output."""
    frame_idx: int
    track_ids: List[int]
    assignment: List[Optional[int]]
    observation_track_ids: List[Optional[int]]
    positions: List[List[float]]
    created_ids: List[int]
    pruned_ids: List[int]
    bootstrap: bool = False
    markers: List[Dict[str, Any]] = field(default_factory=list)


class TrackingExporter:
    """
    Export tracking results to JSON.

    Example:
        >>> exporter = TrackingExporter()
        >>> for frame, result in zip(frames, results):
        ...     exporter.add_tracking_result(result, markers=builder.build(result, frame))
        >>> exporter.save("tracks.json")
    """

    def __init__(self, include_markers: bool = True):
        """
        Initialize the exporter.

        Args:
            include_markers: Whether to include markers in frame records
        """
        self._include_markers = include_markers
        self._records: List[FrameRecord] = []
        self._seen_ids: Set[int] = set()
        self._pruned_total = 0

    def add_tracking_result(
        self,
        result: TrackingResult,
        markers: Optional[List[Marker]] = None
    ) -> None:
        """
        Add one frame's TrackingResult.

        Args:
            result: TrackingResult from the tracker
            markers: Markers built for this result
        """
        record = FrameRecord(
            frame_idx=result.frame_idx,
            track_ids=list(result.track_ids),
            assignment=list(result.assignment),
            observation_track_ids=result.observation_track_ids(),
            positions=result.positions.tolist(),
            created_ids=list(result.created_ids),
            pruned_ids=list(result.pruned_ids),
            bootstrap=result.bootstrap,
            markers=[m.to_dict() for m in markers or []] if self._include_markers else []
        )
        self._records.append(record)
        self._seen_ids.update(result.track_ids)
        self._pruned_total += len(result.pruned_ids)

    def __len__(self) -> int:
        return len(self._records)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        frames = []
        for record in self._records:
            data = {
                "frame_idx": record.frame_idx,
                "track_ids": record.track_ids,
                "assignment": record.assignment,
                "observation_track_ids": record.observation_track_ids,
                "positions": record.positions,
                "created_ids": record.created_ids,
                "pruned_ids": record.pruned_ids,
                "bootstrap": record.bootstrap,
            }
            if self._include_markers:
                data["markers"] = record.markers
            frames.append(data)

        return {
            "summary": {
                "frames": len(self._records),
                "unique_tracks": len(self._seen_ids),
                "pruned_tracks": self._pruned_total,
                "active_tracks": len(self._records[-1].track_ids) if self._records else 0,
            },
            "frames": frames,
        }

    def save(self, path: Union[str, Path], indent: int = 2) -> None:
        """
        Save to JSON file.

        Args:
            path: Output file path
            indent: JSON indentation level
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=indent)

        logger.info(
            f"Saved tracking JSON: {path} "
            f"({len(self._records)} frames, {len(self._seen_ids)} tracks)"
        )

    def reset(self) -> None:
        """Clear all collected frames."""
        self._records.clear()
        self._seen_ids.clear()
        self._pruned_total = 0
