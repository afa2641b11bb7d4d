"""
Command-line interface for Cluster Tracker.

Usage:
    cluster-tracker process recording.json --output output/
    cluster-tracker process recordings/ --prune-interval 10
    cluster-tracker inspect recording.json
    cluster-tracker config --generate config.yaml
"""

import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from . import __version__
from .config import PRUNE_POLICIES, PipelineConfig, get_default_config
from .io import FrameReader
from .pipeline import TrackingPipeline, run_pipeline
from .tracking import TrackingResult


def non_negative_int(value: str) -> int:
    """argparse type for counts that may be zero but never negative."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}")
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {number}")
    return number


def _add_tracker_options(parser: argparse.ArgumentParser) -> None:
    """Options shared by every command that runs the tracker."""
    parser.add_argument(
        "-c", "--config",
        type=Path,
        help="Path to config YAML file",
    )
    parser.add_argument(
        "--prune-interval",
        type=non_negative_int,
        metavar="N",
        help="Prune a track after more than N consecutive unmatched cycles",
    )
    parser.add_argument(
        "--prune-policy",
        choices=PRUNE_POLICIES,
        help="Count misses per track, or with one counter shared by all tracks",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="cluster-tracker",
        description="Assign stable IDs to point cloud cluster centroids",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Frame files hold one list of [x, y, z] centroids per frame (.json, .yaml)
or rows of frame,x,y,z (.csv). Malformed centroids are skipped.
        """,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (use -vv for debug)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    process_parser = subparsers.add_parser(
        "process",
        help="Track recorded frames and write <name>_tracks.json",
    )
    process_parser.add_argument(
        "input",
        type=Path,
        help="Frame file or directory of frame files",
    )
    process_parser.add_argument(
        "-o", "--output",
        type=Path,
        default=Path("output"),
        help="Output directory (default: output/)",
    )
    _add_tracker_options(process_parser)
    process_parser.add_argument(
        "--no-markers",
        action="store_true",
        help="Leave visualization markers out of the export",
    )
    process_parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable progress bars",
    )
    process_parser.add_argument(
        "--exclude",
        nargs="+",
        default=[],
        help="Filename patterns to exclude",
    )

    inspect_parser = subparsers.add_parser(
        "inspect",
        help="Print the track ID of every centroid, frame by frame",
    )
    inspect_parser.add_argument(
        "input",
        type=Path,
        help="Frame file",
    )
    _add_tracker_options(inspect_parser)

    config_parser = subparsers.add_parser(
        "config",
        help="Show or write the default configuration",
    )
    config_group = config_parser.add_mutually_exclusive_group(required=True)
    config_group.add_argument(
        "--show",
        action="store_true",
        help="Print the default configuration as YAML",
    )
    config_group.add_argument(
        "--generate",
        type=Path,
        metavar="FILE",
        help="Write the default configuration to FILE",
    )

    return parser


def setup_logging(verbosity: int) -> None:
    """Configure logging based on verbosity level."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _load_config(args: argparse.Namespace) -> PipelineConfig:
    """
    Load the config file (if any) and apply tracker overrides.

    Overrides rebuild ``TrackerConfig`` so its validation runs again.

    Raises:
        FileNotFoundError: If the config file does not exist
        ValueError: If the file or an override is invalid
    """
    if args.config is None:
        config = get_default_config()
    elif not args.config.exists():
        raise FileNotFoundError(f"Config file not found: {args.config}")
    else:
        try:
            config = PipelineConfig.from_yaml(args.config)
        except (TypeError, yaml.YAMLError) as e:
            raise ValueError(f"Invalid config file {args.config}: {e}") from e

    overrides = {}
    if args.prune_interval is not None:
        overrides["prune_interval"] = args.prune_interval
    if args.prune_policy:
        overrides["prune_policy"] = args.prune_policy
    if overrides:
        config.tracker = dataclasses.replace(config.tracker, **overrides)

    return config


def _describe(result: TrackingResult) -> str:
    """One line per frame: centroid -> track ID, plus births and deaths."""
    ids = ["-" if t is None else str(t) for t in result.observation_track_ids()]
    line = f"frame {result.frame_idx:>5}: [{', '.join(ids)}]"
    if result.created_ids:
        line += f"  new {result.created_ids}"
    if result.pruned_ids:
        line += f"  pruned {result.pruned_ids}"
    return line


def cmd_process(args: argparse.Namespace) -> int:
    """Handle the process command."""
    try:
        config = _load_config(args)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    config.output.output_dir = args.output
    if args.no_markers:
        config.markers.enabled = False

    if not args.input.exists():
        print(f"Error: Input not found: {args.input}", file=sys.stderr)
        return 1

    try:
        results = run_pipeline(
            input_path=args.input,
            output_dir=args.output,
            config=config,
            exclude_patterns=args.exclude,
            show_progress=not args.no_progress,
        )
    except Exception as e:
        logging.exception("Pipeline failed")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    frames = sum(len(r) for r in results.values())
    print(f"Tracked {frames} frame(s) from {len(results)} recording(s)")
    print(f"Results saved to: {args.output}")
    return 0


def cmd_inspect(args: argparse.Namespace) -> int:
    """Handle the inspect command. Nothing is written to disk."""
    try:
        config = _load_config(args)
        reader = FrameReader(args.input, config.input)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    pipeline = TrackingPipeline(config)
    results: List[TrackingResult] = pipeline.track_frames(
        reader.frames(), show_progress=False)

    for result in results:
        print(_describe(result))

    seen = {t for r in results for t in r.track_ids}
    print(f"{len(seen)} track(s), {pipeline.tracker.get_track_count()} alive at the end")
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Handle the config command."""
    config = get_default_config()

    if args.show:
        print(yaml.dump(config.to_dict(), default_flow_style=False, sort_keys=False))
        return 0

    config.to_yaml(args.generate)
    print(f"Generated config file: {args.generate}")
    return 0


COMMANDS = {
    "process": cmd_process,
    "inspect": cmd_inspect,
    "config": cmd_config,
}


def main(argv: Optional[list] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    setup_logging(args.verbose)
    return COMMANDS[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
