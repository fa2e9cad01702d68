import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from .analysis.export import export_events
from .analysis.grouping import group_chord_events
from .config import DetectionConfig, HOP_LENGTH, N_FFT
from .replay import replay_file
from .storage.sinks import JsonlChordStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="livechord", description="Live chord detection tools.")
    sub = parser.add_subparsers(dest="command", required=True)

    replay = sub.add_parser("replay", help="stream an audio file through the live detector")
    replay.add_argument("audio", help="audio file to play")
    replay.add_argument("--method", choices=["local", "backend"], default=None,
                        help="detection strategy (default: LIVECHORD_DETECTION_METHOD or local)")
    replay.add_argument("--endpoint", default=None, help="inference endpoint for --method backend")
    replay.add_argument("--timeout", type=float, default=None, help="remote call timeout in seconds")
    replay.add_argument("--n-fft", type=int, default=N_FFT)
    replay.add_argument("--hop-length", type=int, default=HOP_LENGTH)
    replay.add_argument("--speed", type=float, default=1.0, help="playback speed relative to real time")
    replay.add_argument("--store", default=None, help="append accepted detections to this JSONL file")
    replay.add_argument("--export", default=None, help="write grouped chord events to a .csv or .json file")
    replay.add_argument("-v", "--verbose", action="store_true")
    return parser


def _config_from_args(args: argparse.Namespace) -> DetectionConfig:
    overrides = {}
    if args.method is not None:
        overrides["detection_method"] = args.method
    if args.endpoint is not None:
        overrides["remote_url"] = args.endpoint
    if args.timeout is not None:
        overrides["remote_timeout_sec"] = args.timeout
    return DetectionConfig.from_env(**overrides)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = _config_from_args(args)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    store = JsonlChordStore(args.store) if args.store else None
    try:
        detections = asyncio.run(
            replay_file(
                args.audio,
                config,
                n_fft=args.n_fft,
                hop_length=args.hop_length,
                speed=args.speed,
                store=store,
            )
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    for d in detections:
        print(f"{d.timestamp:8.2f}s  {d.chord:<4} {d.confidence:.2f}")

    if args.export:
        events = group_chord_events(detections, tail_sec=config.throttle_interval_sec)
        try:
            fmt = export_events(events, args.export)
        except (OSError, ValueError) as e:
            print(f"Error exporting file: {e}", file=sys.stderr)
            return 1
        print(f"Chords successfully exported to {args.export} ({fmt})")
    return 0
