"""
auto-dj-render - play WAV files through the crossfade scheduler and render the result.

Example:
    auto-dj-render intro.wav main.wav outro.wav --crossfade 4 --output mix.wav
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace

from auto_dj.audio.render import OfflineMixRenderer
from auto_dj.config import PlayerConfig
from auto_dj.logging_config import configure_logging
from auto_dj.playback.tasks import VirtualTaskScheduler
from auto_dj.service import PlaybackService

logger = logging.getLogger(__name__)


def non_negative_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid number: {value}")
    if number < 0.0:
        raise argparse.ArgumentTypeError(f"Value must be >= 0, got: {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="auto-dj-render",
        description="Render a crossfaded timeline of WAV files to a single WAV file",
    )
    parser.add_argument("files", nargs="+", help="WAV files in playback order")
    parser.add_argument("--output", "-o", default="mix.wav", help="Output WAV path (default: mix.wav)")
    parser.add_argument("--crossfade", type=non_negative_float, default=None, help="Crossfade length in seconds")
    parser.add_argument("--start", type=non_negative_float, default=0.0, help="Timeline position to start from")
    parser.add_argument(
        "--sample-width",
        type=int,
        choices=(1, 2, 3, 4),
        default=2,
        help="Output sample width in bytes (default: 2)",
    )
    parser.add_argument("--log-level", default=None, help="Override AUTO_DJ_LOG_LEVEL")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    config = PlayerConfig.from_env()
    if args.crossfade is not None:
        config = replace(config, crossfade_sec=args.crossfade)
    configure_logging(args.log_level or config.log_level, config.log_format)

    scheduler = VirtualTaskScheduler()
    renderer = OfflineMixRenderer(scheduler.clock, sample_rate=config.sample_rate)
    service = PlaybackService(config, scheduler=scheduler, output=renderer)
    try:
        report = service.load_files(args.files)
        for failure in report.failures:
            print(f"skipped {failure.source}: {failure.reason}", file=sys.stderr)
        if not report.tracks:
            print("no playable tracks", file=sys.stderr)
            return 1

        started_at = scheduler.now()
        if not service.play(args.start):
            print(f"nothing to play from {args.start:.2f}s", file=sys.stderr)
            return 1
        scheduled = service.transport.scheduled_segments()
        end_time = max(item.end_time for item in scheduled)
        target = renderer.render_to_wav(args.output, started_at, end_time, sample_width=args.sample_width)

        # Let the virtual clock run out the timeline so the transport finishes normally.
        scheduler.advance(service.total_duration() - args.start + config.poll_interval_sec)
        logger.info(
            "rendered %d segment(s), %.2fs, state=%s",
            len(scheduled),
            end_time - started_at,
            service.transport.state.value,
        )
        print(target)
        return 0
    finally:
        service.close()


if __name__ == "__main__":
    sys.exit(main())
