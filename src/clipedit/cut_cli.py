"""CLI for quick trims — cut one window out of a clip, no manifest needed.

Usage:
    clipedit cut source.mp4 --start 10 --end 30 --output clip.mp4
    clipedit cut source.mp4 --start 10 --end 30 --output clip.mp4 --copy
"""

import argparse
import sys

from .common import prepare_output_path, require_file
from .errors import EditError
from .probe import FFPROBE, probe
from .profiles import encoding_profile
from .trim import cut_single


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Cut a time window from a source video.",
    )
    parser.add_argument(
        "source",
        help="Path to source video",
    )
    parser.add_argument(
        "--start", type=float, required=True,
        help="Start time in seconds",
    )
    parser.add_argument(
        "--end", type=float, required=True,
        help="End time in seconds",
    )
    parser.add_argument(
        "--output", required=True,
        help="Output file path (.mp4 is appended if missing)",
    )
    parser.add_argument(
        "--copy", action="store_true",
        help="Stream-copy (fast, keyframe-aligned) instead of re-encode",
    )
    parser.add_argument(
        "--preview", action="store_true",
        help="Fast low-quality encode",
    )
    parser.add_argument(
        "--ffprobe", default=FFPROBE,
        help="ffprobe executable (default: ffprobe on PATH)",
    )
    parsed = parser.parse_args(args)

    if parsed.start < 0:
        parser.error("--start must be >= 0")
    if parsed.end <= parsed.start:
        parser.error("--end must be greater than --start")

    try:
        source = require_file(parsed.source, "Source video")
        output = prepare_output_path(parsed.output)
        info = probe(source, ffprobe=parsed.ffprobe)
        print(f"Cutting {source.name}  {parsed.start:.1f}s — {parsed.end:.1f}s")
        cut_single(
            info, parsed.start, parsed.end, output,
            copy=parsed.copy, profile=encoding_profile(parsed.preview),
        )
    except EditError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        sys.exit(1)
    print(f"Done: {output}")


if __name__ == "__main__":
    main()
