"""CLI for probing — print what the pipeline sees in a media file.

Usage:
    clipedit probe main.mp4 music.mp3
"""

import argparse
import sys

from .errors import ProbeError
from .probe import FFPROBE, probe


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Show duration, frame rate, resolution and streams of media files.",
    )
    parser.add_argument(
        "paths", nargs="+",
        help="Media files to probe",
    )
    parser.add_argument(
        "--ffprobe", default=FFPROBE,
        help="ffprobe executable (default: ffprobe on PATH)",
    )
    parsed = parser.parse_args(args)

    failed = 0
    for path in parsed.paths:
        try:
            info = probe(path, ffprobe=parsed.ffprobe)
        except ProbeError as exc:
            print(f"  FAIL   {exc.message}", file=sys.stderr)
            failed += 1
            continue
        streams = ", ".join(
            s for s, present in (("video", info.has_video), ("audio", info.has_audio)) if present
        )
        print(
            f"  {info.path.name}: {info.duration:.3f}s  "
            f"{info.width}x{info.height} @ {info.frame_rate}fps  [{streams}]"
        )

    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
