"""CLI for editing — export or preview a base clip with manifest edits.

Reads a YAML edit manifest, validates all media paths, runs the editing
pipeline (structural → merge → effects) and writes one mp4.

Usage:
    # Full-quality export
    clipedit export main.mp4 --manifest edits.yaml --output final.mp4

    # Fast low-quality preview (written to a temp folder unless --output)
    clipedit preview main.mp4 --manifest edits.yaml

    # Base clip taken from the manifest's 'base' field
    clipedit export --manifest edits.yaml --output final.mp4

    # Validate only (no rendering)
    clipedit export --manifest edits.yaml --validate
"""

import argparse
import logging
import sys
import time
from pathlib import Path

from .common import prepare_output_path, require_file
from .errors import EditError, InputError
from .pipeline import export, plan_stages, preview, run_pipeline
from .probe import FFPROBE
from .request import describe, load_request, validate_paths


def _parse_args(args=None):
    parser = argparse.ArgumentParser(
        description="Apply trim/insert/merge/speed/audio edits to a clip.",
    )
    parser.add_argument(
        "base", nargs="?", default=None,
        help="Base video (optional if the manifest provides 'base')",
    )
    parser.add_argument(
        "--manifest", required=True,
        help="Path to YAML edit manifest",
    )
    parser.add_argument(
        "--output", default=None,
        help="Output mp4 path (required for export)",
    )
    parser.add_argument(
        "--preview", action="store_true",
        help="Fast low-quality encode (ultrafast, CRF 28, 128k audio)",
    )
    parser.add_argument(
        "--preview-dir", default=None,
        help="Folder for preview renders (default: system temp)",
    )
    parser.add_argument(
        "--work-dir", default=None,
        help="Folder for intermediate files (default: output folder)",
    )
    parser.add_argument(
        "--ffprobe", default=FFPROBE,
        help="ffprobe executable (default: ffprobe on PATH)",
    )
    parser.add_argument(
        "--validate", action="store_true",
        help="Validate manifest only — check paths, don't render",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Log pipeline steps and ffmpeg commands",
    )
    return parser, parser.parse_args(args)


def _edit(parsed) -> Path:
    request, manifest_base = load_request(parsed.manifest)

    # CLI base arg overrides manifest base.
    base = parsed.base or manifest_base
    if base is None:
        raise InputError("No base video: pass it as an argument or set 'base' in the manifest")

    if parsed.validate:
        base_path = require_file(base, "Base video")
        validate_paths(request)
        print(f"Edit manifest valid: {base_path.name}")
        for line in describe(request):
            print(f"  {line}")
        print(f"Stages: {' → '.join(plan_stages(request))}")
        print("All paths verified.")
        return base_path

    print(f"{'Previewing' if parsed.preview else 'Exporting'} {base}")
    for line in describe(request):
        print(f"  {line}")

    t0 = time.monotonic()
    if parsed.preview and parsed.output is None:
        out = preview(
            base, request, preview_dir=parsed.preview_dir,
            work_dir=parsed.work_dir, ffprobe=parsed.ffprobe,
        )
    elif parsed.preview:
        out = run_pipeline(
            base, request, prepare_output_path(parsed.output),
            preview=True, work_dir=parsed.work_dir, ffprobe=parsed.ffprobe,
        )
    else:
        out = export(
            base, request, parsed.output,
            work_dir=parsed.work_dir, ffprobe=parsed.ffprobe,
        )
    print(f"\nDone: {out} ({time.monotonic() - t0:.1f}s)")
    return out


def main(args=None):
    parser, parsed = _parse_args(args)

    if not parsed.validate and not parsed.preview and not parsed.output:
        parser.error("--output is required (unless using --preview or --validate)")

    if parsed.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)-7s %(name)s: %(message)s")

    try:
        _edit(parsed)
    except EditError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
