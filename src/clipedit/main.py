"""Subcommand dispatcher for clipedit.

Usage:
    clipedit export   main.mp4 --manifest edits.yaml --output final.mp4
    clipedit preview  main.mp4 --manifest edits.yaml
    clipedit probe    main.mp4 music.mp3
    clipedit cut      main.mp4 --start 10 --end 30 --output clip.mp4
"""

import argparse
import sys


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="clipedit",
        description="Trim, insert, merge, retime and re-score video clips.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Subcommand names only; each CLI module owns its own arguments.
    subparsers.add_parser("export", help="Full-quality render of an edit manifest")
    subparsers.add_parser("preview", help="Fast low-quality render of an edit manifest")
    subparsers.add_parser("probe", help="Show media metadata as the pipeline sees it")
    subparsers.add_parser("cut", help="Cut one window from a clip")

    # Everything after the subcommand name is handed through untouched.
    parsed, remaining = parser.parse_known_args(args)

    if parsed.command is None:
        # Bare "clipedit": print usage, exit non-zero.
        parser.print_help()
        sys.exit(1)

    if parsed.command == "export":
        from .edit_cli import main as edit_main
        edit_main(remaining)
    elif parsed.command == "preview":
        from .edit_cli import main as edit_main
        edit_main(["--preview", *remaining])
    elif parsed.command == "probe":
        from .probe_cli import main as probe_main
        probe_main(remaining)
    elif parsed.command == "cut":
        from .cut_cli import main as cut_main
        cut_main(remaining)


if __name__ == "__main__":
    main()
