"""Merge — append extra clips after the current clip.

Two steps:
  1. Normalize every input (current clip first) to the current clip's
     resolution and frame rate, stereo 44.1 kHz AAC. Inputs without audio
     get a synthesized silent track. Each output is cut to its own probed
     duration (-t) so filter rounding cannot make it drift.
  2. Concatenate the normalized files with the concat demuxer and stream
     copy: lossless, because every file now shares identical parameters.

Normalizing once per input is cheaper and more robust than one filter
graph spanning all clips.
"""

from pathlib import Path

from .filtergraph import (
    SAMPLE_RATE, EngineCommand, EngineInput, FilterGraph,
    audio_format, fit_frame, fmt_num, out_port, silence,
)
from .probe import MediaInfo
from .profiles import EncodingProfile


def build_normalize(
    info: MediaInfo,
    target: MediaInfo,
    profile: EncodingProfile,
    output: Path,
) -> EngineCommand:
    """Re-encode *info* to *target*'s resolution and frame rate."""
    w, h, fps = target.width, target.height, target.frame_rate

    graph = FilterGraph()
    graph.add(["0:v"], fit_frame(w, h, fps), ["v"])
    if info.has_audio:
        graph.add(["0:a"], [audio_format()], ["a"])
    else:
        graph.add([], silence(info.duration), ["a"])

    return EngineCommand(
        inputs=[EngineInput(info.path)],
        output=output,
        graph=graph,
        maps=[out_port("v"), out_port("a")],
        output_options=[
            *profile.video_args(), "-r", fmt_num(fps),
            *profile.audio_args(), "-ar", str(SAMPLE_RATE), "-ac", "2",
            "-t", f"{info.duration:.3f}",
        ],
        duration=info.duration,
    )


def _escape(path: Path) -> str:
    # concat demuxer list syntax: single-quoted, ' written as '\''
    return str(path).replace("\\", "/").replace("'", "'\\''")


def concat_list(paths) -> str:
    """Contents of a concat demuxer list file for *paths*."""
    return "".join(f"file '{_escape(Path(p))}'\n" for p in paths)


def build_concat(
    list_file: Path,
    output: Path,
    duration: float | None = None,
) -> EngineCommand:
    """Losslessly join the files listed in *list_file*."""
    return EngineCommand(
        inputs=[EngineInput(list_file, ["-f", "concat", "-safe", "0"])],
        output=output,
        maps=["0"],
        output_options=["-c", "copy", "-avoid_negative_ts", "make_zero", "-movflags", "+faststart"],
        duration=duration,
    )
