"""Trim stage — cut one time window out of a clip.

Seeks on the input (-ss/-t) and re-encodes for frame-accurate cuts.
Stream copy is available for the standalone ``clipedit cut`` command,
where keyframe-aligned boundaries are acceptable.
"""

from pathlib import Path

from .engine import run_command
from .errors import InputError
from .filtergraph import EngineCommand, EngineInput, fmt_num
from .probe import MediaInfo
from .profiles import FINAL, EncodingProfile
from .request import TrimWindow


def clamp_window(info: MediaInfo, window: TrimWindow) -> tuple[float, float]:
    """Clamp a trim window into the clip's duration.

    Raises:
        InputError: The window starts at or past the end of the clip.
    """
    start = max(0.0, window.start)
    end = min(window.end, info.duration)
    if start >= end:
        raise InputError(
            f"Trim start ({window.start:.3f}s) is beyond the end of "
            f"{info.path.name} ({info.duration:.3f}s)"
        )
    return start, end


def build_trim(
    info: MediaInfo,
    window: TrimWindow,
    profile: EncodingProfile,
    output: Path,
    copy: bool = False,
) -> EngineCommand:
    """Build the command that keeps [start, end) of *info*.

    Args:
        info: Probed source clip.
        window: Trim window in seconds; clamped to the clip duration.
        profile: Encoding profile for the re-encode.
        output: Output file path.
        copy: If True, stream-copy (fast, keyframe-aligned).
              If False, re-encode for frame-accurate cuts.
    """
    start, end = clamp_window(info, window)
    length = end - start

    maps = ["0:v:0"]
    if info.has_audio:
        maps.append("0:a:0")

    if copy:
        codec_args = ["-c", "copy"]
    else:
        codec_args = [*profile.video_args(), "-r", fmt_num(info.frame_rate)]
        codec_args += profile.audio_args() if info.has_audio else ["-an"]

    return EngineCommand(
        inputs=[EngineInput(info.path, ["-ss", f"{start:.3f}", "-t", f"{length:.3f}"])],
        output=output,
        maps=maps,
        output_options=[*codec_args, "-movflags", "+faststart"],
        duration=length,
    )


def cut_single(
    info: MediaInfo,
    start: float,
    end: float,
    output: str | Path,
    copy: bool = False,
    profile: EncodingProfile = FINAL,
) -> EngineCommand:
    """Cut a single segment from a probed clip and write it to *output*."""
    output = Path(output)
    output.parent.mkdir(parents=True, exist_ok=True)
    command = build_trim(info, TrimWindow(start, end), profile, output, copy=copy)
    run_command(command, "cut")
    return command
