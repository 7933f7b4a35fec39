"""Audio combination — replace or mix a clip's audio with a new track.

Two orthogonal axes:

  mode        replace | mix_inserted_main | mix_video_main
  placement   audio_priority | video_priority | custom

Placement decides which track length governs the output:

  audio_priority  output = new audio length. Longer audio → the video is
                  looped (loop filter, frame count capped at 32767) and cut;
                  shorter or equal → the video is trimmed.
  video_priority  output = video length. Shorter audio → aloop + cut;
                  longer → cut.
  custom          output = video length. The new audio only plays inside
                  [start, end) (looped/cut to exactly the window); original
                  audio, or silence when the video has none, plays outside.
                  Segments under 0.1s are dropped.

Mix modes scale each track with an explicit volume filter (main track at
main_volume, the other at background_volume) and combine them with
amix normalize=0, so the levels are exactly what was asked for, and
duration=longest, so neither track ends early. A video without an audio
stream has nothing to mix with: mix requests degrade to replace.

The new audio can be limited to a sub-range of its file with
trim_start/trim_end before any placement rule is applied.
"""

import logging
import math
from pathlib import Path

from .errors import InputError
from .filtergraph import (
    SAMPLE_RATE, EngineCommand, EngineInput, Filter, FilterGraph,
    audio_format, fmt_num, out_port, silence,
)
from .probe import MediaInfo
from .profiles import EncodingProfile
from .request import AudioEdit

logger = logging.getLogger(__name__)

VIDEO = 0
NEW_AUDIO = 1

MIN_AUDIO_SEGMENT = 0.1
LOOP_FRAME_CEILING = 32767

# Durations closer than this are treated as equal (no loop, no trim).
_EPS = 1e-3


# ── Duration helpers ──────────────────────────────────────────────


def source_window(audio: MediaInfo, edit: AudioEdit) -> tuple[float, float]:
    """The [start, end) sub-range of the new audio file that gets used.

    Raises:
        InputError: The trim range lies outside the audio file.
    """
    start = max(0.0, min(edit.trim_start or 0.0, audio.duration))
    end = audio.duration if edit.trim_end is None else min(edit.trim_end, audio.duration)
    if end - start <= _EPS:
        raise InputError(
            f"Audio trim range {start:.3f}-{end:.3f}s is empty for "
            f"{audio.path.name} ({audio.duration:.3f}s)"
        )
    return start, end


def custom_window(video: MediaInfo, edit: AudioEdit) -> tuple[float, float]:
    """Custom placement window clamped into the video.

    Raises:
        InputError: The window does not overlap the video.
    """
    start = max(0.0, min(edit.custom_start or 0.0, video.duration))
    end = max(start, min(edit.custom_end if edit.custom_end is not None else video.duration,
                         video.duration))
    if end - start < MIN_AUDIO_SEGMENT:
        raise InputError(
            f"Custom audio window {edit.custom_start}-{edit.custom_end}s lies outside "
            f"the {video.duration:.3f}s video"
        )
    return start, end


def effective_mode(video: MediaInfo, edit: AudioEdit) -> str:
    """Mixing needs an audio track on the video; without one it is a replace."""
    if edit.is_mix and not video.has_audio:
        logger.info("Video has no audio stream; '%s' degrades to replace", edit.mode)
        return "replace"
    return edit.mode


def output_duration(video: MediaInfo, audio: MediaInfo, edit: AudioEdit) -> float:
    """Duration of the combined clip under *edit*'s placement policy."""
    if edit.placement == "audio_priority":
        start, end = source_window(audio, edit)
        return end - start
    return video.duration


# ── Filter runs ───────────────────────────────────────────────────


def fit_audio(length: float, target: float) -> list[Filter]:
    """Loop (aloop) and/or cut a formatted track of *length* to *target* seconds."""
    filters = []
    if length < target - _EPS:
        filters.append(Filter("aloop", loop=-1, size=math.ceil(length * SAMPLE_RATE)))
    filters += [Filter("atrim", duration=target), Filter("asetpts", "PTS-STARTPTS")]
    return filters


def fit_video(video: MediaInfo, target: float) -> list[Filter] | None:
    """Loop or trim the video to *target* seconds; None when it already fits."""
    if target > video.duration + _EPS:
        frames = min(math.ceil(video.duration * video.frame_rate), LOOP_FRAME_CEILING)
        loops = math.ceil(target / video.duration)
        return [
            Filter("loop", loop=loops, size=frames, start=0),
            Filter("trim", duration=target),
            Filter("setpts", "PTS-STARTPTS"),
        ]
    if target < video.duration - _EPS:
        return [Filter("trim", duration=target), Filter("setpts", "PTS-STARTPTS")]
    return None


def _new_audio(graph: FilterGraph, edit: AudioEdit, audio: MediaInfo,
               target: float, label: str) -> None:
    start, end = source_window(audio, edit)
    graph.add(
        [f"{NEW_AUDIO}:a"],
        [
            Filter("atrim", start=start, end=end),
            Filter("asetpts", "PTS-STARTPTS"),
            audio_format(),
            *fit_audio(end - start, target),
        ],
        [label],
    )


def _original_audio(graph: FilterGraph, video: MediaInfo, start: float, end: float,
                    label: str, target: float | None = None) -> None:
    """Original track over [start, end), optionally looped/cut to *target*."""
    if not video.has_audio:
        graph.add([], silence(target if target is not None else end - start), [label])
        return
    filters = [
        Filter("atrim", start=start, end=end),
        Filter("asetpts", "PTS-STARTPTS"),
        audio_format(),
    ]
    if target is not None:
        filters += fit_audio(end - start, target)
    graph.add([f"{VIDEO}:a"], filters, [label])


def _mix(graph: FilterGraph, mode: str, edit: AudioEdit,
         original: str, new: str, label: str) -> None:
    """Mix two labelled tracks at explicit volumes into *label*."""
    if mode == "mix_inserted_main":
        new_vol, orig_vol = edit.main_volume, edit.background_volume
    else:
        new_vol, orig_vol = edit.background_volume, edit.main_volume

    graph.add([original], [Filter("volume", orig_vol)], [f"{original}_vol"])
    graph.add([new], [Filter("volume", new_vol)], [f"{new}_vol"])
    graph.add(
        [f"{original}_vol", f"{new}_vol"],
        [Filter("amix", inputs=2, duration="longest", dropout_transition=0, normalize=0)],
        [label],
    )


# ── Builders ──────────────────────────────────────────────────────


def _build_priority(video, audio, edit, mode, graph) -> tuple[list[Filter] | None, float]:
    """audio_priority / video_priority: returns (video filters, duration)."""
    target = output_duration(video, audio, edit)
    video_filters = fit_video(video, target) if edit.placement == "audio_priority" else None

    if mode == "replace":
        _new_audio(graph, edit, audio, target, "aout")
    else:
        _original_audio(graph, video, 0.0, video.duration, "orig", target=target)
        _new_audio(graph, edit, audio, target, "new")
        _mix(graph, mode, edit, "orig", "new", "aout")
    return video_filters, target


def _build_custom(video, audio, edit, mode, graph) -> float:
    """custom placement: before | window | after, concatenated."""
    cs, ce = custom_window(video, edit)
    window = ce - cs

    parts = []
    if cs >= MIN_AUDIO_SEGMENT:
        _original_audio(graph, video, 0.0, cs, "before")
        parts.append("before")

    if mode == "replace":
        _new_audio(graph, edit, audio, window, "window")
    else:
        _original_audio(graph, video, cs, ce, "orig")
        _new_audio(graph, edit, audio, window, "new")
        _mix(graph, mode, edit, "orig", "new", "window")
    parts.append("window")

    if video.duration - ce >= MIN_AUDIO_SEGMENT:
        _original_audio(graph, video, ce, video.duration, "after")
        parts.append("after")

    if len(parts) == 1:
        graph.add(["window"], [Filter("anull")], ["aout"])
    else:
        graph.add(parts, [Filter("concat", n=len(parts), v=0, a=1)], ["aout"])
    return video.duration


def build_audio(
    video: MediaInfo,
    audio: MediaInfo,
    edit: AudioEdit,
    profile: EncodingProfile,
    output: Path,
) -> EngineCommand:
    """Build the command that combines *audio* into *video* per *edit*."""
    mode = effective_mode(video, edit)
    graph = FilterGraph()

    if edit.placement == "custom":
        video_filters, duration = None, _build_custom(video, audio, edit, mode, graph)
    else:
        video_filters, duration = _build_priority(video, audio, edit, mode, graph)

    if video_filters is None:
        maps = [f"{VIDEO}:v:0", out_port("aout")]
        video_args = ["-c:v", "copy"]
    else:
        graph.add([f"{VIDEO}:v"], video_filters, ["vout"])
        maps = [out_port("vout"), out_port("aout")]
        video_args = [*profile.video_args(), "-r", fmt_num(video.frame_rate)]

    logger.info(
        "Audio %s/%s: %s → %.3fs%s",
        mode, edit.placement, audio.path.name, duration,
        "" if video_filters is None else " (video re-timed)",
    )

    return EngineCommand(
        inputs=[EngineInput(video.path), EngineInput(audio.path)],
        output=output,
        graph=graph,
        maps=maps,
        output_options=[
            *video_args, *profile.audio_args(),
            "-t", f"{duration:.3f}", "-movflags", "+faststart",
        ],
        duration=duration,
    )
