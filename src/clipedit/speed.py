"""Speed change — retime video and audio by a constant factor.

Video: presentation timestamps scaled by 1/speed, output rate set to
original rate x speed (every source frame survives the retime).
Audio: one atempo filter only accepts [0.5, 2.0], so speeds above 2x
chain two filters (2.0, then speed/2.0), reaching 4x.
Clips without audio get no audio chain and no audio output (-an).
"""

from pathlib import Path

from .filtergraph import EngineCommand, EngineInput, Filter, FilterGraph, fmt_num, out_port
from .probe import MediaInfo
from .profiles import EncodingProfile

ATEMPO_MAX = 2.0


def atempo_factors(speed: float) -> list[float]:
    """Tempo factors whose product is *speed*, each within atempo's range."""
    if speed > ATEMPO_MAX:
        return [ATEMPO_MAX, speed / ATEMPO_MAX]
    return [speed]


def atempo_filters(speed: float) -> list[Filter]:
    return [Filter("atempo", f) for f in atempo_factors(speed)]


def output_frame_rate(info: MediaInfo, speed: float) -> float:
    return round(info.frame_rate * speed, 3)


def build_speed(
    info: MediaInfo,
    speed: float,
    profile: EncodingProfile,
    output: Path,
) -> EngineCommand:
    """Build the command that plays *info* at *speed* x."""
    out_fps = output_frame_rate(info, speed)

    graph = FilterGraph()
    graph.add(
        ["0:v"],
        [Filter("setpts", f"{fmt_num(1 / speed)}*PTS"), Filter("fps", out_fps)],
        ["v"],
    )
    maps = [out_port("v")]
    options = [*profile.video_args(), "-r", fmt_num(out_fps)]

    if info.has_audio:
        graph.add(["0:a"], atempo_filters(speed), ["a"])
        maps.append(out_port("a"))
        options += profile.audio_args()
    else:
        options.append("-an")

    return EngineCommand(
        inputs=[EngineInput(info.path)],
        output=output,
        graph=graph,
        maps=maps,
        output_options=[*options, "-movflags", "+faststart"],
        duration=info.duration / speed,
    )
