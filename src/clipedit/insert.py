"""Structural insert — splice another clip into the base clip.

Positions are relative to the *working range*: the trim window when one
is requested, otherwise the whole base clip. Two modes:

  - sequential: base-before | insert | base-after. The timeline grows by
    the insert length: total = working length + insert length.
  - overlapping: the insert replaces an equally long stretch of the base
    (clamped to what is left of the working range). The replaced base
    video and audio are dropped, not shifted: total = working length.

Example (overlapping): base 40s, insert at 5s for 10s
  → base 0-5s | insert 0-10s | base 15-40s = 40s.

Every segment is normalized to the base clip's resolution and frame rate
and gets an audio track (real, or synthesized silence when its source has
none) so the final concat sees uniform inputs. Segments shorter than one
base frame are omitted, so the concat takes 1, 2 or 3 segments.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from .errors import InputError
from .filtergraph import (
    EngineCommand, EngineInput, Filter, FilterGraph,
    audio_format, fit_frame, fmt_num, out_port, silence,
)
from .probe import MediaInfo
from .profiles import EncodingProfile
from .request import TrimWindow

logger = logging.getLogger(__name__)

BASE = 0
INSERT = 1


@dataclass(frozen=True)
class Segment:
    source: int     # BASE or INSERT input index
    start: float    # seconds in the source
    end: float

    @property
    def length(self) -> float:
        return self.end - self.start


@dataclass(frozen=True)
class InsertPlan:
    working_start: float
    working_end: float
    position: float         # clamped, relative to working_start
    insert_length: float    # what actually plays from the insert clip
    segments: tuple[Segment, ...]

    @property
    def working_length(self) -> float:
        return self.working_end - self.working_start

    @property
    def duration(self) -> float:
        return sum(s.length for s in self.segments)


def working_range(base: MediaInfo, trim: TrimWindow | None) -> tuple[float, float]:
    """Trim window clamped into the base clip, or the whole clip."""
    if trim is None:
        return 0.0, base.duration
    start = max(0.0, min(trim.start, base.duration))
    end = max(start, min(trim.end, base.duration))
    return start, end


def plan_insert(
    base: MediaInfo,
    insert: MediaInfo,
    position: float,
    duration: float,
    mode: str,
    trim: TrimWindow | None = None,
) -> InsertPlan:
    """Work out which source ranges end up in the output, in order.

    Raises:
        InputError: Empty working range, or nothing left to output.
    """
    ws, we = working_range(base, trim)
    working = we - ws
    if working <= 0:
        raise InputError(
            f"Working range of {base.path.name} is empty "
            f"(trim lies outside the {base.duration:.3f}s clip)"
        )

    rel = max(0.0, min(position, working))
    abs_pos = ws + rel
    length = min(duration, insert.duration)

    if mode == "overlapping":
        # Cannot run past the end of the working range.
        length = min(length, working - rel)
        resume = abs_pos + length
    else:
        resume = abs_pos

    candidates = [
        Segment(BASE, ws, abs_pos),
        Segment(INSERT, 0.0, length),
        Segment(BASE, resume, we),
    ]
    min_len = base.frame_interval
    segments = tuple(s for s in candidates if s.length >= min_len)
    if not segments:
        raise InputError("Insert leaves nothing to render")

    return InsertPlan(
        working_start=ws,
        working_end=we,
        position=rel,
        insert_length=length,
        segments=segments,
    )


def build_insert(
    base: MediaInfo,
    insert: MediaInfo,
    position: float,
    duration: float,
    mode: str,
    profile: EncodingProfile,
    output: Path,
    trim: TrimWindow | None = None,
) -> EngineCommand:
    """Build the single ffmpeg command for an insert (and its trim window)."""
    plan = plan_insert(base, insert, position, duration, mode, trim)
    sources = {BASE: base, INSERT: insert}
    w, h, fps = base.width, base.height, base.frame_rate

    graph = FilterGraph()
    concat_inputs = []
    for i, seg in enumerate(plan.segments):
        src = sources[seg.source]
        v_label, a_label = f"v{i}", f"a{i}"

        graph.add(
            [f"{seg.source}:v"],
            [
                Filter("trim", start=seg.start, end=seg.end),
                Filter("setpts", "PTS-STARTPTS"),
                *fit_frame(w, h, fps),
            ],
            [v_label],
        )
        if src.has_audio:
            graph.add(
                [f"{seg.source}:a"],
                [
                    Filter("atrim", start=seg.start, end=seg.end),
                    Filter("asetpts", "PTS-STARTPTS"),
                    audio_format(),
                ],
                [a_label],
            )
        else:
            graph.add([], silence(seg.length), [a_label])
        concat_inputs += [v_label, a_label]

    graph.add(
        concat_inputs,
        [Filter("concat", n=len(plan.segments), v=1, a=1)],
        ["outv", "outa"],
    )

    logger.info(
        "Insert (%s): %d segment(s), working range %.3f-%.3fs, insert %.3fs at +%.3fs → %.3fs",
        mode, len(plan.segments), plan.working_start, plan.working_end,
        plan.insert_length, plan.position, plan.duration,
    )

    return EngineCommand(
        inputs=[EngineInput(base.path), EngineInput(insert.path)],
        output=output,
        graph=graph,
        maps=[out_port("outv"), out_port("outa")],
        output_options=[
            *profile.video_args(), "-r", fmt_num(fps),
            *profile.audio_args(), "-movflags", "+faststart",
        ],
        duration=plan.duration,
    )
