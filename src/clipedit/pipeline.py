"""Editing pipeline — turn a FeatureRequest into one output mp4.

Stage order is decided once, up front, by plan_stages():

  structural   insert (which takes the trim window along), or a plain trim
  merge        only when merge clips are listed
  effects      always: audio, then speed, or a stream copy if neither

Each stage reads the current artifact and produces a new temp file, which
becomes the current artifact for the next stage. The effects stage writes
the final output. Stages run strictly one after another; every temp file
is registered with the run's ArtifactManager the moment its path is
allocated and deleted when the run ends, whatever the outcome. On failure
a partially written output is removed as well, so either a complete
output exists or none does.

Speed is applied after audio: the audio policy is resolved on the
unaltered timeline and the whole composed clip (video and new audio
together) is then retimed. This makes every placement, custom included,
combinable with speed.
"""

import logging
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path

from .artifacts import ArtifactManager, release_paths
from .audio import build_audio
from .common import check_writable, prepare_output_path, require_file
from .engine import run_command
from .errors import FilesystemError, InputError
from .filtergraph import EngineCommand, EngineInput
from .insert import build_insert
from .merge import build_concat, build_normalize, concat_list
from .probe import FFPROBE, MediaInfo, probe
from .profiles import EncodingProfile, encoding_profile
from .request import FeatureRequest, validate_paths
from .speed import build_speed
from .trim import build_trim

logger = logging.getLogger(__name__)

TRIM = "trim"
INSERT = "insert"
MERGE = "merge"
EFFECTS = "effects"

PREVIEW_DIR_NAME = "clipedit_preview"


@dataclass
class PipelineContext:
    """Mutable state of one pipeline run."""

    current: Path
    artifacts: ArtifactManager
    profile: EncodingProfile
    output: Path
    ffprobe: str = FFPROBE

    def probe(self, path: Path, role: str, need_video: bool = True) -> MediaInfo:
        info = probe(path, ffprobe=self.ffprobe)
        if need_video and not info.has_video:
            raise InputError(f"{role} has no video stream: {path}")
        return info

    def advance(self, path: Path) -> None:
        self.current = path


# ── Stage selection ───────────────────────────────────────────────


def plan_stages(request: FeatureRequest) -> list[str]:
    """Ordered stage list for *request*.

    Insert supersedes a plain trim: the insert builder already works on
    the trimmed range, so the trim window is handed to it instead.
    """
    stages = []
    if request.insert is not None:
        stages.append(INSERT)
    elif request.trim is not None:
        stages.append(TRIM)
    if request.merge:
        stages.append(MERGE)
    stages.append(EFFECTS)
    return stages


# ── Stages ────────────────────────────────────────────────────────


def _run_trim(ctx: PipelineContext, request: FeatureRequest) -> None:
    info = ctx.probe(ctx.current, "Base video")
    out = ctx.artifacts.new_temp_path("trim")
    run_command(build_trim(info, request.trim, ctx.profile, out), TRIM)
    ctx.advance(out)


def _run_insert(ctx: PipelineContext, request: FeatureRequest) -> None:
    base = ctx.probe(ctx.current, "Base video")
    ins = request.insert
    insert = ctx.probe(Path(ins.path), "Insert video")
    out = ctx.artifacts.new_temp_path("insert")
    command = build_insert(
        base, insert, ins.position, ins.duration, ins.mode,
        ctx.profile, out, trim=request.trim,
    )
    run_command(command, INSERT)
    ctx.advance(out)


def _run_merge(ctx: PipelineContext, request: FeatureRequest) -> None:
    target = ctx.probe(ctx.current, "Base video")
    logger.info(
        "Merging %d clip(s) — target %dx%d @ %sfps",
        len(request.merge), target.width, target.height, target.frame_rate,
    )

    normalized = []
    total = 0.0
    for i, path in enumerate([ctx.current, *request.merge]):
        info = target if i == 0 else ctx.probe(Path(path), f"Merge clip {i}")
        out = ctx.artifacts.new_temp_path(f"normalized_{i}")
        run_command(build_normalize(info, target, ctx.profile, out), MERGE)
        normalized.append(out)
        total += info.duration

    list_file = ctx.artifacts.new_temp_path("concat", suffix=".txt")
    try:
        list_file.write_text(concat_list(normalized), encoding="utf-8")
    except OSError as exc:
        raise FilesystemError(f"Cannot write concat list: {list_file}") from exc

    merged = ctx.artifacts.new_temp_path("merge")
    run_command(build_concat(list_file, merged, duration=total), MERGE)
    ctx.advance(merged)


def _stream_copy(source: Path, output: Path) -> EngineCommand:
    return EngineCommand(
        inputs=[EngineInput(source)],
        output=output,
        maps=["0"],
        output_options=["-c", "copy", "-movflags", "+faststart"],
    )


def _run_effects(ctx: PipelineContext, request: FeatureRequest) -> None:
    if request.audio is None and not request.has_speed:
        logger.info("No speed/audio requested — copying to output")
        run_command(_stream_copy(ctx.current, ctx.output), EFFECTS)
        ctx.advance(ctx.output)
        return

    if request.audio is not None:
        video = ctx.probe(ctx.current, "Video")
        audio = ctx.probe(Path(request.audio.path), "Audio", need_video=False)
        if not audio.has_audio:
            raise InputError(f"Audio file has no audio stream: {audio.path}")
        out = ctx.artifacts.new_temp_path("audio") if request.has_speed else ctx.output
        run_command(build_audio(video, audio, request.audio, ctx.profile, out), EFFECTS)
        ctx.advance(out)

    if request.has_speed:
        info = ctx.probe(ctx.current, "Video")
        run_command(build_speed(info, request.speed, ctx.profile, ctx.output), EFFECTS)
        ctx.advance(ctx.output)


STAGE_RUNNERS = {
    TRIM: _run_trim,
    INSERT: _run_insert,
    MERGE: _run_merge,
    EFFECTS: _run_effects,
}


# ── Entry points ──────────────────────────────────────────────────


def run_pipeline(
    base: str | Path,
    request: FeatureRequest,
    output: str | Path,
    preview: bool = False,
    work_dir: str | Path | None = None,
    ffprobe: str = FFPROBE,
) -> Path:
    """Apply *request* to *base* and write the result to *output*.

    Args:
        base: Base clip path (plain path or file:// URL).
        request: Edits to apply.
        output: Final output path (already prepared by the caller).
        preview: Use the fast low-quality encoding profile.
        work_dir: Directory for intermediate files (default: output's folder).
        ffprobe: ffprobe executable.

    Returns:
        The output path.

    Raises:
        InputError, ProbeError, StageExecutionError, FilesystemError.
    """
    base_path = require_file(base, "Base video")
    if request.is_empty():
        raise InputError("No edit selected: set at least one of trim, merge, insert, speed, audio")
    request = validate_paths(request)

    output = Path(output).resolve()
    inputs = {base_path, *(Path(p) for p in request.merge)}
    if request.insert is not None:
        inputs.add(Path(request.insert.path))
    if request.audio is not None:
        inputs.add(Path(request.audio.path))
    if output.resolve() in inputs:
        raise InputError(f"Output would overwrite an input file: {output}")

    work_dir = Path(work_dir).resolve() if work_dir is not None else output.parent
    if work_dir != output.parent:
        try:
            work_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemError(f"Cannot create working directory: {work_dir}") from exc
        check_writable(work_dir)

    profile = encoding_profile(preview)
    stages = plan_stages(request)
    logger.info(
        "Processing %s → %s (%s profile, stages: %s)",
        base_path.name, output.name, profile.name, " → ".join(stages),
    )

    t0 = time.monotonic()
    with ArtifactManager(work_dir) as artifacts:
        ctx = PipelineContext(
            current=base_path, artifacts=artifacts, profile=profile,
            output=output, ffprobe=ffprobe,
        )
        try:
            for i, stage in enumerate(stages, 1):
                logger.info("Step %d/%d: %s", i, len(stages), stage)
                STAGE_RUNNERS[stage](ctx, request)
        except Exception:
            release_paths([output])
            raise

    logger.info("Done: %s (%.1fs wall)", output, time.monotonic() - t0)
    return output


def export(
    base: str | Path,
    request: FeatureRequest,
    output: str | Path,
    work_dir: str | Path | None = None,
    ffprobe: str = FFPROBE,
) -> Path:
    """Full-quality export. Verifies the output folder is writable first."""
    output = prepare_output_path(output)
    return run_pipeline(base, request, output, preview=False, work_dir=work_dir, ffprobe=ffprobe)


def preview(
    base: str | Path,
    request: FeatureRequest,
    preview_dir: str | Path | None = None,
    work_dir: str | Path | None = None,
    ffprobe: str = FFPROBE,
) -> Path:
    """Fast low-fidelity render into a temp preview folder; returns its path."""
    folder = Path(preview_dir) if preview_dir is not None else (
        Path(tempfile.gettempdir()) / PREVIEW_DIR_NAME
    )
    output = prepare_output_path(folder / f"preview_{time.time_ns()}.mp4")
    return run_pipeline(
        base, request, output, preview=True, work_dir=work_dir, ffprobe=ffprobe,
    )
