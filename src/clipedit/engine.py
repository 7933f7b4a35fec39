"""ffmpeg invocation — the single boundary where commands are executed.

Uses the ffmpeg binary bundled with imageio-ffmpeg. A failed run raises
StageExecutionError carrying the tail of ffmpeg's stderr.
"""

import logging
import subprocess

import imageio_ffmpeg

from .errors import StageExecutionError
from .filtergraph import EngineCommand

logger = logging.getLogger(__name__)

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()

_STDERR_TAIL_LINES = 20


def _stderr_tail(stderr: str) -> str:
    lines = [ln for ln in (stderr or "").strip().splitlines() if ln.strip()]
    return "\n".join(lines[-_STDERR_TAIL_LINES:]) or "ffmpeg exited with an error"


def run_command(command: EngineCommand, stage: str) -> None:
    """Run one ffmpeg command for *stage*.

    Raises:
        StageExecutionError: ffmpeg could not be started or exited non-zero.
    """
    args = command.to_args(_FFMPEG)
    logger.debug("[%s] %s", stage, subprocess.list2cmdline(args))
    try:
        result = subprocess.run(args, capture_output=True, text=True)
    except OSError as exc:
        raise StageExecutionError(stage, f"could not run ffmpeg: {exc}") from exc

    if result.returncode != 0:
        raise StageExecutionError(stage, _stderr_tail(result.stderr))
