"""Media prober — ffprobe wrapper returning a MediaInfo descriptor.

imageio-ffmpeg bundles ffmpeg but not ffprobe, so the ffprobe binary is
looked up on PATH (override with the ``ffprobe`` argument).

Frame-rate resolution order:
  1. r_frame_rate (exact rate reported by the container).
  2. avg_frame_rate.
  3. nb_frames / duration.
Missing or non-positive candidates are skipped. The result is clamped to
[1, 120] and rounded to 2 decimals. Files without a video stream get
1920x1080 @ 30fps so they can still be normalized against.
"""

import json
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

from .errors import ProbeError

logger = logging.getLogger(__name__)

FFPROBE = "ffprobe"

DEFAULT_WIDTH = 1920
DEFAULT_HEIGHT = 1080
DEFAULT_FPS = 30.0
MAX_FPS = 120.0


@dataclass(frozen=True)
class MediaInfo:
    path: Path
    duration: float
    frame_rate: float
    width: int
    height: int
    has_audio: bool
    has_video: bool = True

    @property
    def frame_interval(self) -> float:
        return 1.0 / self.frame_rate


def _parse_ratio(value) -> float | None:
    """Parse an ffprobe rate like '30000/1001' (or a bare number)."""
    if not value or not isinstance(value, str):
        return None
    try:
        if "/" in value:
            num, den = value.split("/", 1)
            den_f = float(den)
            if den_f <= 0:
                return None
            return float(num) / den_f
        return float(value)
    except ValueError:
        return None


def _usable(fps: float | None) -> bool:
    return fps is not None and fps > 0


def frame_rate_from_stream(stream: dict | None, duration: float) -> float:
    """Resolve a video stream's frame rate with the fallbacks listed above."""
    if not stream:
        return DEFAULT_FPS

    fps = _parse_ratio(stream.get("r_frame_rate"))
    if not _usable(fps):
        fps = _parse_ratio(stream.get("avg_frame_rate"))
    if not _usable(fps):
        try:
            frames = int(stream.get("nb_frames", 0))
        except (TypeError, ValueError):
            frames = 0
        fps = frames / duration if frames > 0 and duration > 0 else None
    if not _usable(fps):
        fps = DEFAULT_FPS

    return round(max(1.0, min(MAX_FPS, fps)), 2)


def parse_probe_output(path: str | Path, data: dict) -> MediaInfo:
    """Build a MediaInfo from ffprobe's JSON output.

    Raises:
        ProbeError: No usable streams or no readable duration.
    """
    streams = data.get("streams") or []
    video = next((s for s in streams if s.get("codec_type") == "video"), None)
    audio = next((s for s in streams if s.get("codec_type") == "audio"), None)
    if video is None and audio is None:
        raise ProbeError(path, "no audio or video streams")

    duration = None
    for source in (data.get("format") or {}, video or {}, audio or {}):
        try:
            duration = float(source["duration"])
            break
        except (KeyError, TypeError, ValueError):
            continue
    if duration is None or duration <= 0:
        raise ProbeError(path, "duration is missing or zero")

    return MediaInfo(
        path=Path(path),
        duration=duration,
        frame_rate=frame_rate_from_stream(video, duration),
        width=int((video or {}).get("width") or DEFAULT_WIDTH),
        height=int((video or {}).get("height") or DEFAULT_HEIGHT),
        has_audio=audio is not None,
        has_video=video is not None,
    )


def probe(path: str | Path, ffprobe: str = FFPROBE) -> MediaInfo:
    """Probe a media file. Never cached: files may change between calls.

    Raises:
        ProbeError: Missing file, ffprobe failure, or unreadable metadata.
    """
    p = Path(path)
    if not p.is_file():
        raise ProbeError(p, "file not found")

    cmd = [
        ffprobe, "-v", "error", "-print_format", "json",
        "-show_format", "-show_streams", str(p),
    ]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as exc:
        raise ProbeError(p, f"could not run {ffprobe}: {exc}") from exc

    if result.returncode != 0:
        raise ProbeError(p, result.stderr.strip() or f"exit code {result.returncode}")

    try:
        data = json.loads(result.stdout)
    except json.JSONDecodeError as exc:
        raise ProbeError(p, "unparsable ffprobe output") from exc

    info = parse_probe_output(p, data)
    logger.debug(
        "Probed %s: %.3fs %dx%d @ %sfps audio=%s",
        p.name, info.duration, info.width, info.height, info.frame_rate, info.has_audio,
    )
    return info
