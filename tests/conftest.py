"""Shared test fixtures for clipedit tests."""

import shutil
import subprocess
from pathlib import Path

import pytest
import imageio_ffmpeg

from clipedit.probe import MediaInfo

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()

# imageio_ffmpeg does NOT bundle ffprobe; end-to-end tests need it on PATH.
requires_ffprobe = pytest.mark.skipif(
    shutil.which("ffprobe") is None, reason="ffprobe not on PATH",
)


def make_info(path="/media/base.mp4", duration=10.0, frame_rate=30.0,
              width=320, height=240, has_audio=True, has_video=True):
    """MediaInfo for builder tests — no file needed."""
    return MediaInfo(
        path=Path(path), duration=duration, frame_rate=frame_rate,
        width=width, height=height, has_audio=has_audio, has_video=has_video,
    )


@pytest.fixture
def make_clip(tmp_path):
    """Factory: write a synthetic test clip with ffmpeg lavfi sources.

    make_clip("a.mp4", duration=3, size="320x240", rate=10, audio=True)
    """
    def _make(name, duration=3.0, size="320x240", rate=10, audio=True, color="blue"):
        out = tmp_path / name
        cmd = [
            _FFMPEG, "-y",
            "-f", "lavfi", "-i", f"color=c={color}:s={size}:d={duration}:r={rate}",
        ]
        if audio:
            cmd += ["-f", "lavfi", "-i", f"sine=frequency=440:sample_rate=44100:duration={duration}"]
        cmd += ["-c:v", "libx264", "-crf", "28", "-pix_fmt", "yuv420p"]
        cmd += ["-c:a", "aac", "-b:a", "64k"] if audio else ["-an"]
        cmd.append(str(out))
        subprocess.run(cmd, check=True, capture_output=True)
        return out
    return _make


@pytest.fixture
def make_tone(tmp_path):
    """Factory: write an audio-only m4a sine tone."""
    def _make(name, duration=3.0, frequency=660):
        out = tmp_path / name
        subprocess.run(
            [
                _FFMPEG, "-y",
                "-f", "lavfi", "-i",
                f"sine=frequency={frequency}:sample_rate=44100:duration={duration}",
                "-c:a", "aac", "-b:a", "64k",
                str(out),
            ],
            check=True,
            capture_output=True,
        )
        return out
    return _make


@pytest.fixture
def source_video(make_clip):
    """A 5-second test video (320x240, 10fps) with audio."""
    return make_clip("source.mp4", duration=5.0)
