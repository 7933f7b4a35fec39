#!/usr/bin/env python3
"""Generate synthetic media for the clipedit demo manifest.

Creates, in examples/demo-clips/:
  main.mp4    12s base clip with a 440 Hz tone and a seconds counter
  broll.mp4   4s portrait clip, no audio (shows padding + silence fill)
  outro.mp4   3s clip at a different size and frame rate
  music.m4a   8s two-note chord to replace or mix under the base audio

Every video frame carries its own timestamp, so trims, inserts and speed
changes are easy to verify by eye.

Usage:
    pip install -e ".[demo]"
    python examples/generate_demo_clips.py
    # Then render:
    clipedit export --manifest examples/demo-edit.yaml --output examples/demo-renders/edit.mp4
"""

import numpy as np
from moviepy import AudioClip, ColorClip, CompositeVideoClip, ImageClip, concatenate_videoclips
from pathlib import Path
from PIL import Image, ImageDraw, ImageFont

OUTPUT_DIR = Path(__file__).resolve().parent / "demo-clips"

# name, size, fps, color, duration, tone (Hz or None)
VIDEOS = [
    ("main",  (640, 360), 30, (60, 60, 180),  12.0, 440),
    ("broll", (240, 320), 24, (180, 60, 60),   4.0, None),
    ("outro", (480, 360), 25, (60, 160, 60),   3.0, 330),
]

MUSIC = ("music", (523.25, 659.25), 8.0)


def _font(size: int):
    try:
        return ImageFont.truetype("/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf", size)
    except OSError:
        return ImageFont.load_default()


def _label_frame(size, color, text: str) -> np.ndarray:
    """White *text* centered on a dimmed version of *color*."""
    dim = tuple(max(c // 3, 20) for c in color)
    img = Image.new("RGB", size, dim)
    draw = ImageDraw.Draw(img)
    font = _font(size[1] // 5)
    bbox = draw.textbbox((0, 0), text, font=font)
    tw, th = bbox[2] - bbox[0], bbox[3] - bbox[1]
    draw.text(((size[0] - tw) / 2, (size[1] - th) / 2), text, fill=(255, 255, 255), font=font)
    return np.array(img)


def _tone(freqs, duration: float) -> AudioClip:
    """Stereo sine tone; one frequency per channel (or both channels)."""
    left, right = (freqs, freqs) if np.isscalar(freqs) else freqs

    def frame_function(t):
        return 0.3 * np.array([
            np.sin(2 * np.pi * left * t), np.sin(2 * np.pi * right * t),
        ]).T.copy(order="C")

    return AudioClip(frame_function, duration=duration, fps=44100)


def _video(name, size, color, duration):
    """Color clip with a label per whole second, e.g. 'main 3s'."""
    seconds = []
    t = 0.0
    while t < duration:
        step = min(1.0, duration - t)
        body = ColorClip(size=size, color=color, duration=step)
        label = ImageClip(_label_frame(size, color, f"{name} {int(t)}s"), duration=step)
        seconds.append(
            CompositeVideoClip([body, label.with_opacity(0.8)], size=size).with_duration(step)
        )
        t += step
    return concatenate_videoclips(seconds)


def main():
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    for name, size, fps, color, duration, tone in VIDEOS:
        out = OUTPUT_DIR / f"{name}.mp4"
        if out.exists():
            print(f"  skip {name} (exists)")
            continue
        clip = _video(name, size, color, duration)
        if tone is not None:
            clip = clip.with_audio(_tone(tone, duration))
        clip.write_videofile(str(out), fps=fps, audio=tone is not None, logger=None)
        print(f"  wrote {name} ({duration}s, {size[0]}x{size[1]} @ {fps}fps)")

    name, freqs, duration = MUSIC
    out = OUTPUT_DIR / f"{name}.m4a"
    if out.exists():
        print(f"  skip {name} (exists)")
    else:
        _tone(freqs, duration).write_audiofile(str(out), codec="aac", logger=None)
        print(f"  wrote {name} ({duration}s)")

    print(f"\nDone. {len(VIDEOS) + 1} files in {OUTPUT_DIR}")


if __name__ == "__main__":
    main()
