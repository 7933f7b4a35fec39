"""Encoding profiles — preview vs final export settings."""

from dataclasses import dataclass


@dataclass(frozen=True)
class EncodingProfile:
    name: str
    preset: str
    crf: int
    audio_bitrate: str

    def video_args(self) -> list[str]:
        """libx264 encoder arguments for this profile."""
        return [
            "-c:v", "libx264", "-preset", self.preset,
            "-crf", str(self.crf), "-pix_fmt", "yuv420p",
        ]

    def audio_args(self) -> list[str]:
        return ["-c:a", "aac", "-b:a", self.audio_bitrate]


PREVIEW = EncodingProfile("preview", preset="ultrafast", crf=28, audio_bitrate="128k")
FINAL = EncodingProfile("final", preset="medium", crf=23, audio_bitrate="192k")


def encoding_profile(is_preview: bool) -> EncodingProfile:
    return PREVIEW if is_preview else FINAL
