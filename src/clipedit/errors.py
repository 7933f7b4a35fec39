"""Error taxonomy for the editing pipeline.

Every failure the pipeline surfaces is an EditError subclass, so callers
(the CLI, a GUI) can catch one type and show ``err.message``.
"""


class EditError(Exception):
    """Base error for all editing operations.

    Use ``raise EditError("msg") from cause`` for exception chaining.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InputError(EditError):
    """Missing or invalid asset path, or a malformed feature request."""


class ProbeError(EditError):
    """ffprobe could not read metadata for an asset."""

    def __init__(self, path, message: str) -> None:
        super().__init__(f"Cannot probe {path}: {message}")
        self.path = str(path)


class StageExecutionError(EditError):
    """ffmpeg reported a failure for one pipeline stage."""

    def __init__(self, stage: str, message: str) -> None:
        super().__init__(f"Stage '{stage}' failed: {message}")
        self.stage = stage


class FilesystemError(EditError):
    """Target directory not writable, or artifact creation failed."""
