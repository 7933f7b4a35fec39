"""Artifact manager — intermediate files for one pipeline run.

Every temp path is registered the moment it is allocated, so a failure
halfway through a run still deletes whatever was produced so far.
Use as a context manager to get release-on-exit:

    with ArtifactManager(work_dir) as artifacts:
        tmp = artifacts.new_temp_path("trim")
        ...
    # all tracked files are gone here, success or failure
"""

import logging
import time
from pathlib import Path

from .errors import FilesystemError

logger = logging.getLogger(__name__)


def release_paths(paths) -> list[Path]:
    """Delete every existing path in *paths*. Never raises.

    Failures are logged and skipped. Returns the paths that could not
    be removed.
    """
    failed = []
    for p in paths:
        p = Path(p)
        try:
            p.unlink(missing_ok=True)
        except OSError as exc:
            logger.error("Error deleting temp file %s: %s", p, exc)
            failed.append(p)
    return failed


class ArtifactManager:
    """Allocate and track temp files in a working directory."""

    def __init__(self, work_dir: str | Path):
        self.work_dir = Path(work_dir).resolve()
        self._tracked: dict[Path, None] = {}
        self._counter = 0

    @property
    def tracked(self) -> list[Path]:
        return list(self._tracked)

    def new_temp_path(self, kind: str, suffix: str = ".mp4") -> Path:
        """Return a fresh, tracked path ``temp_<kind>_<timestamp><suffix>``.

        Raises:
            FilesystemError: The working directory cannot be created.
        """
        try:
            self.work_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemError(f"Cannot create working directory: {self.work_dir}") from exc

        stamp = time.time_ns()
        path = self.work_dir / f"temp_{kind}_{stamp}{suffix}"
        while path in self._tracked or path.exists():
            self._counter += 1
            path = self.work_dir / f"temp_{kind}_{stamp}_{self._counter}{suffix}"

        self._tracked[path] = None
        return path

    def release_all(self) -> None:
        """Delete every tracked path. Logs failures, never raises."""
        paths = list(self._tracked)
        self._tracked.clear()
        if paths:
            logger.debug("Releasing %d temp artifact(s)", len(paths))
        release_paths(paths)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release_all()
        return False
