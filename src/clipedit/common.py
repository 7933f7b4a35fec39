"""clipedit.common — shared path utilities.

Contains: ${var} resolution for manifests, normalization of paths handed
over by a UI (file:// URLs, relative paths), and output-path preparation.
"""

import re
import time
from pathlib import Path

from .errors import FilesystemError, InputError


# ── Path variables ─────────────────────────────────────────────────

def resolve_path_vars(text: str, paths: dict[str, str]) -> str:
    """Replace ${name} variables in a string using the paths dict."""
    def _replace(match):
        key = match.group(1)
        if key not in paths:
            raise InputError(f"Unknown path variable: ${{{key}}}")
        return str(paths[key])
    return re.sub(r"\$\{(\w+)\}", _replace, text)


# ── Path normalization ─────────────────────────────────────────────

def normalize_path(path: str | Path) -> Path:
    """Turn a UI-supplied path into an absolute filesystem path.

    Accepts plain paths as well as ``file://`` URLs (what a browser-based
    timeline hands back for a picked file).
    """
    if isinstance(path, Path):
        text = str(path)
    elif isinstance(path, str) and path.strip():
        text = path.strip()
    else:
        raise InputError(f"Invalid file path: expected string, got {type(path).__name__}")

    if text.startswith("file://"):
        text = text[len("file://"):]
    return Path(text).expanduser().resolve()


def require_file(path: str | Path, role: str) -> Path:
    """Normalize *path* and check it exists, naming the asset *role* on failure."""
    p = normalize_path(path)
    if not p.is_file():
        raise InputError(f"{role} file not found: {p}")
    return p


# ── Output preparation ─────────────────────────────────────────────

def check_writable(folder: Path) -> None:
    """Write and delete a probe file in *folder*.

    Raises:
        FilesystemError: If the directory cannot be written.
    """
    probe = folder / f".test_{time.time_ns()}.tmp"
    try:
        probe.write_text("test")
        probe.unlink()
    except OSError as exc:
        raise FilesystemError(
            f"Cannot write to directory: {folder}. Please check permissions."
        ) from exc


def prepare_output_path(path: str | Path) -> Path:
    """Normalize an output path and make sure it can be written.

    Trailing dots and spaces are stripped, the ``.mp4`` extension is
    enforced, the parent directory is created and probed for write access.
    """
    text = re.sub(r"[. ]+$", "", str(path))
    if not text:
        raise InputError(f"Invalid output path: {path!r}")
    if not text.lower().endswith(".mp4"):
        text += ".mp4"

    out = normalize_path(text)
    try:
        out.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FilesystemError(f"Cannot create directory: {out.parent}") from exc
    check_writable(out.parent)
    return out
