"""Feature requests — what to apply to a base clip, loaded from YAML.

Edit manifest schema (every feature optional, at least one required):
  paths:
    clips: "/data/clips"
  base: "${clips}/main.mp4"         # optional, CLI positional overrides
  trim: {start: 2.0, end: 30.0}
  merge:
    - "${clips}/outro.mp4"
  insert:
    path: "${clips}/broll.mp4"
    position: 5                     # seconds into the (trimmed) base
    duration: 10
    mode: overlapping               # or sequential
  speed: 1.5
  audio:
    path: "${clips}/music.mp3"
    mode: mix_video_main            # replace | mix_inserted_main | mix_video_main
    placement: custom               # audio_priority | video_priority | custom
    start: 4.0                      # custom window, seconds
    end: 12.0
    background_volume: 0.3
    main_volume: 1.0
    trim_start: 0                   # sub-range of the audio file to use
    trim_end: 20
"""

from dataclasses import dataclass, field, replace
from pathlib import Path

import yaml

from .common import require_file, resolve_path_vars
from .errors import InputError


VALID_INSERT_MODES = {"sequential", "overlapping"}

VALID_AUDIO_MODES = {"replace", "mix_inserted_main", "mix_video_main"}

VALID_PLACEMENTS = {"audio_priority", "video_priority", "custom"}

# A single atempo covers [0.5, 2.0]; two chained filters reach 4x.
MIN_SPEED = 0.5
MAX_SPEED = 4.0

DEFAULT_INSERT_DURATION = 5.0
DEFAULT_BACKGROUND_VOLUME = 0.5


# ── Request types ─────────────────────────────────────────────────


@dataclass(frozen=True)
class TrimWindow:
    start: float
    end: float

    @property
    def length(self) -> float:
        return self.end - self.start


@dataclass(frozen=True)
class InsertEdit:
    path: str
    position: float = 0.0
    duration: float = DEFAULT_INSERT_DURATION
    mode: str = "sequential"


@dataclass(frozen=True)
class AudioEdit:
    path: str
    mode: str = "replace"
    placement: str = "audio_priority"
    custom_start: float | None = None
    custom_end: float | None = None
    background_volume: float = DEFAULT_BACKGROUND_VOLUME
    main_volume: float = 1.0
    trim_start: float | None = None
    trim_end: float | None = None

    @property
    def is_mix(self) -> bool:
        return self.mode != "replace"


@dataclass(frozen=True)
class FeatureRequest:
    trim: TrimWindow | None = None
    merge: tuple[str, ...] = field(default_factory=tuple)
    insert: InsertEdit | None = None
    speed: float = 1.0
    audio: AudioEdit | None = None

    @property
    def has_speed(self) -> bool:
        return self.speed != 1.0

    def is_empty(self) -> bool:
        return (
            self.trim is None and not self.merge and self.insert is None
            and not self.has_speed and self.audio is None
        )


# ── Parsing ───────────────────────────────────────────────────────


def _number(value, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InputError(f"{name} must be a number, got {value!r}")
    return float(value)


def _optional_number(raw: dict, key: str, name: str) -> float | None:
    if raw.get(key) is None:
        return None
    return _number(raw[key], name)


def _path_field(raw, name: str, paths: dict) -> str:
    """Accept either a bare path string or a dict with 'path'."""
    if isinstance(raw, dict):
        if "path" not in raw:
            raise InputError(f"{name}: missing required field 'path'")
        raw = raw["path"]
    if not isinstance(raw, str) or not raw.strip():
        raise InputError(f"{name}: path must be a non-empty string")
    return resolve_path_vars(raw, paths)


def _parse_trim(raw) -> TrimWindow:
    if not isinstance(raw, dict):
        raise InputError("trim must be a mapping with 'start' and 'end'")
    for key in ("start", "end"):
        if key not in raw:
            raise InputError(f"trim: missing required field '{key}'")
    start = _number(raw["start"], "trim.start")
    end = _number(raw["end"], "trim.end")
    if start < 0:
        raise InputError(f"trim: start must be >= 0, got {start}")
    if end <= start:
        raise InputError(f"trim: start ({start}) must be < end ({end})")
    return TrimWindow(start, end)


def _parse_insert(raw, paths: dict) -> InsertEdit:
    if not isinstance(raw, dict):
        raise InputError("insert must be a mapping")
    path = _path_field(raw, "insert", paths)

    position = _optional_number(raw, "position", "insert.position") or 0.0
    if position < 0:
        raise InputError(f"insert: position must be >= 0, got {position}")

    duration = _optional_number(raw, "duration", "insert.duration")
    if duration is None:
        duration = DEFAULT_INSERT_DURATION
    if duration <= 0:
        raise InputError(f"insert: duration must be > 0, got {duration}")

    mode = raw.get("mode", "sequential")
    if mode not in VALID_INSERT_MODES:
        raise InputError(
            f"insert: invalid mode '{mode}'. Valid: {sorted(VALID_INSERT_MODES)}"
        )
    return InsertEdit(path=path, position=position, duration=duration, mode=mode)


def _parse_volume(raw: dict, key: str, default: float) -> float:
    value = _optional_number(raw, key, f"audio.{key}")
    if value is None:
        return default
    if not 0.0 <= value <= 1.0:
        raise InputError(f"audio: {key} must be in [0, 1], got {value}")
    return value


def _parse_audio(raw, paths: dict) -> AudioEdit:
    if isinstance(raw, str):
        raw = {"path": raw}
    if not isinstance(raw, dict):
        raise InputError("audio must be a path or a mapping")
    path = _path_field(raw, "audio", paths)

    mode = raw.get("mode", "replace")
    if mode not in VALID_AUDIO_MODES:
        raise InputError(
            f"audio: invalid mode '{mode}'. Valid: {sorted(VALID_AUDIO_MODES)}"
        )
    placement = raw.get("placement", "audio_priority")
    if placement not in VALID_PLACEMENTS:
        raise InputError(
            f"audio: invalid placement '{placement}'. Valid: {sorted(VALID_PLACEMENTS)}"
        )

    start = _optional_number(raw, "start", "audio.start")
    end = _optional_number(raw, "end", "audio.end")
    if placement == "custom":
        if start is None or end is None:
            raise InputError("audio: custom placement requires 'start' and 'end'")
        if start < 0:
            raise InputError(f"audio: start must be >= 0, got {start}")
        if end <= start:
            raise InputError(f"audio: start ({start}) must be < end ({end})")

    trim_start = _optional_number(raw, "trim_start", "audio.trim_start")
    trim_end = _optional_number(raw, "trim_end", "audio.trim_end")
    if trim_start is not None and trim_start < 0:
        raise InputError(f"audio: trim_start must be >= 0, got {trim_start}")
    if trim_end is not None and trim_end <= (trim_start or 0.0):
        raise InputError(
            f"audio: trim_start ({trim_start or 0.0}) must be < trim_end ({trim_end})"
        )

    return AudioEdit(
        path=path,
        mode=mode,
        placement=placement,
        custom_start=start,
        custom_end=end,
        background_volume=_parse_volume(raw, "background_volume", DEFAULT_BACKGROUND_VOLUME),
        main_volume=_parse_volume(raw, "main_volume", 1.0),
        trim_start=trim_start,
        trim_end=trim_end,
    )


def parse_request(raw: dict, paths: dict | None = None) -> FeatureRequest:
    """Validate a feature dict (manifest body) into a FeatureRequest.

    Raises:
        InputError: Malformed field, or no feature selected.
    """
    if not isinstance(raw, dict):
        raise InputError("Edit request must be a mapping")
    paths = paths if paths is not None else raw.get("paths", {})

    trim = _parse_trim(raw["trim"]) if raw.get("trim") is not None else None

    merge_raw = raw.get("merge") or []
    if not isinstance(merge_raw, list):
        raise InputError("merge must be a list of paths")
    merge = tuple(
        _path_field(item, f"merge {i}", paths) for i, item in enumerate(merge_raw)
    )

    insert = _parse_insert(raw["insert"], paths) if raw.get("insert") is not None else None

    speed = 1.0
    if raw.get("speed") is not None:
        speed = _number(raw["speed"], "speed")
        if not MIN_SPEED <= speed <= MAX_SPEED:
            raise InputError(
                f"speed must be in [{MIN_SPEED}, {MAX_SPEED}], got {speed}"
            )

    audio = _parse_audio(raw["audio"], paths) if raw.get("audio") is not None else None

    request = FeatureRequest(trim=trim, merge=merge, insert=insert, speed=speed, audio=audio)
    if request.is_empty():
        raise InputError(
            "No edit selected: set at least one of trim, merge, insert, speed, audio"
        )
    return request


def load_request(manifest_path: str | Path) -> tuple[FeatureRequest, str | None]:
    """Load an edit manifest.

    Returns:
        (request, base) where base is the resolved 'base' path or None.

    Raises:
        InputError: Unreadable manifest or invalid fields.
    """
    try:
        with open(manifest_path) as f:
            raw = yaml.safe_load(f)
    except OSError as exc:
        raise InputError(f"Cannot read edit manifest: {manifest_path}") from exc
    except yaml.YAMLError as exc:
        raise InputError(f"Invalid YAML in edit manifest {manifest_path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise InputError(f"Edit manifest {manifest_path} must be a mapping")

    paths = raw.get("paths") or {}
    base = raw.get("base")
    if base is not None:
        base = resolve_path_vars(str(base), paths)
    return parse_request(raw, paths), base


def validate_paths(request: FeatureRequest) -> FeatureRequest:
    """Check every referenced asset exists; return a copy with absolute paths.

    Raises:
        InputError: Lists all missing files.
    """
    missing = []

    def _check(path: str, role: str) -> str:
        try:
            return str(require_file(path, role))
        except InputError:
            missing.append(f"{role}: {path}")
            return path

    merge = tuple(_check(p, f"merge {i}") for i, p in enumerate(request.merge))
    insert = request.insert
    if insert is not None:
        insert = replace(insert, path=_check(insert.path, "insert"))
    audio = request.audio
    if audio is not None:
        audio = replace(audio, path=_check(audio.path, "audio"))

    if missing:
        msg = f"Missing {len(missing)} input file(s):\n"
        for m in missing:
            msg += f"  - {m}\n"
        raise InputError(msg)

    return replace(request, merge=merge, insert=insert, audio=audio)


def describe(request: FeatureRequest) -> list[str]:
    """Human-readable one-liners for each selected feature."""
    lines = []
    if request.trim:
        lines.append(f"trim     {request.trim.start:.2f}s — {request.trim.end:.2f}s")
    if request.insert:
        ins = request.insert
        lines.append(
            f"insert   {Path(ins.path).name} at {ins.position:.2f}s "
            f"for {ins.duration:.2f}s ({ins.mode})"
        )
    for p in request.merge:
        lines.append(f"merge    {Path(p).name}")
    if request.has_speed:
        lines.append(f"speed    {request.speed:g}x")
    if request.audio:
        a = request.audio
        lines.append(f"audio    {Path(a.path).name} ({a.mode}, {a.placement})")
    return lines
