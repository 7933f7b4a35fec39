"""Typed filter-graph description and ffmpeg command serialization.

Builders never write filter strings by hand. They assemble ``Chain``s of
``Filter``s with named ports into a ``FilterGraph`` and wrap it in an
``EngineCommand``; the ffmpeg syntax only appears in ``to_args()``.

    graph = FilterGraph()
    graph.add(["0:v"], [Filter("setpts", "0.5*PTS")], ["v"])
    graph.render()   # "[0:v]setpts=0.5*PTS[v]"
"""

from dataclasses import dataclass, field
from pathlib import Path


def fmt_num(value) -> str:
    """Format a number for a filter argument (no float noise, no trailing zeros)."""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        text = f"{value:.6f}".rstrip("0").rstrip(".")
        return text if text not in ("", "-0") else "0"
    return str(value)


@dataclass(frozen=True)
class Filter:
    """One filter: a name, positional args, then key=value options.

    ``Filter("scale", 1280, 720, force_original_aspect_ratio="decrease")``
    renders as ``scale=1280:720:force_original_aspect_ratio=decrease``.
    """

    name: str
    args: tuple = ()
    options: tuple[tuple[str, object], ...] = ()

    def __init__(self, name: str, *args, **options):
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "args", tuple(args))
        object.__setattr__(self, "options", tuple(options.items()))

    def option(self, key: str, default=None):
        return dict(self.options).get(key, default)

    def render(self) -> str:
        parts = [fmt_num(a) for a in self.args]
        parts += [f"{k}={fmt_num(v)}" for k, v in self.options]
        if not parts:
            return self.name
        return f"{self.name}={':'.join(parts)}"


@dataclass(frozen=True)
class Chain:
    """A linear run of filters between labelled input and output ports.

    Source chains (``anullsrc``) have no inputs.
    """

    inputs: tuple[str, ...]
    filters: tuple[Filter, ...]
    outputs: tuple[str, ...]

    def render(self) -> str:
        ins = "".join(f"[{p}]" for p in self.inputs)
        outs = "".join(f"[{p}]" for p in self.outputs)
        return f"{ins}{','.join(f.render() for f in self.filters)}{outs}"


@dataclass
class FilterGraph:
    """Ordered list of chains, rendered to a ``-filter_complex`` string."""

    chains: list[Chain] = field(default_factory=list)

    def add(self, inputs, filters, outputs) -> Chain:
        chain = Chain(tuple(inputs), tuple(filters), tuple(outputs))
        self.chains.append(chain)
        return chain

    def filters(self, name: str | None = None) -> list[Filter]:
        """All filters in graph order, optionally only those called *name*."""
        found = [f for c in self.chains for f in c.filters]
        if name is None:
            return found
        return [f for f in found if f.name == name]

    def operations(self) -> list[str]:
        return [f.name for f in self.filters()]

    def render(self) -> str:
        return ";".join(c.render() for c in self.chains)


@dataclass
class EngineInput:
    path: Path
    options: list[str] = field(default_factory=list)


@dataclass
class EngineCommand:
    """One ffmpeg invocation: inputs, optional graph, maps, output options.

    ``duration`` is the output duration the builder expects, in seconds;
    it is informational (logging, tests) and never passed to ffmpeg.
    """

    inputs: list[EngineInput]
    output: Path
    graph: FilterGraph | None = None
    maps: list[str] = field(default_factory=list)
    output_options: list[str] = field(default_factory=list)
    duration: float | None = None

    def to_args(self, executable: str) -> list[str]:
        """Serialize into an ffmpeg argv list."""
        cmd = [executable, "-y", "-hide_banner", "-loglevel", "error"]
        for inp in self.inputs:
            cmd += [*inp.options, "-i", str(inp.path)]
        if self.graph is not None and self.graph.chains:
            cmd += ["-filter_complex", self.graph.render()]
        for m in self.maps:
            cmd += ["-map", m]
        cmd += self.output_options
        cmd.append(str(self.output))
        return cmd


def out_port(label: str) -> str:
    """Map argument for a graph output label."""
    return f"[{label}]"


# ── Common filter runs ────────────────────────────────────────────

SAMPLE_RATE = 44100
CHANNEL_LAYOUT = "stereo"


def fit_frame(width: int, height: int, fps: float) -> list[Filter]:
    """Normalize frames to width x height @ fps without aspect distortion.

    Scales down to fit, pads the rest with black and resets the sample
    aspect ratio so segments from different sources can be concatenated.
    """
    return [
        Filter("fps", fps),
        Filter("scale", width, height, force_original_aspect_ratio="decrease"),
        Filter("pad", width, height, -1, -1, color="black"),
        Filter("setsar", 1),
    ]


def audio_format() -> Filter:
    """Common sample format for every audio segment: stereo 44.1 kHz."""
    return Filter("aformat", sample_rates=SAMPLE_RATE, channel_layouts=CHANNEL_LAYOUT)


def silence(duration: float) -> list[Filter]:
    """Source filters for a silent stereo 44.1 kHz track of *duration* seconds."""
    return [
        Filter("anullsrc", channel_layout=CHANNEL_LAYOUT, sample_rate=SAMPLE_RATE),
        Filter("atrim", start=0, end=duration),
        Filter("asetpts", "PTS-STARTPTS"),
    ]
