"""JSON manifest schema — the contract between CLI/API and engine."""

import json
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from trackforge.analysis import load_analysis, parse_analysis
from trackforge.models import TrackAnalysis

SUPPORTED_AUDIO_CODECS = ("aac", "wav")


class UnsupportedCodecError(ValueError):
    pass


def default_tmp_dir() -> Path:
    return Path(os.environ.get("TRACKFORGE_TMP_DIR") or tempfile.gettempdir())


def check_audio_codec(codec: str) -> str:
    if not isinstance(codec, str):
        raise UnsupportedCodecError(
            f"Unsupported audio codec {codec!r}; expected one of {', '.join(SUPPORTED_AUDIO_CODECS)}"
        )
    codec = codec.lower()
    if codec not in SUPPORTED_AUDIO_CODECS:
        raise UnsupportedCodecError(
            f'Unsupported audio codec "{codec}"; expected one of {", ".join(SUPPORTED_AUDIO_CODECS)}'
        )
    return codec


@dataclass
class VideoRenderConfig:
    """Encoding parameters shared by the normalized clip and gap fillers."""

    codec: str = "libx264"
    bitrate: str = "5000k"
    pixel_format: str = "yuv420p"
    color_matrix: str = "bt709"
    color_range: str = "tv"
    gap_color: str = "black"


@dataclass
class AudioRenderConfig:
    """Output parameters for aligned audio."""

    sample_rate: int = 48000
    wav_channels: int = 1


@dataclass
class TrackInput:
    path: Path
    analysis: TrackAnalysis


@dataclass
class Manifest:
    """Top-level normalization manifest."""

    inputs: list[TrackInput]
    output_dir: Path
    audio_codec: str = "aac"
    tmp_dir: Path = field(default_factory=default_tmp_dir)
    temp_prefix: str = "rawtracks_"
    video: VideoRenderConfig = field(default_factory=VideoRenderConfig)
    audio: AudioRenderConfig = field(default_factory=AudioRenderConfig)


def load_manifest(path: str | Path) -> Manifest:
    """Load and validate a manifest from a JSON file.

    Relative input and analysis paths resolve against the manifest's directory.
    """
    path = Path(path)
    data = json.loads(path.read_text())

    if "inputs" not in data or "output_dir" not in data:
        raise ValueError("Manifest must contain 'inputs' and 'output_dir' fields")
    if not data["inputs"]:
        raise ValueError("Manifest 'inputs' must not be empty")

    base = path.parent
    inputs: list[TrackInput] = []
    for entry in data["inputs"]:
        if "path" not in entry:
            raise ValueError("Each manifest input must contain a 'path' field")
        if "analysis" in entry:
            analysis = parse_analysis(entry["analysis"])
        elif "analysis_path" in entry:
            analysis = load_analysis(base / entry["analysis_path"])
        else:
            raise ValueError(f"Manifest input {entry['path']} has no 'analysis' or 'analysis_path'")
        inputs.append(TrackInput(path=base / entry["path"], analysis=analysis))

    video = VideoRenderConfig(**data["video"]) if "video" in data else VideoRenderConfig()
    audio = AudioRenderConfig(**data["audio"]) if "audio" in data else AudioRenderConfig()

    return Manifest(
        inputs=inputs,
        output_dir=base / data["output_dir"],
        audio_codec=check_audio_codec(data.get("audio_codec", "aac")),
        tmp_dir=Path(data["tmp_dir"]) if "tmp_dir" in data else default_tmp_dir(),
        temp_prefix=data.get("temp_prefix", "rawtracks_"),
        video=video,
        audio=audio,
    )
