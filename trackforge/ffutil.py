"""FFmpeg/ffprobe subprocess helpers."""

import json
import logging
import shutil
import subprocess
from pathlib import Path

from trackforge.models import ProbeResult

logger = logging.getLogger(__name__)


class FFmpegNotFoundError(RuntimeError):
    pass


class FFmpegCommandError(RuntimeError):
    """Raised when an ffmpeg invocation exits non-zero.

    ``label`` identifies the stage that failed (e.g. ``extractseg_3_cam1``).
    """

    def __init__(self, label: str, returncode: int, stderr: str = ""):
        tail = stderr.strip().splitlines()[-1] if stderr.strip() else "no output"
        super().__init__(f"ffmpeg stage '{label}' failed (rc={returncode}): {tail}")
        self.label = label
        self.returncode = returncode
        self.stderr = stderr


def check_ffmpeg() -> None:
    """Raise FFmpegNotFoundError if ffmpeg/ffprobe are not on PATH."""
    for cmd in ("ffmpeg", "ffprobe"):
        if shutil.which(cmd) is None:
            raise FFmpegNotFoundError(f"{cmd} not found on PATH")


def format_seconds(value: float) -> str:
    """Render a time value for ffmpeg's argv, microsecond precision."""
    text = f"{value:.6f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def run_ffmpeg(label: str, args: list[str]) -> None:
    """Run one ffmpeg invocation to completion; raise FFmpegCommandError on failure."""
    cmd = ["ffmpeg", "-hide_banner", "-y", *[str(a) for a in args]]
    logger.debug("[%s] %s", label, " ".join(cmd))
    result = subprocess.run(cmd, capture_output=True, text=True)
    if result.returncode != 0:
        raise FFmpegCommandError(label, result.returncode, result.stderr or "")


def list_encoders() -> str:
    """Return the encoder listing printed by ``ffmpeg -encoders``."""
    result = subprocess.run(
        ["ffmpeg", "-hide_banner", "-encoders"],
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout


def probe(input_path: Path) -> ProbeResult:
    """Extract media metadata via ffprobe."""
    cmd = [
        "ffprobe",
        "-v", "quiet",
        "-print_format", "json",
        "-show_format",
        "-show_streams",
        str(input_path),
    ]
    result = subprocess.run(cmd, capture_output=True, text=True, check=True)
    data = json.loads(result.stdout)

    video_stream = next(
        (s for s in data["streams"] if s["codec_type"] == "video"), None
    )
    audio_stream = next(
        (s for s in data["streams"] if s["codec_type"] == "audio"), None
    )

    if video_stream is None and audio_stream is None:
        raise ValueError(f"No audio or video stream found in {input_path}")

    probe_result = ProbeResult(duration=float(data["format"]["duration"]))

    if video_stream is not None:
        # Parse fps from r_frame_rate (e.g. "30/1")
        num, den = video_stream["r_frame_rate"].split("/")
        probe_result.fps = int(num) / int(den) if int(den) else None
        probe_result.width = int(video_stream["width"])
        probe_result.height = int(video_stream["height"])
        probe_result.codec_video = video_stream["codec_name"]

    if audio_stream is not None:
        probe_result.audio_sample_rate = int(audio_stream["sample_rate"])
        probe_result.audio_channels = int(audio_stream.get("channels", 0)) or None
        probe_result.codec_audio = audio_stream["codec_name"]

    return probe_result
