"""Orchestrator — normalizes every track named by a Manifest."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from trackforge import ffutil
from trackforge.analysis import validate_audio_analysis, validate_video_analysis
from trackforge.editors.audio import align_audio
from trackforge.editors.mux import combine_tracks
from trackforge.editors.video import normalize_video_track
from trackforge.encoders import resolve_encoder_config
from trackforge.manifest import Manifest, check_audio_codec
from trackforge.models import Segment

logger = logging.getLogger(__name__)


@dataclass
class TrackResult:
    input_path: Path
    output_path: Path
    kind: str
    segments: list[Segment] = field(default_factory=list)
    duration_final: float = 0.0


@dataclass
class EngineResult:
    tracks: list[TrackResult] = field(default_factory=list)
    combined_path: Path | None = None
    duration_combined: float = 0.0


def validate_manifest(manifest: Manifest) -> None:
    """Check every precondition before any ffmpeg process is started."""
    check_audio_codec(manifest.audio_codec)
    if not manifest.inputs:
        raise ValueError("Manifest has no inputs")
    for track in manifest.inputs:
        if not Path(track.path).exists():
            raise FileNotFoundError(f"input path doesn't exist: {track.path}")
        if track.analysis.is_video:
            validate_video_analysis(track.analysis)
        else:
            validate_audio_analysis(track.analysis)


def process(
    manifest: Manifest,
    on_progress: Callable[[str, float], None] | None = None,
) -> EngineResult:
    """Normalize each input, then mux a video/aac pair if one was produced.

    Args:
        manifest: Normalization manifest.
        on_progress: Optional callback(stage_name, fraction_complete).
    """

    def _progress(stage: str, frac: float) -> None:
        if on_progress:
            on_progress(stage, frac)

    def _sub_progress(stage: str, base: float, span: float):
        """Return a callback that maps a track's [0,1] to [base, base+span]."""
        def cb(frac: float) -> None:
            _progress(stage, base + frac * span)
        return cb

    ffutil.check_ffmpeg()
    validate_manifest(manifest)

    codec = check_audio_codec(manifest.audio_codec)
    output_dir = Path(manifest.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    result = EngineResult()
    video_path: Path | None = None
    audio_path: Path | None = None
    combined_path: Path | None = None

    span = 0.85 / len(manifest.inputs)
    for n, track in enumerate(manifest.inputs):
        input_path = Path(track.path)
        basename = input_path.stem
        base = n * span

        if track.analysis.is_video:
            stage = f"Rebuilding video timeline ({basename})"
            _progress(stage, base)
            output_path = (output_dir / f"{basename}_normalized.m4v").resolve()
            segments = normalize_video_track(
                basename,
                track.analysis,
                input_path,
                output_path,
                manifest.video,
                manifest.tmp_dir,
                manifest.temp_prefix,
                on_progress=_sub_progress(stage, base, span),
            )
            result.tracks.append(TrackResult(input_path, output_path, "video", segments))
            video_path = output_path
            combined_path = (output_dir / f"{basename}_combined.mp4").resolve()
        else:
            stage = f"Aligning audio ({basename})"
            _progress(stage, base)
            ext = ".wav" if codec == "wav" else ".aac"
            output_path = (output_dir / f"{basename}_normalized{ext}").resolve()
            encoder = resolve_encoder_config() if codec == "aac" else None
            align_audio(
                basename,
                track.analysis,
                input_path,
                output_path,
                codec,
                manifest.audio,
                encoder=encoder,
            )
            result.tracks.append(TrackResult(input_path, output_path, "audio"))
            if codec == "aac":
                audio_path = output_path

    # --- Combine ---
    if codec == "aac" and video_path and audio_path and combined_path:
        _progress("Combining video and audio", 0.86)
        combine_tracks(combined_path.stem, video_path, audio_path, combined_path)
        result.combined_path = combined_path
        logger.info("combined video and audio written to: %s", combined_path)

    # Probe final durations
    _progress("Verifying result", 0.92)
    for tr in result.tracks:
        # elementary files consumed by the mux are gone
        if tr.output_path.exists():
            tr.duration_final = ffutil.probe(tr.output_path).duration
    if result.combined_path is not None:
        result.duration_combined = ffutil.probe(result.combined_path).duration

    _progress("Done", 1.0)
    return result
