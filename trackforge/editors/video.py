"""Video reconstruction — rebuilds a gapped recording into one continuous track.

The raw container can't be seeked accurately, so the whole input is first
re-encoded into an intermediate clip. Source segments are then stream-copied
out of that clip and gap segments are synthesized with identical encoding
parameters, which lets the concat demuxer join them without re-encoding.
"""

import logging
from pathlib import Path
from typing import Callable

from trackforge import ffutil
from trackforge.analysis import validate_video_analysis
from trackforge.analyzers.segments import plan_segments
from trackforge.manifest import VideoRenderConfig
from trackforge.models import GAP, Segment, TrackAnalysis, VideoSize
from trackforge.tempfiles import RunArtifacts, make_context_id

logger = logging.getLogger(__name__)


def _format_rate(frame_rate: float) -> str:
    # repr round-trips, so NTSC rates like 30000/1001 reach ffmpeg unquantized
    frame_rate = float(frame_rate)
    return str(int(frame_rate)) if frame_rate.is_integer() else repr(frame_rate)


def video_encode_args(frame_rate: float, config: VideoRenderConfig) -> list[str]:
    """Codec parameters shared by the intermediate clip and every gap filler."""
    return [
        "-r", _format_rate(frame_rate),
        "-b:v", config.bitrate,
        "-c:v", config.codec,
    ]


def _color_args(config: VideoRenderConfig) -> str:
    return f"out_color_matrix={config.color_matrix}:out_range={config.color_range}"


def normalize_source(
    ctx: str,
    input_path: Path,
    output_path: Path,
    size: VideoSize,
    frame_rate: float,
    config: VideoRenderConfig,
) -> None:
    """Re-encode the entire raw input into a seekable intermediate clip."""
    args = [
        "-i", str(input_path),
        "-vf", f"scale={size.w}x{size.h}:{_color_args(config)}",
        *video_encode_args(frame_rate, config),
        str(output_path),
    ]
    ffutil.run_ffmpeg(f"convert_{ctx}", args)


def render_gap(
    ctx: str,
    index: int,
    segment: Segment,
    output_path: Path,
    size: VideoSize,
    frame_rate: float,
    config: VideoRenderConfig,
) -> None:
    """Synthesize a solid-color filler clip for one gap segment."""
    source = (
        f"color=c={config.gap_color}:s={size.w}x{size.h},"
        f"format={config.pixel_format},"
        f"scale={_color_args(config)}"
    )
    args = [
        "-f", "lavfi",
        "-i", source,
        "-t", ffutil.format_seconds(segment.rounded_duration),
        *video_encode_args(frame_rate, config),
        str(output_path),
    ]
    ffutil.run_ffmpeg(f"rendergap_{index}_{ctx}", args)


def source_offset(segment: Segment, start_time: float) -> float:
    """Map a logical timeline position onto the intermediate clip's timeline.

    The intermediate clip begins at the raw track's first sample, which sits at
    ``start_time`` on the logical timeline.
    """
    offset = segment.start - start_time
    if offset < 0:
        logger.debug(
            "segment at %.3fs precedes first sample at %.3fs; seeking from 0",
            segment.start, start_time,
        )
        return 0.0
    return offset


def extract_segment(
    ctx: str,
    index: int,
    segment: Segment,
    source_path: Path,
    output_path: Path,
    start_time: float,
) -> None:
    """Stream-copy one source segment out of the intermediate clip."""
    args = [
        "-ss", ffutil.format_seconds(source_offset(segment, start_time)),
        "-t", ffutil.format_seconds(segment.rounded_duration),
        "-i", str(source_path),
        "-c", "copy",
        str(output_path),
    ]
    ffutil.run_ffmpeg(f"extractseg_{index}_{ctx}", args)


def _quote(name: str) -> str:
    return name.replace("'", "'\\''")


def write_concat_manifest(path: Path, segment_files: list[Path]) -> None:
    """Write a concat-demuxer list referencing ``segment_files`` in the given order.

    Entries are bare file names, resolved by ffmpeg relative to the list itself.
    """
    lines = [f"file '{_quote(p.name)}'" for p in segment_files]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def concat_segments(ctx: str, manifest_path: Path, output_path: Path) -> None:
    args = [
        "-f", "concat",
        "-i", str(manifest_path),
        "-c", "copy",
        str(output_path),
    ]
    ffutil.run_ffmpeg(f"concat_{ctx}", args)


def normalize_video_track(
    ctx_name: str,
    analysis: TrackAnalysis,
    input_path: Path,
    output_path: Path,
    config: VideoRenderConfig,
    tmp_dir: Path,
    temp_prefix: str = "rawtracks_",
    on_progress: Callable[[float], None] | None = None,
) -> list[Segment]:
    """Rebuild ``input_path`` as a continuous track spanning ``[0, end_time]``.

    Returns the planned segments. Temp artifacts are removed on every exit path.
    """
    validate_video_analysis(analysis)

    size = analysis.video_size
    frame_rate = analysis.frame_rate
    segments = plan_segments(analysis.gaps, analysis.end_time)
    logger.info("video segments to be written for %s: %s", ctx_name, segments)

    def _progress(frac: float) -> None:
        if on_progress:
            on_progress(frac)

    ctx = make_context_id(ctx_name)
    # one step for the full conversion, one per segment, one for concat
    total_steps = len(segments) + 2

    with RunArtifacts(tmp_dir, temp_prefix, ctx) as run:
        full_clip = run.path("full.m4v")
        normalize_source(ctx, input_path, full_clip, size, frame_rate, config)
        _progress(1 / total_steps)

        segment_files: list[Path] = []
        for i, segment in enumerate(segments):
            dst = run.path(f"seg{i}.m4v")
            segment_files.append(dst)
            if segment.kind == GAP:
                render_gap(ctx, i, segment, dst, size, frame_rate, config)
            else:
                extract_segment(ctx, i, segment, full_clip, dst, analysis.start_time)
            _progress((i + 2) / total_steps)

        concat_list = run.path("concat.txt")
        write_concat_manifest(concat_list, segment_files)
        concat_segments(ctx, concat_list, output_path)
        _progress(1.0)

    return segments
