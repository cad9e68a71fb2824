"""Track analysis records: parsing and precondition checks."""

import json
import math
from pathlib import Path
from typing import Any

from trackforge.models import TimeRange, TrackAnalysis, VideoSize


class AnalysisError(ValueError):
    """Raised when a track analysis violates a precondition.

    ``field`` names the offending analysis key.
    """

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field


def _get(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _number(field: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise AnalysisError(field, f"expected a number, got {value!r}")
    return float(value)


def _dimension(field: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise AnalysisError(field, f"expected an integer, got {value!r}")
    if not math.isfinite(value) or value != int(value):
        raise AnalysisError(field, f"expected a whole number of pixels, got {value!r}")
    return int(value)


def parse_analysis(data: dict[str, Any]) -> TrackAnalysis:
    """Build a TrackAnalysis from the analysis step's JSON object.

    Accepts the analyzer's camelCase keys as well as snake_case.
    """
    if not isinstance(data, dict):
        raise AnalysisError("analysis", "expected a JSON object")

    is_video = _get(data, "isVideo", "is_video")
    if is_video is None:
        raise AnalysisError("isVideo", "missing")
    if not isinstance(is_video, bool):
        raise AnalysisError("isVideo", f"expected true or false, got {is_video!r}")
    start_time = _get(data, "startTime", "start_time")
    if start_time is None:
        raise AnalysisError("startTime", "missing")

    end_time = _get(data, "endTime", "end_time")
    frame_rate = _get(data, "frameRate", "frame_rate")

    video_size = None
    raw_size = _get(data, "videoSize", "video_size")
    if raw_size is not None:
        if not isinstance(raw_size, dict):
            raise AnalysisError("videoSize", f"expected {{w, h}}, got {raw_size!r}")
        video_size = VideoSize(
            w=_dimension("videoSize.w", raw_size.get("w", 0)),
            h=_dimension("videoSize.h", raw_size.get("h", 0)),
        )

    gaps = None
    raw_gaps = data.get("gaps")
    if raw_gaps is not None:
        if not isinstance(raw_gaps, list):
            raise AnalysisError("gaps", "expected a list")
        gaps = []
        for i, g in enumerate(raw_gaps):
            try:
                gaps.append(
                    TimeRange(
                        start=_number(f"gaps[{i}].start", g["start"]),
                        end=_number(f"gaps[{i}].end", g["end"]),
                    )
                )
            except (KeyError, TypeError) as e:
                raise AnalysisError(f"gaps[{i}]", "expected {start, end}") from e

    return TrackAnalysis(
        is_video=is_video,
        start_time=_number("startTime", start_time),
        end_time=_number("endTime", end_time) if end_time is not None else None,
        video_size=video_size,
        frame_rate=_number("frameRate", frame_rate) if frame_rate is not None else 30.0,
        gaps=gaps,
    )


def load_analysis(path: str | Path) -> TrackAnalysis:
    """Load an analysis record from a JSON file."""
    path = Path(path)
    return parse_analysis(json.loads(path.read_text()))


def validate_gaps(gaps: list[TimeRange], end_time: float) -> None:
    """Reject gap lists that are unsorted, overlapping, empty-width or out of range."""
    prev_end = 0.0
    for i, gap in enumerate(gaps):
        if not 0 <= gap.start < gap.end:
            raise AnalysisError("gaps", f"gap {i} [{gap.start}, {gap.end}) is empty or negative")
        if gap.end > end_time:
            raise AnalysisError("gaps", f"gap {i} ends at {gap.end}, past endTime {end_time}")
        if gap.start < prev_end:
            raise AnalysisError("gaps", f"gap {i} starts at {gap.start}, before previous gap end {prev_end}")
        prev_end = gap.end


def validate_video_analysis(analysis: TrackAnalysis) -> None:
    if not analysis.is_video:
        raise AnalysisError("isVideo", "video normalization expects a video track")
    if analysis.start_time is None:
        raise AnalysisError("startTime", "video normalization expects startTime")
    end_time = analysis.end_time
    if end_time is None or not math.isfinite(end_time) or end_time <= 0:
        raise AnalysisError("endTime", f"video normalization expects a positive endTime, got {end_time}")
    if analysis.gaps is None:
        raise AnalysisError("gaps", "video normalization expects gaps to be set")
    if analysis.video_size is None or not analysis.video_size.w or not analysis.video_size.h:
        raise AnalysisError("videoSize", "video normalization expects videoSize to be set")
    if not math.isfinite(analysis.frame_rate) or analysis.frame_rate <= 0:
        raise AnalysisError("frameRate", f"must be positive, got {analysis.frame_rate}")
    validate_gaps(analysis.gaps, analysis.end_time)


def validate_audio_analysis(analysis: TrackAnalysis) -> None:
    if analysis.is_video:
        raise AnalysisError("isVideo", "audio normalization expects an audio track")
    if analysis.start_time is None:
        raise AnalysisError("startTime", "audio normalization expects startTime")
    if not math.isfinite(analysis.start_time) or analysis.start_time < 0:
        raise AnalysisError("startTime", f"must be a non-negative number, got {analysis.start_time}")
