"""Shared data types used across trackforge."""

from dataclasses import dataclass, field

SOURCE = "source"
GAP = "gap"


@dataclass
class TimeRange:
    """A start/end time pair in seconds."""

    start: float
    end: float


@dataclass
class VideoSize:
    w: int
    h: int


@dataclass
class TrackAnalysis:
    """Timing, geometry and gap metadata for one raw track.

    Produced by the analysis step and consumed read-only. ``start_time`` is the
    offset of the first recorded sample within the logical timeline;
    ``end_time`` is the logical end of that timeline (video only).
    """

    is_video: bool
    start_time: float
    end_time: float | None = None
    video_size: VideoSize | None = None
    frame_rate: float = 30.0
    gaps: list[TimeRange] | None = field(default=None)


@dataclass
class Segment:
    """A contiguous slice of the logical timeline, backed by source or gap filler."""

    start: float
    end: float
    kind: str

    @property
    def duration(self) -> float:
        return self.end - self.start

    @property
    def rounded_duration(self) -> float:
        """Duration rounded to whole milliseconds, as rendered."""
        return round((self.end - self.start) * 1000) / 1000


@dataclass
class ProbeResult:
    """Metadata extracted from a media file via ffprobe."""

    duration: float
    width: int | None = None
    height: int | None = None
    fps: float | None = None
    codec_video: str | None = None
    audio_sample_rate: int | None = None
    audio_channels: int | None = None
    codec_audio: str | None = None
