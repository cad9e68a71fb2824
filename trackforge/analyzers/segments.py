"""Splits a gapped timeline into source and gap segments."""

from trackforge.models import GAP, SOURCE, Segment, TimeRange


def plan_segments(gaps: list[TimeRange], end_time: float) -> list[Segment]:
    """Partition ``[0, end_time]`` into ordered, contiguous segments.

    Every gap becomes a "gap" segment; the stretches between gaps become
    "source" segments. Gaps are expected sorted and non-overlapping
    (see ``analysis.validate_gaps``); this function does not check.
    """
    segments: list[Segment] = []
    cursor = 0.0

    for gap in gaps:
        if gap.start > cursor:
            segments.append(Segment(start=cursor, end=gap.start, kind=SOURCE))
        segments.append(Segment(start=gap.start, end=gap.end, kind=GAP))
        cursor = gap.end

    # Trailing source region
    if cursor < end_time:
        segments.append(Segment(start=cursor, end=end_time, kind=SOURCE))

    return segments


def total_rounded_duration(segments: list[Segment]) -> float:
    return sum(s.rounded_duration for s in segments)
