"""Shared test fixtures."""

from pathlib import Path

import pytest

from trackforge.models import TimeRange, TrackAnalysis, VideoSize

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_manifest_path() -> Path:
    return FIXTURES_DIR / "sample_manifest.json"


@pytest.fixture
def video_analysis_path() -> Path:
    return FIXTURES_DIR / "video_analysis.json"


@pytest.fixture
def video_analysis() -> TrackAnalysis:
    return TrackAnalysis(
        is_video=True,
        start_time=0.2,
        end_time=5.0,
        video_size=VideoSize(w=1280, h=720),
        frame_rate=30.0,
        gaps=[TimeRange(start=2.0, end=2.5)],
    )


@pytest.fixture
def audio_analysis() -> TrackAnalysis:
    return TrackAnalysis(is_video=False, start_time=1.234)


class FakeFFmpeg:
    """Stands in for ffutil.run_ffmpeg: records calls and touches the output file.

    Set ``fail_on`` to a label prefix to make that stage raise.
    """

    def __init__(self, fail_on: str | None = None):
        self.calls: list[tuple[str, list[str]]] = []
        self.fail_on = fail_on

    def __call__(self, label: str, args: list[str]) -> None:
        from trackforge.ffutil import FFmpegCommandError

        self.calls.append((label, list(args)))
        if self.fail_on and label.startswith(self.fail_on):
            raise FFmpegCommandError(label, 1, "boom")
        Path(args[-1]).write_bytes(b"media")

    @property
    def labels(self) -> list[str]:
        return [label for label, _ in self.calls]


@pytest.fixture
def fake_ffmpeg() -> FakeFFmpeg:
    return FakeFFmpeg()
