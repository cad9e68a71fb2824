"""Unit tests for ffutil — command execution and ffprobe parsing."""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from trackforge.ffutil import (
    FFmpegCommandError,
    FFmpegNotFoundError,
    check_ffmpeg,
    format_seconds,
    list_encoders,
    probe,
    run_ffmpeg,
)


# ---------------------------------------------------------------------------
# format_seconds (pure formatting)
# ---------------------------------------------------------------------------

class TestFormatSeconds:
    def test_whole_seconds(self):
        assert format_seconds(2.0) == "2"

    def test_milliseconds(self):
        assert format_seconds(1.8) == "1.8"
        assert format_seconds(0.5) == "0.5"

    def test_float_noise_is_trimmed(self):
        assert format_seconds(2.0 - 0.2) == "1.8"

    def test_zero(self):
        assert format_seconds(0.0) == "0"
        assert format_seconds(-0.0) == "0"


# ---------------------------------------------------------------------------
# run_ffmpeg (mocked subprocess)
# ---------------------------------------------------------------------------

class TestRunFfmpeg:
    @patch("trackforge.ffutil.subprocess.run")
    def test_builds_command(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stderr="")
        run_ffmpeg("convert_cam", ["-i", "in.webm", "out.m4v"])

        cmd = mock_run.call_args[0][0]
        assert cmd[0] == "ffmpeg"
        assert "-y" in cmd
        assert cmd[-3:] == ["-i", "in.webm", "out.m4v"]

    @patch("trackforge.ffutil.subprocess.run")
    def test_failure_carries_label(self, mock_run):
        mock_run.return_value = MagicMock(
            returncode=1, stderr="frame=0\nout.m4v: Invalid argument\n"
        )
        with pytest.raises(FFmpegCommandError) as exc:
            run_ffmpeg("extractseg_3_cam", ["-i", "x", "y"])
        assert exc.value.label == "extractseg_3_cam"
        assert exc.value.returncode == 1
        assert "extractseg_3_cam" in str(exc.value)
        assert "Invalid argument" in str(exc.value)

    @patch("trackforge.ffutil.subprocess.run")
    def test_failure_without_output(self, mock_run):
        mock_run.return_value = MagicMock(returncode=234, stderr="")
        with pytest.raises(FFmpegCommandError, match="no output"):
            run_ffmpeg("concat_cam", ["x"])


class TestCheckFfmpeg:
    @patch("trackforge.ffutil.shutil.which", return_value=None)
    def test_missing(self, mock_which):
        with pytest.raises(FFmpegNotFoundError, match="ffmpeg not found"):
            check_ffmpeg()

    @patch("trackforge.ffutil.shutil.which", return_value="/usr/bin/ffmpeg")
    def test_present(self, mock_which):
        check_ffmpeg()


class TestListEncoders:
    @patch("trackforge.ffutil.subprocess.run")
    def test_returns_stdout(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout=" A..... aac  AAC\n")
        assert "aac" in list_encoders()
        assert mock_run.call_args[0][0] == ["ffmpeg", "-hide_banner", "-encoders"]


# ---------------------------------------------------------------------------
# probe (mocked subprocess)
# ---------------------------------------------------------------------------

PROBE_JSON = {
    "format": {"duration": "5.000000"},
    "streams": [
        {
            "codec_type": "video",
            "codec_name": "h264",
            "width": 1280,
            "height": 720,
            "r_frame_rate": "30/1",
        },
        {
            "codec_type": "audio",
            "codec_name": "aac",
            "sample_rate": "48000",
            "channels": 2,
        },
    ],
}


class TestProbe:
    @patch("trackforge.ffutil.subprocess.run")
    def test_basic(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stdout=json.dumps(PROBE_JSON))
        result = probe(Path("combined.mp4"))
        assert result.duration == 5.0
        assert result.width == 1280
        assert result.fps == 30.0
        assert result.codec_video == "h264"
        assert result.audio_sample_rate == 48000
        assert result.audio_channels == 2

    @patch("trackforge.ffutil.subprocess.run")
    def test_audio_only(self, mock_run):
        data = {
            "format": {"duration": "3.234"},
            "streams": [
                {"codec_type": "audio", "codec_name": "pcm_s16le", "sample_rate": "48000", "channels": 1},
            ],
        }
        mock_run.return_value = MagicMock(returncode=0, stdout=json.dumps(data))
        result = probe(Path("mic_normalized.wav"))
        assert result.width is None
        assert result.codec_video is None
        assert result.codec_audio == "pcm_s16le"
        assert result.audio_channels == 1

    @patch("trackforge.ffutil.subprocess.run")
    def test_no_streams(self, mock_run):
        data = {"format": {"duration": "1.0"}, "streams": []}
        mock_run.return_value = MagicMock(returncode=0, stdout=json.dumps(data))
        with pytest.raises(ValueError, match="No audio or video stream"):
            probe(Path("empty.mp4"))
