"""Unit tests for audio alignment (ffmpeg mocked)."""

from dataclasses import replace
from pathlib import Path
from unittest.mock import patch

import pytest

from trackforge.analysis import AnalysisError
from trackforge.editors.audio import (
    FilterChain,
    FilterOrderError,
    FilterStage,
    align_audio,
    alignment_chain,
    padding_ms,
)
from trackforge.encoders import FALLBACK_AAC, PREFERRED_AAC
from trackforge.manifest import AudioRenderConfig, UnsupportedCodecError


def _arg(args: list[str], flag: str) -> str:
    return args[args.index(flag) + 1]


class TestPaddingMs:
    def test_floors_to_milliseconds(self):
        assert padding_ms(1.234) == 1234
        assert padding_ms(0.0009) == 0
        assert padding_ms(2.5) == 2500


class TestFilterChain:
    def test_alignment_chain(self):
        assert str(alignment_chain(1.234)) == "aresample=async=1,adelay=1234:all=true"

    def test_resample_precedes_delay(self):
        names = [s.name for s in alignment_chain(0.5).stages]
        assert names == ["aresample", "adelay"]
        alignment_chain(0.5).validate()

    def test_reversed_order_rejected(self):
        forward = alignment_chain(1.234)
        reversed_chain = FilterChain(stages=tuple(reversed(forward.stages)))
        with pytest.raises(FilterOrderError):
            reversed_chain.validate()

    def test_delay_without_resample_rejected(self):
        chain = FilterChain(stages=(FilterStage("adelay", "100:all=true"),))
        with pytest.raises(FilterOrderError):
            chain.validate()


class TestAlignAudio:
    @patch("trackforge.editors.audio.ffutil.run_ffmpeg")
    def test_wav(self, mock_run, audio_analysis):
        align_audio(
            "mic", audio_analysis, Path("mic.webm"), Path("mic_normalized.wav"),
            "wav", AudioRenderConfig(),
        )
        label, args = mock_run.call_args[0]
        assert label == "audio_mic_wav"
        assert _arg(args, "-af") == "aresample=async=1,adelay=1234:all=true"
        assert _arg(args, "-ar") == "48000"
        assert _arg(args, "-ac") == "1"
        assert _arg(args, "-c:a") == "pcm_s16le"
        assert args[-1] == "mic_normalized.wav"

    @patch("trackforge.editors.audio.ffutil.run_ffmpeg")
    def test_aac_uses_resolved_encoder(self, mock_run, audio_analysis):
        align_audio(
            "mic", audio_analysis, Path("mic.webm"), Path("mic_normalized.aac"),
            "aac", AudioRenderConfig(), encoder=PREFERRED_AAC,
        )
        label, args = mock_run.call_args[0]
        assert label == "audio_mic"
        assert _arg(args, "-c:a") == "libfdk_aac"
        assert _arg(args, "-profile:a") == "aac_low"
        assert args.index("-af") < args.index("-c:a")

    @patch("trackforge.editors.audio.ffutil.run_ffmpeg")
    def test_aac_fallback_encoder(self, mock_run, audio_analysis):
        align_audio(
            "mic", audio_analysis, Path("mic.webm"), Path("mic_normalized.aac"),
            "aac", AudioRenderConfig(), encoder=FALLBACK_AAC,
        )
        _, args = mock_run.call_args[0]
        assert _arg(args, "-c:a") == "aac"
        assert "-profile:a" not in args

    @patch("trackforge.editors.audio.ffutil.run_ffmpeg")
    def test_zero_start_time(self, mock_run, audio_analysis):
        align_audio(
            "mic", replace(audio_analysis, start_time=0.0), Path("in"), Path("out.wav"),
            "wav", AudioRenderConfig(),
        )
        _, args = mock_run.call_args[0]
        assert _arg(args, "-af") == "aresample=async=1,adelay=0:all=true"

    @patch("trackforge.editors.audio.ffutil.run_ffmpeg")
    def test_reversed_chain_never_runs(self, mock_run, audio_analysis):
        forward = alignment_chain(audio_analysis.start_time)
        with pytest.raises(FilterOrderError):
            align_audio(
                "mic", audio_analysis, Path("in"), Path("out.wav"), "wav",
                AudioRenderConfig(), chain=FilterChain(tuple(reversed(forward.stages))),
            )
        mock_run.assert_not_called()

    @patch("trackforge.editors.audio.ffutil.run_ffmpeg")
    def test_unsupported_codec(self, mock_run, audio_analysis):
        with pytest.raises(UnsupportedCodecError):
            align_audio("mic", audio_analysis, Path("in"), Path("out.mp3"), "mp3", AudioRenderConfig())
        mock_run.assert_not_called()

    @patch("trackforge.editors.audio.ffutil.run_ffmpeg")
    def test_aac_requires_encoder(self, mock_run, audio_analysis):
        with pytest.raises(ValueError, match="EncoderConfig"):
            align_audio("mic", audio_analysis, Path("in"), Path("out.aac"), "aac", AudioRenderConfig())
        mock_run.assert_not_called()

    @patch("trackforge.editors.audio.ffutil.run_ffmpeg")
    def test_video_analysis_rejected(self, mock_run, video_analysis):
        with pytest.raises(AnalysisError, match="audio track"):
            align_audio("cam", video_analysis, Path("in"), Path("out.wav"), "wav", AudioRenderConfig())
        mock_run.assert_not_called()
