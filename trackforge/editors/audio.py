"""Pads an audio track's head with silence up to its recording offset."""

import logging
import math
from dataclasses import dataclass
from pathlib import Path

from trackforge import ffutil
from trackforge.analysis import validate_audio_analysis
from trackforge.encoders import EncoderConfig
from trackforge.manifest import AudioRenderConfig, check_audio_codec
from trackforge.models import TrackAnalysis

logger = logging.getLogger(__name__)

RESAMPLE = "aresample"
DELAY = "adelay"


class FilterOrderError(ValueError):
    pass


@dataclass(frozen=True)
class FilterStage:
    name: str
    options: str

    def __str__(self) -> str:
        return f"{self.name}={self.options}"


@dataclass(frozen=True)
class FilterChain:
    """An ordered ffmpeg audio filter chain."""

    stages: tuple[FilterStage, ...]

    def validate(self) -> None:
        """Reject chains where the delay runs before the resampler.

        adelay ahead of aresample pads the wrong length for some source sample
        rates, so the resampler must come first.
        """
        names = [s.name for s in self.stages]
        if DELAY in names:
            if RESAMPLE not in names or names.index(DELAY) < names.index(RESAMPLE):
                raise FilterOrderError(f"{DELAY} must follow {RESAMPLE}, got {','.join(names)}")

    def __str__(self) -> str:
        return ",".join(str(s) for s in self.stages)


def padding_ms(start_time: float) -> int:
    """Leading silence, in whole milliseconds, for a track starting at ``start_time``."""
    return math.floor(start_time * 1000)


def alignment_chain(start_time: float) -> FilterChain:
    return FilterChain(
        stages=(
            FilterStage(RESAMPLE, "async=1"),
            FilterStage(DELAY, f"{padding_ms(start_time)}:all=true"),
        )
    )


def align_audio(
    ctx_name: str,
    analysis: TrackAnalysis,
    input_path: Path,
    output_path: Path,
    codec: str,
    config: AudioRenderConfig,
    encoder: EncoderConfig | None = None,
    chain: FilterChain | None = None,
) -> None:
    """Encode ``input_path`` with its head padded to ``analysis.start_time``.

    ``codec`` is "wav" (PCM, mono 16-bit) or "aac" (needs ``encoder``).
    """
    validate_audio_analysis(analysis)
    codec = check_audio_codec(codec)
    if codec == "aac" and encoder is None:
        raise ValueError("aac output requires a resolved EncoderConfig")

    chain = chain or alignment_chain(analysis.start_time)
    chain.validate()

    args = ["-i", str(input_path), "-af", str(chain)]
    if codec == "wav":
        args += [
            "-ar", str(config.sample_rate),
            "-ac", str(config.wav_channels),
            "-c:a", "pcm_s16le",
        ]
        label = f"audio_{ctx_name}_wav"
    else:
        args += encoder.args()
        label = f"audio_{ctx_name}"
    args.append(str(output_path))

    logger.info("aligning %s with %d ms of leading silence", ctx_name, padding_ms(analysis.start_time))
    ffutil.run_ffmpeg(label, args)
