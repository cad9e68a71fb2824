"""AAC encoder selection, probed once per process."""

import logging
import subprocess
from dataclasses import dataclass
from functools import lru_cache

from trackforge import ffutil

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EncoderConfig:
    codec: str
    bitrate: str
    sample_rate: int
    profile: str | None = None
    vbr: str | None = None

    def args(self) -> list[str]:
        args = ["-c:a", self.codec, "-b:a", self.bitrate]
        if self.profile is not None:
            args += ["-profile:a", self.profile]
        if self.vbr is not None:
            args += ["-vbr", self.vbr]
        args += ["-ar", str(self.sample_rate)]
        return args


PREFERRED_AAC = EncoderConfig(
    codec="libfdk_aac", bitrate="256k", sample_rate=48000, profile="aac_low", vbr="0"
)
FALLBACK_AAC = EncoderConfig(codec="aac", bitrate="256k", sample_rate=48000)


def select_encoder(encoders: str) -> EncoderConfig:
    """Pick the AAC configuration for an ``ffmpeg -encoders`` listing."""
    if "libfdk_aac" in encoders:
        return PREFERRED_AAC
    logger.warning(
        "libfdk_aac not available in ffmpeg build; falling back to builtin aac encoder."
    )
    return FALLBACK_AAC


@lru_cache(maxsize=1)
def resolve_encoder_config() -> EncoderConfig:
    """Probe ffmpeg's encoders and return the AAC configuration to use.

    The result is cached for the life of the process. A failed probe counts
    as "libfdk_aac unsupported"; this never raises.
    """
    try:
        encoders = ffutil.list_encoders()
    except (OSError, subprocess.CalledProcessError) as e:
        logger.warning("Unable to query ffmpeg encoders: %s", e)
        encoders = ""
    return select_encoder(encoders)
