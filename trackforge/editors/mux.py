"""Muxes a reconstructed video with its aligned audio track."""

from pathlib import Path

from trackforge import ffutil


def combine_tracks(ctx_name: str, video_path: Path, audio_path: Path, output_path: Path) -> Path:
    """Stream-copy one video and one audio stream into ``output_path``.

    The two elementary inputs are deleted once the mux succeeds.
    """
    args = [
        "-i", str(video_path),
        "-i", str(audio_path),
        "-c", "copy",
        "-map", "0:0",
        "-map", "1:0",
        str(output_path),
    ]
    ffutil.run_ffmpeg(f"combine_{ctx_name}", args)

    video_path.unlink()
    audio_path.unlink()
    return output_path
