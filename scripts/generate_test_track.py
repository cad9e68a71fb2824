#!/usr/bin/env python3
"""Generate a synthetic raw track pair for trackforge pipeline testing.

Writes into the output directory:
  cam.webm                 4.5s of test pattern, first sample at 0.5s
  cam.analysis.json        endTime 6.0 with a dropped stretch at 2.0-3.0
  mic.webm                 3s of 440 Hz tone at 44.1 kHz
  mic.analysis.json        startTime 1.234

Normalize them with:
  trackforge normalize -i out/cam.webm -i out/mic.webm -o out/normalized
"""

import json
import subprocess
import sys
from pathlib import Path


def generate_test_tracks(output_dir: Path) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)

    video = output_dir / "cam.webm"
    subprocess.run(
        [
            "ffmpeg", "-y",
            "-f", "lavfi",
            "-i", "testsrc=s=640x360:r=30:d=4.5",
            "-c:v", "libvpx",
            "-b:v", "1M",
            str(video),
        ],
        check=True,
    )
    (output_dir / "cam.analysis.json").write_text(json.dumps({
        "isVideo": True,
        "startTime": 0.5,
        "endTime": 6.0,
        "videoSize": {"w": 1280, "h": 720},
        "frameRate": 30,
        "gaps": [{"start": 0.0, "end": 0.5}, {"start": 2.0, "end": 3.0}],
    }, indent=2))

    audio = output_dir / "mic.webm"
    subprocess.run(
        [
            "ffmpeg", "-y",
            "-f", "lavfi",
            "-i", "sine=f=440:d=3:sample_rate=44100",
            "-c:a", "libopus",
            str(audio),
        ],
        check=True,
    )
    (output_dir / "mic.analysis.json").write_text(json.dumps({
        "isVideo": False,
        "startTime": 1.234,
    }, indent=2))

    print(f"Generated: {video}, {audio}")


if __name__ == "__main__":
    out = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("tests/fixtures/synthetic")
    generate_test_tracks(out)
