"""Thin CLI entry point — builds a Manifest and calls the engine."""

import argparse
import logging
import sys
from pathlib import Path

from trackforge.analysis import load_analysis
from trackforge.engine import process
from trackforge.manifest import (
    SUPPORTED_AUDIO_CODECS,
    Manifest,
    TrackInput,
    check_audio_codec,
    load_manifest,
)


def sidecar_analysis_path(input_path: Path) -> Path:
    return input_path.with_name(input_path.stem + ".analysis.json")


def build_manifest(args: argparse.Namespace) -> Manifest:
    inputs: list[Path] = args.input
    analyses: list[Path] = args.analysis or []
    if analyses and len(analyses) != len(inputs):
        raise ValueError("pass one --analysis per --input, or none to use sidecar files")

    tracks: list[TrackInput] = []
    for i, input_path in enumerate(inputs):
        if not input_path.exists():
            raise FileNotFoundError(f"input path doesn't exist: {input_path}")
        analysis_path = analyses[i] if analyses else sidecar_analysis_path(input_path)
        tracks.append(TrackInput(path=input_path, analysis=load_analysis(analysis_path)))

    return Manifest(
        inputs=tracks,
        output_dir=args.output_dir or inputs[0].parent,
        audio_codec=check_audio_codec(args.audio_codec),
    )


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="trackforge",
        description="trackforge — rebuild gapped raw recordings into time-aligned tracks.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log every ffmpeg invocation")
    sub = parser.add_subparsers(dest="command")

    norm = sub.add_parser("normalize", help="Normalize one or more raw tracks")
    norm.add_argument(
        "--input", "-i", type=Path, action="append", default=[],
        help="Raw track (repeat to combine a video and an audio track)",
    )
    norm.add_argument(
        "--analysis", "-a", type=Path, action="append",
        help="Analysis JSON for each input, in order (default: <input>.analysis.json)",
    )
    norm.add_argument("--manifest", "-m", type=Path, help="Path to a JSON manifest file")
    norm.add_argument("--output-dir", "-o", type=Path, help="Output directory")
    norm.add_argument(
        "--audio-codec", type=str.lower, default="aac",
        help=f"Audio output codec ({' or '.join(SUPPORTED_AUDIO_CODECS)})",
    )

    serve = sub.add_parser("serve", help="Launch the web UI")
    serve.add_argument("--port", type=int, default=8321, help="Port to listen on")
    serve.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "serve":
        from trackforge.web import create_app
        app = create_app()
        print(f"trackforge web UI: http://{args.host}:{args.port}")
        app.run(host=args.host, port=args.port, debug=False)
        return

    try:
        if args.manifest:
            m = load_manifest(args.manifest)
        elif args.input:
            m = build_manifest(args)
        else:
            print("Error: provide at least one --input or a --manifest.", file=sys.stderr)
            sys.exit(1)
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    def on_progress(stage: str, frac: float) -> None:
        print(f"  [{frac:3.0%}] {stage}")

    try:
        result = process(m, on_progress=on_progress)
    except (ValueError, OSError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print()
    for track in result.tracks:
        if track.output_path.exists():
            print(f"Done! {track.kind}: {track.output_path} ({track.duration_final:.3f}s)")
    if result.combined_path:
        print(f"Combined video and audio: {result.combined_path} ({result.duration_combined:.3f}s)")
