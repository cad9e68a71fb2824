"""Web UI routes for trackforge."""

import json
import logging
import queue
import threading
import uuid
from pathlib import Path

from flask import (
    Blueprint,
    Response,
    abort,
    current_app,
    jsonify,
    request,
    send_file,
)

from trackforge.analysis import AnalysisError, parse_analysis
from trackforge.engine import process
from trackforge.ffutil import FFmpegCommandError
from trackforge.manifest import Manifest, TrackInput, UnsupportedCodecError, check_audio_codec

logger = logging.getLogger(__name__)

bp = Blueprint("web", __name__)

# In-memory job store: job_id -> job dict
_jobs: dict[str, dict] = {}


def _job(job_id: str) -> dict:
    job = _jobs.get(job_id)
    if job is None:
        abort(404, description="Job not found")
    return job


@bp.route("/")
def index():
    return jsonify({
        "service": "trackforge",
        "endpoints": [
            "POST /api/upload",
            "POST /api/jobs/<job_id>/process",
            "GET /api/jobs/<job_id>/progress",
            "GET /api/jobs/<job_id>/status",
            "GET /api/jobs/<job_id>/result",
        ],
    })


@bp.route("/api/upload", methods=["POST"])
def upload():
    """Accept one or more raw tracks, each paired with its analysis JSON.

    Form fields ``file`` and ``analysis`` are repeated in the same order.
    """
    files = request.files.getlist("file")
    if not files:
        return jsonify({"error": "No file provided"}), 400
    if any(not f.filename for f in files):
        return jsonify({"error": "Empty filename"}), 400

    raw_analyses = request.form.getlist("analysis")
    if len(raw_analyses) != len(files):
        return jsonify({"error": "Provide one analysis per file"}), 400

    try:
        analyses = [parse_analysis(json.loads(a)) for a in raw_analyses]
    except json.JSONDecodeError as e:
        return jsonify({"error": f"Invalid analysis JSON: {e}"}), 400
    except AnalysisError as e:
        return jsonify({"error": str(e), "field": e.field}), 400

    job_id = uuid.uuid4().hex[:12]
    job_dir = Path(current_app.config["WORK_DIR"]) / job_id
    job_dir.mkdir(parents=True, exist_ok=True)

    tracks: list[TrackInput] = []
    for i, (f, analysis) in enumerate(zip(files, analyses)):
        name = Path(f.filename)
        input_path = job_dir / f"track{i}_{name.stem}{name.suffix or '.webm'}"
        f.save(input_path)
        tracks.append(TrackInput(path=input_path, analysis=analysis))

    _jobs[job_id] = {
        "dir": job_dir,
        "tracks": tracks,
        "filenames": [f.filename for f in files],
        "status": "uploaded",
    }

    return jsonify({"job_id": job_id, "filenames": _jobs[job_id]["filenames"]})


@bp.route("/api/jobs/<job_id>/process", methods=["POST"])
def start_process(job_id: str):
    job = _job(job_id)
    if job["status"] not in ("uploaded", "done", "error"):
        return jsonify({"error": f"Job is already {job['status']}"}), 409

    config = request.get_json(silent=True)
    if config is None:
        config = {}
    if not isinstance(config, dict):
        return jsonify({"error": "Request body must be a JSON object", "field": "body"}), 400
    try:
        audio_codec = check_audio_codec(config.get("audio_codec", "aac"))
    except UnsupportedCodecError as e:
        return jsonify({"error": str(e), "field": "audio_codec"}), 400

    manifest = Manifest(
        inputs=job["tracks"],
        output_dir=job["dir"] / "output",
        audio_codec=audio_codec,
    )

    progress_queue: queue.Queue = queue.Queue()
    job["progress_queue"] = progress_queue
    job["status"] = "queued"
    job["error"] = None
    slots: threading.BoundedSemaphore = current_app.config["JOB_SLOTS"]

    def run():
        try:
            with slots:
                job["status"] = "processing"

                def on_progress(stage: str, frac: float):
                    progress_queue.put({"stage": stage, "progress": round(frac, 3)})

                result = process(manifest, on_progress=on_progress)

            if result.combined_path is not None:
                output_path = result.combined_path
            else:
                output_path = result.tracks[-1].output_path
            job["result"] = {
                "output_path": str(output_path),
                "outputs": [
                    {
                        "kind": t.kind,
                        "output_path": str(t.output_path),
                        "segments": len(t.segments),
                        "duration": t.duration_final,
                    }
                    for t in result.tracks
                ],
                "combined_path": str(result.combined_path) if result.combined_path else None,
            }
            job["status"] = "done"
        except FFmpegCommandError as e:
            job["status"] = "error"
            job["error"] = f"ffmpeg failed at {e.label}: {e.stderr[-500:]}" if e.stderr else str(e)
        except Exception as e:
            logger.exception("job %s failed", job_id)
            job["status"] = "error"
            job["error"] = str(e)
        finally:
            progress_queue.put(None)  # sentinel

    threading.Thread(target=run, daemon=True).start()
    return jsonify({"status": "started"})


def _sse(event: str, payload: dict) -> str:
    return f"event: {event}\ndata: {json.dumps(payload)}\n\n"


@bp.route("/api/jobs/<job_id>/progress")
def progress_stream(job_id: str):
    """Stream ``progress`` events, then one ``complete`` or ``error`` event."""
    job = _job(job_id)
    q = job.get("progress_queue")
    if q is None:
        return jsonify({"error": "Job has not been started"}), 409
    timeout = current_app.config["PROGRESS_TIMEOUT"]

    def generate():
        while True:
            try:
                update = q.get(timeout=timeout)
            except queue.Empty:
                yield _sse("error", {"error": f"no progress for {timeout}s", "status": job["status"]})
                return
            if update is not None:
                yield _sse("progress", update)
                continue
            if job["status"] == "error":
                yield _sse("error", {"error": job["error"]})
            else:
                yield _sse("complete", job["result"])
            return

    return Response(generate(), mimetype="text/event-stream")


@bp.route("/api/jobs/<job_id>/result")
def download_result(job_id: str):
    """Send the combined file, or the output of ``?track=<n>`` when given."""
    job = _job(job_id)
    if job["status"] != "done":
        return jsonify({"error": f"Job is {job['status']}, not done"}), 409

    result = job["result"]
    track = request.args.get("track", type=int)
    if track is None:
        output_path = Path(result["output_path"])
    elif 0 <= track < len(result["outputs"]):
        output_path = Path(result["outputs"][track]["output_path"])
    else:
        return jsonify({"error": f"Job has no track {track}", "field": "track"}), 404

    # elementary tracks are deleted once muxed into the combined file
    if not output_path.exists():
        return jsonify({"error": f"{output_path.name} is no longer available"}), 410
    return send_file(output_path, download_name=output_path.name)


@bp.route("/api/jobs/<job_id>/status")
def job_status(job_id: str):
    job = _job(job_id)
    tracks = [
        {"filename": name, "kind": "video" if t.analysis.is_video else "audio"}
        for name, t in zip(job["filenames"], job["tracks"])
    ]
    resp = {"status": job["status"], "tracks": tracks}
    if job["status"] == "done":
        resp["result"] = job["result"]
    elif job["status"] == "error":
        resp["error"] = job["error"]
    return jsonify(resp)
