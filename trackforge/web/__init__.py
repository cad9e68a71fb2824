"""Flask application factory for the trackforge web UI."""

import tempfile
import threading
from pathlib import Path

from flask import Flask, jsonify


def create_app(work_dir: Path | None = None, max_concurrent_jobs: int = 10) -> Flask:
    app = Flask(__name__)
    app.config["WORK_DIR"] = work_dir or Path(tempfile.mkdtemp(prefix="trackforge_"))
    app.config["MAX_CONTENT_LENGTH"] = 10 * 1024 * 1024 * 1024  # 10 GB
    app.config["MAX_CONCURRENT_JOBS"] = max_concurrent_jobs
    app.config["JOB_SLOTS"] = threading.BoundedSemaphore(max_concurrent_jobs)
    app.config["PROGRESS_TIMEOUT"] = 120

    from trackforge.web.routes import bp
    app.register_blueprint(bp)

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": error.description}), 404

    @app.errorhandler(413)
    def request_entity_too_large(error):
        return jsonify({"error": "File too large"}), 413

    return app
