"""Run-scoped temporary artifacts.

Every intermediate file of one reconstruction run is named
``{prefix}{context_id}_{role}`` inside the shared temp directory, and all of
them are removed when the run's scope exits, whether it succeeded or not::

    with RunArtifacts(tmp_dir, "rawtracks_", make_context_id("cam1")) as run:
        full = run.path("full.m4v")
        ...
"""

import logging
import re
import uuid
from pathlib import Path

logger = logging.getLogger(__name__)


def make_context_id(name: str) -> str:
    """Return ``name`` reduced to filename-safe characters plus a run-unique suffix."""
    cleaned = re.sub(r"[^0-9A-Za-z._-]+", "_", name).strip("._") or "track"
    return f"{cleaned}_{uuid.uuid4().hex[:8]}"


class RunArtifacts:
    """Tracks the temp files of a single run and deletes them on exit."""

    def __init__(self, tmp_dir: Path, prefix: str, context_id: str):
        self.tmp_dir = Path(tmp_dir)
        self.prefix = prefix
        self.context_id = context_id
        self.paths: list[Path] = []

    def name(self, role: str) -> str:
        return f"{self.prefix}{self.context_id}_{role}"

    def path(self, role: str) -> Path:
        """Reserve the path for ``role`` and register it for cleanup."""
        p = self.tmp_dir / self.name(role)
        self.paths.append(p)
        return p

    def cleanup(self) -> None:
        for p in self.paths:
            try:
                p.unlink(missing_ok=True)
            except OSError as e:
                logger.warning("Could not remove temp file %s: %s", p, e)
        self.paths.clear()

    def __enter__(self) -> "RunArtifacts":
        self.tmp_dir.mkdir(parents=True, exist_ok=True)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()
