"""Per-request scratch directories under the upload root."""

from __future__ import annotations

import logging
import shutil
import tempfile
import time
from pathlib import Path

logger = logging.getLogger(__name__)

JOB_DIR_PREFIX = "job_"


class ScratchSpace:
    """
    One isolated directory per upload holding the input, the compressed video and the
    thumbnail. File names carry the creation timestamp (milliseconds).

    cleanup() is idempotent and never raises, so it can be called from every exit path.
    """

    def __init__(self, directory: Path, *, timestamp: int, input_suffix: str = "") -> None:
        self.directory = directory
        self.timestamp = timestamp
        self.input_path = directory / f"upload{input_suffix}"
        self.output_path = directory / f"compressed_{timestamp}.mp4"
        self.thumbnail_path = directory / f"thumbnail_{timestamp}.jpg"
        self._cleaned = False

    @classmethod
    def create(cls, root: Path, *, input_suffix: str = "") -> ScratchSpace:
        root.mkdir(parents=True, exist_ok=True)
        timestamp = time.time_ns() // 1_000_000
        directory = Path(tempfile.mkdtemp(prefix=f"{JOB_DIR_PREFIX}{timestamp}_", dir=root))
        logger.debug("[scratch] Created %s", directory)
        return cls(directory, timestamp=timestamp, input_suffix=input_suffix)

    @property
    def files(self) -> list[Path]:
        return [self.input_path, self.output_path, self.thumbnail_path]

    @property
    def cleaned(self) -> bool:
        return self._cleaned

    def cleanup(self) -> None:
        if self._cleaned:
            return
        self._cleaned = True
        for path in self.files:
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                logger.warning("[scratch] Could not delete %s: %s", path, exc)
        shutil.rmtree(self.directory, ignore_errors=True)
        logger.info("[scratch] Cleaned up %s", self.directory.name)


def purge_stale(root: Path, *, max_age_seconds: float) -> int:
    """
    Remove job directories untouched for longer than `max_age_seconds`.

    Younger directories may belong to a live job of another process sharing the root and
    are left alone. Returns how many were removed.
    """
    if not root.is_dir():
        return 0
    cutoff = time.time() - max_age_seconds
    removed = 0
    for entry in root.iterdir():
        if not entry.is_dir() or not entry.name.startswith(JOB_DIR_PREFIX):
            continue
        try:
            modified = entry.stat().st_mtime
        except FileNotFoundError:
            continue
        if modified > cutoff:
            continue
        shutil.rmtree(entry, ignore_errors=True)
        removed += 1
    if removed:
        logger.info("[scratch] Purged %d stale job director%s from %s", removed, "y" if removed == 1 else "ies", root)
    return removed
