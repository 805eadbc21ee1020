"""Runtime settings read from the environment (.env is loaded by server.py)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_PORT = 3000
DEFAULT_HOST = "0.0.0.0"
DEFAULT_UPLOAD_DIR = "uploads"
DEFAULT_FFMPEG_BINARY = "ffmpeg"
DEFAULT_TOOL_TIMEOUT_SECONDS = 600.0
DEFAULT_MAX_CONCURRENT_JOBS = 2
DEFAULT_ADMISSION_WAIT_SECONDS = 0.0
DEFAULT_LOG_LEVEL = "INFO"


def _env_str(name: str, default: str) -> str:
    return os.environ.get(name, "").strip() or default


def _env_int(name: str, default: int, *, minimum: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("[config] %s=%r is not an integer; using %d", name, raw, default)
        return default
    return max(minimum, value)


def _env_float(name: str, default: float, *, minimum: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("[config] %s=%r is not a number; using %s", name, raw, default)
        return default
    return max(minimum, value)


@dataclass(frozen=True)
class Settings:
    port: int = DEFAULT_PORT
    host: str = DEFAULT_HOST
    upload_dir: Path = Path(DEFAULT_UPLOAD_DIR)
    ffmpeg_binary: str = DEFAULT_FFMPEG_BINARY
    tool_timeout_seconds: float = DEFAULT_TOOL_TIMEOUT_SECONDS
    max_concurrent_jobs: int = DEFAULT_MAX_CONCURRENT_JOBS
    admission_wait_seconds: float = DEFAULT_ADMISSION_WAIT_SECONDS
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls) -> Settings:
        """
        Build settings from PORT, HOST, UPLOAD_DIR, FFMPEG_BINARY, TOOL_TIMEOUT_SECONDS,
        MAX_CONCURRENT_JOBS, ADMISSION_WAIT_SECONDS and LOG_LEVEL.

        Unparseable numbers fall back to their defaults; out-of-range numbers are clamped.
        """
        return cls(
            port=_env_int("PORT", DEFAULT_PORT, minimum=1),
            host=_env_str("HOST", DEFAULT_HOST),
            upload_dir=Path(_env_str("UPLOAD_DIR", DEFAULT_UPLOAD_DIR)),
            ffmpeg_binary=_env_str("FFMPEG_BINARY", DEFAULT_FFMPEG_BINARY),
            tool_timeout_seconds=_env_float(
                "TOOL_TIMEOUT_SECONDS", DEFAULT_TOOL_TIMEOUT_SECONDS, minimum=0.001
            ),
            max_concurrent_jobs=_env_int("MAX_CONCURRENT_JOBS", DEFAULT_MAX_CONCURRENT_JOBS, minimum=1),
            admission_wait_seconds=_env_float(
                "ADMISSION_WAIT_SECONDS", DEFAULT_ADMISSION_WAIT_SECONDS, minimum=0.0
            ),
            log_level=_env_str("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        )


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings; overridable as a FastAPI dependency in tests."""
    return Settings.from_env()
