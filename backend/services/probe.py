"""Read-only container inspection with PyAV: duration and overall bitrate."""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import av

from models.job import JobStage
from models.media import VideoMetadata
from services.errors import ProbeError, ToolTimeoutError

logger = logging.getLogger(__name__)

PROBE_WORKERS = 4
PROBE_THREAD_PREFIX = "probe"

_probe_pool = ThreadPoolExecutor(max_workers=PROBE_WORKERS, thread_name_prefix=PROBE_THREAD_PREFIX)


def read_metadata(path: Path) -> VideoMetadata:
    """Open `path` without decoding frames. Raises ProbeError if it is not a video container."""
    try:
        with av.open(str(path)) as container:
            if not container.streams.video:
                raise ProbeError(detail=f"no video stream in {path}", stage=JobStage.PROBING)
            duration = container.duration / av.time_base if container.duration else 0.0
            bitrate = container.bit_rate / 1000 if container.bit_rate else 0.0
    except (av.error.FFmpegError, OSError, ValueError) as exc:
        raise ProbeError(detail=f"cannot open {path}: {exc}", stage=JobStage.PROBING) from exc
    return VideoMetadata(duration_seconds=float(duration), bitrate_kbps=float(bitrate))


async def probe_video(path: Path, *, timeout: float) -> VideoMetadata:
    """
    Run read_metadata on the probe pool under a deadline.

    A worker thread cannot be interrupted: on timeout the request fails immediately but the
    thread keeps its pool slot until PyAV returns. The pool is capped at PROBE_WORKERS, so
    hung probes queue behind each other instead of exhausting the loop's default executor.
    """
    loop = asyncio.get_running_loop()
    try:
        metadata = await asyncio.wait_for(
            loop.run_in_executor(_probe_pool, read_metadata, path),
            timeout=timeout,
        )
    except asyncio.TimeoutError as exc:
        raise ToolTimeoutError(detail=f"probe of {path} exceeded {timeout}s", stage=JobStage.PROBING) from exc
    logger.info(
        "[probe] %s: duration=%.2fs bitrate=%.0f kbps",
        path.name,
        metadata.duration_seconds,
        metadata.bitrate_kbps,
    )
    return metadata
