"""ffmpeg invocations for the compressed video and the thumbnail frame."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from pathlib import Path

from models.job import JobStage
from services.errors import EncodeError, PipelineError, ThumbnailError, ToolTimeoutError

logger = logging.getLogger(__name__)

VIDEO_CODEC = "libx264"
AUDIO_CODEC = "aac"
AUDIO_BITRATE = "128k"
PRESET = "fast"
KEYFRAME_INTERVAL = 50
OUTPUT_FORMAT = "mp4"
STDERR_TAIL_LINES = 20
KILL_GRACE_SECONDS = 5.0

_running: set[asyncio.subprocess.Process] = set()


def transcode_command(src: Path, dst: Path, bitrate_kbps: int, *, binary: str = "ffmpeg") -> list[str]:
    """
    H.264/AAC MP4 at `bitrate_kbps`. The video bitrate is set once, with -b:v.
    """
    return [
        binary,
        "-hide_banner",
        "-nostdin",
        "-y",
        "-i", str(src),
        "-c:v", VIDEO_CODEC,
        "-c:a", AUDIO_CODEC,
        "-b:v", f"{bitrate_kbps}k",
        "-b:a", AUDIO_BITRATE,
        "-preset", PRESET,
        "-g", str(KEYFRAME_INTERVAL),
        "-f", OUTPUT_FORMAT,
        str(dst),
    ]


def thumbnail_command(src: Path, dst: Path, *, binary: str = "ffmpeg") -> list[str]:
    """Exactly one frame at t=0 of the original upload."""
    return [
        binary,
        "-hide_banner",
        "-nostdin",
        "-y",
        "-ss", "0",
        "-i", str(src),
        "-frames:v", "1",
        str(dst),
    ]


def _stderr_tail(stderr: bytes) -> str:
    lines = stderr.decode(errors="replace").strip().splitlines()
    return "\n".join(lines[-STDERR_TAIL_LINES:])


async def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is not None:
        return
    with suppress(ProcessLookupError):
        process.kill()
    with suppress(asyncio.TimeoutError):
        await asyncio.wait_for(process.wait(), timeout=KILL_GRACE_SECONDS)


async def run_tool(
    argv: list[str],
    *,
    timeout: float,
    error_cls: type[PipelineError],
    stage: JobStage,
    description: str,
) -> None:
    """
    Run one external tool to completion.

    Raises `error_cls` on a non-zero exit or a missing executable, and ToolTimeoutError
    (after killing the process) when `timeout` seconds pass.
    """
    logger.info("[ffmpeg] Starting: %s", description)
    logger.debug("[ffmpeg] argv=%s", argv)
    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise error_cls(detail=f"{description}: cannot start {argv[0]}: {exc}", stage=stage) from exc

    _running.add(process)
    try:
        try:
            _, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            logger.error("[ffmpeg] %s exceeded %ss; killing pid=%s", description, timeout, process.pid)
            await _kill(process)
            raise ToolTimeoutError(detail=f"{description} exceeded {timeout}s", stage=stage) from exc
        except asyncio.CancelledError:
            await _kill(process)
            raise
    finally:
        _running.discard(process)

    if process.returncode != 0:
        tail = _stderr_tail(stderr or b"")
        logger.error("[ffmpeg] %s failed (exit %s):\n%s", description, process.returncode, tail)
        raise error_cls(detail=f"{description} exited with {process.returncode}", stage=stage)
    logger.info("[ffmpeg] %s completed successfully.", description)


def _require_output(path: Path, error_cls: type[PipelineError], stage: JobStage) -> None:
    if not path.is_file() or path.stat().st_size == 0:
        raise error_cls(detail=f"ffmpeg reported success but {path} is missing or empty", stage=stage)


async def transcode_video(
    src: Path,
    dst: Path,
    bitrate_kbps: int,
    *,
    timeout: float,
    binary: str = "ffmpeg",
) -> Path:
    await run_tool(
        transcode_command(src, dst, bitrate_kbps, binary=binary),
        timeout=timeout,
        error_cls=EncodeError,
        stage=JobStage.TRANSCODING,
        description=f"compression of {src.name} at {bitrate_kbps}k",
    )
    _require_output(dst, EncodeError, JobStage.TRANSCODING)
    return dst


async def extract_thumbnail(
    src: Path,
    dst: Path,
    *,
    timeout: float,
    binary: str = "ffmpeg",
) -> Path:
    await run_tool(
        thumbnail_command(src, dst, binary=binary),
        timeout=timeout,
        error_cls=ThumbnailError,
        stage=JobStage.THUMBNAILING,
        description=f"thumbnail of {src.name}",
    )
    _require_output(dst, ThumbnailError, JobStage.THUMBNAILING)
    return dst


def running_count() -> int:
    return len(_running)


async def terminate_all() -> None:
    """Kill every ffmpeg process still running (called on application shutdown)."""
    processes = list(_running)
    if not processes:
        return
    logger.info("[ffmpeg] Terminating %d running process(es)", len(processes))
    for process in processes:
        await _kill(process)
