"""Target bitrate from upload size, clip duration and the client's quality percentage."""

from __future__ import annotations

import logging
import math
import re

from models.job import JobStage
from models.media import CompressionPlan, UploadedFile, VideoMetadata
from services.errors import PlanError

logger = logging.getLogger(__name__)

DEFAULT_QUALITY = 50
MIN_QUALITY = 1
MAX_QUALITY = 100
MIN_BITRATE_KBPS = 1

_LEADING_INT = re.compile(r"^[+-]?\d+")


def parse_quality(raw: str | int | None) -> int:
    """
    Parse the `quality` form field the way clients have always been able to send it.

    Leading digits win ("75abc" -> 75, "12.7" -> 12). Missing, empty, non-numeric
    and zero values all mean DEFAULT_QUALITY. Range is not checked here.
    """
    if raw is None:
        return DEFAULT_QUALITY
    if isinstance(raw, int):
        return raw or DEFAULT_QUALITY
    match = _LEADING_INT.match(raw.strip())
    if not match:
        return DEFAULT_QUALITY
    return int(match.group()) or DEFAULT_QUALITY


def _target_size_mb(file_size_mb: float, quality_percent: int) -> float:
    return file_size_mb * quality_percent / 100


def plan_bitrate(
    file_size_mb: float,
    duration_seconds: float,
    quality_percent: int | None = None,
) -> int:
    """
    Video bitrate in kbps that shrinks the file to `quality_percent` of its size.

    floor(size_mb * quality / 100 * 8 * 1024 / duration), never below MIN_BITRATE_KBPS.
    Raises PlanError for non-positive duration or size and for quality outside 1-100.
    """
    quality = DEFAULT_QUALITY if quality_percent is None else quality_percent
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise PlanError(
            f"quality must be between {MIN_QUALITY} and {MAX_QUALITY}, got {quality}",
            stage=JobStage.PLANNING,
        )
    if not math.isfinite(duration_seconds) or duration_seconds <= 0:
        raise PlanError(
            "Video duration could not be determined",
            detail=f"duration_seconds={duration_seconds!r}",
            stage=JobStage.PLANNING,
        )
    if not math.isfinite(file_size_mb) or file_size_mb <= 0:
        raise PlanError(
            "Uploaded file is empty",
            detail=f"file_size_mb={file_size_mb!r}",
            stage=JobStage.PLANNING,
        )
    target_kbits = _target_size_mb(file_size_mb, quality) * 8 * 1024
    return max(MIN_BITRATE_KBPS, math.floor(target_kbits / duration_seconds))


def build_plan(
    upload: UploadedFile,
    metadata: VideoMetadata,
    quality_raw: str | int | None,
) -> CompressionPlan:
    quality = parse_quality(quality_raw)
    bitrate = plan_bitrate(upload.size_mb, metadata.duration_seconds, quality)
    plan = CompressionPlan(
        quality_percent=quality,
        target_size_mb=_target_size_mb(upload.size_mb, quality),
        target_bitrate_kbps=bitrate,
    )
    logger.info(
        "[planner] %.2f MB over %.2fs at %d%% -> %d kbps (source %.0f kbps)",
        upload.size_mb,
        metadata.duration_seconds,
        quality,
        bitrate,
        metadata.bitrate_kbps,
    )
    return plan
