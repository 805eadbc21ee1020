"""POST /upload-video: compress an uploaded clip and return it with a thumbnail as a zip."""

import logging
from functools import lru_cache
from pathlib import Path

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import StreamingResponse

from app.config import Settings, get_settings
from models.job import JobStage
from models.media import UploadedFile
from services.admission import AdmissionController
from services.archive import archive_response
from services.errors import PipelineError, UploadRejected
from services.pipeline import VideoJob
from services.scratch import ScratchSpace

router = APIRouter(tags=["upload"])
logger = logging.getLogger(__name__)

UPLOAD_CHUNK_BYTES = 1024 * 1024
VIDEO_MIME_PREFIX = "video/"


@lru_cache
def _default_admission() -> AdmissionController:
    settings = get_settings()
    return AdmissionController(
        settings.max_concurrent_jobs,
        wait_seconds=settings.admission_wait_seconds,
    )


def get_admission() -> AdmissionController:
    return _default_admission()


def accepted_video(video: UploadFile | None = File(None)) -> UploadFile:
    """Reject a missing `video` field (400) or a non-video MIME type (415) before any work starts."""
    if video is None or not video.filename:
        raise UploadRejected()
    content_type = (video.content_type or "").lower()
    if not content_type.startswith(VIDEO_MIME_PREFIX):
        raise UploadRejected(
            "Only video files are allowed!",
            status_code=415,
            detail=f"content_type={video.content_type!r} filename={video.filename!r}",
        )
    return video


async def _save_upload(video: UploadFile, destination: Path) -> int:
    size = 0
    try:
        with destination.open("wb") as out:
            while chunk := await video.read(UPLOAD_CHUNK_BYTES):
                out.write(chunk)
                size += len(chunk)
    except OSError as exc:
        raise PipelineError(
            "Error saving upload",
            detail=f"writing {destination}: {exc}",
            stage=JobStage.RECEIVING_UPLOAD,
        ) from exc
    return size


@router.post("/upload-video", response_class=StreamingResponse)
async def upload_video(
    video: UploadFile = Depends(accepted_video),
    quality: str | None = Form(None),
    settings: Settings = Depends(get_settings),
    admission: AdmissionController = Depends(get_admission),
) -> StreamingResponse:
    logger.info(
        "[upload] POST /upload-video filename=%r content_type=%s quality=%r",
        video.filename,
        video.content_type,
        quality,
    )
    async with admission.slot():
        scratch = ScratchSpace.create(settings.upload_dir, input_suffix=Path(video.filename or "").suffix.lower())
        handed_off = False
        try:
            size = await _save_upload(video, scratch.input_path)
            upload = UploadedFile(
                path=scratch.input_path,
                size_bytes=size,
                content_type=video.content_type or "",
                filename=video.filename,
            )
            artifacts = await VideoJob(upload, scratch, settings).run(quality)
            # From here on the archive stream owns cleanup.
            response = archive_response(artifacts, on_close=scratch.cleanup)
            handed_off = True
        finally:
            if not handed_off:
                scratch.cleanup()
    return response
