"""Upload job: probe -> plan -> transcode -> thumbnail, strictly in sequence."""

from __future__ import annotations

import logging

from app.config import Settings
from models.job import JobStage
from models.media import CompressionPlan, OutputArtifacts, UploadedFile, VideoMetadata
from services import ffmpeg
from services.errors import PipelineError
from services.planner import build_plan
from services.probe import probe_video
from services.scratch import ScratchSpace

logger = logging.getLogger(__name__)


class VideoJob:
    """
    One upload's trip through the external tools.

    Each stage starts only after the previous one succeeded; the first failure moves
    the job to ERROR and propagates. Nothing is retried.
    """

    def __init__(self, upload: UploadedFile, scratch: ScratchSpace, settings: Settings) -> None:
        self.upload = upload
        self.scratch = scratch
        self.settings = settings
        self.stage = JobStage.RECEIVING_UPLOAD
        self.metadata: VideoMetadata | None = None
        self.plan: CompressionPlan | None = None

    def _enter(self, stage: JobStage) -> None:
        logger.debug("[job %s] %s -> %s", self.scratch.timestamp, self.stage.value, stage.value)
        self.stage = stage

    async def run(self, quality_raw: str | int | None = None) -> OutputArtifacts:
        try:
            self._enter(JobStage.PROBING)
            self.metadata = await probe_video(self.upload.path, timeout=self.settings.tool_timeout_seconds)

            self._enter(JobStage.PLANNING)
            self.plan = build_plan(self.upload, self.metadata, quality_raw)

            self._enter(JobStage.TRANSCODING)
            logger.info("[job %s] Compression started...", self.scratch.timestamp)
            await ffmpeg.transcode_video(
                self.upload.path,
                self.scratch.output_path,
                self.plan.target_bitrate_kbps,
                timeout=self.settings.tool_timeout_seconds,
                binary=self.settings.ffmpeg_binary,
            )
            logger.info("[job %s] Compression completed. Generating thumbnail...", self.scratch.timestamp)

            self._enter(JobStage.THUMBNAILING)
            await ffmpeg.extract_thumbnail(
                self.upload.path,
                self.scratch.thumbnail_path,
                timeout=self.settings.tool_timeout_seconds,
                binary=self.settings.ffmpeg_binary,
            )
            logger.info("[job %s] Thumbnail generated successfully.", self.scratch.timestamp)
        except PipelineError as exc:
            if exc.stage is None:
                exc.stage = self.stage
            self._enter(JobStage.ERROR)
            raise

        self._enter(JobStage.ARCHIVING)
        return OutputArtifacts(video_path=self.scratch.output_path, thumbnail_path=self.scratch.thumbnail_path)
