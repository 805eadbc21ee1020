"""Failure kinds of the upload pipeline and the HTTP status each one maps to."""

from __future__ import annotations

from models.job import JobStage


class PipelineError(Exception):
    """
    Base failure.

    `message` is the short text returned to the client as a JSON string; `detail` is for
    server-side logs only and never leaves the process.
    """

    status_code = 500
    default_message = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        *,
        detail: str | None = None,
        stage: JobStage | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.detail = detail
        self.stage = stage
        super().__init__(detail or self.message)


class UploadRejected(PipelineError):
    status_code = 400
    default_message = "No file uploaded."

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int | None = None,
        detail: str | None = None,
        stage: JobStage | None = JobStage.RECEIVING_UPLOAD,
    ) -> None:
        super().__init__(message, detail=detail, stage=stage)
        if status_code is not None:
            self.status_code = status_code


class PlanError(PipelineError):
    status_code = 422
    default_message = "Cannot plan compression for this video"


class ProbeError(PipelineError):
    default_message = "Error retrieving video metadata"


class EncodeError(PipelineError):
    default_message = "Error during compression"


class ThumbnailError(PipelineError):
    default_message = "Error generating thumbnail"


class ArchiveError(PipelineError):
    default_message = "Error creating zip file."


class ToolTimeoutError(PipelineError):
    status_code = 504
    default_message = "Processing timed out"


class ServerBusy(PipelineError):
    status_code = 503
    default_message = "Server is busy, try again later."
