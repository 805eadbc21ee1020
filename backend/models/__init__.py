from .job import JobStage
from .media import (
    ARCHIVE_FILENAME,
    ARCHIVE_THUMBNAIL_NAME,
    ARCHIVE_VIDEO_NAME,
    BYTES_PER_MB,
    CompressionPlan,
    OutputArtifacts,
    UploadedFile,
    VideoMetadata,
)

__all__ = [
    "JobStage",
    "UploadedFile",
    "VideoMetadata",
    "CompressionPlan",
    "OutputArtifacts",
    "ARCHIVE_FILENAME",
    "ARCHIVE_VIDEO_NAME",
    "ARCHIVE_THUMBNAIL_NAME",
    "BYTES_PER_MB",
]
