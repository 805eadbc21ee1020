from dataclasses import dataclass
from pathlib import Path

BYTES_PER_MB = 1024 * 1024

ARCHIVE_FILENAME = "video_and_thumbnail.zip"
ARCHIVE_VIDEO_NAME = "compressed_video.mp4"
ARCHIVE_THUMBNAIL_NAME = "thumbnail.jpg"


@dataclass
class UploadedFile:
    path: Path
    size_bytes: int
    content_type: str
    filename: str | None = None    # client-supplied name, informational only

    @property
    def size_mb(self) -> float:
        return self.size_bytes / BYTES_PER_MB


@dataclass(frozen=True)
class VideoMetadata:
    duration_seconds: float        # 0.0 when the container does not report one
    bitrate_kbps: float            # source bitrate, 0.0 when unknown


@dataclass(frozen=True)
class CompressionPlan:
    quality_percent: int           # 1-100
    target_size_mb: float
    target_bitrate_kbps: int       # always >= 1


@dataclass
class OutputArtifacts:
    video_path: Path
    thumbnail_path: Path

    def entries(self) -> list[tuple[Path, str]]:
        """(path on disk, name inside the archive) pairs, video first."""
        return [
            (self.video_path, ARCHIVE_VIDEO_NAME),
            (self.thumbnail_path, ARCHIVE_THUMBNAIL_NAME),
        ]

    def missing(self) -> list[Path]:
        return [path for path, _ in self.entries() if not path.is_file()]
