from .admission import AdmissionController
from .errors import (
    ArchiveError,
    EncodeError,
    PipelineError,
    PlanError,
    ProbeError,
    ServerBusy,
    ThumbnailError,
    ToolTimeoutError,
    UploadRejected,
)
from .planner import build_plan, parse_quality, plan_bitrate

__all__ = [
    "AdmissionController",
    "PipelineError",
    "UploadRejected",
    "PlanError",
    "ProbeError",
    "EncodeError",
    "ThumbnailError",
    "ArchiveError",
    "ToolTimeoutError",
    "ServerBusy",
    "build_plan",
    "parse_quality",
    "plan_bitrate",
]
