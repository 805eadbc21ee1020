from enum import Enum


class JobStage(str, Enum):
    RECEIVING_UPLOAD = "receiving_upload"
    PROBING = "probing"
    PLANNING = "planning"
    TRANSCODING = "transcoding"
    THUMBNAILING = "thumbnailing"
    ARCHIVING = "archiving"
    CLEANUP = "cleanup"
    DONE = "done"
    ERROR = "error"
