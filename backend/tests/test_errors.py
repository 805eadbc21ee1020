from models import JobStage
from services.errors import PipelineError, ProbeError, UploadRejected


def test_upload_rejected_defaults_to_missing_file() -> None:
    exc = UploadRejected()
    assert exc.status_code == 400
    assert exc.message == "No file uploaded."
    assert exc.stage is JobStage.RECEIVING_UPLOAD


def test_upload_rejected_carries_status_and_log_detail() -> None:
    exc = UploadRejected(
        "Only video files are allowed!",
        status_code=415,
        detail="content_type='text/plain' filename='notes.txt'",
    )
    assert isinstance(exc, PipelineError)
    assert exc.status_code == 415
    assert exc.message == "Only video files are allowed!"
    assert exc.detail == "content_type='text/plain' filename='notes.txt'"
    assert str(exc) == exc.detail
    assert UploadRejected.status_code == 400


def test_detail_never_replaces_public_message() -> None:
    exc = ProbeError(detail="moov atom not found")
    assert exc.message == "Error retrieving video metadata"
    assert str(exc) == "moov atom not found"
