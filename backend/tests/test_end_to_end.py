"""Full request against a real ffmpeg executable; skipped when none is installed."""

import io
import shutil
import subprocess
import zipfile

import pytest
from fastapi.testclient import TestClient

from app.main import app


def _ffmpeg_has_x264() -> bool:
    if shutil.which("ffmpeg") is None:
        return False
    result = subprocess.run(["ffmpeg", "-hide_banner", "-encoders"], capture_output=True, text=True)
    return result.returncode == 0 and "libx264" in result.stdout


pytestmark = pytest.mark.skipif(not _ffmpeg_has_x264(), reason="ffmpeg with libx264 not available")

client = TestClient(app)


def test_real_upload_produces_playable_outputs(api_overrides, make_clip, upload_root) -> None:
    clip = make_clip("short.mp4", frames=30, fps=15, width=128, height=96)

    with clip.open("rb") as fh:
        response = client.post(
            "/upload-video",
            files={"video": ("short.mp4", fh, "video/mp4")},
            data={"quality": "50"},
        )

    assert response.status_code == 200, response.text
    assert response.headers["content-type"] == "application/zip"
    with zipfile.ZipFile(io.BytesIO(response.content)) as zf:
        assert sorted(zf.namelist()) == ["compressed_video.mp4", "thumbnail.jpg"]
        assert len(zf.read("compressed_video.mp4")) > 0
        assert zf.read("thumbnail.jpg")[:2] == b"\xff\xd8"
    assert list(upload_root.iterdir()) == []
