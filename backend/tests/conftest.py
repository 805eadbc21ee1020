from __future__ import annotations

from collections.abc import Callable, Iterator
from fractions import Fraction
from pathlib import Path

import av
import pytest

from app.config import Settings, get_settings
from app.main import app
from routes.upload import get_admission
from services.admission import AdmissionController


def write_test_clip(path: Path, *, frames: int = 10, fps: int = 10, width: int = 64, height: int = 64) -> Path:
    """Encode a tiny MPEG-4 clip with PyAV (no ffmpeg executable needed)."""
    with av.open(str(path), "w") as container:
        stream = container.add_stream("mpeg4", rate=fps)
        stream.width = width
        stream.height = height
        stream.pix_fmt = "yuv420p"
        for i in range(frames):
            frame = av.VideoFrame(width, height, "rgb24")
            frame.planes[0].update(bytes([(i * 25) % 256]) * (width * height * 3))
            frame = frame.reformat(format="yuv420p")
            frame.pts = i
            frame.time_base = Fraction(1, fps)
            for packet in stream.encode(frame):
                container.mux(packet)
        for packet in stream.encode():
            container.mux(packet)
    return path


@pytest.fixture
def make_clip(tmp_path: Path) -> Callable[..., Path]:
    def _make(name: str = "clip.mp4", **kwargs) -> Path:
        return write_test_clip(tmp_path / name, **kwargs)

    return _make


@pytest.fixture
def upload_root(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def test_settings(upload_root: Path) -> Settings:
    return Settings(upload_dir=upload_root, tool_timeout_seconds=5.0, max_concurrent_jobs=2)


@pytest.fixture
def api_overrides(test_settings: Settings) -> Iterator[AdmissionController]:
    """Point the app at a temporary scratch root and a fresh admission controller."""
    admission = AdmissionController(test_settings.max_concurrent_jobs)
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_admission] = lambda: admission
    yield admission
    app.dependency_overrides.clear()


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
