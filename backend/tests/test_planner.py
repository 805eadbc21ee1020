import math

import pytest

from models import UploadedFile, VideoMetadata
from services.errors import PlanError
from services.planner import (
    DEFAULT_QUALITY,
    MIN_BITRATE_KBPS,
    build_plan,
    parse_quality,
    plan_bitrate,
)


def test_plan_bitrate_matches_formula() -> None:
    # 10 MB at 50% over 20s -> 5 MB * 8 * 1024 / 20
    assert plan_bitrate(10.0, 20.0, 50) == math.floor(5.0 * 8 * 1024 / 20.0)
    assert plan_bitrate(10.0, 20.0, 50) == 2048


def test_plan_bitrate_is_floor_rounded_integer() -> None:
    bitrate = plan_bitrate(3.3, 7.0, 33)
    assert isinstance(bitrate, int)
    assert bitrate == math.floor(3.3 * 33 / 100 * 8 * 1024 / 7.0)


def test_omitted_quality_equals_fifty() -> None:
    assert plan_bitrate(42.0, 13.5) == plan_bitrate(42.0, 13.5, 50)
    assert DEFAULT_QUALITY == 50


@pytest.mark.parametrize("duration", [0.0, -1.0, float("nan"), float("inf")])
def test_invalid_duration_is_rejected(duration: float) -> None:
    with pytest.raises(PlanError):
        plan_bitrate(10.0, duration, 50)


@pytest.mark.parametrize("quality", [0, -5, 101, 1000])
def test_quality_outside_range_is_rejected(quality: int) -> None:
    with pytest.raises(PlanError) as excinfo:
        plan_bitrate(10.0, 10.0, quality)
    assert excinfo.value.status_code == 422
    assert "quality" in excinfo.value.message


def test_empty_file_is_rejected() -> None:
    with pytest.raises(PlanError):
        plan_bitrate(0.0, 10.0, 50)


def test_result_is_strictly_positive_for_tiny_inputs() -> None:
    # 1 KB over an hour at 1% would floor to zero
    assert plan_bitrate(1 / 1024, 3600.0, 1) == MIN_BITRATE_KBPS


def test_monotonic_in_quality() -> None:
    results = [plan_bitrate(25.0, 30.0, q) for q in range(1, 101)]
    assert all(b > 0 for b in results)
    assert results == sorted(results)
    assert results[-1] > results[0]


def test_monotonic_in_size_and_inverse_in_duration() -> None:
    by_size = [plan_bitrate(size, 30.0, 50) for size in (1.0, 5.0, 20.0, 100.0)]
    assert by_size == sorted(by_size)
    by_duration = [plan_bitrate(20.0, duration, 50) for duration in (1.0, 5.0, 30.0, 600.0)]
    assert by_duration == sorted(by_duration, reverse=True)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, 50),
        ("", 50),
        ("   ", 50),
        ("abc", 50),
        ("0", 50),
        ("75", 75),
        (" 30 ", 30),
        ("75abc", 75),
        ("12.7", 12),
        ("-5", -5),
        ("+20", 20),
        (80, 80),
        (0, 50),
    ],
)
def test_parse_quality(raw, expected: int) -> None:
    assert parse_quality(raw) == expected


def test_build_plan_uses_upload_size_and_metadata(tmp_path) -> None:
    upload = UploadedFile(path=tmp_path / "in.mp4", size_bytes=8 * 1024 * 1024, content_type="video/mp4")
    metadata = VideoMetadata(duration_seconds=16.0, bitrate_kbps=4096.0)

    plan = build_plan(upload, metadata, "25")

    assert plan.quality_percent == 25
    assert plan.target_size_mb == pytest.approx(2.0)
    assert plan.target_bitrate_kbps == 1024


def test_build_plan_rejects_zero_duration(tmp_path) -> None:
    upload = UploadedFile(path=tmp_path / "in.mp4", size_bytes=1024, content_type="video/mp4")
    with pytest.raises(PlanError) as excinfo:
        build_plan(upload, VideoMetadata(duration_seconds=0.0, bitrate_kbps=0.0), None)
    assert excinfo.value.stage is not None
    assert excinfo.value.stage.value == "planning"
