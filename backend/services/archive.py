"""Zip the job outputs straight into the HTTP response body."""

from __future__ import annotations

import logging
import zipfile
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path

from fastapi.responses import StreamingResponse

from models.job import JobStage
from models.media import ARCHIVE_FILENAME, OutputArtifacts
from services.errors import ArchiveError

logger = logging.getLogger(__name__)

READ_CHUNK_BYTES = 64 * 1024
COMPRESS_LEVEL = 9
ZIP_MEDIA_TYPE = "application/zip"


class _ChunkSink:
    """
    Write-only, non-seekable file object. ZipFile falls back to data descriptors for it,
    so entries can be emitted before their sizes are known.
    """

    def __init__(self) -> None:
        self._chunks: list[bytes] = []

    def write(self, data: bytes) -> int:
        if data:
            self._chunks.append(bytes(data))
        return len(data)

    def flush(self) -> None:
        pass

    def drain(self) -> bytes:
        data = b"".join(self._chunks)
        self._chunks.clear()
        return data


def iter_zip(
    entries: Iterable[tuple[Path, str]],
    *,
    on_close: Callable[[], None] | None = None,
) -> Iterator[bytes]:
    """
    Yield a deflate (level 9) zip of `entries` ((path, name in archive) pairs) piece by piece.

    Read or write failures surface as ArchiveError. `on_close` runs once the generator
    finishes, fails or is closed early by a disconnecting client.
    """
    sink = _ChunkSink()
    try:
        with zipfile.ZipFile(sink, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=COMPRESS_LEVEL) as zf:
            for path, name in entries:
                force_zip64 = path.stat().st_size >= zipfile.ZIP64_LIMIT
                with path.open("rb") as src, zf.open(name, "w", force_zip64=force_zip64) as dest:
                    while chunk := src.read(READ_CHUNK_BYTES):
                        dest.write(chunk)
                        if data := sink.drain():
                            yield data
                if data := sink.drain():
                    yield data
        if data := sink.drain():
            yield data
        logger.info("[archive] ZIP file sent successfully.")
    except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile) as exc:
        logger.error("[archive] Error creating zip file: %s", exc, exc_info=True)
        raise ArchiveError(detail=str(exc), stage=JobStage.ARCHIVING) from exc
    finally:
        if on_close is not None:
            on_close()


def archive_response(
    artifacts: OutputArtifacts,
    *,
    on_close: Callable[[], None] | None = None,
) -> StreamingResponse:
    missing = artifacts.missing()
    if missing:
        if on_close is not None:
            on_close()
        raise ArchiveError(detail=f"missing outputs: {missing}", stage=JobStage.ARCHIVING)
    return StreamingResponse(
        iter_zip(artifacts.entries(), on_close=on_close),
        media_type=ZIP_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{ARCHIVE_FILENAME}"'},
    )
