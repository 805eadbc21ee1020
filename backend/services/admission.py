"""Bounded admission for upload jobs: at most N run their external tools at once."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from services.errors import ServerBusy

logger = logging.getLogger(__name__)


class AdmissionController:
    """
    Semaphore with a bounded wait.

    `wait_seconds == 0` rejects as soon as every slot is taken; otherwise a request
    queues for up to `wait_seconds` before ServerBusy is raised.
    """

    def __init__(self, max_concurrent: int, *, wait_seconds: float = 0.0) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be >= 1")
        self._capacity = max_concurrent
        self._wait_seconds = max(0.0, wait_seconds)
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._active = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def active(self) -> int:
        return self._active

    async def _acquire(self) -> None:
        if self._wait_seconds == 0:
            if self._semaphore.locked():
                raise ServerBusy(detail=f"all {self._capacity} job slots busy")
            await self._semaphore.acquire()
            return
        try:
            await asyncio.wait_for(self._semaphore.acquire(), timeout=self._wait_seconds)
        except asyncio.TimeoutError as exc:
            raise ServerBusy(
                detail=f"no job slot freed within {self._wait_seconds}s ({self._capacity} busy)"
            ) from exc

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        await self._acquire()
        self._active += 1
        logger.debug("[admission] Slot taken (%d/%d)", self._active, self._capacity)
        try:
            yield
        finally:
            self._active -= 1
            self._semaphore.release()
            logger.debug("[admission] Slot released (%d/%d)", self._active, self._capacity)
