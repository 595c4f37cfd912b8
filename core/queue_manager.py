import asyncio
import logging
from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)


class ToolLimiter:
    def __init__(self, max_concurrent: int = 3):
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be >= 1")
        self.max_concurrent = max_concurrent
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._active = 0
        self._waiting = 0

    @property
    def active(self) -> int:
        return self._active

    @property
    def waiting(self) -> int:
        return self._waiting

    def is_saturated(self) -> bool:
        return self._active >= self.max_concurrent

    @asynccontextmanager
    async def slot(self, label: str = "tool"):
        """
        Holds one external-tool slot for the duration of the block.
        When every slot is busy the caller waits here (backpressure).
        """
        if self.is_saturated():
            logger.info(f"[QUEUE] {label} waiting for a free slot ({self._active}/{self.max_concurrent} busy, {self._waiting} queued)")
        self._waiting += 1
        try:
            await self._semaphore.acquire()
        finally:
            self._waiting -= 1
        self._active += 1
        try:
            yield
        finally:
            self._active -= 1
            self._semaphore.release()
