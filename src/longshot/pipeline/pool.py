"""Slicing concurrency layer.

Architecture:
    FastAPI (async) -> asyncio.Semaphore(N) -> ThreadPoolExecutor(N) -> slice_image
                                                   -> ThreadPoolExecutor(M) per region (optional)

Requests beyond the semaphore limit queue with a 5s timeout, then get 503.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, TypeVar

from longshot.pipeline.slicer import slice_image

if TYPE_CHECKING:
    from collections.abc import Callable

    from longshot.config import Settings
    from longshot.imaging.image import Image
    from longshot.pipeline.slicer import Slice, SliceOptions

logger = logging.getLogger(__name__)

T = TypeVar("T")

SEMAPHORE_TIMEOUT_SECONDS: float = 5.0


class SlicingPool:
    """Manages the semaphore and thread pools for image slicing."""

    def __init__(self, settings: Settings) -> None:
        self._semaphore = asyncio.Semaphore(settings.max_concurrent)
        self._executor = ThreadPoolExecutor(
            max_workers=settings.max_concurrent,
            thread_name_prefix="slicing",
        )
        self._region_executor: ThreadPoolExecutor | None = None
        if settings.region_workers > 1:
            self._region_executor = ThreadPoolExecutor(
                max_workers=settings.region_workers,
                thread_name_prefix="slicing-region",
            )
        self._active_count: int = 0
        self._queue_depth: int = 0
        self._counter_lock = threading.Lock()

    async def run(self, func: Callable[..., T], *args: object) -> T:
        """Submit a synchronous function to the slicing thread pool.

        Acquires the semaphore (with timeout), runs the function in the
        executor, then releases.

        Raises:
            TimeoutError: If the semaphore cannot be acquired within the timeout.
        """
        with self._counter_lock:
            self._queue_depth += 1
        try:
            await asyncio.wait_for(
                self._semaphore.acquire(),
                timeout=SEMAPHORE_TIMEOUT_SECONDS,
            )
        finally:
            with self._counter_lock:
                self._queue_depth -= 1

        with self._counter_lock:
            self._active_count += 1
        try:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(self._executor, func, *args)
        finally:
            self._semaphore.release()
            with self._counter_lock:
                self._active_count -= 1

    async def slice(self, image: Image, options: SliceOptions) -> list[Slice]:
        """Run :func:`slice_image` in the pool.

        If the awaiting task is cancelled, regions that have not started yet
        are abandoned.
        """
        cancel = threading.Event()
        job = functools.partial(
            slice_image,
            image,
            options,
            executor=self._region_executor,
            cancel=cancel,
        )
        try:
            return await self.run(job)
        except asyncio.CancelledError:
            cancel.set()
            logger.info("Slicing request cancelled")
            raise

    @property
    def active_count(self) -> int:
        """Number of currently running slicing jobs."""
        with self._counter_lock:
            return self._active_count

    @property
    def queue_depth(self) -> int:
        """Number of requests waiting for a semaphore slot."""
        with self._counter_lock:
            return self._queue_depth

    def shutdown(self) -> None:
        """Shut down the thread pool executors."""
        self._executor.shutdown(wait=True)
        if self._region_executor is not None:
            self._region_executor.shutdown(wait=True)
