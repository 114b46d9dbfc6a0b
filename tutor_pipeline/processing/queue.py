"""Fire-and-forget background work with no return path to the submitter."""

import asyncio
from typing import Awaitable, Callable, Set

import structlog

logger = structlog.get_logger()


class BackgroundQueue:
    """
    Runs submitted jobs as independent asyncio tasks.

    At most ``max_concurrent`` jobs run at once. A job's exception is logged
    here and goes nowhere else: the caller that submitted it has already
    been answered.
    """

    def __init__(self, max_concurrent: int = 5):
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, name: str, job: Callable[[], Awaitable], **context) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self._run(name, job, context), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.info("Background job queued", job=name, **context)
        return task

    async def _run(self, name: str, job: Callable[[], Awaitable], context: dict) -> None:
        async with self._semaphore:
            try:
                await job()
            except asyncio.CancelledError:
                logger.warning("Background job cancelled", job=name, **context)
                raise
            except Exception as e:
                logger.error("Background job failed", job=name, error=str(e), exc_info=True, **context)

    async def drain(self) -> None:
        """Wait for every queued job to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
