import asyncio
import logging
from typing import Any, Awaitable, Callable, Set

from photoshare.services.singleton_base_service import SingletonBaseService

logger = logging.getLogger(__name__)

CleanupJob = Callable[..., Awaitable[Any]]


class CleanupWorker(SingletonBaseService):
    # job outcomes are never reported back to submit(), failures are only logged

    def __init__(self):
        if getattr(self, "_initialized", False):
            return

        self._tasks: Set[asyncio.Task] = set()
        self._initialized = True

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, job: CleanupJob, *args: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # no loop in this thread (plain sync code): run the job to completion here
            asyncio.run(self._run(job, *args))
            return

        task = loop.create_task(self._run(job, *args))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    @staticmethod
    async def _run(job: CleanupJob, *args: Any) -> None:
        try:
            await job(*args)
        except Exception:
            logger.exception("Cleanup job %s%r failed", getattr(job, "__name__", job), args)
