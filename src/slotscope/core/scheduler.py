"""Bounded-concurrency batch execution of search tasks."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Iterator, List, Optional, Sequence, TypeVar

from slotscope.core.models import PageError, ProbeOutcome, SearchTask

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

Worker = Callable[[SearchTask], Awaitable[ProbeOutcome]]


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Yield consecutive slices of at most ``size`` items."""

    if size < 1:
        raise ValueError("chunk size must be at least 1")
    for start in range(0, len(items), size):
        yield items[start : start + size]


class BatchScheduler:
    """Run tasks in consecutive chunks of at most ``concurrency`` tasks.

    Tasks inside a chunk run concurrently; the next chunk starts only after
    every task of the current one has finished. A failing task never affects
    its siblings.
    """

    def __init__(self, concurrency: int = 7) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._concurrency = concurrency

    @property
    def concurrency(self) -> int:
        return self._concurrency

    async def run(
        self,
        tasks: Sequence[SearchTask],
        worker: Worker,
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> List[ProbeOutcome]:
        """Return outcomes in task order; stops early between chunks if asked."""

        total = len(tasks)
        outcomes: List[ProbeOutcome] = []
        for offset, chunk in zip(range(0, total, self._concurrency), chunked(tasks, self._concurrency)):
            if should_stop is not None and should_stop():
                LOGGER.info("Stop requested, skipping %s remaining tasks", total - offset)
                break
            results = await asyncio.gather(
                *(
                    self._guarded(worker, task, offset + index + 1, total)
                    for index, task in enumerate(chunk)
                )
            )
            outcomes.extend(results)
        return outcomes

    async def _guarded(self, worker: Worker, task: SearchTask, position: int, total: int) -> ProbeOutcome:
        LOGGER.info("[%s/%s] checking idx=%s date=%s", position, total, task.identifier, task.date)
        try:
            return await worker(task)
        except Exception as exc:
            LOGGER.exception("Task failed: %s", task.url)
            return PageError(f"unexpected error: {exc}")
