"""Fixed-size async worker pool for independent, side-effecting tasks.

Workers drain one shared queue in the order tasks were supplied. A failing
task is logged and recorded in its outcome; it never stops its siblings or
the pool. ``run_bounded`` returns only after every task has settled.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Sequence

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 10


@dataclass
class BoundedTask:
    name: str
    run: Callable[[], Awaitable[Any]]


@dataclass
class TaskOutcome:
    name: str
    ok: bool
    result: Any = None
    error: Optional[BaseException] = None
    skipped: bool = False  # never started because the run was cancelled


def count_failures(outcomes: Sequence[TaskOutcome]) -> int:
    return sum(1 for o in outcomes if not o.ok and not o.skipped)


async def run_bounded(
    tasks: Sequence[BoundedTask],
    concurrency: int = DEFAULT_CONCURRENCY,
    cancel_event: Optional[asyncio.Event] = None,
) -> list[TaskOutcome]:
    """Run ``tasks`` with at most ``concurrency`` in flight.

    Outcomes are returned in the same order as ``tasks``. Once
    ``cancel_event`` is set no further task is started; the ones still queued
    come back with ``skipped=True``.
    """
    if concurrency < 1:
        raise ValueError("concurrency must be a positive integer")
    if not tasks:
        return []

    queue: asyncio.Queue = asyncio.Queue()
    for index, task in enumerate(tasks):
        queue.put_nowait((index, task))
    outcomes: list[Optional[TaskOutcome]] = [None] * len(tasks)

    async def worker() -> None:
        while True:
            try:
                index, task = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            if cancel_event is not None and cancel_event.is_set():
                outcomes[index] = TaskOutcome(name=task.name, ok=False, skipped=True)
                continue
            try:
                result = await task.run()
            except Exception as e:
                logger.warning("Task %s failed: %s", task.name, e)
                outcomes[index] = TaskOutcome(name=task.name, ok=False, error=e)
            else:
                outcomes[index] = TaskOutcome(name=task.name, ok=True, result=result)

    workers = [asyncio.create_task(worker()) for _ in range(min(concurrency, len(tasks)))]
    await asyncio.gather(*workers)

    failed = count_failures(outcomes)
    if failed:
        logger.info("%d of %d tasks failed", failed, len(tasks))
    return outcomes
