"""
Bounded worker pool: concurrency cap, failure isolation, cancellation.
"""

from __future__ import annotations

import asyncio

import pytest

from creatorscout.services.runner import BoundedTask, count_failures, run_bounded


class InFlightTracker:
    def __init__(self):
        self.current = 0
        self.peak = 0
        self.started: list[str] = []

    def task(self, name: str, fail: bool = False, delay: float = 0.01) -> BoundedTask:
        async def run():
            self.started.append(name)
            self.current += 1
            self.peak = max(self.peak, self.current)
            try:
                await asyncio.sleep(delay)
                if fail:
                    raise RuntimeError(f"{name} exploded")
                return name.upper()
            finally:
                self.current -= 1

        return BoundedTask(name=name, run=run)


class TestRunBounded:
    async def test_failures_are_isolated(self):
        """25 tasks, 3 failing: every task runs once and the pool still returns."""
        tracker = InFlightTracker()
        failing = {"t3", "t11", "t20"}
        tasks = [tracker.task(f"t{i}", fail=f"t{i}" in failing) for i in range(25)]

        outcomes = await run_bounded(tasks, concurrency=10)

        assert len(outcomes) == 25
        assert sorted(tracker.started) == sorted(t.name for t in tasks)
        assert count_failures(outcomes) == 3
        assert {o.name for o in outcomes if not o.ok} == failing
        assert all(isinstance(o.error, RuntimeError) for o in outcomes if not o.ok)

    async def test_outcomes_follow_input_order(self):
        tracker = InFlightTracker()
        tasks = [tracker.task(f"t{i}", delay=0.01 * (5 - i)) for i in range(5)]
        outcomes = await run_bounded(tasks, concurrency=5)
        assert [o.name for o in outcomes] == [t.name for t in tasks]
        assert [o.result for o in outcomes] == [f"T{i}" for i in range(5)]

    async def test_never_exceeds_concurrency(self):
        tracker = InFlightTracker()
        await run_bounded([tracker.task(f"t{i}") for i in range(30)], concurrency=4)
        assert tracker.peak <= 4
        assert tracker.peak == 4

    async def test_fewer_tasks_than_workers_all_run_concurrently(self):
        """With 3 tasks and room for 10, all three are in flight at once."""
        started = 0
        all_started = asyncio.Event()

        async def run():
            nonlocal started
            started += 1
            if started == 3:
                all_started.set()
            await asyncio.wait_for(all_started.wait(), timeout=1)

        outcomes = await run_bounded([BoundedTask(f"t{i}", run) for i in range(3)], concurrency=10)
        assert all(o.ok for o in outcomes)

    async def test_tasks_start_in_supplied_order(self):
        tracker = InFlightTracker()
        tasks = [tracker.task(f"t{i}", delay=0) for i in range(6)]
        await run_bounded(tasks, concurrency=1)
        assert tracker.started == [t.name for t in tasks]

    async def test_empty_input(self):
        assert await run_bounded([], concurrency=3) == []

    @pytest.mark.parametrize("concurrency", [0, -1])
    async def test_concurrency_must_be_positive(self, concurrency):
        with pytest.raises(ValueError):
            await run_bounded([], concurrency=concurrency)

    async def test_cancel_stops_new_tasks(self):
        """Tasks still queued when the event is set come back skipped."""
        cancel = asyncio.Event()
        ran = []

        def make(i):
            async def run():
                ran.append(i)
                if i == 1:
                    cancel.set()

            return BoundedTask(f"t{i}", run)

        outcomes = await run_bounded([make(i) for i in range(5)], concurrency=1, cancel_event=cancel)

        assert ran == [0, 1]
        assert [o.ok for o in outcomes[:2]] == [True, True]
        assert all(o.skipped for o in outcomes[2:])
        assert count_failures(outcomes) == 0
