"""Cycle driver: generate tasks, schedule them, repeat until stopped."""

from __future__ import annotations

import asyncio
import datetime as dt
import logging
from collections import Counter
from typing import Callable, Iterable, List, Optional
from zoneinfo import ZoneInfo

from slotscope.core.config import ScheduleConfig
from slotscope.core.dedup import NotificationDedupCache
from slotscope.core.models import CycleReport, SearchTarget
from slotscope.core.ports import BrowserLauncherPort
from slotscope.core.prober import ReservationProber
from slotscope.core.scheduler import BatchScheduler
from slotscope.core.tasks import generate_tasks, rolling_window, today_in

LOGGER = logging.getLogger(__name__)

SEPARATOR = "=" * 80


class CycleDriver:
    """Supervises the endless generate -> schedule loop."""

    def __init__(
        self,
        targets: Iterable[SearchTarget],
        launcher: BrowserLauncherPort,
        prober: ReservationProber,
        scheduler: BatchScheduler,
        dedup: NotificationDedupCache,
        schedule: Optional[ScheduleConfig] = None,
        today: Optional[Callable[[], dt.date]] = None,
    ) -> None:
        self._targets: List[SearchTarget] = list(targets)
        self._launcher = launcher
        self._prober = prober
        self._scheduler = scheduler
        self._dedup = dedup
        self._schedule = schedule or ScheduleConfig()
        self._today = today or (lambda: today_in(self._schedule.timezone))
        self._stop: Optional[asyncio.Event] = None

    def _stop_requested(self) -> bool:
        return self._stop is not None and self._stop.is_set()

    async def run_cycle(self, cycle_number: int) -> CycleReport:
        """Run one full pass over the current rolling window."""

        now = dt.datetime.now(ZoneInfo(self._schedule.timezone))
        LOGGER.info(SEPARATOR)
        LOGGER.info("Cycle #%s started at %s", cycle_number, now.strftime("%Y-%m-%d %H:%M:%S"))
        LOGGER.info(SEPARATOR)

        self._dedup.cleanup()

        # Recomputed every cycle so the window slides forward without restart.
        today = self._today()
        window = rolling_window(today, self._schedule.window_days)
        LOGGER.info("Dates: %s", ", ".join(day.isoformat() for day in window))
        tasks = generate_tasks(
            self._targets,
            today,
            self._schedule.base_url,
            self._schedule.window_days,
        )
        LOGGER.info(
            "%s search tasks (%s targets x %s dates), %s at a time",
            len(tasks),
            len(self._targets),
            len(window),
            self._scheduler.concurrency,
        )

        if not tasks:
            LOGGER.info("Cycle #%s has nothing to check", cycle_number)
            return CycleReport(cycle_number=cycle_number, task_count=0, outcome_counts={})

        session = await self._launcher.launch()
        try:
            outcomes = await self._scheduler.run(
                tasks,
                lambda task: self._prober.check(session, task),
                should_stop=self._stop_requested,
            )
        finally:
            await session.close()

        counts = Counter(outcome.status for outcome in outcomes)
        report = CycleReport(cycle_number=cycle_number, task_count=len(tasks), outcome_counts=dict(counts))
        LOGGER.info(
            "Cycle #%s finished: %s checked, %s",
            cycle_number,
            len(outcomes),
            ", ".join(f"{status.value}={count}" for status, count in sorted(counts.items(), key=lambda i: i[0].value))
            or "no outcomes",
        )
        return report

    async def run_forever(self, stop_event: asyncio.Event, max_cycles: Optional[int] = None) -> int:
        """Repeat cycles until ``stop_event`` is set; returns cycles attempted.

        A failing cycle is logged and followed by the next one; nothing short
        of the stop event (or ``max_cycles``) ends the loop.
        """

        self._stop = stop_event
        cycle_number = 1
        attempted = 0
        while not stop_event.is_set():
            if max_cycles is not None and attempted >= max_cycles:
                break
            attempted += 1
            try:
                report = await self.run_cycle(cycle_number)
                idle = report.task_count == 0
            except Exception:
                LOGGER.exception("Error in cycle #%s", cycle_number)
                idle = True
            cycle_number += 1

            last = max_cycles is not None and attempted >= max_cycles
            if idle and not last:
                await self._wait(stop_event, self._schedule.idle_backoff)

        LOGGER.info("Cycle driver stopped after %s cycles", attempted)
        return attempted

    @staticmethod
    async def _wait(stop_event: asyncio.Event, seconds: float) -> None:
        if seconds <= 0 or stop_event.is_set():
            return
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass
