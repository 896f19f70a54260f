"""
Background cron loop for premade events.

The scheduler owns a job table with one start job and one end job per
committed guild. Every tick it first consumes the reload signal (rebuilding the
table from the committed configurations if a rehash was requested), then runs
every job whose cron expression has an instant in ``(last tick, now]``. Jobs run
one after another in the loop task; a slow job delays the jobs after it.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from premade_creator.configuration.event_config import EventConfigStore
from premade_creator.datatypes.discord_datatypes import GuildID
from premade_creator.datatypes.errors import ValidationError
from premade_creator.notifications.notifier import EventNotifier
from premade_creator.scheduler.cron import CronSchedule
from premade_creator.util.logger import get_logger

logger = get_logger("event_scheduler")


class ReloadSignal:
    """
    Single-slot "rebuild the job table" flag.

    Requests made before the scheduler consumes the flag collapse into one
    rebuild. ``request`` never blocks, so command handlers can call it freely.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def request(self) -> None:
        self._event.set()

    def consume(self) -> bool:
        """Return True (and clear the flag) if a reload was requested."""
        if not self._event.is_set():
            return False
        self._event.clear()
        return True

    @property
    def is_pending(self) -> bool:
        return self._event.is_set()


class SchedulerState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    RELOAD_PENDING = "reload pending"


class JobKind(Enum):
    START = "start"
    END = "end"


@dataclass
class ScheduledJob:
    """
    One cron-triggered notification.

    Attributes:
        guild_id: Guild whose configuration the job notifies for.
        kind: Whether the job posts the start announcement or the end results.
        schedule: Parsed cron expression.
        last_tick: Upper bound of the last window the job was evaluated for.
    """

    guild_id: GuildID
    kind: JobKind
    schedule: CronSchedule
    last_tick: datetime

    def is_due(self, now: datetime) -> bool:
        return self.schedule.fires_between(self.last_tick, now)

    def next_fire(self) -> datetime:
        return self.schedule.next_after(self.last_tick)


class EventScheduler:
    """
    Runs start/end jobs for every committed guild configuration.

    Args:
        config_store: Source of the committed configurations.
        notifier: Executes the start and end notifications.
        reload_signal: Rehash requests from the command layer.
        get_tick_seconds: Callable returning the loop interval (read at start).
        clock: Callable returning the current local time.
    """

    def __init__(
        self,
        config_store: EventConfigStore,
        notifier: EventNotifier,
        reload_signal: ReloadSignal,
        get_tick_seconds: Callable[[], float],
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.config_store = config_store
        self.notifier = notifier
        self.reload_signal = reload_signal
        self._get_tick_seconds = get_tick_seconds
        self._clock = clock
        self._jobs: List[ScheduledJob] = []
        self._last_tick_at: Optional[datetime] = None
        self._task: asyncio.Task | None = None

    # -------- Introspection --------
    @property
    def jobs(self) -> List[ScheduledJob]:
        return list(self._jobs)

    @property
    def state(self) -> SchedulerState:
        if self._task is None or self._task.done():
            return SchedulerState.IDLE
        if self.reload_signal.is_pending:
            return SchedulerState.RELOAD_PENDING
        return SchedulerState.RUNNING

    # -------- Job table --------
    async def rebuild(self, now: Optional[datetime] = None) -> List[ScheduledJob]:
        """Replace the job table with one start and one end job per committed guild.

        New jobs resume from the previous tick so an instant between that tick
        and the rebuild is not lost.
        """
        anchor = self._last_tick_at or now or self._clock()
        jobs: List[ScheduledJob] = []

        for guild_id, config in (await self.config_store.snapshot()).items():
            try:
                config.validate()
                start = CronSchedule.parse(config.start)
                end = CronSchedule.parse(config.end)
            except ValidationError as exc:
                logger.warning("[EVENT SCHEDULER] Skipping guild %s: %s", guild_id, exc)
                continue
            jobs.append(ScheduledJob(guild_id, JobKind.START, start, anchor))
            jobs.append(ScheduledJob(guild_id, JobKind.END, end, anchor))

        self._jobs = jobs
        logger.info("[EVENT SCHEDULER] Job table rebuilt: %d job(s)", len(jobs))
        return self.jobs

    def _job_runner(self, job: ScheduledJob) -> Callable[[GuildID], Awaitable[None]]:
        if job.kind is JobKind.START:
            return self.notifier.process_start
        return self.notifier.process_end

    async def tick(self, now: Optional[datetime] = None) -> int:
        """Run every due job in table order and return how many ran."""
        now = now or self._clock()
        ran = 0
        for job in list(self._jobs):
            try:
                due = job.is_due(now)
            except Exception as exc:
                logger.error(
                    "[EVENT SCHEDULER] Couldn't evaluate `%s` for the %s job of guild %s: %s",
                    job.schedule, job.kind.value, job.guild_id, exc,
                )
                due = False
            job.last_tick = now
            if not due:
                continue
            ran += 1
            logger.debug("[EVENT SCHEDULER] Running %s job for guild %s", job.kind.value, job.guild_id)
            try:
                await self._job_runner(job)(job.guild_id)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.error(
                    "[EVENT SCHEDULER] %s job for guild %s failed: %s",
                    job.kind.value.capitalize(), job.guild_id, exc, exc_info=True,
                )
        self._last_tick_at = now
        return ran

    async def run_once(self, now: Optional[datetime] = None) -> int:
        """One loop iteration: apply a pending rehash, then tick."""
        now = now or self._clock()
        if self.reload_signal.consume():
            logger.info("[EVENT SCHEDULER] Rehash requested; rebuilding job table")
            await self.rebuild(now)
        return await self.tick(now)

    # -------- Lifecycle --------
    async def _run_loop(self, interval: float) -> None:
        logger.info("[EVENT SCHEDULER] Starting cron loop (tick=%.1fs)", interval)
        try:
            while True:
                try:
                    await self.run_once()
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    logger.error("[EVENT SCHEDULER] Unexpected error during tick: %s", exc, exc_info=True)
                await asyncio.sleep(interval)
        except asyncio.CancelledError:
            logger.info("[EVENT SCHEDULER] Cron loop cancelled")
            raise

    async def start(self) -> None:
        """Build the initial job table and start the loop task if not already running."""
        if self._task and not self._task.done():
            logger.warning("[EVENT SCHEDULER] Cron loop already running")
            return
        await self.rebuild()
        interval = self._get_tick_seconds()
        self._task = asyncio.create_task(self._run_loop(interval), name="premade-event-scheduler")

    async def shutdown(self) -> None:
        """Cancel the loop task and wait for it to finish."""
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("[EVENT SCHEDULER] Scheduler shutdown complete")
