"""
scheduler.py

Periodic change sweeps.

`init_scheduled_jobs` registers the daily show sweep and the movie sweep
(7th/14th/21st/28th of the month) on a PeriodicTrigger and starts both right
away. Each run moves its job IDLE -> RUNNING -> SUCCEEDED|FAILED -> IDLE; the
completion callback only fires after a run that did not fail as a whole.
Individual item failures inside a sweep do not count as a failed run.

In production the trigger is CeleryBeatTrigger: beat fires the
`run_scheduled_job` task and the worker looks up the registered callback by
handle name.
"""
import inspect
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol

from celery.schedules import crontab

logger = logging.getLogger(__name__)

SHOW_UPDATES_CRON = "0 2 * * *"
MOVIE_UPDATES_CRON = "0 1 7,14,21,28 * *"

RUN_SCHEDULED_JOB_TASK = "watchtracker.services.tasks.run_scheduled_job"
REDBEAT_SCHEDULER = "redbeat.schedulers:RedBeatScheduler"


@dataclass(frozen=True)
class TriggerHandle:
    name: str
    cron_expression: str


class PeriodicTrigger(Protocol):
    def register(self, cron_expression: str, callback: Callable[[], Any], name: Optional[str] = None) -> TriggerHandle: ...

    def start(self, handle: TriggerHandle) -> None: ...

    def stop(self, handle: TriggerHandle) -> None: ...


def cron_to_crontab(cron_expression: str) -> crontab:
    """Translate a 5-field cron expression into a Celery crontab schedule."""
    fields = cron_expression.split()
    if len(fields) != 5:
        raise ValueError(f"Expected 5 cron fields, got {len(fields)}: {cron_expression!r}")
    minute, hour, day_of_month, month_of_year, day_of_week = fields
    return crontab(
        minute=minute,
        hour=hour,
        day_of_month=day_of_month,
        month_of_year=month_of_year,
        day_of_week=day_of_week,
    )


class CeleryBeatTrigger:
    """PeriodicTrigger backed by Celery beat periodic tasks."""

    def __init__(self, app, task_name: str = RUN_SCHEDULED_JOB_TASK):
        self.app = app
        self.task_name = task_name
        self._callbacks: Dict[str, Callable[[], Any]] = {}

    def register(self, cron_expression: str, callback: Callable[[], Any], name: Optional[str] = None) -> TriggerHandle:
        cron_to_crontab(cron_expression)  # reject malformed expressions at registration time
        handle = TriggerHandle(name=name or f"cron:{cron_expression}", cron_expression=cron_expression)
        self._callbacks[handle.name] = callback
        return handle

    def start(self, handle: TriggerHandle) -> None:
        self.app.add_periodic_task(
            cron_to_crontab(handle.cron_expression),
            self.app.signature(self.task_name, args=(handle.name,)),
            name=handle.name,
        )

    def stop(self, handle: TriggerHandle) -> None:
        self.app.conf.beat_schedule.pop(handle.name, None)
        self._callbacks.pop(handle.name, None)
        if self.app.conf.beat_scheduler == REDBEAT_SCHEDULER:
            self._delete_redbeat_entry(handle.name)

    def _delete_redbeat_entry(self, name: str) -> None:
        """Remove the entry RedBeat persisted in Redis for this job."""
        from redbeat.schedulers import RedBeatSchedulerEntry

        key = f"{getattr(self.app.conf, 'redbeat_key_prefix', 'redbeat:')}{name}"
        try:
            RedBeatSchedulerEntry.from_key(key, app=self.app).delete()
        except KeyError:
            logger.info(f"No RedBeat entry stored for {name}")

    def callback_for(self, name: str) -> Callable[[], Any]:
        try:
            return self._callbacks[name]
        except KeyError:
            raise LookupError(f"No scheduled job registered under {name!r}") from None


class JobState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class ScheduledJob:
    label: str
    run_batch: Callable[[], Awaitable[Any]]
    on_done: Callable[[], Any]
    state: JobState = JobState.IDLE
    last_outcome: Optional[JobState] = None
    last_error: Optional[BaseException] = None
    history: List[JobState] = field(default_factory=list)

    def _transition(self, state: JobState) -> None:
        self.state = state
        self.history.append(state)

    async def run(self) -> bool:
        """One scheduled run. Returns True when the sweep succeeded."""
        if self.state == JobState.RUNNING:
            logger.warning(f"Skipping the {self.label} change job, previous run still in progress")
            return False
        self._transition(JobState.RUNNING)
        logger.info(f"Starting the {self.label} change job")
        try:
            await self.run_batch()
        except Exception as e:
            logger.error(f"Failed to complete {self.label} update job: {e}", exc_info=True)
            self.last_error = e
            self._transition(JobState.FAILED)
        else:
            self.last_error = None
            self._transition(JobState.SUCCEEDED)
            await self._notify()
        finally:
            # Interrupted runs (cancellation, worker shutdown) count as failed
            if self.state == JobState.RUNNING:
                self._transition(JobState.FAILED)
            logger.info(f"Ending the {self.label} change job")
            self.last_outcome = self.state
            self._transition(JobState.IDLE)
        return self.last_outcome == JobState.SUCCEEDED

    async def _notify(self) -> None:
        try:
            result = self.on_done()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Failed to send {self.label} update notifications: {e}", exc_info=True)


class SchedulerHandle:
    """Owns the trigger registrations of the change sweeps."""

    def __init__(self, trigger: PeriodicTrigger):
        self.trigger = trigger
        self.jobs: Dict[str, ScheduledJob] = {}
        self.handles: Dict[str, TriggerHandle] = {}
        self.running = False

    def add(self, cron_expression: str, job: ScheduledJob) -> TriggerHandle:
        handle = self.trigger.register(cron_expression, job.run, name=f"{job.label}-changes")
        self.jobs[job.label] = job
        self.handles[job.label] = handle
        return handle

    def start(self) -> None:
        if self.running:
            return
        for handle in self.handles.values():
            self.trigger.start(handle)
        self.running = True

    def stop(self) -> None:
        if not self.running:
            return
        for handle in self.handles.values():
            self.trigger.stop(handle)
        self.running = False


def init_scheduled_jobs(
    on_show_updates_done: Callable[[], Any],
    on_movie_updates_done: Callable[[], Any],
    trigger: PeriodicTrigger,
    update_shows: Optional[Callable[[], Awaitable[Any]]] = None,
    update_movies: Optional[Callable[[], Awaitable[Any]]] = None,
) -> SchedulerHandle:
    """Register and start the show and movie change sweeps."""
    if update_shows is None or update_movies is None:
        from watchtracker.services import batch
        update_shows = update_shows or batch.update_shows
        update_movies = update_movies or batch.update_movies

    scheduler = SchedulerHandle(trigger)
    scheduler.add(SHOW_UPDATES_CRON, ScheduledJob("show", update_shows, on_show_updates_done))
    scheduler.add(MOVIE_UPDATES_CRON, ScheduledJob("movie", update_movies, on_movie_updates_done))
    scheduler.start()

    logger.info("Job Scheduler Initialized")
    return scheduler
