"""In-process interval scheduler for the delivery sweeps."""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from lms_api.core.config import settings
from lms_api.core.errors import NotFoundError
from lms_api.db.session import SessionFactory, SessionLocal, session_scope
from lms_api.queue.email_dispatcher import ScheduledEmailDispatcher
from lms_api.queue.simulation_dispatcher import ScheduleAttackSimulationDispatcher
from lms_api.services.course_lifecycle_service import process_course_lifecycle
from lms_api.services.email_sender import EmailSender, SESEmailSender
from lms_api.services.gophish import CampaignLauncher, GoPhishLauncher
from lms_api.services.token_service import cleanup_expired_tokens
from lms_api.utils.datetime import utcnow
from lms_api.utils.logger import logger

SCHEDULED_EMAILS = "scheduled-emails"
SCHEDULED_SIMULATIONS = "scheduled-simulations"
TOKEN_CLEANUP = "token-cleanup"
COURSE_LIFECYCLE = "course-lifecycle"

JobFunc = Callable[..., dict[str, Any]]


@dataclass
class CronJob:
    name: str
    func: JobFunc
    interval_seconds: float
    last_run_at: datetime | None = None
    last_result: dict[str, Any] | None = None
    last_error: str | None = None
    thread: threading.Thread | None = field(default=None, repr=False)

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "interval_seconds": self.interval_seconds,
            "running": self.thread is not None and self.thread.is_alive(),
            "last_run_at": self.last_run_at.isoformat() if self.last_run_at else None,
            "last_result": self.last_result,
            "last_error": self.last_error,
        }


class CronScheduler:
    """Runs each registered job on its own daemon thread at a fixed interval.

    A tick finishes before the next wait starts, so a slow job delays its own
    next run rather than overlapping it. Job functions accept a ``blocking``
    keyword: timer ticks pass ``False`` and manual triggers pass ``True``.
    """

    def __init__(self) -> None:
        self._jobs: dict[str, CronJob] = {}
        self._stop = threading.Event()
        self._started = False
        self._state_lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._started

    def register(self, name: str, func: JobFunc, interval_seconds: float) -> CronJob:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        job = CronJob(name=name, func=func, interval_seconds=interval_seconds)
        self._jobs[name] = job
        return job

    def get(self, name: str) -> CronJob:
        try:
            return self._jobs[name]
        except KeyError:
            raise NotFoundError(f"Unknown job {name!r}") from None

    def start(self) -> None:
        with self._state_lock:
            if self._started:
                return
            self._stop.clear()
            for job in self._jobs.values():
                job.thread = threading.Thread(
                    target=self._loop, args=(job,), name=f"cron-{job.name}", daemon=True
                )
                job.thread.start()
            self._started = True
        logger.info("Scheduler started with jobs: %s", ", ".join(self._jobs))

    def stop(self, timeout: float | None = 5.0) -> None:
        with self._state_lock:
            if not self._started:
                return
            self._stop.set()
            for job in self._jobs.values():
                if job.thread is not None:
                    job.thread.join(timeout)
                    job.thread = None
            self._started = False
        logger.info("Scheduler stopped")

    def _loop(self, job: CronJob) -> None:
        while not self._stop.wait(job.interval_seconds):
            try:
                self._execute(job, blocking=False)
            except Exception:
                logger.exception("Scheduled job %s failed", job.name)

    def _execute(self, job: CronJob, *, blocking: bool) -> dict[str, Any]:
        job.last_run_at = utcnow()
        try:
            result = job.func(blocking=blocking)
        except Exception as exc:
            job.last_error = str(exc)
            raise
        job.last_result = result
        job.last_error = None
        return result

    def trigger(self, name: str) -> dict[str, Any]:
        """Run one job now on the calling thread and return its stats."""

        job = self.get(name)
        logger.info("Manual trigger for job %s", name)
        return self._execute(job, blocking=True)

    def status(self) -> list[dict[str, Any]]:
        return [job.describe() for job in self._jobs.values()]


def build_runtime(
    email_sender: EmailSender | None = None,
    launcher: CampaignLauncher | None = None,
    session_factory: SessionFactory = SessionLocal,
) -> CronScheduler:
    """Wire the dispatchers and register the standard jobs."""

    email_dispatcher = ScheduledEmailDispatcher(email_sender or SESEmailSender(), session_factory)
    simulation_dispatcher = ScheduleAttackSimulationDispatcher(launcher or GoPhishLauncher(), session_factory)

    def send_scheduled_emails(*, blocking: bool = False) -> dict[str, Any]:
        return email_dispatcher.run(blocking=blocking).as_dict()

    def launch_scheduled_simulations(*, blocking: bool = False) -> dict[str, Any]:
        return simulation_dispatcher.run(blocking=blocking).as_dict()

    def remove_expired_tokens(*, blocking: bool = False) -> dict[str, Any]:
        with session_scope(session_factory) as db:
            return {"deleted": cleanup_expired_tokens(db, utcnow())}

    def advance_course_lifecycle(*, blocking: bool = False) -> dict[str, Any]:
        with session_scope(session_factory) as db:
            return process_course_lifecycle(db, utcnow()).as_dict()

    scheduler = CronScheduler()
    scheduler.register(SCHEDULED_EMAILS, send_scheduled_emails, settings.scheduled_email_interval_seconds)
    scheduler.register(
        SCHEDULED_SIMULATIONS, launch_scheduled_simulations, settings.simulation_launch_interval_seconds
    )
    scheduler.register(TOKEN_CLEANUP, remove_expired_tokens, settings.token_cleanup_interval_seconds)
    scheduler.register(COURSE_LIFECYCLE, advance_course_lifecycle, settings.course_lifecycle_interval_seconds)
    return scheduler
