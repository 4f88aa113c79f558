"""RQ worker that runs delivery sweeps off the API process."""
from __future__ import annotations

import os
import sys
from typing import Any

import redis
from rq import Queue, Worker

from lms_api.core.config import settings
from lms_api.core.errors import NotFoundError
from lms_api.queue.scheduler import (
    COURSE_LIFECYCLE,
    SCHEDULED_EMAILS,
    SCHEDULED_SIMULATIONS,
    TOKEN_CLEANUP,
    build_runtime,
)
from lms_api.utils.logger import configure_logging, logger

JOB_NAMES = (SCHEDULED_EMAILS, SCHEDULED_SIMULATIONS, TOKEN_CLEANUP, COURSE_LIFECYCLE)

_queue: Queue | None = None


def _get_queue() -> Queue:
    global _queue
    if _queue is None:
        connection = redis.Redis.from_url(settings.redis_url)
        _queue = Queue(settings.rq_queue_name, connection=connection)
    return _queue


def run_job(job_name: str) -> dict[str, Any]:
    """Background job: build the runtime in the worker and trigger one sweep."""

    scheduler = build_runtime()
    result = scheduler.trigger(job_name)
    logger.info("Worker finished job %s: %s", job_name, result)
    return result


def enqueue_job(job_name: str):
    """Helper for API routes to enqueue a sweep."""

    if job_name not in JOB_NAMES:
        raise NotFoundError(f"Unknown job {job_name!r}")
    return _get_queue().enqueue(run_job, job_name)


def run_worker() -> None:
    """Entry point called by `python -m lms_api.queue.worker`."""

    configure_logging()
    if (
        settings.environment == "development"
        and sys.platform == "darwin"
        and not os.environ.get("OBJC_DISABLE_INITIALIZE_FORK_SAFETY")
    ):
        logger.warning(
            "OBJC_DISABLE_INITIALIZE_FORK_SAFETY=YES is recommended on macOS to avoid fork-related crashes with RQ workers. "
            "Applying it for this process."
        )
        os.environ["OBJC_DISABLE_INITIALIZE_FORK_SAFETY"] = "YES"

    queue = _get_queue()
    worker = Worker([queue], connection=queue.connection)
    worker.work()


if __name__ == "__main__":  # pragma: no cover - manual execution
    run_worker()
