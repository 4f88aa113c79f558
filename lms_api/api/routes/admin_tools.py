"""Admin utilities for manual triggers."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request

from lms_api.queue import worker
from lms_api.queue.scheduler import (
    COURSE_LIFECYCLE,
    SCHEDULED_EMAILS,
    SCHEDULED_SIMULATIONS,
    TOKEN_CLEANUP,
    CronScheduler,
)

router = APIRouter(prefix="/admin", tags=["admin"])


def get_scheduler(request: Request) -> CronScheduler:
    return request.app.state.scheduler


@router.post("/manual-trigger/scheduled-emails")
def trigger_scheduled_emails(scheduler: CronScheduler = Depends(get_scheduler)) -> dict[str, Any]:
    """Run the scheduled email sweep synchronously."""

    return scheduler.trigger(SCHEDULED_EMAILS)


@router.post("/manual-trigger/scheduled-simulations")
def trigger_scheduled_simulations(scheduler: CronScheduler = Depends(get_scheduler)) -> dict[str, Any]:
    """Launch due attack simulations synchronously."""

    return scheduler.trigger(SCHEDULED_SIMULATIONS)


@router.post("/manual-trigger/token-cleanup")
def trigger_token_cleanup(scheduler: CronScheduler = Depends(get_scheduler)) -> dict[str, Any]:
    return scheduler.trigger(TOKEN_CLEANUP)


@router.post("/manual-trigger/course-lifecycle")
def trigger_course_lifecycle(scheduler: CronScheduler = Depends(get_scheduler)) -> dict[str, Any]:
    """Activate, expire and promote user courses now."""

    return scheduler.trigger(COURSE_LIFECYCLE)


@router.get("/cron-status")
def cron_status(scheduler: CronScheduler = Depends(get_scheduler)) -> dict[str, Any]:
    return {"running": scheduler.running, "jobs": scheduler.status()}


@router.post("/enqueue/{job_name}")
def enqueue(job_name: str) -> dict[str, str]:
    """Enqueue a sweep for background processing."""

    job = worker.enqueue_job(job_name)
    return {"job_id": job.id}
