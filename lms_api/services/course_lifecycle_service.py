"""Course enrolment lifecycle: pending courses open on their launch date and close on expiry."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from lms_api.db import models
from lms_api.utils.datetime import as_utc
from lms_api.utils.logger import logger

PENDING = models.CourseStatus.PENDING.value
ACTIVE = models.CourseStatus.ACTIVE.value
EXPIRED = models.CourseStatus.EXPIRED.value


@dataclass
class LifecycleResult:
    activated: int = 0
    expired: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


def _activate(course: models.UserCourse) -> None:
    course.status = ACTIVE
    course.visibility = True


def next_pending_course(db: Session, course: models.UserCourse) -> models.UserCourse | None:
    """The earliest pending course of the same user and programme starting at or after ``course`` expires."""

    if course.expiry_date is None:
        return None
    return (
        db.query(models.UserCourse)
        .filter(
            models.UserCourse.user_id == course.user_id,
            models.UserCourse.schedule_attack_simulation_id == course.schedule_attack_simulation_id,
            models.UserCourse.status == PENDING,
            models.UserCourse.launch_date >= as_utc(course.expiry_date),
        )
        .order_by(models.UserCourse.launch_date)
        .first()
    )


def process_course_lifecycle(db: Session, now: datetime) -> LifecycleResult:
    """Open due pending courses, expire overdue active ones and promote their successors.

    All changes belong to the caller's transaction; the caller commits.
    """

    now = as_utc(now)
    result = LifecycleResult()

    due = (
        db.query(models.UserCourse)
        .filter(
            models.UserCourse.status == PENDING,
            models.UserCourse.launch_date <= now,
            models.UserCourse.visibility.is_(False),
        )
        .all()
    )
    for course in due:
        _activate(course)
        result.activated += 1

    overdue = (
        db.query(models.UserCourse)
        .filter(models.UserCourse.status == ACTIVE, models.UserCourse.expiry_date < now)
        .all()
    )
    for course in overdue:
        course.status = EXPIRED
        course.visibility = False
        result.expired += 1
        db.flush()

        successor = next_pending_course(db, course)
        if successor is not None and as_utc(successor.launch_date) <= now:
            _activate(successor)
            result.activated += 1

    if result.activated or result.expired:
        logger.info("Course lifecycle processed: %s activated, %s expired", result.activated, result.expired)
    return result
