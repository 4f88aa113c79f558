"""Scheduled email records and their recipient join rows."""
from __future__ import annotations

from datetime import datetime
from typing import Iterable, Sequence

from sqlalchemy.orm import Session, selectinload

from lms_api.core.errors import NotFoundError, StateConflictError, ValidationError
from lms_api.db import models
from lms_api.utils.datetime import as_utc
from lms_api.utils.logger import logger

EDITABLE_STATUSES = {
    models.ScheduleStatus.DRAFT.value,
    models.ScheduleStatus.SCHEDULED.value,
    models.ScheduleStatus.CANCELLED.value,
}
TERMINAL_STATUSES = {models.ScheduleStatus.SENT.value, models.ScheduleStatus.FAILED.value}
# Cancellation only happens through cancel_schedule and is final.
LOCKED_STATUSES = TERMINAL_STATUSES | {models.ScheduleStatus.CANCELLED.value}


def get_schedule(db: Session, schedule_id: str) -> models.ScheduledEmail:
    schedule = db.query(models.ScheduledEmail).filter(models.ScheduledEmail.id == schedule_id).first()
    if schedule is None:
        raise NotFoundError("Scheduled email not found")
    return schedule


def _active_template(db: Session, template_id: str) -> models.EmailTemplate:
    template = db.query(models.EmailTemplate).filter(models.EmailTemplate.id == template_id).first()
    if template is None:
        raise NotFoundError("Email template not found")
    if not template.is_active:
        raise ValidationError("Cannot schedule email with inactive template")
    return template


def validate_recipients(db: Session, recipient_ids: Iterable[str]) -> list[models.User]:
    """Every id must name an existing active user; duplicates are collapsed."""

    unique_ids = list(dict.fromkeys(recipient_ids))
    if not unique_ids:
        return []
    users = {user.id: user for user in db.query(models.User).filter(models.User.id.in_(unique_ids)).all()}
    validated = []
    for user_id in unique_ids:
        user = users.get(user_id)
        if user is None:
            raise NotFoundError(f"Recipient user not found: {user_id}")
        if not user.is_active:
            raise ValidationError(f"Cannot schedule email to inactive user: {user_id}")
        validated.append(user)
    return validated


def _replace_recipients(db: Session, schedule: models.ScheduledEmail, users: Sequence[models.User]) -> None:
    schedule.recipients.clear()
    db.flush()
    for user in users:
        schedule.recipients.append(models.ScheduledEmailRecipient(user_id=user.id))


def create_schedule(
    db: Session,
    *,
    template_id: str,
    created_by: str,
    scheduled_at: datetime,
    recipient_ids: Iterable[str] = (),
    custom_subject: str | None = None,
    status: str = models.ScheduleStatus.DRAFT.value,
) -> models.ScheduledEmail:
    """Create a schedule and its recipient rows in one transaction."""

    if status not in {models.ScheduleStatus.DRAFT.value, models.ScheduleStatus.SCHEDULED.value}:
        raise ValidationError("New scheduled emails must be draft or scheduled")
    _active_template(db, template_id)
    if db.get(models.User, created_by) is None:
        raise NotFoundError("Creating user not found")
    users = validate_recipients(db, recipient_ids)

    schedule = models.ScheduledEmail(
        template_id=template_id,
        custom_subject=custom_subject,
        status=status,
        created_by=created_by,
        scheduled_at=as_utc(scheduled_at),
    )
    schedule.recipients = [models.ScheduledEmailRecipient(user_id=user.id) for user in users]
    db.add(schedule)
    db.commit()
    db.refresh(schedule)
    logger.info("Scheduled email %s created with %s recipients", schedule.id, len(users))
    return schedule


def list_schedules(
    db: Session,
    *,
    status: str | None = None,
    created_by: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[models.ScheduledEmail], int]:
    query = db.query(models.ScheduledEmail)
    if status is not None:
        query = query.filter(models.ScheduledEmail.status == status)
    if created_by is not None:
        query = query.filter(models.ScheduledEmail.created_by == created_by)
    total = query.count()
    limit = max(1, min(limit, 100))
    page = max(page, 1)
    schedules = (
        query.order_by(models.ScheduledEmail.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return schedules, total


def update_schedule(
    db: Session,
    schedule_id: str,
    *,
    custom_subject: str | None = None,
    status: str | None = None,
    scheduled_at: datetime | None = None,
    recipient_ids: Iterable[str] | None = None,
) -> models.ScheduledEmail:
    """Apply the given changes; recipients, when supplied, are replaced as a whole."""

    schedule = get_schedule(db, schedule_id)
    if schedule.status in LOCKED_STATUSES:
        raise StateConflictError(f"Cannot modify a scheduled email that is already {schedule.status}")

    if status is not None:
        if status not in EDITABLE_STATUSES:
            raise ValidationError("Invalid status. Must be draft, scheduled, or cancelled")
        if schedule.status == models.ScheduleStatus.SCHEDULED.value and status == models.ScheduleStatus.DRAFT.value:
            raise StateConflictError("Cannot move a scheduled email back to draft")
        schedule.status = status
    if custom_subject is not None:
        schedule.custom_subject = custom_subject
    if scheduled_at is not None:
        schedule.scheduled_at = as_utc(scheduled_at)

    try:
        if recipient_ids is not None:
            _replace_recipients(db, schedule, validate_recipients(db, recipient_ids))
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(schedule)
    return schedule


def cancel_schedule(db: Session, schedule_id: str) -> models.ScheduledEmail:
    """Cancel a pending schedule; the next sweep will no longer pick it up."""

    schedule = get_schedule(db, schedule_id)
    if schedule.status in TERMINAL_STATUSES:
        raise StateConflictError("Cannot cancel a sent or failed email")
    schedule.status = models.ScheduleStatus.CANCELLED.value
    db.commit()
    db.refresh(schedule)
    return schedule


def delete_schedule(db: Session, schedule_id: str) -> None:
    schedule = get_schedule(db, schedule_id)
    db.delete(schedule)
    db.commit()


def pending_schedules(db: Session, now: datetime) -> list[models.ScheduledEmail]:
    """Schedules the dispatcher should (re)attempt at ``now``, failed ones included."""

    return (
        db.query(models.ScheduledEmail)
        .options(selectinload(models.ScheduledEmail.template))
        .filter(
            models.ScheduledEmail.status.in_(models.DUE_SCHEDULE_STATUSES),
            models.ScheduledEmail.scheduled_at <= as_utc(now),
        )
        .order_by(models.ScheduledEmail.scheduled_at)
        .all()
    )
