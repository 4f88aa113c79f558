"""Recipient resolution for scheduled emails and simulation launches."""
from __future__ import annotations

from typing import Iterable

from sqlalchemy.orm import Session

from lms_api.db import models


def resolve(db: Session, schedule: models.ScheduledEmail) -> list[models.User]:
    """Active users attached to ``schedule`` through the recipient join table."""

    return (
        db.query(models.User)
        .join(models.ScheduledEmailRecipient, models.ScheduledEmailRecipient.user_id == models.User.id)
        .filter(
            models.ScheduledEmailRecipient.scheduled_email_id == schedule.id,
            models.User.is_active.is_(True),
        )
        .order_by(models.User.email)
        .all()
    )


def resolve_group_targets(db: Session, group_ids: Iterable[str]) -> list[models.User]:
    """Distinct active members of the given groups."""

    group_ids = list(group_ids)
    if not group_ids:
        return []
    return (
        db.query(models.User)
        .join(models.GroupUser, models.GroupUser.user_id == models.User.id)
        .filter(models.GroupUser.group_id.in_(group_ids), models.User.is_active.is_(True))
        .distinct()
        .order_by(models.User.email)
        .all()
    )
