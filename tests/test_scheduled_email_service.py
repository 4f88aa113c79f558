"""Tests for scheduled email and template administration."""
from __future__ import annotations

from datetime import timedelta

import pytest

from lms_api.core.errors import NotFoundError, StateConflictError, ValidationError
from lms_api.db import models
from lms_api.queue.email_dispatcher import ScheduledEmailDispatcher
from lms_api.services import email_template_service, scheduled_email_service
from lms_api.utils.datetime import utcnow


def _create(db, template, creator, recipients, **kwargs):
    return scheduled_email_service.create_schedule(
        db,
        template_id=template.id,
        created_by=creator.id,
        scheduled_at=utcnow() + timedelta(hours=1),
        recipient_ids=[u.id for u in recipients],
        **kwargs,
    )


def test_create_writes_recipient_rows(db, factory):
    creator = factory.user()
    recipients = [factory.user(), factory.user()]

    schedule = _create(db, factory.template(), creator, recipients + recipients[:1])

    assert sorted(schedule.recipient_ids) == sorted(u.id for u in recipients)
    assert schedule.status == "draft"


def test_create_rejects_inactive_template(db, factory):
    with pytest.raises(ValidationError):
        _create(db, factory.template(is_active=False), factory.user(), [factory.user()])


def test_create_rejects_inactive_or_unknown_recipient(db, factory):
    creator = factory.user()
    template = factory.template()

    with pytest.raises(ValidationError):
        _create(db, template, creator, [factory.user(is_active=False)])
    with pytest.raises(NotFoundError):
        scheduled_email_service.create_schedule(
            db,
            template_id=template.id,
            created_by=creator.id,
            scheduled_at=utcnow(),
            recipient_ids=["missing"],
        )
    assert db.query(models.ScheduledEmail).count() == 0


def test_update_replaces_recipients(db, factory):
    creator = factory.user()
    first, second = factory.user(), factory.user()
    schedule = _create(db, factory.template(), creator, [first])

    updated = scheduled_email_service.update_schedule(
        db, schedule.id, recipient_ids=[second.id], status="scheduled"
    )

    assert updated.recipient_ids == [second.id]
    assert updated.status == "scheduled"
    assert db.query(models.ScheduledEmailRecipient).count() == 1


def test_update_rejects_terminal_schedule_and_bad_status(db, factory):
    creator = factory.user()
    template = factory.template()
    sent = factory.scheduled_email(template, creator, [factory.user()], status="sent")
    draft = _create(db, template, creator, [])

    with pytest.raises(StateConflictError):
        scheduled_email_service.update_schedule(db, sent.id, custom_subject="x")
    with pytest.raises(ValidationError):
        scheduled_email_service.update_schedule(db, draft.id, status="sent")


def test_cancel(db, factory):
    creator = factory.user()
    template = factory.template()
    pending = _create(db, template, creator, [factory.user()])
    failed = factory.scheduled_email(template, creator, [factory.user()], status="failed")

    assert scheduled_email_service.cancel_schedule(db, pending.id).status == "cancelled"
    with pytest.raises(StateConflictError):
        scheduled_email_service.cancel_schedule(db, failed.id)


def test_cancelled_schedule_cannot_be_revived(db, factory, email_sender, session_factory):
    creator = factory.user()
    schedule = factory.scheduled_email(factory.template(), creator, [factory.user()])
    scheduled_email_service.cancel_schedule(db, schedule.id)

    with pytest.raises(StateConflictError):
        scheduled_email_service.update_schedule(db, schedule.id, status="scheduled")
    with pytest.raises(StateConflictError):
        scheduled_email_service.update_schedule(db, schedule.id, custom_subject="Back again")

    result = ScheduledEmailDispatcher(email_sender, session_factory).run()

    assert result.processed == 0
    assert email_sender.sent == []
    db.expire_all()
    assert db.get(models.ScheduledEmail, schedule.id).status == "cancelled"


def test_scheduled_cannot_move_back_to_draft(db, factory):
    schedule = _create(db, factory.template(), factory.user(), [factory.user()], status="scheduled")

    with pytest.raises(StateConflictError):
        scheduled_email_service.update_schedule(db, schedule.id, status="draft")

    db.expire_all()
    assert db.get(models.ScheduledEmail, schedule.id).status == "scheduled"


def test_delete_cascades_recipient_rows(db, factory):
    schedule = _create(db, factory.template(), factory.user(), [factory.user(), factory.user()])

    scheduled_email_service.delete_schedule(db, schedule.id)

    assert db.query(models.ScheduledEmailRecipient).count() == 0
    with pytest.raises(NotFoundError):
        scheduled_email_service.get_schedule(db, schedule.id)


def test_list_filters_and_paginates(db, factory):
    creator, other = factory.user(), factory.user()
    template = factory.template()
    for _ in range(3):
        _create(db, template, creator, [])
    _create(db, template, other, [], status="scheduled")

    page, total = scheduled_email_service.list_schedules(db, created_by=creator.id, limit=2)
    assert total == 3
    assert len(page) == 2

    scheduled, total = scheduled_email_service.list_schedules(db, status="scheduled")
    assert total == 1
    assert scheduled[0].created_by == other.id


def test_template_names_are_unique(db):
    email_template_service.create_template(db, name="welcome", type="onboarding", subject="Hi", body="Body")

    with pytest.raises(StateConflictError):
        email_template_service.create_template(db, name="welcome", type="onboarding", subject="Hi", body="Body")


def test_template_toggle_leaves_pending_schedules_alone(db, factory):
    template = factory.template()
    schedule = _create(db, template, factory.user(), [factory.user()], status="scheduled")

    toggled = email_template_service.toggle_template_active(db, template.id)

    assert toggled.is_active is False
    db.expire_all()
    assert db.get(models.ScheduledEmail, schedule.id).status == "scheduled"
    assert email_template_service.list_templates(db) == []
    assert len(email_template_service.list_templates(db, include_inactive=True)) == 1
