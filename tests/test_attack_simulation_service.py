"""Tests for attack simulation schedule administration."""
from __future__ import annotations

from datetime import UTC, date, datetime, time

import pytest

from lms_api.core.errors import NotFoundError, StateConflictError, ValidationError
from lms_api.db import models
from lms_api.services import attack_simulation_service
from lms_api.utils.datetime import as_utc


@pytest.fixture()
def base(factory):
    return {
        "creator": factory.user(),
        "bundle": factory.bundle(),
        "group": factory.group([factory.user()]),
    }


def _create(db, base, **kwargs):
    kwargs.setdefault("launch_status", "Schedule Later")
    kwargs.setdefault("launch_date", "2026-07-01")
    kwargs.setdefault("launch_time", "14:00")
    kwargs.setdefault("timezone", "America/New_York")
    kwargs.setdefault("group_ids", [base["group"].id])
    return attack_simulation_service.create_simulation_schedule(
        db,
        name="Summer drill",
        bundle_id=base["bundle"].id,
        campaign_type="phishing",
        created_by=base["creator"].id,
        **kwargs,
    )


def test_launch_instant_is_normalised_to_utc(db, base):
    schedule = _create(db, base)

    # 14:00 EDT is 18:00 UTC.
    assert as_utc(schedule.launch_at) == datetime(2026, 7, 1, 18, 0, tzinfo=UTC)
    assert schedule.launch_date == date(2026, 7, 1)
    assert schedule.launch_time == time(14, 0)
    assert schedule.status == "draft"
    assert schedule.group_ids == [base["group"].id]


def test_deliver_immediately_uses_now_and_is_scheduled(db, base):
    now = datetime(2026, 1, 15, 12, 34, 56, tzinfo=UTC)

    schedule = _create(
        db,
        base,
        launch_status="Deliver Immediately",
        launch_date=None,
        launch_time=None,
        timezone="Asia/Tokyo",
        status="draft",
        now=now,
    )

    assert schedule.status == "scheduled"
    assert as_utc(schedule.launch_at) == now
    assert schedule.launch_date == date(2026, 1, 15)
    assert schedule.launch_time == time(21, 34)


@pytest.mark.parametrize(
    "overrides",
    [
        {"launch_date": "01/07/2026"},
        {"launch_time": "2pm"},
        {"timezone": "Mars/Olympus"},
        {"launch_date": None},
        {"launch_status": "Launched"},
        {"group_ids": []},
    ],
)
def test_invalid_input_is_rejected(db, base, overrides):
    with pytest.raises(ValidationError):
        _create(db, base, **overrides)
    assert db.query(models.ScheduleAttackSimulation).count() == 0


def test_unknown_references_are_rejected(db, base):
    with pytest.raises(NotFoundError):
        _create(db, base, group_ids=["missing"])
    with pytest.raises(NotFoundError):
        attack_simulation_service.create_simulation_schedule(
            db,
            name="x",
            bundle_id="missing",
            campaign_type="phishing",
            group_ids=[base["group"].id],
            launch_status="Schedule Later",
            launch_date="2026-07-01",
            launch_time="14:00",
            timezone="UTC",
            created_by=base["creator"].id,
        )


def test_update_recomputes_launch_instant(db, base):
    schedule = _create(db, base)

    updated = attack_simulation_service.update_simulation_schedule(
        db, schedule.id, launch_time="09:15", timezone="UTC"
    )

    assert as_utc(updated.launch_at) == datetime(2026, 7, 1, 9, 15, tzinfo=UTC)


def test_update_replaces_groups_before_launch(db, factory, base):
    schedule = _create(db, base)
    other = factory.group([factory.user()])

    updated = attack_simulation_service.update_simulation_schedule(db, schedule.id, group_ids=[other.id])

    assert updated.group_ids == [other.id]


def test_groups_and_bundle_are_frozen_after_launch(db, factory, base):
    schedule = _create(db, base)
    schedule.launch_status = "Launched"
    db.commit()

    with pytest.raises(StateConflictError):
        attack_simulation_service.update_simulation_schedule(db, schedule.id, group_ids=[factory.group().id])
    with pytest.raises(StateConflictError):
        attack_simulation_service.update_simulation_schedule(db, schedule.id, bundle_id=factory.bundle().id)
    with pytest.raises(StateConflictError):
        attack_simulation_service.update_simulation_schedule(db, schedule.id, launch_time="10:00")

    renamed = attack_simulation_service.update_simulation_schedule(db, schedule.id, name="Renamed")
    assert renamed.name == "Renamed"
    assert renamed.group_ids == [base["group"].id]


def test_cancel(db, base):
    schedule = _create(db, base, status="scheduled")

    assert attack_simulation_service.cancel_simulation_schedule(db, schedule.id).status == "cancelled"

    schedule.status = "completed"
    db.commit()
    with pytest.raises(StateConflictError):
        attack_simulation_service.cancel_simulation_schedule(db, schedule.id)
