"""Phishing-simulation launch schedules."""
from __future__ import annotations

from datetime import date, datetime, time
from typing import Iterable

from sqlalchemy.orm import Session

from lms_api.core.errors import NotFoundError, StateConflictError, ValidationError
from lms_api.db import models
from lms_api.utils.datetime import as_utc, load_zone, local_to_utc, utcnow

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"


def parse_launch_date(value: str) -> date:
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError as exc:
        raise ValidationError("launch_date must be in YYYY-MM-DD format") from exc


def parse_launch_time(value: str) -> time:
    try:
        return datetime.strptime(value, TIME_FORMAT).time()
    except ValueError as exc:
        raise ValidationError("launch_time must be in HH:mm format") from exc


def validate_timezone(name: str) -> str:
    try:
        load_zone(name)
    except ValueError as exc:
        raise ValidationError("Invalid timezone") from exc
    return name


def get_simulation_schedule(db: Session, schedule_id: str) -> models.ScheduleAttackSimulation:
    schedule = (
        db.query(models.ScheduleAttackSimulation)
        .filter(models.ScheduleAttackSimulation.id == schedule_id)
        .first()
    )
    if schedule is None:
        raise NotFoundError("Scheduled attack simulation not found")
    return schedule


def _validate_groups(db: Session, group_ids: Iterable[str]) -> list[str]:
    group_ids = list(dict.fromkeys(group_ids))
    if not group_ids:
        raise ValidationError("At least one target group is required")
    found = {row.id for row in db.query(models.Group.id).filter(models.Group.id.in_(group_ids)).all()}
    for group_id in group_ids:
        if group_id not in found:
            raise NotFoundError(f"Group {group_id} not found")
    return group_ids


def _launch_instant(
    launch_status: str,
    timezone_name: str,
    launch_date: str | None,
    launch_time: str | None,
    now: datetime,
) -> tuple[date, time, datetime]:
    """Return the wall-clock date/time to store and the normalised UTC instant."""

    if launch_status == models.LaunchStatus.DELIVER_IMMEDIATELY.value:
        local_now = as_utc(now).astimezone(load_zone(timezone_name))
        wall_time = local_now.time().replace(second=0, microsecond=0)
        return local_now.date(), wall_time, as_utc(now)

    if not launch_date or not launch_time:
        raise ValidationError("launch_date and launch_time are required for Schedule Later")
    parsed_date = parse_launch_date(launch_date)
    parsed_time = parse_launch_time(launch_time)
    return parsed_date, parsed_time, local_to_utc(parsed_date, parsed_time, timezone_name)


def create_simulation_schedule(
    db: Session,
    *,
    name: str,
    bundle_id: str,
    campaign_type: str,
    group_ids: Iterable[str],
    launch_status: str,
    timezone: str,
    created_by: str,
    launch_date: str | None = None,
    launch_time: str | None = None,
    status: str | None = None,
    now: datetime | None = None,
) -> models.ScheduleAttackSimulation:
    if launch_status not in models.PENDING_LAUNCH_STATUSES:
        raise ValidationError("launch_status must be 'Deliver Immediately' or 'Schedule Later'")
    validate_timezone(timezone)
    stored_date, stored_time, launch_at = _launch_instant(
        launch_status, timezone, launch_date, launch_time, now or utcnow()
    )

    if db.get(models.Bundle, bundle_id) is None:
        raise NotFoundError("Bundle not found")
    if db.get(models.User, created_by) is None:
        raise NotFoundError("Creating user not found")
    group_ids = _validate_groups(db, group_ids)

    if launch_status == models.LaunchStatus.DELIVER_IMMEDIATELY.value:
        status = models.SimulationStatus.SCHEDULED.value
    elif status is None:
        status = models.SimulationStatus.DRAFT.value
    elif status not in {models.SimulationStatus.DRAFT.value, models.SimulationStatus.SCHEDULED.value}:
        raise ValidationError("New simulation schedules must be draft or scheduled")

    schedule = models.ScheduleAttackSimulation(
        name=name,
        bundle_id=bundle_id,
        campaign_type=campaign_type,
        launch_date=stored_date,
        launch_time=stored_time,
        timezone=timezone,
        launch_at=launch_at,
        status=status,
        launch_status=launch_status,
        created_by=created_by,
    )
    schedule.target_groups = [models.ScheduleAttackSimulationGroup(group_id=group_id) for group_id in group_ids]
    db.add(schedule)
    db.commit()
    db.refresh(schedule)
    return schedule


def list_simulation_schedules(
    db: Session, *, status: str | None = None, launch_status: str | None = None
) -> list[models.ScheduleAttackSimulation]:
    query = db.query(models.ScheduleAttackSimulation)
    if status is not None:
        query = query.filter(models.ScheduleAttackSimulation.status == status)
    if launch_status is not None:
        query = query.filter(models.ScheduleAttackSimulation.launch_status == launch_status)
    return query.order_by(models.ScheduleAttackSimulation.launch_at.desc()).all()


def update_simulation_schedule(
    db: Session,
    schedule_id: str,
    *,
    name: str | None = None,
    bundle_id: str | None = None,
    group_ids: Iterable[str] | None = None,
    launch_status: str | None = None,
    launch_date: str | None = None,
    launch_time: str | None = None,
    timezone: str | None = None,
    status: str | None = None,
    now: datetime | None = None,
) -> models.ScheduleAttackSimulation:
    schedule = get_simulation_schedule(db, schedule_id)

    if schedule.has_launched and (bundle_id is not None or group_ids is not None):
        raise StateConflictError("Target groups and bundle cannot change after the simulation has launched")
    if schedule.has_launched and any(v is not None for v in (launch_status, launch_date, launch_time, timezone)):
        raise StateConflictError("Launch settings cannot change after the simulation has launched")

    if name is not None:
        schedule.name = name
    if bundle_id is not None:
        if db.get(models.Bundle, bundle_id) is None:
            raise NotFoundError("Bundle not found")
        schedule.bundle_id = bundle_id
    if status is not None:
        if status not in {s.value for s in models.SimulationStatus}:
            raise ValidationError("Invalid status")
        schedule.status = status

    if any(v is not None for v in (launch_status, launch_date, launch_time, timezone)):
        new_status = launch_status or schedule.launch_status
        if new_status not in models.PENDING_LAUNCH_STATUSES:
            raise ValidationError("launch_status must be 'Deliver Immediately' or 'Schedule Later'")
        new_zone = validate_timezone(timezone or schedule.timezone)
        stored_date, stored_time, launch_at = _launch_instant(
            new_status,
            new_zone,
            launch_date or schedule.launch_date.strftime(DATE_FORMAT),
            launch_time or schedule.launch_time.strftime(TIME_FORMAT),
            now or utcnow(),
        )
        schedule.launch_status = new_status
        schedule.timezone = new_zone
        schedule.launch_date = stored_date
        schedule.launch_time = stored_time
        schedule.launch_at = launch_at
        if new_status == models.LaunchStatus.DELIVER_IMMEDIATELY.value:
            schedule.status = models.SimulationStatus.SCHEDULED.value

    try:
        if group_ids is not None:
            validated = _validate_groups(db, group_ids)
            schedule.target_groups.clear()
            db.flush()
            for group_id in validated:
                schedule.target_groups.append(models.ScheduleAttackSimulationGroup(group_id=group_id))
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(schedule)
    return schedule


def cancel_simulation_schedule(db: Session, schedule_id: str) -> models.ScheduleAttackSimulation:
    schedule = get_simulation_schedule(db, schedule_id)
    if schedule.status == models.SimulationStatus.COMPLETED.value:
        raise StateConflictError("Cannot cancel a completed simulation")
    schedule.status = models.SimulationStatus.CANCELLED.value
    db.commit()
    db.refresh(schedule)
    return schedule


def due_simulation_schedules(db: Session, now: datetime) -> list[models.ScheduleAttackSimulation]:
    return (
        db.query(models.ScheduleAttackSimulation)
        .filter(
            models.ScheduleAttackSimulation.status == models.SimulationStatus.SCHEDULED.value,
            models.ScheduleAttackSimulation.launch_status.in_(models.PENDING_LAUNCH_STATUSES),
            models.ScheduleAttackSimulation.launch_at <= as_utc(now),
        )
        .order_by(models.ScheduleAttackSimulation.launch_at)
        .all()
    )
