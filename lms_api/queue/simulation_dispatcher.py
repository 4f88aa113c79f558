"""Periodic sweep that launches due phishing-simulation campaigns."""
from __future__ import annotations

import threading
from dataclasses import asdict, dataclass, field
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lms_api.core.errors import ConfigurationError
from lms_api.db import models
from lms_api.db.session import SessionFactory, SessionLocal, session_scope
from lms_api.services import attack_simulation_service
from lms_api.services import recipients as recipient_resolver
from lms_api.services.gophish import CampaignLauncher, CampaignRequest
from lms_api.utils.datetime import as_utc, utcnow
from lms_api.utils.logger import logger

LAUNCHED = models.LaunchStatus.LAUNCHED.value
LAUNCH_FAILED = models.LaunchStatus.LAUNCH_FAILED.value


@dataclass
class SimulationSweepResult:
    processed: int = 0
    launched: int = 0
    failed: int = 0
    skipped: bool = False
    errors: list[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return asdict(self)


def attack_simulation_for(bundle: models.Bundle | None) -> models.AttackSimulation | None:
    """The first attack simulation configured on one of the bundle's courses."""

    if bundle is None:
        return None
    for course in bundle.courses:
        if course.attack_simulation is not None:
            return course.attack_simulation
    return None


class ScheduleAttackSimulationDispatcher:
    def __init__(self, launcher: CampaignLauncher, session_factory: SessionFactory = SessionLocal) -> None:
        self.launcher = launcher
        self.session_factory = session_factory
        self._lock = threading.Lock()

    def run(self, now: datetime | None = None, *, blocking: bool = False) -> SimulationSweepResult:
        if not self._lock.acquire(blocking=blocking):
            logger.warning("Simulation launch sweep already in progress; skipping")
            return SimulationSweepResult(skipped=True)
        try:
            return self._sweep(now or utcnow())
        finally:
            self._lock.release()

    def _sweep(self, now: datetime) -> SimulationSweepResult:
        result = SimulationSweepResult()
        with session_scope(self.session_factory) as db:
            schedule_ids = [s.id for s in attack_simulation_service.due_simulation_schedules(db, now)]
            logger.info("Found %s simulation schedules due for launch", len(schedule_ids))

            for schedule_id in schedule_ids:
                result.processed += 1
                if self._process_one(db, schedule_id, result.errors) == LAUNCHED:
                    result.launched += 1
                else:
                    result.failed += 1

        if result.errors:
            logger.warning("Simulation launch sweep had %s errors", len(result.errors))
        return result

    def _process_one(self, db: Session, schedule_id: str, errors: list[str]) -> str:
        try:
            schedule = db.get(models.ScheduleAttackSimulation, schedule_id)
            launch_status = self.process(db, schedule, errors)
            db.commit()
            return launch_status
        except ConfigurationError as exc:
            errors.append(f"Schedule {schedule_id}: {exc.message}")
            logger.error("Simulation schedule %s cannot launch: %s", schedule_id, exc.message)
        except Exception as exc:
            errors.append(f"Schedule {schedule_id}: {exc}")
            logger.exception("Error processing simulation schedule %s", schedule_id)

        db.rollback()
        try:
            schedule = db.get(models.ScheduleAttackSimulation, schedule_id)
            if schedule is not None:
                schedule.launch_status = LAUNCH_FAILED
            db.commit()
        except SQLAlchemyError:
            logger.exception("Could not record launch failure for simulation schedule %s", schedule_id)
            db.rollback()
        return LAUNCH_FAILED

    def process(self, db: Session, schedule: models.ScheduleAttackSimulation, errors: list[str]) -> str:
        """Launch one campaign per target group and set the launch outcome (not committed)."""

        simulation = attack_simulation_for(schedule.bundle)
        if simulation is None:
            raise ConfigurationError("No attack simulation configured for the bundle")
        if not schedule.target_groups:
            raise ConfigurationError("No target groups")

        launched = 0
        for target in schedule.target_groups:
            group = target.group
            if not recipient_resolver.resolve_group_targets(db, [group.id]):
                errors.append(f"Schedule {schedule.id}: group {group.name} has no active users")
                logger.warning("Group %s has no active users; skipping launch", group.id)
                continue

            request = CampaignRequest(
                name=f"{simulation.name} - {schedule.name} - Groups: {group.name}",
                template=simulation.template,
                url=simulation.url,
                page=simulation.page,
                smtp=simulation.smtp,
                launch_date=as_utc(schedule.launch_at).isoformat(),
                groups=[group.name],
            )
            try:
                self.launcher.launch(request)
            except Exception as exc:
                errors.append(f"Schedule {schedule.id}: launch for group {group.name} failed: {exc}")
                logger.warning("Campaign launch for group %s failed: %s", group.id, exc)
            else:
                launched += 1

        if launched:
            schedule.launch_status = LAUNCHED
            schedule.status = models.SimulationStatus.COMPLETED.value
            logger.info("Simulation schedule %s launched for %s groups", schedule.id, launched)
        else:
            schedule.launch_status = LAUNCH_FAILED
        return schedule.launch_status
