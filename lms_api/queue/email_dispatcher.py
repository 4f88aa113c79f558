"""Periodic sweep that delivers due scheduled emails."""
from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Mapping

from markupsafe import escape
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lms_api.core.config import settings
from lms_api.core.errors import ConfigurationError
from lms_api.db import models
from lms_api.db.session import SessionFactory, SessionLocal, session_scope
from lms_api.services import recipients as recipient_resolver
from lms_api.services import scheduled_email_service
from lms_api.services.email_sender import EmailSender
from lms_api.services.template_engine import render_email_layout
from lms_api.services.template_parser import render, resolve_subject
from lms_api.utils.datetime import utcnow
from lms_api.utils.logger import logger

SENT = models.ScheduleStatus.SENT.value
FAILED = models.ScheduleStatus.FAILED.value


@dataclass
class SweepResult:
    processed: int = 0
    success: int = 0
    failed: int = 0
    skipped: bool = False

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Delivery:
    recipient: str
    subject: str
    body: str


class ScheduledEmailDispatcher:
    """Finds due schedules, renders per-recipient content and sends it.

    One sweep runs at a time per dispatcher. Each schedule is committed on its
    own so a broken schedule only marks itself ``failed``.
    """

    def __init__(
        self,
        email_sender: EmailSender,
        session_factory: SessionFactory = SessionLocal,
        *,
        max_workers: int | None = None,
        placeholders: Mapping[str, str] | None = None,
        default_first_name: str | None = None,
    ) -> None:
        self.email_sender = email_sender
        self.session_factory = session_factory
        self.max_workers = max_workers or settings.email_send_concurrency
        self.placeholders = dict(settings.campaign_placeholders if placeholders is None else placeholders)
        self.default_first_name = default_first_name or settings.default_recipient_first_name
        self._lock = threading.Lock()

    def run(self, now: datetime | None = None, *, blocking: bool = False) -> SweepResult:
        if not self._lock.acquire(blocking=blocking):
            logger.warning("Scheduled email sweep already in progress; skipping")
            return SweepResult(skipped=True)
        try:
            return self._sweep(now or utcnow())
        finally:
            self._lock.release()

    def _sweep(self, now: datetime) -> SweepResult:
        result = SweepResult()
        with session_scope(self.session_factory) as db:
            schedule_ids = [s.id for s in scheduled_email_service.pending_schedules(db, now)]
            logger.info("Found %s pending scheduled emails", len(schedule_ids))

            for schedule_id in schedule_ids:
                result.processed += 1
                if self._process_one(db, schedule_id) == SENT:
                    result.success += 1
                else:
                    result.failed += 1

        logger.info(
            "Scheduled email sweep finished: processed=%s success=%s failed=%s",
            result.processed,
            result.success,
            result.failed,
        )
        return result

    def _process_one(self, db: Session, schedule_id: str) -> str:
        try:
            schedule = db.get(models.ScheduledEmail, schedule_id)
            status = self.process(db, schedule)
            db.commit()
            return status
        except ConfigurationError as exc:
            logger.error("Scheduled email %s failed: %s", schedule_id, exc.message)
        except Exception:
            logger.exception("Failed to process scheduled email %s", schedule_id)

        db.rollback()
        try:
            schedule = db.get(models.ScheduledEmail, schedule_id)
            if schedule is not None:
                schedule.status = FAILED
            db.commit()
        except SQLAlchemyError:
            logger.exception("Could not record failure for scheduled email %s", schedule_id)
            db.rollback()
        return FAILED

    def process(self, db: Session, schedule: models.ScheduledEmail) -> str:
        """Deliver one schedule and set its terminal status (not committed)."""

        template = schedule.template
        if template is None or not template.is_active:
            raise ConfigurationError("Template not found or inactive")

        users = recipient_resolver.resolve(db, schedule)
        if not users:
            raise ConfigurationError("No active recipients")

        subject = resolve_subject(template.subject, schedule.custom_subject)
        deliveries = [self.build_delivery(template, subject, user) for user in users]
        logger.info("Sending scheduled email %s to %s active recipients", schedule.id, len(deliveries))

        sent, failed = self.deliver(deliveries)
        if sent and failed:
            # Partial delivery still counts as sent; the failures are only visible here.
            logger.warning(
                "Scheduled email %s partially sent: %s succeeded, %s failed", schedule.id, sent, failed
            )
        elif not sent:
            logger.error("All %s sends failed for scheduled email %s", failed, schedule.id)

        schedule.status = SENT if sent else FAILED
        return schedule.status

    def recipient_variables(self, user: models.User) -> dict[str, str]:
        first_name = user.first_name or self.default_first_name
        last_name = user.last_name or ""
        variables = dict(self.placeholders)
        variables.update(
            {
                "firstName": first_name,
                "lastName": last_name,
                "first_name": first_name,
                "last_name": last_name,
                "name": f"{first_name} {last_name}".strip(),
                "email": user.email,
            }
        )
        return variables

    def build_delivery(self, template: models.EmailTemplate, subject: str, user: models.User) -> Delivery:
        variables = self.recipient_variables(user)
        rendered_subject = render(subject, variables)
        # Bodies are HTML; recipient data is escaped before it reaches the layout.
        html_variables = {key: None if value is None else str(escape(value)) for key, value in variables.items()}
        rendered_body = render(template.body, html_variables)
        html = render_email_layout(subject=rendered_subject, body=rendered_body, app_name=settings.app_name)
        return Delivery(recipient=user.email, subject=rendered_subject, body=html)

    def deliver(self, deliveries: list[Delivery]) -> tuple[int, int]:
        """Send on a bounded pool; returns (sent, failed)."""

        sent = failed = 0
        workers = max(1, min(self.max_workers, len(deliveries)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="email-send") as pool:
            futures = {
                pool.submit(self.email_sender.send, d.recipient, d.subject, d.body): d for d in deliveries
            }
            for future in as_completed(futures):
                delivery = futures[future]
                try:
                    future.result()
                except Exception as exc:
                    failed += 1
                    logger.warning("Failed to send email to %s: %s", delivery.recipient, exc)
                else:
                    sent += 1
        return sent, failed
