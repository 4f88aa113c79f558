"""Shared fixtures: in-memory database, record factories and transport doubles."""
from __future__ import annotations

import threading
from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from lms_api.core.errors import TransportError
from lms_api.db import models
from lms_api.utils.datetime import utcnow


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    models.Base.metadata.create_all(bind=engine)
    yield engine
    models.Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


class FakeEmailSender:
    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.fail_for = set(fail_for or ())
        self.sent: list[dict[str, str]] = []
        self._lock = threading.Lock()

    def send(self, to: str, subject: str, body: str) -> str:
        if to in self.fail_for:
            raise TransportError(f"Failed to send email to {to}")
        with self._lock:
            self.sent.append({"to": to, "subject": subject, "body": body})
            return f"msg-{len(self.sent)}"


class FakeLauncher:
    def __init__(self, fail_for_groups: set[str] | None = None) -> None:
        self.fail_for_groups = set(fail_for_groups or ())
        self.requests = []

    def launch(self, request) -> str:
        if set(request.groups) & self.fail_for_groups:
            raise TransportError("GoPhish rejected campaign")
        self.requests.append(request)
        return str(len(self.requests))


@pytest.fixture()
def email_sender():
    return FakeEmailSender()


@pytest.fixture()
def launcher():
    return FakeLauncher()


class Factory:
    """Creates committed rows with sensible defaults."""

    def __init__(self, db) -> None:
        self.db = db
        self._counter = 0

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def user(self, *, email=None, first_name="Ada", last_name="Lovelace", is_active=True):
        n = self._next()
        return self._save(
            models.User(
                email=email or f"user{n}@example.com",
                first_name=first_name,
                last_name=last_name,
                is_active=is_active,
            )
        )

    def template(self, *, name=None, subject="Hello {{firstName}}", body="<p>Hi {{firstName}}</p>", is_active=True):
        n = self._next()
        return self._save(
            models.EmailTemplate(
                name=name or f"template-{n}",
                type="notification",
                subject=subject,
                body=body,
                is_active=is_active,
            )
        )

    def scheduled_email(self, template, creator, recipients=(), *, status="scheduled", scheduled_at=None, custom_subject=None):
        schedule = models.ScheduledEmail(
            template_id=template.id,
            created_by=creator.id,
            status=status,
            custom_subject=custom_subject,
            scheduled_at=scheduled_at or utcnow() - timedelta(minutes=1),
        )
        schedule.recipients = [models.ScheduledEmailRecipient(user_id=user.id) for user in recipients]
        return self._save(schedule)

    def bundle(self, *, seat_price="100.00", courses=()):
        n = self._next()
        bundle = models.Bundle(title=f"Bundle {n}", bundle_type="standard", seat_price=Decimal(seat_price))
        bundle.courses = list(courses)
        return self._save(bundle)

    def attack_simulation(self, *, name="Invoice Phish"):
        return self._save(
            models.AttackSimulation(
                name=name,
                template="Invoice Template",
                url="https://phish.example.com",
                page="Login Page",
                smtp="Default SMTP",
            )
        )

    def course(self, *, attack_simulation=None):
        n = self._next()
        return self._save(
            models.Course(
                title=f"Course {n}",
                attack_simulation_id=attack_simulation.id if attack_simulation else None,
            )
        )

    def group(self, members=(), *, name=None):
        n = self._next()
        group = models.Group(name=name or f"Group {n}")
        group.memberships = [models.GroupUser(user_id=user.id) for user in members]
        return self._save(group)

    def discount(self, **fields):
        fields.setdefault("is_active", True)
        return self._save(models.Discount(**fields))

    def user_course(self, user, course, *, status="pending", launch_date=None, expiry_date=None, visibility=False):
        return self._save(
            models.UserCourse(
                user_id=user.id,
                course_id=course.id,
                status=status,
                launch_date=launch_date,
                expiry_date=expiry_date,
                visibility=visibility,
            )
        )


@pytest.fixture()
def factory(db):
    return Factory(db)
