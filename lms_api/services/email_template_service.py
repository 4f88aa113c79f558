"""Email template administration."""
from __future__ import annotations

from sqlalchemy.orm import Session

from lms_api.core.errors import NotFoundError, StateConflictError
from lms_api.db import models


def get_template(db: Session, template_id: str) -> models.EmailTemplate:
    template = db.query(models.EmailTemplate).filter(models.EmailTemplate.id == template_id).first()
    if template is None:
        raise NotFoundError("Email template not found")
    return template


def get_template_by_name(db: Session, name: str) -> models.EmailTemplate:
    template = db.query(models.EmailTemplate).filter(models.EmailTemplate.name == name).first()
    if template is None:
        raise NotFoundError("Email template not found")
    return template


def _ensure_unique_name(db: Session, name: str, *, exclude_id: str | None = None) -> None:
    query = db.query(models.EmailTemplate).filter(models.EmailTemplate.name == name)
    if exclude_id is not None:
        query = query.filter(models.EmailTemplate.id != exclude_id)
    if query.first() is not None:
        raise StateConflictError(f"Email template named {name!r} already exists")


def create_template(db: Session, *, name: str, type: str, subject: str, body: str) -> models.EmailTemplate:
    _ensure_unique_name(db, name)
    template = models.EmailTemplate(name=name, type=type, subject=subject, body=body, is_active=True)
    db.add(template)
    db.commit()
    db.refresh(template)
    return template


def list_templates(db: Session, *, type: str | None = None, include_inactive: bool = False) -> list[models.EmailTemplate]:
    query = db.query(models.EmailTemplate)
    if type is not None:
        query = query.filter(models.EmailTemplate.type == type)
    if not include_inactive:
        query = query.filter(models.EmailTemplate.is_active.is_(True))
    return query.order_by(models.EmailTemplate.name).all()


def update_template(
    db: Session,
    template_id: str,
    *,
    name: str | None = None,
    type: str | None = None,
    subject: str | None = None,
    body: str | None = None,
    is_active: bool | None = None,
) -> models.EmailTemplate:
    # Deactivation leaves pending schedules alone; the dispatcher fails them when due.
    template = get_template(db, template_id)
    if name is not None and name != template.name:
        _ensure_unique_name(db, name, exclude_id=template.id)
        template.name = name
    if type is not None:
        template.type = type
    if subject is not None:
        template.subject = subject
    if body is not None:
        template.body = body
    if is_active is not None:
        template.is_active = is_active
    db.commit()
    db.refresh(template)
    return template


def toggle_template_active(db: Session, template_id: str) -> models.EmailTemplate:
    template = get_template(db, template_id)
    return update_template(db, template_id, is_active=not template.is_active)
