"""Email template endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from lms_api.db.session import get_db
from lms_api.services import email_template_service
from lms_api.services.template_parser import render, resolve_subject

router = APIRouter(prefix="/email-templates", tags=["email-templates"])


class EmailTemplateCreate(BaseModel):
    name: str
    type: str
    subject: str
    body: str


class EmailTemplateUpdate(BaseModel):
    name: str | None = None
    type: str | None = None
    subject: str | None = None
    body: str | None = None
    is_active: bool | None = None


class EmailTemplateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    type: str
    subject: str
    body: str
    is_active: bool


class TemplatePreviewRequest(BaseModel):
    variables: dict[str, str] = Field(default_factory=dict)
    custom_subject: str | None = None


class TemplatePreview(BaseModel):
    subject: str
    body: str


@router.post("/", response_model=EmailTemplateResponse, status_code=201)
def create_email_template(payload: EmailTemplateCreate, db: Session = Depends(get_db)) -> EmailTemplateResponse:
    template = email_template_service.create_template(db, **payload.model_dump())
    return EmailTemplateResponse.model_validate(template)


@router.get("/", response_model=list[EmailTemplateResponse])
def list_email_templates(
    type: str | None = Query(default=None),
    include_inactive: bool = Query(default=False),
    db: Session = Depends(get_db),
) -> list[EmailTemplateResponse]:
    templates = email_template_service.list_templates(db, type=type, include_inactive=include_inactive)
    return [EmailTemplateResponse.model_validate(t) for t in templates]


@router.get("/{template_id}", response_model=EmailTemplateResponse)
def get_email_template(template_id: str, db: Session = Depends(get_db)) -> EmailTemplateResponse:
    return EmailTemplateResponse.model_validate(email_template_service.get_template(db, template_id))


@router.patch("/{template_id}", response_model=EmailTemplateResponse)
def update_email_template(
    template_id: str,
    payload: EmailTemplateUpdate,
    db: Session = Depends(get_db),
) -> EmailTemplateResponse:
    template = email_template_service.update_template(db, template_id, **payload.model_dump())
    return EmailTemplateResponse.model_validate(template)


@router.post("/{template_id}/toggle-active", response_model=EmailTemplateResponse)
def toggle_email_template(template_id: str, db: Session = Depends(get_db)) -> EmailTemplateResponse:
    """Flip ``is_active``; pending schedules using the template are left as they are."""

    template = email_template_service.toggle_template_active(db, template_id)
    return EmailTemplateResponse.model_validate(template)


@router.post("/{template_id}/preview", response_model=TemplatePreview)
def preview_email_template(
    template_id: str,
    payload: TemplatePreviewRequest,
    db: Session = Depends(get_db),
) -> TemplatePreview:
    """Render the template with sample variables, as one recipient would see it."""

    template = email_template_service.get_template(db, template_id)
    subject = resolve_subject(template.subject, payload.custom_subject)
    return TemplatePreview(
        subject=render(subject, payload.variables),
        body=render(template.body, payload.variables),
    )
