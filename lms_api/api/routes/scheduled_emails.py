"""Scheduled email endpoints."""
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from lms_api.db import models
from lms_api.db.session import get_db
from lms_api.services import scheduled_email_service

router = APIRouter(prefix="/scheduled-emails", tags=["scheduled-emails"])


class ScheduledEmailCreate(BaseModel):
    template_id: str
    created_by: str
    scheduled_at: datetime
    recipient_ids: list[str] = Field(default_factory=list)
    custom_subject: str | None = None
    status: str = models.ScheduleStatus.DRAFT.value


class ScheduledEmailUpdate(BaseModel):
    custom_subject: str | None = None
    status: str | None = None
    scheduled_at: datetime | None = None
    recipient_ids: list[str] | None = None


class ScheduledEmailResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    template_id: str
    custom_subject: str | None
    status: str
    created_by: str
    scheduled_at: datetime
    recipient_ids: list[str]


class ScheduledEmailPage(BaseModel):
    items: list[ScheduledEmailResponse]
    total: int
    page: int
    limit: int


@router.post("/", response_model=ScheduledEmailResponse, status_code=status.HTTP_201_CREATED)
def create_scheduled_email(payload: ScheduledEmailCreate, db: Session = Depends(get_db)) -> ScheduledEmailResponse:
    """Schedule a template for delivery to a list of users."""

    schedule = scheduled_email_service.create_schedule(db, **payload.model_dump())
    return ScheduledEmailResponse.model_validate(schedule)


@router.get("/", response_model=ScheduledEmailPage)
def list_scheduled_emails(
    status_filter: str | None = Query(default=None, alias="status"),
    created_by: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    db: Session = Depends(get_db),
) -> ScheduledEmailPage:
    schedules, total = scheduled_email_service.list_schedules(
        db, status=status_filter, created_by=created_by, page=page, limit=limit
    )
    return ScheduledEmailPage(
        items=[ScheduledEmailResponse.model_validate(s) for s in schedules],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/{schedule_id}", response_model=ScheduledEmailResponse)
def get_scheduled_email(schedule_id: str, db: Session = Depends(get_db)) -> ScheduledEmailResponse:
    return ScheduledEmailResponse.model_validate(scheduled_email_service.get_schedule(db, schedule_id))


@router.patch("/{schedule_id}", response_model=ScheduledEmailResponse)
def update_scheduled_email(
    schedule_id: str,
    payload: ScheduledEmailUpdate,
    db: Session = Depends(get_db),
) -> ScheduledEmailResponse:
    """Update a pending schedule; recipients are replaced when given."""

    schedule = scheduled_email_service.update_schedule(db, schedule_id, **payload.model_dump())
    return ScheduledEmailResponse.model_validate(schedule)


@router.post("/{schedule_id}/cancel", response_model=ScheduledEmailResponse)
def cancel_scheduled_email(schedule_id: str, db: Session = Depends(get_db)) -> ScheduledEmailResponse:
    schedule = scheduled_email_service.cancel_schedule(db, schedule_id)
    return ScheduledEmailResponse.model_validate(schedule)


@router.delete("/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_scheduled_email(schedule_id: str, db: Session = Depends(get_db)) -> Response:
    scheduled_email_service.delete_schedule(db, schedule_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
