"""Attack simulation launch schedule endpoints."""
from __future__ import annotations

from datetime import date, datetime, time

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from lms_api.db.session import get_db
from lms_api.services import attack_simulation_service

router = APIRouter(prefix="/attack-simulation-schedules", tags=["attack-simulation-schedules"])


class SimulationScheduleCreate(BaseModel):
    name: str
    bundle_id: str
    campaign_type: str
    group_ids: list[str]
    launch_status: str
    timezone: str = "UTC"
    created_by: str
    launch_date: str | None = None
    launch_time: str | None = None
    status: str | None = None


class SimulationScheduleUpdate(BaseModel):
    name: str | None = None
    bundle_id: str | None = None
    group_ids: list[str] | None = None
    launch_status: str | None = None
    launch_date: str | None = None
    launch_time: str | None = None
    timezone: str | None = None
    status: str | None = None


class SimulationScheduleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    bundle_id: str
    campaign_type: str
    group_ids: list[str]
    launch_date: date
    launch_time: time
    timezone: str
    launch_at: datetime
    status: str
    launch_status: str
    created_by: str


@router.post("/", response_model=SimulationScheduleResponse, status_code=201)
def create_simulation_schedule(
    payload: SimulationScheduleCreate, db: Session = Depends(get_db)
) -> SimulationScheduleResponse:
    """Schedule a phishing simulation for a bundle's target groups."""

    schedule = attack_simulation_service.create_simulation_schedule(db, **payload.model_dump())
    return SimulationScheduleResponse.model_validate(schedule)


@router.get("/", response_model=list[SimulationScheduleResponse])
def list_simulation_schedules(
    status_filter: str | None = Query(default=None, alias="status"),
    launch_status: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[SimulationScheduleResponse]:
    schedules = attack_simulation_service.list_simulation_schedules(
        db, status=status_filter, launch_status=launch_status
    )
    return [SimulationScheduleResponse.model_validate(s) for s in schedules]


@router.get("/{schedule_id}", response_model=SimulationScheduleResponse)
def get_simulation_schedule(schedule_id: str, db: Session = Depends(get_db)) -> SimulationScheduleResponse:
    schedule = attack_simulation_service.get_simulation_schedule(db, schedule_id)
    return SimulationScheduleResponse.model_validate(schedule)


@router.patch("/{schedule_id}", response_model=SimulationScheduleResponse)
def update_simulation_schedule(
    schedule_id: str,
    payload: SimulationScheduleUpdate,
    db: Session = Depends(get_db),
) -> SimulationScheduleResponse:
    schedule = attack_simulation_service.update_simulation_schedule(db, schedule_id, **payload.model_dump())
    return SimulationScheduleResponse.model_validate(schedule)


@router.post("/{schedule_id}/cancel", response_model=SimulationScheduleResponse)
def cancel_simulation_schedule(schedule_id: str, db: Session = Depends(get_db)) -> SimulationScheduleResponse:
    schedule = attack_simulation_service.cancel_simulation_schedule(db, schedule_id)
    return SimulationScheduleResponse.model_validate(schedule)
