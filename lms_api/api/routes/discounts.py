"""Discount endpoints."""
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from lms_api.db.session import get_db
from lms_api.services import discount_service

router = APIRouter(prefix="/discounts", tags=["discounts"])


class DiscountCreate(BaseModel):
    bundle_ids: list[str] | None = None
    percentage: float | None = None
    seats_percentage: float | None = None
    seats_threshold: int | None = None
    expiry_date: datetime | None = None


class DiscountUpdate(BaseModel):
    bundle_id: str | None = None
    percentage: float | None = None
    seats_percentage: float | None = None
    seats_threshold: int | None = None
    expiry_date: datetime | None = None
    is_active: bool | None = None


class DiscountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    bundle_id: str | None
    percentage: float | None
    seats_percentage: float | None
    seats_threshold: int | None
    expiry_date: datetime | None
    is_active: bool


@router.post("/", response_model=list[DiscountResponse], status_code=201)
def create_discounts(payload: DiscountCreate, db: Session = Depends(get_db)) -> list[DiscountResponse]:
    """Create one discount per bundle, or one bundle-agnostic discount."""

    discounts = discount_service.create_discounts(db, **payload.model_dump())
    return [DiscountResponse.model_validate(d) for d in discounts]


@router.get("/", response_model=list[DiscountResponse])
def list_discounts(
    bundle_id: str | None = Query(default=None),
    include_inactive: bool = Query(default=False),
    db: Session = Depends(get_db),
) -> list[DiscountResponse]:
    discounts = discount_service.list_discounts(db, bundle_id=bundle_id, include_inactive=include_inactive)
    return [DiscountResponse.model_validate(d) for d in discounts]


@router.get("/{discount_id}", response_model=DiscountResponse)
def get_discount(discount_id: str, db: Session = Depends(get_db)) -> DiscountResponse:
    return DiscountResponse.model_validate(discount_service.get_discount(db, discount_id))


@router.patch("/{discount_id}", response_model=DiscountResponse)
def update_discount(
    discount_id: str,
    payload: DiscountUpdate,
    db: Session = Depends(get_db),
) -> DiscountResponse:
    """Only the fields present in the body change; deactivation reprices purchases."""

    discount = discount_service.update_discount(db, discount_id, **payload.model_dump(exclude_unset=True))
    return DiscountResponse.model_validate(discount)


@router.post("/{discount_id}/toggle-active", response_model=DiscountResponse)
def toggle_discount(discount_id: str, db: Session = Depends(get_db)) -> DiscountResponse:
    return DiscountResponse.model_validate(discount_service.toggle_discount_active(db, discount_id))


@router.delete("/{discount_id}", response_model=DiscountResponse)
def delete_discount(discount_id: str, db: Session = Depends(get_db)) -> DiscountResponse:
    """Soft delete."""

    return DiscountResponse.model_validate(discount_service.delete_discount(db, discount_id))
