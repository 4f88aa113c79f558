"""Discount administration and the purchase price cascade on deactivation."""
from __future__ import annotations

from datetime import datetime
from typing import Iterable

from sqlalchemy.orm import Session

from lms_api.core.errors import NotFoundError, ValidationError
from lms_api.db import models
from lms_api.services import pricing
from lms_api.utils.datetime import as_utc, utcnow
from lms_api.utils.logger import logger

_UNSET = object()


def get_discount(db: Session, discount_id: str) -> models.Discount:
    discount = db.query(models.Discount).filter(models.Discount.id == discount_id).first()
    if discount is None:
        raise NotFoundError("Discount not found")
    return discount


def _validate_percentage(value: float | None, field: str) -> None:
    if value is not None and not 0 <= value <= 100:
        raise ValidationError(f"{field} must be between 0 and 100")


def _validate_seats_rule(seats_percentage: float | None, seats_threshold: int | None) -> None:
    if (seats_percentage is None) != (seats_threshold is None):
        raise ValidationError("seats rule must have both percentage and seats_threshold")
    _validate_percentage(seats_percentage, "seats percentage")
    if seats_threshold is not None and seats_threshold < 1:
        raise ValidationError("seats_threshold must be at least 1")


def _validate_expiry(expiry_date: datetime | None, now: datetime) -> datetime | None:
    if expiry_date is None:
        return None
    expiry_date = as_utc(expiry_date)
    if expiry_date <= now:
        raise ValidationError("expiry_date must be in the future")
    return expiry_date


def create_discounts(
    db: Session,
    *,
    bundle_ids: Iterable[str] | None = None,
    percentage: float | None = None,
    seats_percentage: float | None = None,
    seats_threshold: int | None = None,
    expiry_date: datetime | None = None,
    now: datetime | None = None,
) -> list[models.Discount]:
    """Create one discount per bundle id, or a single bundle-agnostic discount."""

    if percentage is None and seats_threshold is None:
        raise ValidationError("At least one of percentage or seats is required")
    _validate_percentage(percentage, "percentage")
    _validate_seats_rule(seats_percentage, seats_threshold)
    expiry_date = _validate_expiry(expiry_date, now or utcnow())

    targets = list(bundle_ids or []) or [None]
    for bundle_id in targets:
        if bundle_id is not None and db.get(models.Bundle, bundle_id) is None:
            raise NotFoundError(f"Bundle not found: {bundle_id}")

    discounts = [
        models.Discount(
            bundle_id=bundle_id,
            percentage=percentage,
            seats_percentage=seats_percentage,
            seats_threshold=seats_threshold,
            expiry_date=expiry_date,
            is_active=True,
        )
        for bundle_id in targets
    ]
    db.add_all(discounts)
    db.commit()
    for discount in discounts:
        db.refresh(discount)
    return discounts


def list_discounts(
    db: Session, *, bundle_id: str | None = None, include_inactive: bool = False
) -> list[models.Discount]:
    query = db.query(models.Discount)
    if bundle_id is not None:
        query = query.filter(models.Discount.bundle_id == bundle_id)
    if not include_inactive:
        query = query.filter(models.Discount.is_active.is_(True))
    return query.order_by(models.Discount.created_at.desc()).all()


def release_purchases(db: Session, discount: models.Discount) -> int:
    """Reprice every purchase using ``discount`` at base price and detach it.

    Runs inside the caller's transaction; nothing is committed here.
    """

    purchases = db.query(models.BundlePurchase).filter(models.BundlePurchase.discount_id == discount.id).all()
    for purchase in purchases:
        bundle = db.get(models.Bundle, purchase.bundle_id)
        if bundle is None:
            raise NotFoundError(f"Bundle not found: {purchase.bundle_id}")
        purchase.total_price = pricing.base_price(bundle.seat_price, purchase.seats_purchased)
        purchase.discount_id = None
    db.flush()
    return len(purchases)


def update_discount(
    db: Session,
    discount_id: str,
    *,
    bundle_id: str | None | object = _UNSET,
    percentage: float | None | object = _UNSET,
    seats_percentage: float | None | object = _UNSET,
    seats_threshold: int | None | object = _UNSET,
    expiry_date: datetime | None | object = _UNSET,
    is_active: bool | None = None,
    now: datetime | None = None,
) -> models.Discount:
    """Partial update; deactivation reprices referencing purchases atomically."""

    discount = get_discount(db, discount_id)
    try:
        if bundle_id is not _UNSET:
            if bundle_id is not None and db.get(models.Bundle, bundle_id) is None:
                raise NotFoundError(f"Bundle not found: {bundle_id}")
            discount.bundle_id = bundle_id
        if percentage is not _UNSET:
            _validate_percentage(percentage, "percentage")
            discount.percentage = percentage
        if seats_percentage is not _UNSET or seats_threshold is not _UNSET:
            new_pct = discount.seats_percentage if seats_percentage is _UNSET else seats_percentage
            new_threshold = discount.seats_threshold if seats_threshold is _UNSET else seats_threshold
            _validate_seats_rule(new_pct, new_threshold)
            discount.seats_percentage = new_pct
            discount.seats_threshold = new_threshold
        if expiry_date is not _UNSET:
            discount.expiry_date = _validate_expiry(expiry_date, now or utcnow())
        if discount.percentage is None and not discount.has_seats_rule:
            raise ValidationError("At least one of percentage or seats is required")

        released = 0
        if is_active is not None:
            discount.is_active = is_active
            if not is_active:
                released = release_purchases(db, discount)
        db.commit()
    except Exception:
        db.rollback()
        raise

    if released:
        logger.info("Discount %s deactivated; repriced %s purchases", discount.id, released)
    db.refresh(discount)
    return discount


def toggle_discount_active(db: Session, discount_id: str) -> models.Discount:
    discount = get_discount(db, discount_id)
    return update_discount(db, discount_id, is_active=not discount.is_active)


def delete_discount(db: Session, discount_id: str) -> models.Discount:
    """Soft delete: the discount is deactivated and its purchases repriced."""

    return update_discount(db, discount_id, is_active=False)
