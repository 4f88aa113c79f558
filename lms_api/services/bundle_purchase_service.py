"""Bundle purchases; totals are frozen at write time by the pricing engine."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from lms_api.core.errors import NotFoundError, ValidationError
from lms_api.db import models
from lms_api.services import pricing

_UNSET = object()


def get_purchase(db: Session, purchase_id: str) -> models.BundlePurchase:
    purchase = db.query(models.BundlePurchase).filter(models.BundlePurchase.id == purchase_id).first()
    if purchase is None:
        raise NotFoundError("Bundle purchase not found")
    return purchase


def calculate_total_price(
    db: Session,
    bundle_id: str,
    seats_purchased: int,
    discount_id: str | None,
    *,
    now: datetime | None = None,
) -> Decimal:
    if seats_purchased < 1:
        raise ValidationError("seats_purchased must be at least 1")
    bundle = db.get(models.Bundle, bundle_id)
    if bundle is None:
        raise NotFoundError("Bundle not found")

    discount = None
    if discount_id is not None:
        discount = db.get(models.Discount, discount_id)
        if discount is None:
            raise NotFoundError("Discount not found")

    return pricing.compute_total_price(
        bundle.seat_price, seats_purchased, discount, bundle_id=bundle.id, now=now
    )


def create_purchase(
    db: Session,
    *,
    bundle_id: str,
    seats_purchased: int,
    purchased_by: str,
    discount_id: str | None = None,
    now: datetime | None = None,
) -> models.BundlePurchase:
    if db.get(models.User, purchased_by) is None:
        raise NotFoundError("Purchasing user not found")
    # Pricing errors surface before anything is written.
    total_price = calculate_total_price(db, bundle_id, seats_purchased, discount_id, now=now)

    purchase = models.BundlePurchase(
        bundle_id=bundle_id,
        discount_id=discount_id,
        seats_purchased=seats_purchased,
        total_price=total_price,
        purchased_by=purchased_by,
    )
    db.add(purchase)
    db.commit()
    db.refresh(purchase)
    return purchase


def list_purchases(
    db: Session,
    *,
    bundle_id: str | None = None,
    purchased_by: str | None = None,
    discount_id: str | None = None,
) -> list[models.BundlePurchase]:
    query = db.query(models.BundlePurchase)
    if bundle_id is not None:
        query = query.filter(models.BundlePurchase.bundle_id == bundle_id)
    if purchased_by is not None:
        query = query.filter(models.BundlePurchase.purchased_by == purchased_by)
    if discount_id is not None:
        query = query.filter(models.BundlePurchase.discount_id == discount_id)
    return query.order_by(models.BundlePurchase.created_at.desc()).all()


def update_purchase(
    db: Session,
    purchase_id: str,
    *,
    seats_purchased: int | None = None,
    discount_id: str | None | object = _UNSET,
    now: datetime | None = None,
) -> models.BundlePurchase:
    """Change seats and/or discount; either one triggers a reprice."""

    purchase = get_purchase(db, purchase_id)
    if seats_purchased is None and discount_id is _UNSET:
        return purchase

    new_seats = purchase.seats_purchased if seats_purchased is None else seats_purchased
    new_discount_id = purchase.discount_id if discount_id is _UNSET else discount_id
    total_price = calculate_total_price(db, purchase.bundle_id, new_seats, new_discount_id, now=now)

    purchase.seats_purchased = new_seats
    purchase.discount_id = new_discount_id
    purchase.total_price = total_price
    db.commit()
    db.refresh(purchase)
    return purchase


def delete_purchase(db: Session, purchase_id: str) -> None:
    purchase = get_purchase(db, purchase_id)
    db.delete(purchase)
    db.commit()
