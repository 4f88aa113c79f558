"""Bundle purchase pricing with seat-threshold and flat-percentage discounts."""
from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Protocol

from lms_api.core.errors import (
    DiscountBundleMismatch,
    DiscountExpired,
    DiscountInactive,
    InvalidDiscountConfiguration,
    SeatsThresholdNotMet,
)
from lms_api.utils.datetime import as_utc, utcnow

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


class DiscountLike(Protocol):
    bundle_id: Optional[str]
    percentage: Optional[float]
    seats_percentage: Optional[float]
    seats_threshold: Optional[int]
    expiry_date: Optional[datetime]
    is_active: bool


def _to_decimal(value: Decimal | float | int | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() first so 19.99 does not become 19.989999...
    return Decimal(str(value))


def quantize(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def base_price(seat_price: Decimal | float | int | str, seats_purchased: int) -> Decimal:
    """Undiscounted price, rounded to cents."""

    return quantize(_to_decimal(seat_price) * seats_purchased)


def select_percentage(
    discount: DiscountLike,
    seats_purchased: int,
    *,
    bundle_id: str | None = None,
    now: datetime | None = None,
) -> Decimal:
    """Return the percentage that applies, or raise the matching DiscountError."""

    if not discount.is_active:
        raise DiscountInactive()
    if discount.expiry_date is not None and as_utc(discount.expiry_date) <= (now or utcnow()):
        raise DiscountExpired()

    has_flat = discount.percentage is not None
    has_seats_rule = discount.seats_threshold is not None and discount.seats_percentage is not None

    if has_seats_rule:
        if seats_purchased >= discount.seats_threshold:
            return _to_decimal(discount.seats_percentage)
        # Below the threshold a positive flat percentage is the fallback.
        if has_flat and discount.percentage > 0:
            _check_bundle(discount, bundle_id)
            return _to_decimal(discount.percentage)
        raise SeatsThresholdNotMet(discount.seats_threshold)

    if has_flat:
        _check_bundle(discount, bundle_id)
        return _to_decimal(discount.percentage)

    raise InvalidDiscountConfiguration()


def _check_bundle(discount: DiscountLike, bundle_id: str | None) -> None:
    if discount.bundle_id and bundle_id is not None and discount.bundle_id != bundle_id:
        raise DiscountBundleMismatch()


def compute_total_price(
    seat_price: Decimal | float | int | str,
    seats_purchased: int,
    discount: DiscountLike | None = None,
    *,
    bundle_id: str | None = None,
    now: datetime | None = None,
) -> Decimal:
    """Final price for ``seats_purchased`` seats, always with two decimal places."""

    base = _to_decimal(seat_price) * seats_purchased
    if discount is None:
        return quantize(base)

    percentage = select_percentage(discount, seats_purchased, bundle_id=bundle_id, now=now)
    return quantize(base * (1 - percentage / HUNDRED))
