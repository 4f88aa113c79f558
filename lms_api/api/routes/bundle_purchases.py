"""Bundle purchase endpoints."""
from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from lms_api.db.session import get_db
from lms_api.services import bundle_purchase_service

router = APIRouter(prefix="/bundle-purchases", tags=["bundle-purchases"])


class BundlePurchaseCreate(BaseModel):
    bundle_id: str
    seats_purchased: int = Field(ge=1)
    purchased_by: str
    discount_id: str | None = None


class BundlePurchaseUpdate(BaseModel):
    seats_purchased: int | None = Field(default=None, ge=1)
    discount_id: str | None = None


class PriceQuoteRequest(BaseModel):
    bundle_id: str
    seats_purchased: int = Field(ge=1)
    discount_id: str | None = None


class PriceQuote(BaseModel):
    total_price: Decimal


class BundlePurchaseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    bundle_id: str
    discount_id: str | None
    seats_purchased: int
    total_price: Decimal
    purchased_by: str


@router.post("/quote", response_model=PriceQuote)
def quote_price(payload: PriceQuoteRequest, db: Session = Depends(get_db)) -> PriceQuote:
    """Price a purchase without recording it."""

    total = bundle_purchase_service.calculate_total_price(
        db, payload.bundle_id, payload.seats_purchased, payload.discount_id
    )
    return PriceQuote(total_price=total)


@router.post("/", response_model=BundlePurchaseResponse, status_code=status.HTTP_201_CREATED)
def create_purchase(payload: BundlePurchaseCreate, db: Session = Depends(get_db)) -> BundlePurchaseResponse:
    purchase = bundle_purchase_service.create_purchase(db, **payload.model_dump())
    return BundlePurchaseResponse.model_validate(purchase)


@router.get("/", response_model=list[BundlePurchaseResponse])
def list_purchases(
    bundle_id: str | None = Query(default=None),
    purchased_by: str | None = Query(default=None),
    discount_id: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[BundlePurchaseResponse]:
    purchases = bundle_purchase_service.list_purchases(
        db, bundle_id=bundle_id, purchased_by=purchased_by, discount_id=discount_id
    )
    return [BundlePurchaseResponse.model_validate(p) for p in purchases]


@router.get("/{purchase_id}", response_model=BundlePurchaseResponse)
def get_purchase(purchase_id: str, db: Session = Depends(get_db)) -> BundlePurchaseResponse:
    return BundlePurchaseResponse.model_validate(bundle_purchase_service.get_purchase(db, purchase_id))


@router.patch("/{purchase_id}", response_model=BundlePurchaseResponse)
def update_purchase(
    purchase_id: str,
    payload: BundlePurchaseUpdate,
    db: Session = Depends(get_db),
) -> BundlePurchaseResponse:
    """Reprice after a seat or discount change; ``discount_id: null`` removes the discount."""

    purchase = bundle_purchase_service.update_purchase(db, purchase_id, **payload.model_dump(exclude_unset=True))
    return BundlePurchaseResponse.model_validate(purchase)


@router.delete("/{purchase_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_purchase(purchase_id: str, db: Session = Depends(get_db)) -> Response:
    bundle_purchase_service.delete_purchase(db, purchase_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
