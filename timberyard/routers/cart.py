"""
Cart API: thin wrapper around CartAggregator.

GET    /api/carts/{owner}                  current totals (cart created empty on first use)
POST   /api/carts/{owner}/items            price a selection and add it
PATCH  /api/carts/{owner}/items/{item_id}  set quantity (<= 0 removes)
DELETE /api/carts/{owner}/items/{item_id}  remove a line
DELETE /api/carts/{owner}                  clear
POST   /api/carts/{owner}/checkout         final totals, then clear

The cart row carries a version. Send expected_version to get a 409 instead of
overwriting a newer cart; without it, last write wins.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models, schemas
from ..cart import CartAggregator
from ..database import get_db
from ..pricing_engine import PricingEngine
from .catalog import load_catalog
from .delivery import load_shipping_policy, load_vat_rate
from .products import check_selection_category, get_product_or_404

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/carts", tags=["cart"])


def load_cart_record(owner_id: str, db: Session) -> models.CartRecord:
    record = db.query(models.CartRecord).filter(models.CartRecord.owner_id == owner_id).first()
    if not record:
        record = models.CartRecord(owner_id=owner_id, items=[], version=0)
        db.add(record)
        db.commit()
        db.refresh(record)
    return record


def build_aggregator(record: models.CartRecord, db: Session) -> CartAggregator:
    cart = schemas.Cart(
        owner_id=record.owner_id,
        items=tuple(schemas.CartLineItem.model_validate(i) for i in (record.items or [])),
        version=record.version,
    )
    return CartAggregator(
        cart=cart,
        vat_rate=load_vat_rate(db),
        shipping_policy=load_shipping_policy(db),
    )


def check_version(record: models.CartRecord, expected_version: Optional[int]) -> None:
    if expected_version is not None and expected_version != record.version:
        raise HTTPException(
            status_code=409,
            detail=f"Cart has changed (version {record.version}, expected {expected_version})",
        )


def save_cart(record: models.CartRecord, aggregator: CartAggregator, db: Session) -> None:
    cart = aggregator.cart
    if cart.version == record.version:
        return  # no-op mutation
    record.items = [item.model_dump(mode="json", exclude={"id"}) for item in cart.items]
    record.version = cart.version
    db.commit()


@router.get("/{owner_id}", response_model=schemas.CartTotals)
def get_cart(owner_id: str, db: Session = Depends(get_db)):
    record = load_cart_record(owner_id, db)
    return build_aggregator(record, db).get_totals().rounded()


@router.post("/{owner_id}/items", response_model=schemas.CartTotals)
def add_to_cart(owner_id: str, request: schemas.AddToCartRequest, db: Session = Depends(get_db)):
    record = load_cart_record(owner_id, db)
    check_version(record, request.expected_version)

    product = get_product_or_404(request.product_id, db)
    category = check_selection_category(product, request.selection)

    engine = PricingEngine(load_catalog(db))
    item = engine.build_line_item(
        product_ref=product.id,
        category=category,
        base_price=product.base_price,
        options=request.selection.options(),
        dimensions=request.selection.get_dimensions(),
        quantity=request.quantity,
        name=product.name,
    )

    aggregator = build_aggregator(record, db)
    totals = aggregator.add_item(item)
    save_cart(record, aggregator, db)
    return totals.rounded()


@router.patch("/{owner_id}/items/{item_id}", response_model=schemas.CartTotals)
def update_cart_item(
    owner_id: str,
    item_id: str,
    request: schemas.UpdateQuantityRequest,
    db: Session = Depends(get_db),
):
    record = load_cart_record(owner_id, db)
    check_version(record, request.expected_version)
    aggregator = build_aggregator(record, db)
    totals = aggregator.update_quantity(item_id, request.quantity)
    save_cart(record, aggregator, db)
    return totals.rounded()


@router.delete("/{owner_id}/items/{item_id}", response_model=schemas.CartTotals)
def remove_cart_item(owner_id: str, item_id: str, expected_version: Optional[int] = None,
                     db: Session = Depends(get_db)):
    record = load_cart_record(owner_id, db)
    check_version(record, expected_version)
    aggregator = build_aggregator(record, db)
    totals = aggregator.remove_item(item_id)
    save_cart(record, aggregator, db)
    return totals.rounded()


@router.delete("/{owner_id}", response_model=schemas.CartTotals)
def clear_cart(owner_id: str, expected_version: Optional[int] = None, db: Session = Depends(get_db)):
    record = load_cart_record(owner_id, db)
    check_version(record, expected_version)
    aggregator = build_aggregator(record, db)
    totals = aggregator.clear()
    save_cart(record, aggregator, db)
    return totals.rounded()


@router.post("/{owner_id}/checkout", response_model=schemas.CartTotals)
def checkout(owner_id: str, expected_version: Optional[int] = None, db: Session = Depends(get_db)):
    """
    Hand the final totals to order creation and empty the cart.
    Payment and the order record itself live outside this service.
    """
    record = load_cart_record(owner_id, db)
    check_version(record, expected_version)
    aggregator = build_aggregator(record, db)
    if aggregator.cart.is_empty:
        raise HTTPException(status_code=400, detail="Cart is empty")

    totals = aggregator.get_totals().rounded()
    aggregator.clear()
    save_cart(record, aggregator, db)
    logger.info("Checked out cart for %s: %d items, total %.2f", owner_id, totals.item_count, totals.total)
    return totals
