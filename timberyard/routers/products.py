from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional

from .. import models, schemas
from ..calculators.registry import get_calculator
from ..catalog import OptionCatalog, ProductCategory
from ..database import get_db
from ..errors import InvalidConfiguration
from ..pricing_engine import PricingEngine
from .catalog import load_catalog

router = APIRouter(prefix="/products", tags=["products"])


def validate_product(category, base_price, options: dict, catalog: OptionCatalog) -> dict:
    """
    Base price must be valid; a preset selection, if given, must be complete.
    Returns the normalised preset (empty when none).
    """
    get_calculator(category).check_base_price(base_price)
    if not options:
        return {}
    return catalog.validate_selection(category, options)


def get_product_or_404(product_id: int, db: Session) -> models.ProductConfig:
    product = db.query(models.ProductConfig).filter(models.ProductConfig.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product configuration not found")
    return product


def check_selection_category(product: models.ProductConfig, selection) -> ProductCategory:
    category = ProductCategory(product.category)
    if selection.category != category.value:
        raise InvalidConfiguration(
            f"Selection is for {selection.category} but product {product.id} is a {category.value}"
        )
    return category


@router.get("/", response_model=List[schemas.ProductConfigOut])
def list_products(category: Optional[ProductCategory] = None, db: Session = Depends(get_db)):
    query = db.query(models.ProductConfig)
    if category:
        query = query.filter(models.ProductConfig.category == category.value)
    return query.all()


@router.get("/{product_id}", response_model=schemas.ProductConfigOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return get_product_or_404(product_id, db)


@router.post("/", response_model=schemas.ProductConfigOut, status_code=201)
def create_product(product: schemas.ProductConfigCreate, db: Session = Depends(get_db)):
    preset = validate_product(product.category, product.base_price, product.options, load_catalog(db))
    db_product = models.ProductConfig(
        name=product.name,
        category=product.category.value,
        base_price=product.base_price,
        options=preset,
    )
    db.add(db_product)
    db.commit()
    db.refresh(db_product)
    return db_product


@router.patch("/{product_id}", response_model=schemas.ProductConfigOut)
def update_product(product_id: int, update: schemas.ProductConfigUpdate, db: Session = Depends(get_db)):
    """Explicit update: the whole product is revalidated, not just the changed fields."""
    product = get_product_or_404(product_id, db)
    changes = update.model_dump(exclude_unset=True)

    base_price = changes.get("base_price", product.base_price)
    options = changes.get("options", product.options)
    preset = validate_product(product.category, base_price, options, load_catalog(db))

    if "name" in changes:
        product.name = changes["name"]
    product.base_price = base_price
    product.options = preset
    db.commit()
    db.refresh(product)
    return product


@router.post("/{product_id}/price")
def price_product(product_id: int, request: schemas.PriceRequest, db: Session = Depends(get_db)):
    """Price a selection against this product's base price. Nothing is stored."""
    product = get_product_or_404(product_id, db)
    selection = request.selection
    category = check_selection_category(product, selection)

    engine = PricingEngine(load_catalog(db))
    breakdown = engine.price_breakdown(
        category, product.base_price, selection.options(), selection.get_dimensions(),
    )
    return {
        "product_id": product.id,
        "base_price": product.base_price,
        "final_price": round(breakdown.final_price, 2),
        "breakdown": breakdown,
    }
