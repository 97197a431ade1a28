from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
import logging

from .. import models
from ..calculators.registry import get_calculator
from ..catalog import DEFAULT_GROUPS, OptionCatalog, OptionGroup, ProductCategory
from ..database import get_db
from ..schemas import SELECTION_MODELS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/catalog", tags=["catalog"])


def load_catalog(db: Session) -> OptionCatalog:
    """Default groups, overlaid with whatever admins have saved per category."""
    groups = dict(DEFAULT_GROUPS)
    for row in db.query(models.CategoryOptions).all():
        groups[ProductCategory(row.category)] = [OptionGroup.model_validate(g) for g in row.groups]
    return OptionCatalog(groups)


def seed_catalog(db: Session) -> int:
    """Store the default groups for categories that have none. Safe to run repeatedly."""
    seeded = 0
    for category, groups in DEFAULT_GROUPS.items():
        existing = db.query(models.CategoryOptions).filter(
            models.CategoryOptions.category == category.value
        ).first()
        if not existing:
            db.add(models.CategoryOptions(
                category=category.value,
                groups=[g.model_dump(exclude_none=True) for g in groups],
            ))
            seeded += 1
    db.commit()
    return seeded


@router.get("/")
def get_catalog(db: Session = Depends(get_db)):
    return load_catalog(db).to_dict()


@router.get("/{category}")
def get_category_options(category: ProductCategory, db: Session = Depends(get_db)):
    return [g.model_dump(exclude_none=True) for g in load_catalog(db).groups_for(category)]


@router.put("/{category}")
def replace_category_options(
    category: ProductCategory,
    groups: List[OptionGroup],
    db: Session = Depends(get_db),
):
    """Replace a category's option groups. Cart lines already priced keep their price."""
    get_calculator(category).check_groups(groups, SELECTION_MODELS[category].option_keys())

    catalog = load_catalog(db)
    try:
        catalog.replace_groups(category, groups)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    payload = [g.model_dump(exclude_none=True) for g in groups]
    row = db.query(models.CategoryOptions).filter(
        models.CategoryOptions.category == category.value
    ).first()
    if row:
        row.groups = payload
    else:
        db.add(models.CategoryOptions(category=category.value, groups=payload))
    db.commit()
    logger.info("Saved %d option groups for %s", len(groups), category.value)
    return payload
