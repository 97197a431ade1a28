import math

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models, schemas
from ..config import settings
from ..database import get_db
from ..shipping import is_deliverable

router = APIRouter(prefix="/delivery", tags=["delivery"])

# Default delivery settings, seeded from the environment on first run.
# Admins change them here rather than redeploying.
DEFAULT_DELIVERY_SETTINGS = {
    "free_delivery_threshold": {
        "value": str(settings.FREE_DELIVERY_THRESHOLD), "value_type": "number",
        "description": "Order subtotal (ex VAT) at or above which delivery is free",
    },
    "min_delivery_charge": {
        "value": str(settings.MIN_DELIVERY_CHARGE), "value_type": "number",
        "description": "Minimum charge when beams or flooring are delivered",
    },
    "shipping_rate_per_cubic_meter": {
        "value": str(settings.SHIPPING_RATE_PER_CUBIC_METER), "value_type": "number",
        "description": "Delivery charge per m³ of beams and flooring",
    },
    "vat_rate": {
        "value": str(settings.VAT_RATE), "value_type": "number",
        "description": "Flat VAT rate, e.g. 0.20 for 20%",
    },
    "estimated_delivery_lead_time": {
        "value": "2-3 weeks", "value_type": "string",
        "description": "Shown on the delivery information page",
    },
    "delivery_area_description": {
        "value": "Mainland England and Wales", "value_type": "string",
        "description": "Shown on the delivery information page",
    },
}


def seed_delivery_settings(db: Session) -> int:
    seeded = 0
    for key, data in DEFAULT_DELIVERY_SETTINGS.items():
        existing = db.query(models.DeliverySetting).filter(models.DeliverySetting.key == key).first()
        if not existing:
            db.add(models.DeliverySetting(key=key, **data))
            seeded += 1
    db.commit()
    return seeded


def _setting_values(db: Session) -> dict:
    return {row.key: row.get_value() for row in db.query(models.DeliverySetting).all()}


def load_shipping_policy(db: Session) -> schemas.ShippingPolicy:
    """Env defaults, overridden by any stored delivery settings."""
    values = _setting_values(db)
    return schemas.ShippingPolicy(
        free_delivery_threshold=values.get("free_delivery_threshold", settings.FREE_DELIVERY_THRESHOLD),
        min_delivery_charge=values.get("min_delivery_charge", settings.MIN_DELIVERY_CHARGE),
        shipping_rate_per_cubic_meter=values.get(
            "shipping_rate_per_cubic_meter", settings.SHIPPING_RATE_PER_CUBIC_METER
        ),
    )


def load_vat_rate(db: Session) -> float:
    return _setting_values(db).get("vat_rate", settings.VAT_RATE)


@router.get("/settings")
def list_delivery_settings(db: Session = Depends(get_db)):
    rows = db.query(models.DeliverySetting).all()
    return [
        {
            "key": r.key,
            "value": r.get_value(),
            "value_type": r.value_type,
            "description": r.description,
            "updated_at": r.updated_at,
        }
        for r in rows
    ]


@router.patch("/settings/{key}")
def update_delivery_setting(
    key: str,
    update: schemas.DeliverySettingUpdate,
    db: Session = Depends(get_db),
):
    row = db.query(models.DeliverySetting).filter(models.DeliverySetting.key == key).first()
    if not row:
        raise HTTPException(status_code=404, detail=f"Delivery setting '{key}' not found")

    value = update.value.strip()
    if row.value_type == "number":
        try:
            number = float(value)
        except ValueError:
            raise HTTPException(status_code=422, detail="Value must be a valid number")
        if not math.isfinite(number) or number < 0:
            raise HTTPException(status_code=422, detail="Value must be a finite, non-negative number")
        if key == "vat_rate" and number > 1:
            raise HTTPException(status_code=422, detail="VAT rate is a fraction, e.g. 0.20 for 20%")
    elif row.value_type == "boolean" and value not in ("true", "false"):
        raise HTTPException(status_code=422, detail="Value must be true or false")

    row.value = value
    db.commit()
    db.refresh(row)
    return {"key": row.key, "value": row.get_value()}


@router.get("/check/{postcode}", response_model=schemas.DeliveryCheck)
def check_postcode(postcode: str):
    return is_deliverable(postcode)
