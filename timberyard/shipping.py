"""
Shipping Estimator: volumetric delivery charge for beams and flooring.

Rules, in order:
1. subtotal >= free threshold → free (beats everything else)
2. total volume of beams + flooring == 0 → free (structures include delivery)
3. otherwise max(volume × rate per m³, minimum charge)

Also answers "do we deliver to this postcode?" against the delivery zones.
"""

import logging
import re

from .catalog import ProductCategory
from .schemas import Cart, CartLineItem, DeliveryCheck, ShippingPolicy
from .volumes import beam_volume_m3, floor_area_m2, flooring_volume_m3

logger = logging.getLogger(__name__)


# Postcode patterns are matched against the cleaned postcode (no spaces, upper case).
DEFAULT_DELIVERY_ZONES = [
    {
        "name": "Mainland England",
        "postcodes": [r"^[A-Z]{1,2}[0-9][A-Z0-9]?[0-9][A-Z]{2}$"],
        "is_available": True,
    },
    {
        "name": "Wales",
        "postcodes": [r"^(CF|LL|NP|SA|SY)[0-9]{1,2}[0-9][A-Z]{2}$"],
        "is_available": True,
    },
]

# Valid UK postcodes we don't deliver to: Scotland, Northern Ireland,
# Isle of Man and the Channel Islands.
EXCLUDED_POSTCODE_AREAS = re.compile(
    r"^(AB|DD|DG|EH|FK|G[0-9]|HS|IV|KA|KW|KY|ML|PA|PH|TD|ZE|BT|IM|GY|JE)"
)


class ShippingEstimator:
    """Pure shipping math. Never negative, never raises for an empty cart."""

    def line_volume_m3(self, item: CartLineItem) -> float:
        """Shipped volume of one line, quantity included. Structures ship as 0."""
        dims = item.dimensions
        if item.category == ProductCategory.OAK_BEAM:
            if dims is None or None in (dims.length, dims.width, dims.thickness):
                return 0.0
            return beam_volume_m3(dims.length, dims.width, dims.thickness) * item.quantity
        if item.category == ProductCategory.OAK_FLOORING:
            if dims is None:
                return 0.0
            area = floor_area_m2(dims.area, dims.length, dims.width)
            thickness = dims.thickness
            if thickness is None:
                thickness = self._thickness_option(item)
            return flooring_volume_m3(area, thickness) * item.quantity
        return 0.0

    def _thickness_option(self, item: CartLineItem) -> float:
        """Board thickness selected in the configurator, in mm."""
        try:
            return float(item.options.get("thickness", 0))
        except ValueError:
            return 0.0

    def total_volume_m3(self, items) -> float:
        return sum(self.line_volume_m3(item) for item in items)

    def estimate(self, cart: Cart, policy: ShippingPolicy) -> float:
        if cart.subtotal >= policy.free_delivery_threshold:
            return 0.0

        volume = self.total_volume_m3(cart.items)
        if volume <= 0:
            return 0.0

        cost = max(volume * policy.shipping_rate_per_cubic_meter, policy.min_delivery_charge)
        logger.debug("Shipping %.5f m³ for %s: %.2f", volume, cart.owner_id, cost)
        return max(cost, 0.0)


def estimate_shipping(cart: Cart, policy: ShippingPolicy) -> float:
    return ShippingEstimator().estimate(cart, policy)


def clean_postcode(postcode: str) -> str:
    return re.sub(r"\s+", "", postcode or "").upper()


def is_deliverable(postcode: str, zones: list = None) -> DeliveryCheck:
    """
    Check a postcode against the delivery zones.
    We deliver to mainland England and Wales only.
    """
    zones = DEFAULT_DELIVERY_ZONES if zones is None else zones
    cleaned = clean_postcode(postcode)

    deliverable = False
    if cleaned and not EXCLUDED_POSTCODE_AREAS.match(cleaned):
        for zone in zones:
            if not zone.get("is_available", True):
                continue
            if any(re.match(pattern, cleaned) for pattern in zone.get("postcodes", [])):
                deliverable = True
                break

    if deliverable:
        message = f"Great news! We deliver to {cleaned}."
    else:
        message = (
            f"Sorry, we don't currently deliver to {cleaned or 'that postcode'}. "
            f"We deliver to mainland England and Wales."
        )
    return DeliveryCheck(postcode=cleaned, is_deliverable=deliverable, message=message)
