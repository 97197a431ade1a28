"""
Pricing Engine: the single entry point for unit prices.

Validates the selection against the option catalog, then dispatches to the
category calculator. Pure math, no side effects: the same inputs always
give the same price.

Input: category + base price/rate + selected options + dimensions
Output: unit price (full precision) or PriceBreakdown
"""

import logging

from .catalog import DEFAULT_CATALOG, OptionCatalog, ProductCategory
from .calculators.registry import get_calculator, has_calculator
from .errors import InvalidConfiguration
from .schemas import CartLineItem, PriceBreakdown

logger = logging.getLogger(__name__)


class PricingEngine:
    """
    Turns a configured product into a price.
    Holds the catalog snapshot to price against; nothing else.
    """

    def __init__(self, catalog: OptionCatalog = None):
        self.catalog = catalog or DEFAULT_CATALOG

    def price_breakdown(self, category, base_price, options: dict,
                        dimensions=None) -> PriceBreakdown:
        """
        Price one unit and return every intermediate term.

        Raises:
            InvalidBasePrice: base price missing, non-numeric, zero or negative
            InvalidConfiguration: options don't match the category's groups
            InvalidDimensions: dimensions missing or non-positive where required
        """
        if not has_calculator(category):
            raise InvalidConfiguration(f"Unknown product category: {category!r}")
        calculator = get_calculator(category)

        calculator.check_base_price(base_price)
        selection = self.catalog.validate_selection(category, options)
        breakdown = calculator.breakdown(base_price, selection, dimensions, self.catalog)

        logger.debug(
            "Priced %s at %.4f (base %.4f × %.4f + %.4f flat + %.4f per-unit)",
            breakdown.category.value, breakdown.final_price, breakdown.base_amount,
            breakdown.multiplier, breakdown.flat_total, breakdown.per_unit_total,
        )
        return breakdown

    def calculate_price(self, category, base_price, options: dict, dimensions=None) -> float:
        """Unit price, full precision. Round only for display."""
        return self.price_breakdown(category, base_price, options, dimensions).final_price

    def build_line_item(self, product_ref, category, base_price, options: dict,
                        dimensions=None, quantity: int = 1, name: str = "") -> CartLineItem:
        """
        Price a configuration and freeze the result into a cart line item.
        Options are stored normalised so identical configs always merge.
        """
        category = ProductCategory(category)
        selection = self.catalog.validate_selection(category, options)
        unit_price = self.calculate_price(category, base_price, selection, dimensions)
        calculator = get_calculator(category)
        dims = calculator.check_dimensions(dimensions)
        return CartLineItem(
            product_ref=str(product_ref),
            category=category,
            name=name,
            quantity=quantity,
            unit_price=unit_price,
            options=selection,
            dimensions=dims,
        )


_default_engine = PricingEngine()


def calculate_price(category, base_price, options: dict, dimensions=None,
                    catalog: OptionCatalog = None) -> float:
    """Module-level shortcut: price with the given catalog, or the default one."""
    engine = PricingEngine(catalog) if catalog is not None else _default_engine
    return engine.calculate_price(category, base_price, options, dimensions)


def price_breakdown(category, base_price, options: dict, dimensions=None,
                    catalog: OptionCatalog = None) -> PriceBreakdown:
    engine = PricingEngine(catalog) if catalog is not None else _default_engine
    return engine.price_breakdown(category, base_price, options, dimensions)
