"""
Calculator registry: maps product categories to calculator classes.
"""

from ..catalog import ProductCategory
from .base import BaseCalculator
from .oak_beam import OakBeamCalculator
from .oak_flooring import OakFlooringCalculator
from .structures import GarageCalculator, GazeboCalculator, PorchCalculator

CALCULATOR_REGISTRY: dict[ProductCategory, type] = {
    ProductCategory.GARAGE: GarageCalculator,
    ProductCategory.GAZEBO: GazeboCalculator,
    ProductCategory.PORCH: PorchCalculator,
    ProductCategory.OAK_BEAM: OakBeamCalculator,
    ProductCategory.OAK_FLOORING: OakFlooringCalculator,
}


def get_calculator(category) -> BaseCalculator:
    """Returns an instance of the calculator for a category, or raises ValueError."""
    if not has_calculator(category):
        raise ValueError(
            f"No calculator registered for category: {category}. "
            f"Available: {list_calculators()}"
        )
    return CALCULATOR_REGISTRY[ProductCategory(category)]()


def has_calculator(category) -> bool:
    """Check if a calculator exists for a category."""
    try:
        return ProductCategory(category) in CALCULATOR_REGISTRY
    except ValueError:
        return False


def list_calculators() -> list[str]:
    """List all registered calculator categories."""
    return [c.value for c in CALCULATOR_REGISTRY]
