"""
Fixed-footprint structures: garages, gazebos, porches.

price = base × Π(multipliers) + Σ(flat) + Σ(per-unit rate × fixed unit count)

Unit counts (4 gazebo sides, 2 porch posts) live on the option group in the
catalog. Delivery is bundled into the price, so no dimensions are needed.
"""

from ..catalog import ProductCategory
from .base import BaseCalculator


class StructureCalculator(BaseCalculator):

    def base_amount(self, rate, dims) -> float:
        return rate


class GarageCalculator(StructureCalculator):
    category = ProductCategory.GARAGE


class GazeboCalculator(StructureCalculator):
    category = ProductCategory.GAZEBO


class PorchCalculator(StructureCalculator):
    category = ProductCategory.PORCH
