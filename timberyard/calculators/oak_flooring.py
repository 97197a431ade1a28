"""
Oak flooring calculator, priced by area.

price = area_m2 × rate_per_m2 × Π(grade factor) + Σ(finish rate × area_m2)

Area is the declared `area`, or length × width in metres.
Board thickness only matters for shipping volume, not price.
"""

from ..catalog import ProductCategory
from ..errors import InvalidDimensions
from ..volumes import floor_area_m2
from .base import BaseCalculator


class OakFlooringCalculator(BaseCalculator):
    category = ProductCategory.OAK_FLOORING
    UNIT_BASES = ("area",)

    def check_dimensions(self, dimensions):
        if dimensions is None:
            raise InvalidDimensions("Dimensions are required for oak_flooring")
        dims = self.coerce_dimensions(dimensions)
        if dims.area is not None:
            self.require_dimension(dims, "area")
        else:
            self.require_dimension(dims, "length")
            self.require_dimension(dims, "width")
        return dims

    def area_m2(self, dims) -> float:
        return floor_area_m2(dims.area, dims.length, dims.width)

    def base_amount(self, rate, dims) -> float:
        return self.area_m2(dims) * rate
