"""
Oak beam calculator, priced by volume.

volume_m3 = length_m × width_mm/1000 × thickness_mm/1000
price     = volume_m3 × rate_per_m3 + Σ(finish rate × length_m) + Σ(profile flat fee)
"""

from ..catalog import ProductCategory
from ..volumes import beam_volume_m3
from .base import BaseCalculator


class OakBeamCalculator(BaseCalculator):
    category = ProductCategory.OAK_BEAM
    REQUIRED_DIMENSIONS = ("length", "width", "thickness")
    UNIT_BASES = ("length",)

    def base_amount(self, rate, dims) -> float:
        return beam_volume_m3(dims.length, dims.width, dims.thickness) * rate
