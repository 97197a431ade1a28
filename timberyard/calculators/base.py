"""
Abstract base class for all category calculators.

Input: base price (or per-m³ / per-m² rate), selected options, dimensions
Output: unit price (float, full precision) or a PriceBreakdown

Every category shares one combining rule:

    price = base_amount × Π(multipliers) + Σ(flat modifiers) + Σ(per-unit rate × unit count)

Subclasses decide what base_amount is (fixed price, volume × rate, area × rate),
which dimensions they need, and where a per-unit group gets its unit count.
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import Optional

from pydantic import ValidationError

from ..catalog import DEFAULT_CATALOG, OptionCatalog, OptionGroup, ProductCategory
from ..errors import InvalidBasePrice, InvalidConfiguration, InvalidDimensions
from ..schemas import Dimensions, PriceBreakdown

logger = logging.getLogger(__name__)


class BaseCalculator(ABC):
    """All category calculators inherit from this."""

    category: ProductCategory = None

    # Dimension fields that must be present and > 0, overridden per calculator
    REQUIRED_DIMENSIONS: tuple = ()

    # Dimension bases a per-unit option group may be priced on
    UNIT_BASES: tuple = ()

    @abstractmethod
    def base_amount(self, rate: float, dims: Optional[Dimensions]) -> float:
        """Price before any option effects."""

    def calculate(self, base_price, options: dict, dimensions=None,
                  catalog: OptionCatalog = None) -> float:
        """Unit price for this configuration. Never negative."""
        return self.breakdown(base_price, options, dimensions, catalog).final_price

    def breakdown(self, base_price, options: dict, dimensions=None,
                  catalog: OptionCatalog = None) -> PriceBreakdown:
        catalog = catalog or DEFAULT_CATALOG
        rate = self.check_base_price(base_price)
        dims = self.check_dimensions(dimensions)
        groups = self.check_options(catalog, options)

        base = self.base_amount(rate, dims)
        multiplier = 1.0
        flat_total = 0.0
        per_unit_total = 0.0

        for group in groups:
            value = options.get(group.key)
            if value is None:
                continue  # optional group left unselected
            choice = group.choice(str(value))
            if choice.multiplier_factor is not None:
                multiplier *= choice.multiplier_factor
            elif choice.flat_modifier is not None:
                flat_total += choice.flat_modifier
            else:
                per_unit_total += choice.per_unit_rate * self.unit_count(group, dims)

        final_price = max(base * multiplier + flat_total + per_unit_total, 0.0)
        return PriceBreakdown(
            category=self.category,
            base_price=rate,
            base_amount=base,
            multiplier=multiplier,
            flat_total=flat_total,
            per_unit_total=per_unit_total,
            final_price=final_price,
        )

    # --- Input checks ---

    def check_base_price(self, base_price) -> float:
        """Base price must be a finite real number > 0."""
        if isinstance(base_price, bool) or not isinstance(base_price, (int, float)):
            raise InvalidBasePrice(f"Base price must be a number, got {base_price!r}")
        if not math.isfinite(base_price) or base_price <= 0:
            raise InvalidBasePrice(f"Base price must be greater than zero, got {base_price!r}")
        return float(base_price)

    def check_options(self, catalog: OptionCatalog, options) -> list:
        """
        Re-check that every required group has a known value.
        Full validation is validate_selection(); this is the calculator's own guard.
        """
        if not isinstance(options, dict):
            raise InvalidConfiguration("Options must be a key/value mapping")
        groups = catalog.groups_for(self.category)
        for group in groups:
            value = options.get(group.key)
            if value is None:
                if group.required:
                    raise InvalidConfiguration(
                        f"Missing required option '{group.key}' for {self.category.value}"
                    )
                continue
            if group.choice(str(value)) is None:
                raise InvalidConfiguration(
                    f"Unknown value '{value}' for option '{group.key}'"
                )
        return groups

    def check_groups(self, groups, option_keys) -> None:
        """
        Admin catalog edits: the group keys must be exactly the option keys a
        selection for this category carries, and any unit basis must be one
        this calculator has a dimension for.
        """
        keys = [g.key for g in groups]
        if sorted(keys) != sorted(option_keys):
            raise InvalidConfiguration(
                f"Option groups for {self.category.value} must be exactly "
                f"{', '.join(option_keys)}; got {', '.join(keys) or 'none'}"
            )
        for group in groups:
            if group.unit_basis is not None and group.unit_basis not in self.UNIT_BASES:
                allowed = ", ".join(self.UNIT_BASES) or "unit_count only"
                raise InvalidConfiguration(
                    f"Option group '{group.key}' cannot be priced per {group.unit_basis} "
                    f"for {self.category.value} (allowed: {allowed})"
                )

    def check_dimensions(self, dimensions) -> Optional[Dimensions]:
        if not self.REQUIRED_DIMENSIONS:
            return None
        if dimensions is None:
            raise InvalidDimensions(f"Dimensions are required for {self.category.value}")
        dims = self.coerce_dimensions(dimensions)
        for field in self.REQUIRED_DIMENSIONS:
            self.require_dimension(dims, field)
        return dims

    def coerce_dimensions(self, dimensions) -> Dimensions:
        """Dimensions model: every value given is a finite number > 0."""
        if isinstance(dimensions, Dimensions):
            return dimensions
        try:
            return Dimensions.model_validate(dimensions)
        except ValidationError as e:
            error = e.errors()[0]
            field = ".".join(str(part) for part in error["loc"]) or "dimensions"
            raise InvalidDimensions(f"Invalid dimension '{field}': {error['msg']}")

    def require_dimension(self, dims: Dimensions, field: str) -> float:
        value = getattr(dims, field)
        if value is None:
            raise InvalidDimensions(f"Missing dimension '{field}' for {self.category.value}")
        return value

    # --- Unit counts ---

    def unit_count(self, group: OptionGroup, dims: Optional[Dimensions]) -> float:
        """Fixed category constant, or the dimension basis the group declares."""
        if group.unit_count is not None:
            return group.unit_count
        if group.unit_basis == "length":
            return self.length_m(dims)
        if group.unit_basis == "area":
            return self.area_m2(dims)
        raise InvalidConfiguration(f"Option group '{group.key}' has no unit count")

    def length_m(self, dims: Optional[Dimensions]) -> float:
        if dims is None or dims.length is None:
            raise InvalidDimensions(f"{self.category.value} has no length to price per metre")
        return dims.length

    def area_m2(self, dims: Optional[Dimensions]) -> float:
        raise InvalidDimensions(f"{self.category.value} has no area to price per m²")
