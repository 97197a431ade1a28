"""
Option catalog: per-category option groups and their price effects.

Each category has an ordered list of groups ("size", "roof", "panels", ...).
Every choice in a group declares exactly one price effect:

    flat_modifier      added once
    per_unit_rate      × unit count (fixed per group, or the beam length / floor area)
    multiplier_factor  price *= factor

The catalog is read-mostly. Admins replace a category's groups wholesale;
nothing edits a group in place.
"""

import enum
import logging
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, model_validator

from .errors import InvalidConfiguration

logger = logging.getLogger(__name__)


class ProductCategory(str, enum.Enum):
    GARAGE = "garage"
    GAZEBO = "gazebo"
    PORCH = "porch"
    OAK_BEAM = "oak_beam"
    OAK_FLOORING = "oak_flooring"


STRUCTURE_CATEGORIES = (ProductCategory.GARAGE, ProductCategory.GAZEBO, ProductCategory.PORCH)
MATERIAL_CATEGORIES = (ProductCategory.OAK_BEAM, ProductCategory.OAK_FLOORING)

EFFECT_FIELDS = ("flat_modifier", "per_unit_rate", "multiplier_factor")


class OptionChoice(BaseModel):
    value: str
    label: str
    flat_modifier: Optional[float] = None
    per_unit_rate: Optional[float] = None
    multiplier_factor: Optional[float] = None

    @model_validator(mode="after")
    def _exactly_one_effect(self):
        declared = [f for f in EFFECT_FIELDS if getattr(self, f) is not None]
        if len(declared) != 1:
            raise ValueError(
                f"Option '{self.value}' must declare exactly one price effect, got {declared or 'none'}"
            )
        if self.multiplier_factor is not None and self.multiplier_factor < 0:
            raise ValueError(f"Option '{self.value}' has a negative multiplier")
        return self

    @property
    def effect(self) -> str:
        for f in EFFECT_FIELDS:
            if getattr(self, f) is not None:
                return f
        return ""  # unreachable once validated


class OptionGroup(BaseModel):
    key: str
    label: str
    choices: List[OptionChoice]
    required: bool = True
    # Per-unit choices need a unit count: a fixed category constant
    # (posts, sides) or a dimension basis.
    unit_count: Optional[int] = None
    unit_basis: Optional[Literal["length", "area"]] = None

    @model_validator(mode="after")
    def _check_group(self):
        values = [c.value for c in self.choices]
        if not values:
            raise ValueError(f"Option group '{self.key}' has no choices")
        if len(values) != len(set(values)):
            raise ValueError(f"Option group '{self.key}' has duplicate choice values")
        if self.unit_count is not None and self.unit_basis is not None:
            raise ValueError(f"Option group '{self.key}' declares both unit_count and unit_basis")
        has_per_unit = any(c.per_unit_rate is not None for c in self.choices)
        if has_per_unit and self.unit_count is None and self.unit_basis is None:
            raise ValueError(f"Option group '{self.key}' has per-unit choices but no unit count")
        return self

    def choice(self, value: str) -> Optional[OptionChoice]:
        for c in self.choices:
            if c.value == value:
                return c
        return None


def _flat(value, label, amount=0.0):
    return OptionChoice(value=value, label=label, flat_modifier=amount)


def _factor(value, label, factor):
    return OptionChoice(value=value, label=label, multiplier_factor=factor)


def _rate(value, label, rate):
    return OptionChoice(value=value, label=label, per_unit_rate=rate)


# Default catalog. Prices in GBP, taken from the storefront configurator pages.
GAZEBO_SIDES = 4
PORCH_POSTS = 2

DEFAULT_GROUPS: Dict[ProductCategory, List[OptionGroup]] = {
    ProductCategory.GARAGE: [
        OptionGroup(key="size", label="Size", choices=[
            _flat("3x4", "3m x 4m", 0),
            _flat("4x5", "4m x 5m", 500),
            _flat("5x6", "5m x 6m", 1000),
        ]),
        OptionGroup(key="roof", label="Roof", choices=[
            _factor("apex", "Apex Roof", 1.0),
            _factor("pent", "Pent Roof", 1.05),
            _factor("barn", "Barn End", 1.15),
        ]),
        OptionGroup(key="truss", label="Truss", choices=[
            _flat("straight", "Straight Truss", 0),
            _flat("curved", "Curved Truss", 250),
        ]),
    ],
    ProductCategory.GAZEBO: [
        OptionGroup(key="size", label="Size", choices=[
            _flat("3x3", "3m x 3m"),
            _flat("4x3", "4m x 3m"),
            _flat("4x4", "4m x 4m"),
        ]),
        OptionGroup(key="roof", label="Roof", choices=[
            _factor("hip", "Hip Roof", 1.0),
            _factor("pyramid", "Pyramid Roof", 1.15),
        ]),
        OptionGroup(key="panels", label="Side Panels", unit_count=GAZEBO_SIDES, choices=[
            _rate("none", "No Side Panels", 0),
            _rate("half", "Half-Height Panels (x4)", 120),
            _rate("full", "Full-Height Panels (x4)", 200),
        ]),
    ],
    ProductCategory.PORCH: [
        OptionGroup(key="style", label="Style", choices=[
            _flat("wall_lean", "Wall Mounted Lean-To (2m x 1.5m)"),
            _flat("wall_apex", "Wall Mounted Apex (2m x 1.5m)"),
            _flat("free_apex", "Free Standing Apex (2m x 1.5m)"),
        ]),
        OptionGroup(key="roof", label="Roof Pitch", choices=[
            _factor("standard_pitch", "Standard Pitch", 1.0),
            _factor("low_pitch", "Low Pitch", 1.0),
        ]),
        OptionGroup(key="posts", label="Posts", unit_count=PORCH_POSTS, choices=[
            _rate("standard_150", "Standard 150mm Posts", 0),
            _rate("chamfer_150", "Chamfered 150mm Posts", 25),
            _rate("curved_150", "Curved 150mm Posts", 60),
        ]),
        OptionGroup(key="truss", label="Truss", choices=[
            _flat("standard", "Standard Truss", 0),
            _flat("curved_brace", "Curved Brace Truss", 120),
            _flat("king_post", "King Post Truss", 180),
        ]),
    ],
    ProductCategory.OAK_BEAM: [
        OptionGroup(key="finish", label="Finish", unit_basis="length", choices=[
            _rate("sawn", "Sawn Finish", 0),
            _rate("planed", "Planed All Round (PAR)", 5),
        ]),
        OptionGroup(key="profile", label="Edge Profile", choices=[
            _flat("square", "Square Edges", 0),
            _flat("chamfer", "Chamfered Edges", 15),
        ]),
    ],
    ProductCategory.OAK_FLOORING: [
        OptionGroup(key="thickness", label="Board Thickness", choices=[
            _flat("14", "14mm"),
            _flat("20", "20mm"),
            _flat("22", "22mm"),
        ]),
        OptionGroup(key="grade", label="Grade", choices=[
            _factor("character", "Character Grade", 1.0),
            _factor("prime", "Prime Grade", 1.25),
            _factor("rustic", "Rustic Grade", 0.9),
        ]),
        OptionGroup(key="finish", label="Finish", unit_basis="area", choices=[
            _rate("unfinished", "Unfinished", 0),
            _rate("oil", "Natural Oil", 8),
            _rate("lacquer", "Clear Lacquer", 10),
        ]),
    ],
}


def _normalize_value(value) -> str:
    """Selections arrive from forms as str, int or float; compare as strings.
    20 and 20.0 both become "20"."""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


class OptionCatalog:
    """
    Holds the option groups for every category.

    validate_selection() is the gate in front of the Price Calculator.
    """

    def __init__(self, groups: Optional[Dict[ProductCategory, List[OptionGroup]]] = None):
        source = groups if groups is not None else DEFAULT_GROUPS
        self._groups = {ProductCategory(cat): list(gs) for cat, gs in source.items()}

    def categories(self) -> List[ProductCategory]:
        return list(self._groups.keys())

    def groups_for(self, category) -> List[OptionGroup]:
        category = ProductCategory(category)
        return list(self._groups.get(category, []))

    def group(self, category, key: str) -> Optional[OptionGroup]:
        for g in self.groups_for(category):
            if g.key == key:
                return g
        return None

    def replace_groups(self, category, groups: List[OptionGroup]) -> None:
        """Admin edit: swap a category's groups wholesale."""
        category = ProductCategory(category)
        keys = [g.key for g in groups]
        if len(keys) != len(set(keys)):
            raise ValueError(f"Duplicate option group keys for {category.value}: {keys}")
        self._groups[category] = list(groups)
        logger.info("Replaced %d option groups for %s", len(groups), category.value)

    def validate_selection(self, category, options: Optional[dict]) -> Dict[str, str]:
        """
        Check a flat key→value selection against the category's groups.

        Every required group needs exactly one value from its choice set;
        unknown keys are rejected. Returns the normalised selection in group order.
        """
        try:
            category = ProductCategory(category)
        except ValueError:
            raise InvalidConfiguration(f"Unknown product category: {category!r}")
        if options is None:
            options = {}
        if not isinstance(options, dict):
            raise InvalidConfiguration("Options must be a key/value mapping")

        groups = self.groups_for(category)
        known = {g.key for g in groups}
        unknown = sorted(k for k in options if k not in known)
        if unknown:
            raise InvalidConfiguration(
                f"Unknown options for {category.value}: {', '.join(unknown)}"
            )

        selection = {}
        missing = []
        invalid = []
        for g in groups:
            raw = options.get(g.key)
            if raw is None or raw == "":
                if g.required:
                    missing.append(g.key)
                continue
            if isinstance(raw, (list, tuple, set, dict)):
                invalid.append(f"{g.key} (one value expected)")
                continue
            value = _normalize_value(raw)
            if g.choice(value) is None:
                allowed = ", ".join(c.value for c in g.choices)
                invalid.append(f"{g.key}={value} (allowed: {allowed})")
                continue
            selection[g.key] = value

        if missing or invalid:
            parts = []
            if missing:
                parts.append("missing " + ", ".join(missing))
            if invalid:
                parts.append("invalid " + "; ".join(invalid))
            raise InvalidConfiguration(
                f"Invalid {category.value} configuration: " + "; ".join(parts)
            )
        return selection

    def to_dict(self) -> dict:
        return {
            cat.value: [g.model_dump(exclude_none=True) for g in groups]
            for cat, groups in self._groups.items()
        }

    @classmethod
    def from_dict(cls, data: dict) -> "OptionCatalog":
        return cls({
            ProductCategory(cat): [OptionGroup.model_validate(g) for g in groups]
            for cat, groups in data.items()
        })


DEFAULT_CATALOG = OptionCatalog()
