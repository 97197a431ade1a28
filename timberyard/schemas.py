import hashlib
import json
from datetime import datetime
from typing import Annotated, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from .catalog import ProductCategory
from .config import Settings


# --- Engine value types ---

class Dimensions(BaseModel):
    """
    Beam: length (m), width (mm), thickness (mm).
    Flooring: area (m²) or length × width (m), thickness (mm).
    Any value given must be finite and > 0.
    """
    model_config = ConfigDict(frozen=True)

    length: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)
    width: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)
    thickness: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)
    area: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)


class DimensionsInput(BaseModel):
    """Dimensions as sent by a client. Checked by the calculator, not here."""
    model_config = ConfigDict(extra="forbid")

    length: Optional[float] = None
    width: Optional[float] = None
    thickness: Optional[float] = None
    area: Optional[float] = None


def line_item_id(product_ref: str, options: dict, dimensions: Optional[Dimensions]) -> str:
    """Stable id for a product + option combination. Same config → same id."""
    payload = {
        "product": str(product_ref),
        "options": options or {},
        "dimensions": dimensions.model_dump(exclude_none=True) if dimensions else {},
    }
    digest = hashlib.sha1(json.dumps(payload, sort_keys=True).encode()).hexdigest()
    return f"{product_ref}-{digest[:12]}"


class CartLineItem(BaseModel):
    """One configured product in a cart. unit_price is frozen when added."""
    model_config = ConfigDict(frozen=True)

    product_ref: str
    category: ProductCategory
    name: str = ""
    quantity: int
    unit_price: float = Field(ge=0)
    options: Dict[str, str] = Field(default_factory=dict)
    dimensions: Optional[Dimensions] = None

    @computed_field
    @property
    def id(self) -> str:
        return line_item_id(self.product_ref, self.options, self.dimensions)

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity

    def same_config(self, other: "CartLineItem") -> bool:
        return (
            self.product_ref == other.product_ref
            and self.options == other.options
            and self.dimensions == other.dimensions
        )


class Cart(BaseModel):
    """Immutable cart snapshot. Mutations build a new snapshot with version + 1."""
    model_config = ConfigDict(frozen=True)

    owner_id: str
    items: Tuple[CartLineItem, ...] = ()
    version: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def subtotal(self) -> float:
        return sum(item.line_total for item in self.items)

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def find(self, item_id: str) -> Optional[CartLineItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def replace_items(self, items) -> "Cart":
        return Cart(owner_id=self.owner_id, items=tuple(items), version=self.version + 1)


class ShippingPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    free_delivery_threshold: float = Field(ge=0)
    min_delivery_charge: float = Field(ge=0)
    shipping_rate_per_cubic_meter: float = Field(ge=0)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ShippingPolicy":
        return cls(
            free_delivery_threshold=settings.FREE_DELIVERY_THRESHOLD,
            min_delivery_charge=settings.MIN_DELIVERY_CHARGE,
            shipping_rate_per_cubic_meter=settings.SHIPPING_RATE_PER_CUBIC_METER,
        )


MONEY_FIELDS = ("subtotal", "vat_amount", "shipping_cost", "total")


class CartTotals(BaseModel):
    items: List[CartLineItem]
    item_count: int
    subtotal: float
    vat_rate: float
    vat_amount: float
    shipping_cost: float
    total: float
    version: int = 0

    def rounded(self) -> "CartTotals":
        """Presentation copy: money to 2 decimal places, items unchanged."""
        return self.model_copy(update={f: round(getattr(self, f), 2) for f in MONEY_FIELDS})


class PriceBreakdown(BaseModel):
    category: ProductCategory
    base_price: float
    base_amount: float
    multiplier: float
    flat_total: float
    per_unit_total: float
    final_price: float


class DeliveryCheck(BaseModel):
    postcode: str
    is_deliverable: bool
    message: str


# --- Selections: one variant per category, discriminated on `category` ---

class _SelectionBase(BaseModel):
    model_config = ConfigDict(extra="forbid")

    def options(self) -> Dict[str, str]:
        return self.model_dump(exclude={"category", "dimensions"}, exclude_none=True)

    def get_dimensions(self) -> Optional[dict]:
        dims = getattr(self, "dimensions", None)
        return dims.model_dump(exclude_none=True) if dims is not None else None

    @classmethod
    def option_keys(cls) -> List[str]:
        """Option group keys this selection carries."""
        return [name for name in cls.model_fields if name not in ("category", "dimensions")]


class GarageSelection(_SelectionBase):
    category: Literal["garage"] = "garage"
    size: str
    roof: str
    truss: str


class GazeboSelection(_SelectionBase):
    category: Literal["gazebo"] = "gazebo"
    size: str
    roof: str
    panels: str


class PorchSelection(_SelectionBase):
    category: Literal["porch"] = "porch"
    style: str
    roof: str
    posts: str
    truss: str


class OakBeamSelection(_SelectionBase):
    category: Literal["oak_beam"] = "oak_beam"
    finish: str
    profile: str
    dimensions: DimensionsInput


class OakFlooringSelection(_SelectionBase):
    category: Literal["oak_flooring"] = "oak_flooring"
    thickness: str
    grade: str
    finish: str
    dimensions: DimensionsInput

    @field_validator("thickness", mode="before")
    @classmethod
    def _thickness_as_str(cls, v):
        if isinstance(v, float) and v.is_integer():
            v = int(v)
        return str(v) if isinstance(v, (int, float)) else v


Selection = Annotated[
    Union[GarageSelection, GazeboSelection, PorchSelection, OakBeamSelection, OakFlooringSelection],
    Field(discriminator="category"),
]

SELECTION_MODELS = {
    ProductCategory.GARAGE: GarageSelection,
    ProductCategory.GAZEBO: GazeboSelection,
    ProductCategory.PORCH: PorchSelection,
    ProductCategory.OAK_BEAM: OakBeamSelection,
    ProductCategory.OAK_FLOORING: OakFlooringSelection,
}


# --- API request/response schemas ---

class ProductConfigBase(BaseModel):
    name: str
    category: ProductCategory
    base_price: float
    options: Dict[str, str] = {}


class ProductConfigCreate(ProductConfigBase):
    pass


class ProductConfigUpdate(BaseModel):
    name: Optional[str] = None
    base_price: Optional[float] = None
    options: Optional[Dict[str, str]] = None


class ProductConfigOut(ProductConfigBase):
    id: int
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class PriceRequest(BaseModel):
    selection: Selection


class AddToCartRequest(BaseModel):
    product_id: int
    quantity: int = 1
    selection: Selection
    expected_version: Optional[int] = None


class UpdateQuantityRequest(BaseModel):
    quantity: int
    expected_version: Optional[int] = None


class DeliverySettingUpdate(BaseModel):
    value: str
