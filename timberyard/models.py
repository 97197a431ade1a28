from sqlalchemy import Column, Integer, String, Float, DateTime, Text, JSON
from datetime import datetime
from .database import Base


class ProductConfig(Base):
    """A sellable product: category, base price (or rate per m³/m²) and preset options."""
    __tablename__ = "product_configs"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    category = Column(String, nullable=False, index=True)  # ProductCategory value
    base_price = Column(Float, nullable=False)
    options = Column(JSON, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class CategoryOptions(Base):
    """Admin-editable option groups for one category (OptionGroup dicts)."""
    __tablename__ = "category_options"

    id = Column(Integer, primary_key=True, index=True)
    category = Column(String, unique=True, nullable=False)
    groups = Column(JSON, default=list)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class DeliverySetting(Base):
    """Typed key/value delivery and pricing settings. Rows override the env defaults."""
    __tablename__ = "delivery_settings"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String, unique=True, nullable=False)
    value = Column(Text, nullable=False)
    value_type = Column(String, default="number")  # 'string' | 'number' | 'boolean'
    description = Column(Text, default="")
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def get_value(self):
        if self.value_type == "number":
            return float(self.value)
        if self.value_type == "boolean":
            return self.value == "true"
        return self.value


class CartRecord(Base):
    """Persisted cart snapshot, one per owner. Last write wins unless a version is checked."""
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String, unique=True, nullable=False, index=True)
    items = Column(JSON, default=list)
    version = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
