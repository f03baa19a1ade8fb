from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime
import enum
import uuid

from .database import Base
from .pricing.domain import QuoteStatus


def _uuid():
    return str(uuid.uuid4())


# Money and quantities keep 6 places; rounding to cents happens on display.
Money = Numeric(18, 6, asdecimal=True)
Quantity = Numeric(18, 6, asdecimal=True)


class LineItemType(str, enum.Enum):
    FENCE = "fence"
    GATE = "gate"
    LABOR = "labor"
    OTHER = "other"


class Organization(Base):
    """Tenant. Everything below is scoped to one."""
    __tablename__ = "organizations"

    id = Column(String, primary_key=True, default=_uuid)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


# --- Catalog ---

class Component(Base):
    """Catalog part. Price changes never reach BOM rows or versions already stored."""
    __tablename__ = "components"

    id = Column(String, primary_key=True, default=_uuid)
    organization_id = Column(String, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    sku = Column(String, nullable=True)
    category = Column(String, nullable=False)  # free-form, "Labor" is reserved
    unit_of_measure = Column(String, default="Each")
    unit_price = Column(Money, default=0)
    material = Column(String, nullable=True)
    dimensions = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class FenceType(Base):
    __tablename__ = "fence_types"

    id = Column(String, primary_key=True, default=_uuid)
    organization_id = Column(String, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    height_feet = Column(Quantity, default=0)
    material = Column(String, nullable=True)
    style = Column(String, nullable=True)
    price_per_linear_foot = Column(Money, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    components = relationship("FenceComponent", back_populates="fence_type",
                              cascade="all, delete-orphan", order_by="FenceComponent.position")


class FenceComponent(Base):
    """Component requirement of a fence type, per linear foot."""
    __tablename__ = "fence_components"

    id = Column(String, primary_key=True, default=_uuid)
    fence_type_id = Column(String, ForeignKey("fence_types.id"), nullable=False, index=True)
    component_id = Column(String, ForeignKey("components.id"), nullable=False)
    quantity_per_linear_foot = Column(Quantity, nullable=False)
    position = Column(Integer, default=0)

    fence_type = relationship("FenceType", back_populates="components")
    component = relationship("Component")


class GateType(Base):
    __tablename__ = "gate_types"

    id = Column(String, primary_key=True, default=_uuid)
    organization_id = Column(String, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    width_feet = Column(Quantity, default=0)
    height_feet = Column(Quantity, default=0)
    material = Column(String, nullable=True)
    style = Column(String, nullable=True)
    base_price = Column(Money, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    components = relationship("GateComponent", back_populates="gate_type",
                              cascade="all, delete-orphan", order_by="GateComponent.position")


class GateComponent(Base):
    """Component requirement of a gate type, per gate."""
    __tablename__ = "gate_components"

    id = Column(String, primary_key=True, default=_uuid)
    gate_type_id = Column(String, ForeignKey("gate_types.id"), nullable=False, index=True)
    component_id = Column(String, ForeignKey("components.id"), nullable=False)
    quantity_per_gate = Column(Quantity, nullable=False)
    position = Column(Integer, default=0)

    gate_type = relationship("GateType", back_populates="components")
    component = relationship("Component")


# --- Jobs ---

class Job(Base):
    __tablename__ = "jobs"

    id = Column(String, primary_key=True, default=_uuid)
    organization_id = Column(String, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    customer_name = Column(String, nullable=False)
    customer_email = Column(String, nullable=True)
    customer_phone = Column(String, nullable=True)
    installation_address = Column(Text, nullable=True)
    total_linear_feet = Column(Quantity, default=0)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    organization = relationship("Organization")
    line_items = relationship("JobLineItem", back_populates="job",
                              cascade="all, delete-orphan", order_by="JobLineItem.position")


class JobLineItem(Base):
    __tablename__ = "job_line_items"

    id = Column(String, primary_key=True, default=_uuid)
    job_id = Column(String, ForeignKey("jobs.id"), nullable=False, index=True)
    item_type = Column(Enum(LineItemType), nullable=False)
    # Plain strings, no FK: a deleted type leaves a dangling reference the engine skips
    fence_type_id = Column(String, nullable=True)
    gate_type_id = Column(String, nullable=True)
    description = Column(String, nullable=False)
    quantity = Column(Quantity, default=0)  # linear feet for fences, count for gates
    unit_price = Column(Money, default=0)
    total_price = Column(Money, default=0)
    position = Column(Integer, default=0)

    job = relationship("Job", back_populates="line_items")
    fence_type = relationship("FenceType", primaryjoin="foreign(JobLineItem.fence_type_id) == FenceType.id",
                              viewonly=True)
    gate_type = relationship("GateType", primaryjoin="foreign(JobLineItem.gate_type_id) == GateType.id",
                             viewonly=True)


# --- Pricing ---

class PricingConfig(Base):
    """Tenant pricing formula. At most one default per organization (kept by the API)."""
    __tablename__ = "pricing_configs"

    id = Column(String, primary_key=True, default=_uuid)
    organization_id = Column(String, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    labor_rate_per_hour = Column(Money, nullable=False)
    hours_per_linear_meter = Column(Quantity, nullable=False)
    contingency_percentage = Column(Quantity, default=0.10)   # fraction: 0.10 = 10%
    profit_margin_percentage = Column(Quantity, default=0.20)
    is_default = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    height_tiers = relationship("HeightTier", back_populates="pricing_config",
                                cascade="all, delete-orphan", order_by="HeightTier.min_height_meters")


class HeightTier(Base):
    __tablename__ = "height_tiers"

    id = Column(String, primary_key=True, default=_uuid)
    pricing_config_id = Column(String, ForeignKey("pricing_configs.id"), nullable=False, index=True)
    min_height_meters = Column(Quantity, nullable=False)
    max_height_meters = Column(Quantity, nullable=True)  # NULL = no upper bound
    multiplier = Column(Quantity, default=1.0)
    description = Column(String, nullable=True)

    pricing_config = relationship("PricingConfig", back_populates="height_tiers")


# --- Quotes ---

class Quote(Base):
    __tablename__ = "quotes"
    __table_args__ = (
        UniqueConstraint("organization_id", "quote_number", name="uq_quotes_org_number"),
    )

    id = Column(String, primary_key=True, default=_uuid)
    job_id = Column(String, ForeignKey("jobs.id", ondelete="SET NULL"), nullable=True, index=True)
    organization_id = Column(String, ForeignKey("organizations.id"), nullable=False, index=True)
    pricing_config_id = Column(String, ForeignKey("pricing_configs.id", ondelete="SET NULL"), nullable=True)
    quote_number = Column(String, nullable=False)
    current_version = Column(Integer, default=1)
    status = Column(Enum(QuoteStatus), default=QuoteStatus.DRAFT)
    # Totals
    materials_cost = Column(Money, default=0)
    labor_cost = Column(Money, default=0)
    subtotal = Column(Money, default=0)
    contingency_amount = Column(Money, default=0)
    profit_amount = Column(Money, default=0)
    total_amount = Column(Money, default=0)
    tax_amount = Column(Money, default=0)
    # Stored for the discount rules feature; not applied to any total.
    discount_amount = Column(Money, default=0)
    discount_rule_id = Column(String, nullable=True)
    grand_total = Column(Money, default=0)
    valid_until = Column(DateTime, nullable=True)
    terms = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    job = relationship("Job")
    organization = relationship("Organization")
    pricing_config = relationship("PricingConfig")
    bill_of_materials = relationship("BillOfMaterialsItem", back_populates="quote",
                                     cascade="all, delete-orphan", order_by="BillOfMaterialsItem.sort_order")
    versions = relationship("QuoteVersion", back_populates="quote",
                            cascade="all, delete-orphan", order_by="QuoteVersion.version_number")


class BillOfMaterialsItem(Base):
    """Current BOM row. Replaced wholesale on every recalculation."""
    __tablename__ = "bill_of_materials_items"

    id = Column(String, primary_key=True, default=_uuid)
    quote_id = Column(String, ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False, index=True)
    component_id = Column(String, nullable=True)
    category = Column(String, nullable=False)
    description = Column(String, nullable=False)
    sku = Column(String, nullable=True)
    quantity = Column(Quantity, default=0)
    unit_of_measure = Column(String, default="Each")
    unit_price = Column(Money, default=0)
    total_price = Column(Money, default=0)
    sort_order = Column(Integer, default=0)
    notes = Column(Text, nullable=True)

    quote = relationship("Quote", back_populates="bill_of_materials")


class QuoteVersion(Base):
    """Append-only. Rows are inserted by the store and never updated."""
    __tablename__ = "quote_versions"
    __table_args__ = (
        UniqueConstraint("quote_id", "version_number", name="uq_quote_versions_quote_version"),
    )

    id = Column(String, primary_key=True, default=_uuid)
    quote_id = Column(String, ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False, index=True)
    version_number = Column(Integer, nullable=False)
    change_summary = Column(Text, nullable=True)
    materials_cost = Column(Money, default=0)
    labor_cost = Column(Money, default=0)
    subtotal = Column(Money, default=0)
    contingency_amount = Column(Money, default=0)
    profit_amount = Column(Money, default=0)
    total_amount = Column(Money, default=0)
    tax_amount = Column(Money, default=0)
    grand_total = Column(Money, default=0)
    bom_snapshot = Column(Text, nullable=True)             # JSON
    pricing_config_snapshot = Column(Text, nullable=True)  # JSON
    created_at = Column(DateTime, default=datetime.utcnow)
    created_by = Column(String, nullable=True)

    quote = relationship("Quote", back_populates="versions")
