from pydantic import BaseModel, BeforeValidator, Field, model_validator
from typing import Annotated, List, Optional
from datetime import datetime
from decimal import Decimal

from .pricing.domain import QuoteStatus
from .pricing.money import to_cents


def _money(value):
    return float(to_cents(value))


def _number(value):
    return None if value is None else float(value)


# Money goes out rounded half-even to cents; rates and quantities go out as-is.
Money = Annotated[float, BeforeValidator(_money)]
Number = Annotated[float, BeforeValidator(_number)]


# --- Pricing configs ---

class HeightTierBase(BaseModel):
    min_height_meters: Decimal = Field(ge=0)
    max_height_meters: Optional[Decimal] = Field(default=None, ge=0)
    multiplier: Decimal = Field(default=Decimal("1.0"), gt=0)
    description: Optional[str] = None

    @model_validator(mode="after")
    def check_band(self):
        if self.max_height_meters is not None and self.max_height_meters < self.min_height_meters:
            raise ValueError("max_height_meters must not be below min_height_meters")
        return self

class HeightTierOut(BaseModel):
    min_height_meters: Number
    max_height_meters: Optional[Number] = None
    multiplier: Number
    description: Optional[str] = None
    class Config:
        from_attributes = True

class PricingConfigBase(BaseModel):
    name: str
    description: Optional[str] = None
    labor_rate_per_hour: Decimal = Field(ge=0)
    hours_per_linear_meter: Decimal = Field(ge=0)
    contingency_percentage: Decimal = Field(default=Decimal("0.10"), ge=0)
    profit_margin_percentage: Decimal = Field(default=Decimal("0.20"), ge=0)
    is_default: bool = False

class PricingConfigCreate(PricingConfigBase):
    height_tiers: List[HeightTierBase] = []

class PricingConfigUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    labor_rate_per_hour: Optional[Decimal] = Field(default=None, ge=0)
    hours_per_linear_meter: Optional[Decimal] = Field(default=None, ge=0)
    contingency_percentage: Optional[Decimal] = Field(default=None, ge=0)
    profit_margin_percentage: Optional[Decimal] = Field(default=None, ge=0)
    is_default: Optional[bool] = None
    height_tiers: Optional[List[HeightTierBase]] = None

class PricingConfig(BaseModel):
    id: str
    organization_id: str
    name: str
    description: Optional[str] = None
    labor_rate_per_hour: Number
    hours_per_linear_meter: Number
    contingency_percentage: Number
    profit_margin_percentage: Number
    is_default: bool
    height_tiers: List[HeightTierOut] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    class Config:
        from_attributes = True


# --- Bill of materials ---

class BillOfMaterialsItem(BaseModel):
    category: str
    description: str
    component_id: Optional[str] = None
    sku: Optional[str] = None
    quantity: Number
    unit_of_measure: str
    unit_price: Money
    total_price: Money
    sort_order: int
    notes: Optional[str] = None
    class Config:
        from_attributes = True


# --- Quotes ---

class QuoteGenerateRequest(BaseModel):
    job_id: str
    pricing_config_id: Optional[str] = None

class QuoteRecalculateRequest(BaseModel):
    change_summary: Optional[str] = None

class QuoteUpdate(BaseModel):
    status: Optional[QuoteStatus] = None
    valid_until: Optional[datetime] = None
    terms: Optional[str] = None
    notes: Optional[str] = None
    tax_amount: Optional[Decimal] = None

class QuoteSummary(BaseModel):
    id: str
    quote_number: str
    job_id: Optional[str] = None
    organization_id: str
    pricing_config_id: Optional[str] = None
    current_version: int
    status: QuoteStatus
    total_amount: Money
    tax_amount: Money
    grand_total: Money
    valid_until: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    class Config:
        from_attributes = True

class Quote(QuoteSummary):
    materials_cost: Money
    labor_cost: Money
    subtotal: Money
    contingency_amount: Money
    profit_amount: Money
    discount_amount: Money
    terms: Optional[str] = None
    notes: Optional[str] = None
    bill_of_materials: List[BillOfMaterialsItem] = []

class QuoteVersion(BaseModel):
    id: str
    version_number: int
    change_summary: Optional[str] = None
    materials_cost: Money
    labor_cost: Money
    subtotal: Money
    contingency_amount: Money
    profit_amount: Money
    total_amount: Money
    tax_amount: Money
    grand_total: Money
    created_at: datetime
    created_by: Optional[str] = None
    bill_of_materials: List[BillOfMaterialsItem] = []
    pricing_config: dict = {}
