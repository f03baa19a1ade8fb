"""
Engine-side object graph.

The store hands the engine fully hydrated jobs and pricing configurations
built from these classes, and persists the Quote aggregates it gets back.
Every money and quantity value is a Decimal.
"""

import enum
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple, Union

from ..errors import InvalidQuoteUpdate

LABOR_CATEGORY = "Labor"
ZERO = Decimal("0")


def new_id() -> str:
    return str(uuid.uuid4())


# --- Catalog ---

@dataclass(frozen=True)
class Component:
    id: str
    name: str
    category: str
    unit_price: Decimal
    unit_of_measure: str = "Each"
    sku: Optional[str] = None
    organization_id: Optional[str] = None


@dataclass(frozen=True)
class ComponentRequirement:
    """A component and how many of it one unit of a fence/gate type needs."""
    component: Component
    quantity: Decimal  # per linear foot for fences, per gate for gates


@dataclass
class FenceType:
    id: str
    name: str
    height_feet: Decimal
    price_per_linear_foot: Decimal = ZERO
    requirements: List[ComponentRequirement] = field(default_factory=list)


@dataclass
class GateType:
    id: str
    name: str
    width_feet: Decimal
    height_feet: Decimal
    base_price: Decimal = ZERO
    requirements: List[ComponentRequirement] = field(default_factory=list)


# --- Jobs ---
# One class per line item tag. A fence/gate line whose type reference did not
# resolve carries None instead of a type.

@dataclass
class FenceLineItem:
    description: str
    quantity: Decimal  # linear feet
    fence_type: Optional[FenceType] = None
    unit_price: Decimal = ZERO
    total_price: Decimal = ZERO
    id: str = field(default_factory=new_id)


@dataclass
class GateLineItem:
    description: str
    quantity: Decimal  # gate count
    gate_type: Optional[GateType] = None
    unit_price: Decimal = ZERO
    total_price: Decimal = ZERO
    id: str = field(default_factory=new_id)


@dataclass
class LaborLineItem:
    description: str
    quantity: Decimal
    unit_price: Decimal = ZERO
    total_price: Decimal = ZERO
    id: str = field(default_factory=new_id)


@dataclass
class OtherLineItem:
    description: str
    quantity: Decimal
    unit_price: Decimal = ZERO
    total_price: Decimal = ZERO
    id: str = field(default_factory=new_id)


LineItem = Union[FenceLineItem, GateLineItem, LaborLineItem, OtherLineItem]


@dataclass
class Job:
    id: str
    organization_id: str
    name: str
    customer_name: str
    total_linear_feet: Decimal = ZERO
    line_items: List[LineItem] = field(default_factory=list)
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    installation_address: Optional[str] = None


# --- Pricing configuration ---

@dataclass(frozen=True)
class HeightTier:
    min_height_meters: Decimal
    max_height_meters: Optional[Decimal] = None  # None = no upper bound
    multiplier: Decimal = Decimal("1.0")
    description: Optional[str] = None


@dataclass
class PricingConfig:
    id: str
    organization_id: str
    name: str
    labor_rate_per_hour: Decimal
    hours_per_linear_meter: Decimal
    contingency_percentage: Decimal = Decimal("0.10")
    profit_margin_percentage: Decimal = Decimal("0.20")
    is_default: bool = False
    description: Optional[str] = None
    height_tiers: List[HeightTier] = field(default_factory=list)


# --- Engine output ---

@dataclass(frozen=True)
class BillOfMaterialsItem:
    category: str
    description: str
    quantity: Decimal
    unit_of_measure: str
    unit_price: Decimal
    total_price: Decimal
    sort_order: int
    component_id: Optional[str] = None
    sku: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class CostBreakdown:
    materials_cost: Decimal
    labor_cost: Decimal
    subtotal: Decimal
    contingency_amount: Decimal
    profit_amount: Decimal
    total_amount: Decimal


class QuoteStatus(str, enum.Enum):
    DRAFT = "draft"
    PENDING = "pending"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"
    REVISED = "revised"


# Status moves a user may make by hand. REVISED is only ever set by recalculation.
ALLOWED_STATUS_CHANGES = {
    QuoteStatus.DRAFT: {QuoteStatus.PENDING, QuoteStatus.SENT},
    QuoteStatus.REVISED: {QuoteStatus.PENDING, QuoteStatus.SENT},
    QuoteStatus.PENDING: {QuoteStatus.SENT, QuoteStatus.ACCEPTED, QuoteStatus.REJECTED, QuoteStatus.EXPIRED},
    QuoteStatus.SENT: {QuoteStatus.ACCEPTED, QuoteStatus.REJECTED, QuoteStatus.EXPIRED},
    QuoteStatus.ACCEPTED: set(),
    QuoteStatus.REJECTED: set(),
    QuoteStatus.EXPIRED: set(),
}


@dataclass(frozen=True)
class QuoteVersion:
    """Point-in-time copy of a quote. Never updated once created."""
    quote_id: str
    version_number: int
    materials_cost: Decimal
    labor_cost: Decimal
    subtotal: Decimal
    contingency_amount: Decimal
    profit_amount: Decimal
    total_amount: Decimal
    tax_amount: Decimal
    grand_total: Decimal
    bom_snapshot: str
    pricing_config_snapshot: str
    created_at: datetime
    change_summary: Optional[str] = None
    created_by: Optional[str] = None
    id: str = field(default_factory=new_id)


class Quote:
    """
    Current state of a quote plus its append-only version log.

    quote_number is write-once. versions can only grow, one number at a time,
    and the last version number always equals current_version.
    """

    def __init__(self, job_id: str, organization_id: str, quote_number: str,
                 pricing_config_id: Optional[str] = None,
                 id: Optional[str] = None,
                 current_version: int = 1,
                 status: QuoteStatus = QuoteStatus.DRAFT,
                 breakdown: Optional[CostBreakdown] = None,
                 tax_amount: Decimal = ZERO,
                 discount_amount: Decimal = ZERO,
                 discount_rule_id: Optional[str] = None,
                 grand_total: Optional[Decimal] = None,
                 valid_until: Optional[datetime] = None,
                 terms: Optional[str] = None,
                 notes: Optional[str] = None,
                 created_at: Optional[datetime] = None,
                 updated_at: Optional[datetime] = None,
                 bill_of_materials: Optional[List[BillOfMaterialsItem]] = None,
                 versions: Optional[List[QuoteVersion]] = None,
                 job: Optional[Job] = None,
                 pricing_config: Optional[PricingConfig] = None):
        now = datetime.utcnow()
        self.id = id or new_id()
        self.job_id = job_id
        self.organization_id = organization_id
        self.pricing_config_id = pricing_config_id
        self._quote_number = quote_number
        self.current_version = current_version
        self.status = status
        self.breakdown = breakdown or CostBreakdown(ZERO, ZERO, ZERO, ZERO, ZERO, ZERO)
        self.tax_amount = tax_amount
        self.discount_amount = discount_amount
        self.discount_rule_id = discount_rule_id
        self.grand_total = grand_total if grand_total is not None else self.breakdown.total_amount + tax_amount
        self.valid_until = valid_until
        self.terms = terms
        self.notes = notes
        self.created_at = created_at or now
        self.updated_at = updated_at or now
        self.bill_of_materials = list(bill_of_materials or [])
        self._versions = list(versions or [])
        self.job = job
        self.pricing_config = pricing_config

    @property
    def quote_number(self) -> str:
        return self._quote_number

    @property
    def versions(self) -> Tuple[QuoteVersion, ...]:
        return tuple(self._versions)

    @property
    def latest_version(self) -> Optional[QuoteVersion]:
        return self._versions[-1] if self._versions else None

    # Breakdown shortcuts, mostly for callers that render a quote.
    @property
    def materials_cost(self) -> Decimal:
        return self.breakdown.materials_cost

    @property
    def labor_cost(self) -> Decimal:
        return self.breakdown.labor_cost

    @property
    def subtotal(self) -> Decimal:
        return self.breakdown.subtotal

    @property
    def contingency_amount(self) -> Decimal:
        return self.breakdown.contingency_amount

    @property
    def profit_amount(self) -> Decimal:
        return self.breakdown.profit_amount

    @property
    def total_amount(self) -> Decimal:
        return self.breakdown.total_amount

    def append_version(self, version: QuoteVersion) -> None:
        expected = len(self._versions) + 1
        if version.quote_id != self.id:
            raise ValueError(f"Version belongs to quote {version.quote_id}, not {self.id}")
        if version.version_number != expected or version.version_number != self.current_version:
            raise ValueError(
                f"Quote {self.id} expects version {expected} "
                f"(current_version={self.current_version}), got {version.version_number}"
            )
        self._versions.append(version)

    def apply_update(self, status: Optional[QuoteStatus] = None,
                     valid_until: Optional[datetime] = None,
                     terms: Optional[str] = None,
                     notes: Optional[str] = None,
                     tax_amount: Optional[Decimal] = None,
                     now: Optional[datetime] = None) -> None:
        """Edit the non-priced fields. Does not create a version."""
        if status is not None and status != self.status:
            if status not in ALLOWED_STATUS_CHANGES[self.status]:
                raise InvalidQuoteUpdate(
                    f"Cannot move quote {self.quote_number} from {self.status.value} to {status.value}"
                )
            self.status = status
        if valid_until is not None:
            self.valid_until = valid_until
        if terms is not None:
            self.terms = terms
        if notes is not None:
            self.notes = notes
        if tax_amount is not None:
            if tax_amount < 0:
                raise InvalidQuoteUpdate("tax_amount cannot be negative")
            self.tax_amount = tax_amount
        self.grand_total = self.breakdown.total_amount + self.tax_amount
        self.updated_at = now or datetime.utcnow()
