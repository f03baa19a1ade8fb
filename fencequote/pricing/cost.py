"""
Labor and margin math.

Formula:
- labor      = feet_to_meters(total_linear_feet) * hours_per_linear_meter * labor_rate_per_hour
- subtotal   = materials + labor
- contingency = subtotal * contingency_percentage
- profit     = (subtotal + contingency) * profit_margin_percentage
- total      = subtotal + contingency + profit
- grand total = total + tax   (discount is stored on the quote but not applied)

Profit is taken on cost plus contingency, not on the subtotal alone.
No rounding happens here; see money.py.
"""

from decimal import Decimal
from typing import Iterable

from .domain import LABOR_CATEGORY, ZERO, BillOfMaterialsItem, CostBreakdown, PricingConfig
from .units import feet_to_meters


class CostCalculator:

    def compute_labor(self, total_linear_feet: Decimal, pricing_config: PricingConfig) -> Decimal:
        total_linear_meters = feet_to_meters(total_linear_feet)
        total_hours = total_linear_meters * pricing_config.hours_per_linear_meter
        return total_hours * pricing_config.labor_rate_per_hour

    def materials_cost(self, bom_items: Iterable[BillOfMaterialsItem]) -> Decimal:
        """Sum of BOM line totals, leaving out the Labor category."""
        return sum(
            (item.total_price for item in bom_items if item.category != LABOR_CATEGORY),
            ZERO,
        )

    def compute_breakdown(self, materials_cost: Decimal, labor_cost: Decimal,
                          pricing_config: PricingConfig) -> CostBreakdown:
        subtotal = materials_cost + labor_cost
        contingency_amount = subtotal * pricing_config.contingency_percentage
        profit_amount = (subtotal + contingency_amount) * pricing_config.profit_margin_percentage
        total_amount = subtotal + contingency_amount + profit_amount
        return CostBreakdown(
            materials_cost=materials_cost,
            labor_cost=labor_cost,
            subtotal=subtotal,
            contingency_amount=contingency_amount,
            profit_amount=profit_amount,
            total_amount=total_amount,
        )

    def grand_total(self, total_amount: Decimal, tax_amount: Decimal) -> Decimal:
        return total_amount + tax_amount
