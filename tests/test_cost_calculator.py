"""
Labor and margin math.

Tests:
1-2. Labor from linear feet via meters
3.   Materials cost leaves out Labor rows
4-6. Breakdown: simple fence closed-form values, profit on cost plus
     contingency, zero percentages
7.   Grand total adds tax only
"""

from decimal import Decimal

from fencequote.pricing.cost import CostCalculator
from fencequote.pricing.domain import BillOfMaterialsItem, PricingConfig


def _config(contingency="0.10", profit="0.20"):
    return PricingConfig(
        id="pc",
        organization_id="org-1",
        name="Test",
        labor_rate_per_hour=Decimal("50"),
        hours_per_linear_meter=Decimal("0.5"),
        contingency_percentage=Decimal(contingency),
        profit_margin_percentage=Decimal(profit),
    )


def _row(category, total, sort_order=0):
    return BillOfMaterialsItem(
        category=category,
        description=category,
        quantity=Decimal("1"),
        unit_of_measure="Each",
        unit_price=Decimal(total),
        total_price=Decimal(total),
        sort_order=sort_order,
    )


# ============================================================
# Labor
# ============================================================

def test_labor_uses_meters():
    calc = CostCalculator()
    assert calc.compute_labor(Decimal("100"), _config()) == Decimal("762.00")


def test_zero_footage_means_zero_labor():
    assert CostCalculator().compute_labor(Decimal("0"), _config()) == 0


# ============================================================
# Materials
# ============================================================

def test_materials_cost_excludes_labor_rows():
    bom = [_row("Posts", "562.50", 0), _row("Rails", "1050.00", 1), _row("Labor", "762.00", 2)]
    assert CostCalculator().materials_cost(bom) == Decimal("1612.50")
    assert CostCalculator().materials_cost([]) == Decimal("0")


# ============================================================
# Breakdown
# ============================================================

def test_simple_fence_breakdown():
    calc = CostCalculator()
    breakdown = calc.compute_breakdown(Decimal("1612.50"), Decimal("762.00"), _config())

    assert breakdown.materials_cost == Decimal("1612.50")
    assert breakdown.labor_cost == Decimal("762.00")
    assert breakdown.subtotal == Decimal("2374.50")
    assert breakdown.contingency_amount == Decimal("237.45")
    # (2374.50 + 237.45) * 0.20
    assert breakdown.profit_amount == Decimal("522.39")
    assert breakdown.total_amount == Decimal("3134.34")


def test_profit_is_taken_on_cost_plus_contingency():
    calc = CostCalculator()
    cases = [
        ("0", "0", "0.10", "0.20"),
        ("1234.56", "789.01", "0.15", "0.35"),
        ("0.01", "0", "0.075", "0.125"),
        ("99999.99", "12345.67", "0", "0.5"),
    ]
    for materials, labor, contingency, profit in cases:
        breakdown = calc.compute_breakdown(Decimal(materials), Decimal(labor), _config(contingency, profit))
        expected = (Decimal(materials) + Decimal(labor)) * (1 + Decimal(contingency)) * Decimal(profit)
        assert breakdown.profit_amount == expected
        assert breakdown.total_amount == breakdown.subtotal + breakdown.contingency_amount + breakdown.profit_amount


def test_zero_percentages_pass_subtotal_through():
    breakdown = CostCalculator().compute_breakdown(Decimal("100"), Decimal("50"), _config("0", "0"))
    assert breakdown.contingency_amount == 0
    assert breakdown.profit_amount == 0
    assert breakdown.total_amount == Decimal("150")


# ============================================================
# Grand total
# ============================================================

def test_grand_total_adds_tax():
    calc = CostCalculator()
    assert calc.grand_total(Decimal("3134.34"), Decimal("0")) == Decimal("3134.34")
    assert calc.grand_total(Decimal("3134.34"), Decimal("250.75")) == Decimal("3385.09")
