"""
Quote version snapshots.

Each generate/recalculate call records one QuoteVersion: the breakdown
copied by value, plus JSON copies of the BOM rows and the pricing config
parameters as they were at that moment. Decimals are written as strings so
a snapshot reads back exactly, and later edits to the live config never
reach a stored version.
"""

import json
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from .domain import BillOfMaterialsItem, HeightTier, PricingConfig, Quote, QuoteVersion


def _dec(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(value)


def _undec(value: Optional[str]) -> Optional[Decimal]:
    return None if value is None else Decimal(value)


def serialize_bom(bom_items: List[BillOfMaterialsItem]) -> str:
    rows = [
        {
            "category": item.category,
            "description": item.description,
            "sku": item.sku,
            "quantity": _dec(item.quantity),
            "unit_of_measure": item.unit_of_measure,
            "unit_price": _dec(item.unit_price),
            "total_price": _dec(item.total_price),
            "sort_order": item.sort_order,
        }
        for item in bom_items
    ]
    return json.dumps(rows)


def serialize_pricing_config(pricing_config: PricingConfig) -> str:
    return json.dumps({
        "name": pricing_config.name,
        "labor_rate_per_hour": _dec(pricing_config.labor_rate_per_hour),
        "hours_per_linear_meter": _dec(pricing_config.hours_per_linear_meter),
        "contingency_percentage": _dec(pricing_config.contingency_percentage),
        "profit_margin_percentage": _dec(pricing_config.profit_margin_percentage),
        "height_tiers": [
            {
                "min_height_meters": _dec(tier.min_height_meters),
                "max_height_meters": _dec(tier.max_height_meters),
                "multiplier": _dec(tier.multiplier),
                "description": tier.description,
            }
            for tier in pricing_config.height_tiers
        ],
    })


def load_bom_snapshot(snapshot: str) -> List[BillOfMaterialsItem]:
    """Rebuild BOM rows from a version's bom_snapshot (no component ids are kept)."""
    return [
        BillOfMaterialsItem(
            category=row["category"],
            description=row["description"],
            sku=row.get("sku"),
            quantity=_undec(row["quantity"]),
            unit_of_measure=row["unit_of_measure"],
            unit_price=_undec(row["unit_price"]),
            total_price=_undec(row["total_price"]),
            sort_order=row["sort_order"],
        )
        for row in json.loads(snapshot or "[]")
    ]


def load_pricing_config_snapshot(snapshot: str) -> dict:
    """Parse a pricing_config_snapshot back into Decimals and HeightTiers."""
    data = json.loads(snapshot or "{}")
    if not data:
        return {}
    return {
        "name": data["name"],
        "labor_rate_per_hour": _undec(data["labor_rate_per_hour"]),
        "hours_per_linear_meter": _undec(data["hours_per_linear_meter"]),
        "contingency_percentage": _undec(data["contingency_percentage"]),
        "profit_margin_percentage": _undec(data["profit_margin_percentage"]),
        "height_tiers": [
            HeightTier(
                min_height_meters=_undec(t["min_height_meters"]),
                max_height_meters=_undec(t["max_height_meters"]),
                multiplier=_undec(t["multiplier"]),
                description=t.get("description"),
            )
            for t in data.get("height_tiers", [])
        ],
    }


class QuoteVersioner:

    def snapshot(self, quote: Quote, bom_items: List[BillOfMaterialsItem],
                 pricing_config: PricingConfig, change_summary: Optional[str] = None,
                 created_by: Optional[str] = None,
                 created_at: Optional[datetime] = None) -> QuoteVersion:
        """Build the version for quote.current_version. The caller appends it."""
        breakdown = quote.breakdown
        return QuoteVersion(
            quote_id=quote.id,
            version_number=quote.current_version,
            change_summary=change_summary,
            materials_cost=breakdown.materials_cost,
            labor_cost=breakdown.labor_cost,
            subtotal=breakdown.subtotal,
            contingency_amount=breakdown.contingency_amount,
            profit_amount=breakdown.profit_amount,
            total_amount=breakdown.total_amount,
            tax_amount=quote.tax_amount,
            grand_total=quote.grand_total,
            bom_snapshot=serialize_bom(bom_items),
            pricing_config_snapshot=serialize_pricing_config(pricing_config),
            created_at=created_at or datetime.utcnow(),
            created_by=created_by,
        )
