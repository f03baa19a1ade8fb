"""
Bill of materials aggregation.

Expands a job's fence and gate line items into component quantities,
consolidates them into one row per component, and appends a single
installation labor row. Rows come out ordered by category, then component
name, with a dense 0-based sort_order.
"""

import logging
from collections import OrderedDict
from decimal import Decimal
from typing import Dict, List, Tuple

from .cost import CostCalculator
from .domain import (
    LABOR_CATEGORY,
    ZERO,
    BillOfMaterialsItem,
    Component,
    FenceLineItem,
    GateLineItem,
    Job,
    LaborLineItem,
    OtherLineItem,
    PricingConfig,
)
from .height_tiers import resolve_height_multiplier
from .money import fmt_quantity

logger = logging.getLogger(__name__)


class BillOfMaterialsAggregator:

    def __init__(self, cost_calculator: CostCalculator = None):
        self.cost_calculator = cost_calculator or CostCalculator()

    def aggregate(self, job: Job, pricing_config: PricingConfig) -> List[BillOfMaterialsItem]:
        totals = self.accumulate(job, pricing_config)
        items = self._component_rows(totals)

        labor_cost = self.cost_calculator.compute_labor(job.total_linear_feet, pricing_config)
        if labor_cost != ZERO:
            items.append(BillOfMaterialsItem(
                category=LABOR_CATEGORY,
                description="Installation Labor (%s linear feet)" % fmt_quantity(job.total_linear_feet),
                quantity=Decimal("1"),
                unit_of_measure="Job",
                unit_price=labor_cost,
                total_price=labor_cost,
                sort_order=len(items),
            ))
        return items

    def accumulate(self, job: Job, pricing_config: PricingConfig) -> Dict[str, Tuple[Component, Decimal]]:
        """
        Running quantity per component id across every fence and gate line.
        Keys keep first-seen order.
        """
        totals: "OrderedDict[str, Tuple[Component, Decimal]]" = OrderedDict()

        for line in job.line_items:
            if isinstance(line, FenceLineItem):
                if line.fence_type is None:
                    logger.debug("Skipping fence line %s with no resolved fence type", line.id)
                    continue
                # Resolved per fence type but not folded into pricing yet.
                multiplier = resolve_height_multiplier(pricing_config.height_tiers,
                                                       line.fence_type.height_feet)
                logger.debug("Fence type %s (%s ft) height multiplier %s",
                             line.fence_type.name, line.fence_type.height_feet, multiplier)
                requirements = line.fence_type.requirements
            elif isinstance(line, GateLineItem):
                if line.gate_type is None:
                    logger.debug("Skipping gate line %s with no resolved gate type", line.id)
                    continue
                requirements = line.gate_type.requirements
            elif isinstance(line, (LaborLineItem, OtherLineItem)):
                continue
            else:
                raise TypeError(f"Unknown line item type: {type(line).__name__}")

            for requirement in requirements:
                component = requirement.component
                required_qty = requirement.quantity * line.quantity
                if component.id in totals:
                    known, running = totals[component.id]
                    totals[component.id] = (known, running + required_qty)
                else:
                    totals[component.id] = (component, required_qty)

        return totals

    def _component_rows(self, totals: Dict[str, Tuple[Component, Decimal]]) -> List[BillOfMaterialsItem]:
        ordered = sorted(totals.values(), key=lambda entry: (entry[0].category, entry[0].name))
        items = []
        for sort_order, (component, quantity) in enumerate(ordered):
            items.append(BillOfMaterialsItem(
                category=component.category,
                description=component.name,
                quantity=quantity,
                unit_of_measure=component.unit_of_measure,
                unit_price=component.unit_price,
                total_price=quantity * component.unit_price,
                sort_order=sort_order,
                component_id=component.id,
                sku=component.sku,
            ))
        return items
