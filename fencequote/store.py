"""
SQLAlchemy-backed QuoteStore.

Maps ORM rows in models.py to the engine's domain objects and back. Each
write commits the quote, its BOM rows and its new versions together; any
failure rolls the whole session back.

When built with an organization_id, every job and quote lookup is scoped to
that organization, so a caller cannot reach another tenant's records by id.
"""

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import models
from .errors import QuoteNotFound, QuoteNumberConflict
from .pricing import domain
from .pricing.engine import QuoteStore

logger = logging.getLogger(__name__)


def _dec(value) -> Decimal:
    if value is None:
        return domain.ZERO
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _opt_dec(value) -> Optional[Decimal]:
    return None if value is None else _dec(value)


# --- Row -> domain ---

def component_from_row(row: models.Component) -> domain.Component:
    return domain.Component(
        id=row.id,
        name=row.name,
        category=row.category,
        unit_price=_dec(row.unit_price),
        unit_of_measure=row.unit_of_measure or "Each",
        sku=row.sku,
        organization_id=row.organization_id,
    )


def fence_type_from_row(row: models.FenceType) -> domain.FenceType:
    return domain.FenceType(
        id=row.id,
        name=row.name,
        height_feet=_dec(row.height_feet),
        price_per_linear_foot=_dec(row.price_per_linear_foot),
        requirements=[
            domain.ComponentRequirement(component_from_row(fc.component), _dec(fc.quantity_per_linear_foot))
            for fc in row.components
        ],
    )


def gate_type_from_row(row: models.GateType) -> domain.GateType:
    return domain.GateType(
        id=row.id,
        name=row.name,
        width_feet=_dec(row.width_feet),
        height_feet=_dec(row.height_feet),
        base_price=_dec(row.base_price),
        requirements=[
            domain.ComponentRequirement(component_from_row(gc.component), _dec(gc.quantity_per_gate))
            for gc in row.components
        ],
    )


def line_item_from_row(row: models.JobLineItem, organization_id: str) -> domain.LineItem:
    common = dict(
        id=row.id,
        description=row.description,
        quantity=_dec(row.quantity),
        unit_price=_dec(row.unit_price),
        total_price=_dec(row.total_price),
    )
    if row.item_type == models.LineItemType.FENCE:
        fence_type = row.fence_type
        # A type from another organization does not resolve.
        if fence_type is not None and fence_type.organization_id != organization_id:
            fence_type = None
        return domain.FenceLineItem(
            fence_type=fence_type_from_row(fence_type) if fence_type is not None else None, **common
        )
    if row.item_type == models.LineItemType.GATE:
        gate_type = row.gate_type
        if gate_type is not None and gate_type.organization_id != organization_id:
            gate_type = None
        return domain.GateLineItem(
            gate_type=gate_type_from_row(gate_type) if gate_type is not None else None, **common
        )
    if row.item_type == models.LineItemType.LABOR:
        return domain.LaborLineItem(**common)
    return domain.OtherLineItem(**common)


def job_from_row(row: models.Job) -> domain.Job:
    return domain.Job(
        id=row.id,
        organization_id=row.organization_id,
        name=row.name,
        customer_name=row.customer_name,
        total_linear_feet=_dec(row.total_linear_feet),
        line_items=[line_item_from_row(li, row.organization_id) for li in row.line_items],
        customer_email=row.customer_email,
        customer_phone=row.customer_phone,
        installation_address=row.installation_address,
    )


def pricing_config_from_row(row: models.PricingConfig) -> domain.PricingConfig:
    return domain.PricingConfig(
        id=row.id,
        organization_id=row.organization_id,
        name=row.name,
        labor_rate_per_hour=_dec(row.labor_rate_per_hour),
        hours_per_linear_meter=_dec(row.hours_per_linear_meter),
        contingency_percentage=_dec(row.contingency_percentage),
        profit_margin_percentage=_dec(row.profit_margin_percentage),
        is_default=bool(row.is_default),
        description=row.description,
        height_tiers=[
            domain.HeightTier(
                min_height_meters=_dec(t.min_height_meters),
                max_height_meters=_opt_dec(t.max_height_meters),
                multiplier=_dec(t.multiplier),
                description=t.description,
            )
            for t in row.height_tiers
        ],
    )


def bom_item_from_row(row: models.BillOfMaterialsItem) -> domain.BillOfMaterialsItem:
    return domain.BillOfMaterialsItem(
        category=row.category,
        description=row.description,
        quantity=_dec(row.quantity),
        unit_of_measure=row.unit_of_measure,
        unit_price=_dec(row.unit_price),
        total_price=_dec(row.total_price),
        sort_order=row.sort_order,
        component_id=row.component_id,
        sku=row.sku,
        notes=row.notes,
    )


def version_from_row(row: models.QuoteVersion) -> domain.QuoteVersion:
    return domain.QuoteVersion(
        id=row.id,
        quote_id=row.quote_id,
        version_number=row.version_number,
        change_summary=row.change_summary,
        materials_cost=_dec(row.materials_cost),
        labor_cost=_dec(row.labor_cost),
        subtotal=_dec(row.subtotal),
        contingency_amount=_dec(row.contingency_amount),
        profit_amount=_dec(row.profit_amount),
        total_amount=_dec(row.total_amount),
        tax_amount=_dec(row.tax_amount),
        grand_total=_dec(row.grand_total),
        bom_snapshot=row.bom_snapshot or "[]",
        pricing_config_snapshot=row.pricing_config_snapshot or "{}",
        created_at=row.created_at,
        created_by=row.created_by,
    )


# --- Domain -> row ---

def _bom_row(item: domain.BillOfMaterialsItem) -> models.BillOfMaterialsItem:
    return models.BillOfMaterialsItem(
        component_id=item.component_id,
        category=item.category,
        description=item.description,
        sku=item.sku,
        quantity=item.quantity,
        unit_of_measure=item.unit_of_measure,
        unit_price=item.unit_price,
        total_price=item.total_price,
        sort_order=item.sort_order,
        notes=item.notes,
    )


def _version_row(version: domain.QuoteVersion) -> models.QuoteVersion:
    return models.QuoteVersion(
        id=version.id,
        version_number=version.version_number,
        change_summary=version.change_summary,
        materials_cost=version.materials_cost,
        labor_cost=version.labor_cost,
        subtotal=version.subtotal,
        contingency_amount=version.contingency_amount,
        profit_amount=version.profit_amount,
        total_amount=version.total_amount,
        tax_amount=version.tax_amount,
        grand_total=version.grand_total,
        bom_snapshot=version.bom_snapshot,
        pricing_config_snapshot=version.pricing_config_snapshot,
        created_at=version.created_at,
        created_by=version.created_by,
    )


def _copy_quote_fields(quote: domain.Quote, row: models.Quote) -> None:
    row.job_id = quote.job_id
    row.pricing_config_id = quote.pricing_config_id
    row.current_version = quote.current_version
    row.status = quote.status
    row.materials_cost = quote.materials_cost
    row.labor_cost = quote.labor_cost
    row.subtotal = quote.subtotal
    row.contingency_amount = quote.contingency_amount
    row.profit_amount = quote.profit_amount
    row.total_amount = quote.total_amount
    row.tax_amount = quote.tax_amount
    row.discount_amount = quote.discount_amount
    row.discount_rule_id = quote.discount_rule_id
    row.grand_total = quote.grand_total
    row.valid_until = quote.valid_until
    row.terms = quote.terms
    row.notes = quote.notes
    row.updated_at = quote.updated_at


class SqlQuoteStore(QuoteStore):

    def __init__(self, db: Session, organization_id: Optional[str] = None):
        self.db = db
        self.organization_id = organization_id

    def _scoped(self, query, model):
        if self.organization_id is not None:
            query = query.filter(model.organization_id == self.organization_id)
        return query

    # --- Reads ---

    def get_job(self, job_id: str) -> Optional[domain.Job]:
        if not job_id:
            return None
        row = self._scoped(self.db.query(models.Job), models.Job).filter(models.Job.id == job_id).first()
        return job_from_row(row) if row else None

    def get_pricing_config(self, organization_id: str,
                           pricing_config_id: Optional[str] = None) -> Optional[domain.PricingConfig]:
        query = self.db.query(models.PricingConfig).filter(
            models.PricingConfig.organization_id == organization_id
        )
        if pricing_config_id:
            row = query.filter(models.PricingConfig.id == pricing_config_id).first()
        else:
            row = query.filter(models.PricingConfig.is_default.is_(True)).first()
        return pricing_config_from_row(row) if row else None

    def count_quotes_with_prefix(self, organization_id: str, prefix: str) -> int:
        """
        Quotes under prefix, or the highest sequence used under it if that is
        larger. Deleted quotes leave gaps, so the plain count can fall behind
        numbers still in use.
        """
        numbers = [n for (n,) in self.db.query(models.Quote.quote_number).filter(
            models.Quote.organization_id == organization_id,
            models.Quote.quote_number.like(f"{prefix}-%"),
        ).all()]
        highest = 0
        for number in numbers:
            sequence = number[len(prefix) + 1:]
            if sequence.isdigit():
                highest = max(highest, int(sequence))
        return max(len(numbers), highest)

    def get_quote(self, quote_id: str) -> Optional[domain.Quote]:
        row = self._scoped(self.db.query(models.Quote), models.Quote).filter(models.Quote.id == quote_id).first()
        if not row:
            return None

        job = self.get_job(row.job_id) if row.job_id else None
        pricing_config = None
        if row.pricing_config_id:
            pricing_config = self.get_pricing_config(row.organization_id, row.pricing_config_id)

        return domain.Quote(
            id=row.id,
            job_id=row.job_id,
            organization_id=row.organization_id,
            quote_number=row.quote_number,
            pricing_config_id=row.pricing_config_id,
            current_version=row.current_version,
            status=row.status,
            breakdown=domain.CostBreakdown(
                materials_cost=_dec(row.materials_cost),
                labor_cost=_dec(row.labor_cost),
                subtotal=_dec(row.subtotal),
                contingency_amount=_dec(row.contingency_amount),
                profit_amount=_dec(row.profit_amount),
                total_amount=_dec(row.total_amount),
            ),
            tax_amount=_dec(row.tax_amount),
            discount_amount=_dec(row.discount_amount),
            discount_rule_id=row.discount_rule_id,
            grand_total=_dec(row.grand_total),
            valid_until=row.valid_until,
            terms=row.terms,
            notes=row.notes,
            created_at=row.created_at,
            updated_at=row.updated_at,
            bill_of_materials=[bom_item_from_row(b) for b in row.bill_of_materials],
            versions=[version_from_row(v) for v in row.versions],
            job=job,
            pricing_config=pricing_config,
        )

    def get_organization_name(self, organization_id: str) -> Optional[str]:
        org = self.db.query(models.Organization).filter(models.Organization.id == organization_id).first()
        return org.name if org else None

    # --- Writes ---

    def add_quote(self, quote: domain.Quote) -> None:
        row = models.Quote(
            id=quote.id,
            organization_id=quote.organization_id,
            quote_number=quote.quote_number,
            created_at=quote.created_at,
        )
        _copy_quote_fields(quote, row)
        row.bill_of_materials = [_bom_row(item) for item in quote.bill_of_materials]
        row.versions = [_version_row(v) for v in quote.versions]
        self._commit(quote, lambda: self.db.add(row))

    def save_quote(self, quote: domain.Quote) -> None:
        row = self.db.query(models.Quote).filter(models.Quote.id == quote.id).first()
        if not row:
            raise QuoteNotFound(quote.id)

        def write():
            _copy_quote_fields(quote, row)
            # Orphaned BOM rows are deleted by the relationship cascade.
            row.bill_of_materials = [_bom_row(item) for item in quote.bill_of_materials]
            stored = {v.version_number for v in row.versions}
            for version in quote.versions:
                if version.version_number not in stored:
                    row.versions.append(_version_row(version))

        self._commit(quote, write)

    def _commit(self, quote: domain.Quote, write) -> None:
        try:
            write()
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if self._number_taken(quote):
                logger.warning("Quote number %s already taken for organization %s",
                               quote.quote_number, quote.organization_id)
                raise QuoteNumberConflict(quote.organization_id, quote.quote_number) from e
            raise
        except Exception:
            self.db.rollback()
            raise

    def _number_taken(self, quote: domain.Quote) -> bool:
        return self.db.query(models.Quote).filter(
            models.Quote.organization_id == quote.organization_id,
            models.Quote.quote_number == quote.quote_number,
            models.Quote.id != quote.id,
        ).first() is not None
