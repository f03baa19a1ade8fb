"""
Quote engine: generate and recalculate quotes.

Loads the job and pricing config through a QuoteStore, prices the job
(BOM + labor + margins), and hands back a Quote aggregate whose new version
has already been appended. The store writes the quote, its BOM rows and the
new version in one transaction.

The engine holds no per-call state and does no I/O of its own. It does not
retry; a QuoteNumberConflict from the store goes straight to the caller.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional, Tuple

from ..errors import IncompleteQuote, JobNotFound, PricingConfigNotFound, QuoteNotFound
from .bom import BillOfMaterialsAggregator
from .cost import CostCalculator
from .domain import (
    ZERO,
    BillOfMaterialsItem,
    CostBreakdown,
    Job,
    PricingConfig,
    Quote,
    QuoteStatus,
)
from .quote_number import next_quote_number, quote_number_prefix
from .versioning import QuoteVersioner

logger = logging.getLogger(__name__)

INITIAL_CHANGE_SUMMARY = "Initial quote"
RECALCULATED_CHANGE_SUMMARY = "Quote recalculated"
DEFAULT_VALID_DAYS = 30


class QuoteStore(ABC):
    """Persistence collaborator the engine reads from and writes to."""

    @abstractmethod
    def get_job(self, job_id: str) -> Optional[Job]:
        """Job with line items, resolved types, requirements and components."""

    @abstractmethod
    def get_pricing_config(self, organization_id: str,
                           pricing_config_id: Optional[str] = None) -> Optional[PricingConfig]:
        """The given config if it belongs to the organization; with no id, the organization's default."""

    @abstractmethod
    def count_quotes_with_prefix(self, organization_id: str, prefix: str) -> int:
        """Organization's quotes whose number starts with prefix, never less than the highest sequence in use."""

    @abstractmethod
    def get_quote(self, quote_id: str) -> Optional[Quote]:
        """Quote with its BOM and versions, job and pricing_config attached when they still exist."""

    @abstractmethod
    def add_quote(self, quote: Quote) -> None:
        """Insert a new quote with its BOM and versions. All or nothing."""

    @abstractmethod
    def save_quote(self, quote: Quote) -> None:
        """Update a quote, replace its BOM rows and insert versions not yet stored. All or nothing."""


class QuoteEngine:

    def __init__(self, store: QuoteStore,
                 aggregator: BillOfMaterialsAggregator = None,
                 cost_calculator: CostCalculator = None,
                 versioner: QuoteVersioner = None,
                 valid_days: int = DEFAULT_VALID_DAYS,
                 default_terms: Optional[str] = None):
        self.store = store
        self.cost_calculator = cost_calculator or CostCalculator()
        self.aggregator = aggregator or BillOfMaterialsAggregator(self.cost_calculator)
        self.versioner = versioner or QuoteVersioner()
        self.valid_days = valid_days
        self.default_terms = default_terms

    def generate_quote(self, job_id: str, pricing_config_id: Optional[str] = None,
                       as_of: Optional[datetime] = None,
                       created_by: Optional[str] = None) -> Quote:
        now = as_of or datetime.utcnow()

        job = self.store.get_job(job_id)
        if job is None:
            raise JobNotFound(job_id)

        pricing_config = self._resolve_pricing_config(job, pricing_config_id)
        bom_items, breakdown = self.price(job, pricing_config)

        existing = self.store.count_quotes_with_prefix(job.organization_id, quote_number_prefix(now))
        quote_number = next_quote_number(job.organization_id, now, existing)

        quote = Quote(
            job_id=job.id,
            organization_id=job.organization_id,
            pricing_config_id=pricing_config.id,
            quote_number=quote_number,
            current_version=1,
            status=QuoteStatus.DRAFT,
            breakdown=breakdown,
            tax_amount=ZERO,
            grand_total=breakdown.total_amount,
            valid_until=now + timedelta(days=self.valid_days),
            terms=self.default_terms or None,
            created_at=now,
            updated_at=now,
            bill_of_materials=bom_items,
            job=job,
            pricing_config=pricing_config,
        )
        quote.append_version(self.versioner.snapshot(
            quote, bom_items, pricing_config, INITIAL_CHANGE_SUMMARY,
            created_by=created_by, created_at=now,
        ))

        self.store.add_quote(quote)
        logger.info("Generated quote %s for job %s: total %s (%d BOM rows)",
                    quote.quote_number, job.id, breakdown.total_amount, len(bom_items))
        return quote

    def recalculate_quote(self, quote_id: str, change_summary: Optional[str] = None,
                          as_of: Optional[datetime] = None,
                          created_by: Optional[str] = None) -> Quote:
        """
        Re-price a quote against the current job and pricing config.

        Reads whatever state the job and config are in right now; there is no
        check against edits made while this runs.
        """
        now = as_of or datetime.utcnow()

        quote = self.store.get_quote(quote_id)
        if quote is None:
            raise QuoteNotFound(quote_id)
        if quote.job is None or quote.pricing_config is None:
            raise IncompleteQuote(quote_id)

        bom_items, breakdown = self.price(quote.job, quote.pricing_config)

        # The old BOM rows are dropped; only the version log keeps them.
        quote.bill_of_materials = bom_items
        quote.breakdown = breakdown
        quote.grand_total = self.cost_calculator.grand_total(breakdown.total_amount, quote.tax_amount)
        quote.current_version += 1
        quote.status = QuoteStatus.REVISED
        quote.updated_at = now
        quote.append_version(self.versioner.snapshot(
            quote, bom_items, quote.pricing_config,
            change_summary or RECALCULATED_CHANGE_SUMMARY,
            created_by=created_by, created_at=now,
        ))

        self.store.save_quote(quote)
        logger.info("Recalculated quote %s to version %d: total %s",
                    quote.quote_number, quote.current_version, breakdown.total_amount)
        return quote

    def preview_bill_of_materials(self, job_id: str,
                                  pricing_config_id: Optional[str] = None) -> List[BillOfMaterialsItem]:
        """BOM for a job without creating a quote."""
        job = self.store.get_job(job_id)
        if job is None:
            raise JobNotFound(job_id)
        pricing_config = self._resolve_pricing_config(job, pricing_config_id)
        return self.aggregator.aggregate(job, pricing_config)

    def price(self, job: Job, pricing_config: PricingConfig) -> Tuple[List[BillOfMaterialsItem], CostBreakdown]:
        bom_items = self.aggregator.aggregate(job, pricing_config)
        materials_cost = self.cost_calculator.materials_cost(bom_items)
        labor_cost: Decimal = self.cost_calculator.compute_labor(job.total_linear_feet, pricing_config)
        breakdown = self.cost_calculator.compute_breakdown(materials_cost, labor_cost, pricing_config)
        return bom_items, breakdown

    def _resolve_pricing_config(self, job: Job, pricing_config_id: Optional[str]) -> PricingConfig:
        pricing_config = self.store.get_pricing_config(job.organization_id, pricing_config_id)
        if pricing_config is None:
            raise PricingConfigNotFound(job.organization_id, pricing_config_id)
        return pricing_config
