import json
import logging
from dataclasses import asdict
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse, Response
from sqlalchemy.orm import Session

from .. import models, schemas
from ..config import settings
from ..database import get_db
from ..dependencies import get_organization_id, get_quote_engine, get_store, to_http_exception
from ..errors import QuoteEngineError, QuoteNumberConflict
from ..export import build_export_data, render_bom_csv, render_quote_html
from ..pdf_generator import generate_quote_pdf
from ..pricing.engine import QuoteEngine
from ..pricing.versioning import load_bom_snapshot
from ..store import SqlQuoteStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quotes", tags=["quotes"])


def _load_quote(quote_id: str, store: SqlQuoteStore):
    quote = store.get_quote(quote_id)
    if not quote:
        raise HTTPException(status_code=404, detail="Quote not found")
    return quote


def _export_data(quote_id: str, store: SqlQuoteStore):
    quote = _load_quote(quote_id, store)
    organization_name = store.get_organization_name(quote.organization_id) or settings.COMPANY_NAME
    return build_export_data(quote, organization_name, valid_days=settings.QUOTE_VALID_DAYS)


# --- Generate / recalculate ---

@router.post("/generate", response_model=schemas.Quote, status_code=201)
def generate_quote(request: schemas.QuoteGenerateRequest,
                   engine: QuoteEngine = Depends(get_quote_engine)):
    """
    Price a job and store it as a new Draft quote (version 1).

    Two requests for the same organization on the same day can race for a
    quote number; the loser is retried with a fresh count.
    """
    attempts = max(1, settings.QUOTE_NUMBER_MAX_ATTEMPTS)
    for attempt in range(1, attempts + 1):
        try:
            return engine.generate_quote(request.job_id, request.pricing_config_id)
        except QuoteNumberConflict as e:
            logger.info("Quote number conflict for job %s (attempt %d/%d): %s",
                        request.job_id, attempt, attempts, e.quote_number)
            if attempt == attempts:
                raise to_http_exception(e)
        except QuoteEngineError as e:
            raise to_http_exception(e)


@router.post("/{quote_id}/recalculate", response_model=schemas.Quote)
def recalculate_quote(quote_id: str,
                      request: schemas.QuoteRecalculateRequest = None,
                      engine: QuoteEngine = Depends(get_quote_engine)):
    change_summary = request.change_summary if request else None
    try:
        return engine.recalculate_quote(quote_id, change_summary=change_summary)
    except QuoteEngineError as e:
        raise to_http_exception(e)


# --- CRUD ---

@router.get("/", response_model=List[schemas.QuoteSummary])
def list_quotes(skip: int = 0, limit: int = 50,
                organization_id: str = Depends(get_organization_id),
                db: Session = Depends(get_db)):
    return db.query(models.Quote).filter(
        models.Quote.organization_id == organization_id,
    ).order_by(models.Quote.created_at.desc()).offset(skip).limit(limit).all()


@router.get("/{quote_id}", response_model=schemas.Quote)
def get_quote(quote_id: str, store: SqlQuoteStore = Depends(get_store)):
    return _load_quote(quote_id, store)


@router.put("/{quote_id}", response_model=schemas.Quote)
def update_quote(quote_id: str, update: schemas.QuoteUpdate,
                 store: SqlQuoteStore = Depends(get_store)):
    """Edit status, validity, terms, notes or tax. Pricing is untouched and no version is added."""
    quote = _load_quote(quote_id, store)
    try:
        quote.apply_update(**update.model_dump(exclude_unset=True, exclude_none=True))
        store.save_quote(quote)
    except QuoteEngineError as e:
        raise to_http_exception(e)
    return quote


@router.delete("/{quote_id}")
def delete_quote(quote_id: str,
                 organization_id: str = Depends(get_organization_id),
                 db: Session = Depends(get_db)):
    quote = db.query(models.Quote).filter(
        models.Quote.id == quote_id,
        models.Quote.organization_id == organization_id,
    ).first()
    if not quote:
        raise HTTPException(status_code=404, detail="Quote not found")
    db.delete(quote)
    db.commit()
    return {"ok": True}


@router.get("/{quote_id}/versions", response_model=List[schemas.QuoteVersion])
def list_versions(quote_id: str, store: SqlQuoteStore = Depends(get_store)):
    """Every stored version, oldest first, with its BOM and pricing snapshots unpacked."""
    quote = _load_quote(quote_id, store)
    results = []
    for version in quote.versions:
        data = asdict(version)
        data["bill_of_materials"] = [asdict(item) for item in load_bom_snapshot(version.bom_snapshot)]
        data["pricing_config"] = json.loads(version.pricing_config_snapshot or "{}")
        results.append(data)
    return results


# --- Exports ---

@router.get("/{quote_id}/export/html", response_class=HTMLResponse)
def export_html(quote_id: str, store: SqlQuoteStore = Depends(get_store)):
    return HTMLResponse(content=render_quote_html(_export_data(quote_id, store)))


@router.get("/{quote_id}/export/csv")
def export_csv(quote_id: str, store: SqlQuoteStore = Depends(get_store)):
    data = _export_data(quote_id, store)
    return Response(
        content=render_bom_csv(data),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="Quote-{data.quote_number}-BOM.csv"'},
    )


@router.get("/{quote_id}/export/pdf")
def export_pdf(quote_id: str, store: SqlQuoteStore = Depends(get_store)):
    data = _export_data(quote_id, store)
    return Response(
        content=generate_quote_pdf(data),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="Quote-{data.quote_number}.pdf"'},
    )
