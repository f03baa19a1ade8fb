"""
Request-scoped dependencies: tenant resolution and the quote engine.

Requests name their organization in the X-Organization-Id header. The
header is trusted as-is; putting real authentication in front of it is the
deployment's job.
"""

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from . import models
from .config import settings
from .database import get_db
from .errors import (
    IncompleteQuote,
    InvalidQuoteUpdate,
    NotFoundError,
    QuoteEngineError,
    QuoteNumberConflict,
)
from .pricing.engine import QuoteEngine
from .store import SqlQuoteStore


def get_organization_id(
    x_organization_id: str = Header(...),
    db: Session = Depends(get_db),
) -> str:
    org = db.query(models.Organization).filter(models.Organization.id == x_organization_id).first()
    if not org:
        raise HTTPException(status_code=404, detail="Organization not found")
    return org.id


def get_store(
    organization_id: str = Depends(get_organization_id),
    db: Session = Depends(get_db),
) -> SqlQuoteStore:
    return SqlQuoteStore(db, organization_id=organization_id)


def get_quote_engine(store: SqlQuoteStore = Depends(get_store)) -> QuoteEngine:
    return QuoteEngine(
        store,
        valid_days=settings.QUOTE_VALID_DAYS,
        default_terms=settings.DEFAULT_TERMS or None,
    )


def to_http_exception(error: QuoteEngineError) -> HTTPException:
    """Map an engine error to the HTTP status the routers report."""
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=error.message)
    if isinstance(error, (IncompleteQuote, QuoteNumberConflict)):
        return HTTPException(status_code=409, detail=error.message)
    if isinstance(error, InvalidQuoteUpdate):
        return HTTPException(status_code=400, detail=error.message)
    return HTTPException(status_code=500, detail=error.message)
