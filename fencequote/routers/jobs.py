from typing import List, Optional

from fastapi import APIRouter, Depends

from .. import schemas
from ..dependencies import get_quote_engine, to_http_exception
from ..errors import QuoteEngineError
from ..pricing.engine import QuoteEngine

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get("/{job_id}/bom", response_model=List[schemas.BillOfMaterialsItem])
def preview_bill_of_materials(job_id: str, pricing_config_id: Optional[str] = None,
                              engine: QuoteEngine = Depends(get_quote_engine)):
    """BOM the job would be quoted with right now. Nothing is saved."""
    try:
        return engine.preview_bill_of_materials(job_id, pricing_config_id)
    except QuoteEngineError as e:
        raise to_http_exception(e)
