from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from ..dependencies import get_organization_id

router = APIRouter(prefix="/pricing-configs", tags=["pricing-configs"])


def _get_config(config_id: str, organization_id: str, db: Session) -> models.PricingConfig:
    config = db.query(models.PricingConfig).filter(
        models.PricingConfig.id == config_id,
        models.PricingConfig.organization_id == organization_id,
    ).first()
    if not config:
        raise HTTPException(status_code=404, detail="Pricing configuration not found")
    return config


def _clear_other_defaults(organization_id: str, keep_id, db: Session):
    """An organization has at most one default config."""
    query = db.query(models.PricingConfig).filter(
        models.PricingConfig.organization_id == organization_id,
        models.PricingConfig.is_default.is_(True),
    )
    if keep_id is not None:
        query = query.filter(models.PricingConfig.id != keep_id)
    for existing in query.all():
        existing.is_default = False


def _height_tier_rows(tiers: List[schemas.HeightTierBase]) -> List[models.HeightTier]:
    return [models.HeightTier(**tier.model_dump()) for tier in tiers]


@router.get("/", response_model=List[schemas.PricingConfig])
def list_pricing_configs(organization_id: str = Depends(get_organization_id),
                         db: Session = Depends(get_db)):
    """Default first, then by name."""
    return db.query(models.PricingConfig).filter(
        models.PricingConfig.organization_id == organization_id,
    ).order_by(models.PricingConfig.is_default.desc(), models.PricingConfig.name).all()


@router.post("/", response_model=schemas.PricingConfig, status_code=201)
def create_pricing_config(config: schemas.PricingConfigCreate,
                          organization_id: str = Depends(get_organization_id),
                          db: Session = Depends(get_db)):
    if config.is_default:
        _clear_other_defaults(organization_id, None, db)

    data = config.model_dump(exclude={"height_tiers"})
    db_config = models.PricingConfig(organization_id=organization_id, **data)
    db_config.height_tiers = _height_tier_rows(config.height_tiers)
    db.add(db_config)
    db.commit()
    db.refresh(db_config)
    return db_config


@router.get("/{config_id}", response_model=schemas.PricingConfig)
def get_pricing_config(config_id: str,
                       organization_id: str = Depends(get_organization_id),
                       db: Session = Depends(get_db)):
    return _get_config(config_id, organization_id, db)


@router.put("/{config_id}", response_model=schemas.PricingConfig)
def update_pricing_config(config_id: str, update: schemas.PricingConfigUpdate,
                          organization_id: str = Depends(get_organization_id),
                          db: Session = Depends(get_db)):
    """
    Edit a config. Existing quotes keep the values captured in their versions
    until they are recalculated.
    """
    config = _get_config(config_id, organization_id, db)
    fields = update.model_dump(exclude_unset=True, exclude={"height_tiers"})
    if fields.get("is_default") and not config.is_default:
        _clear_other_defaults(organization_id, config.id, db)
    for field, value in fields.items():
        if value is not None:
            setattr(config, field, value)
    if update.height_tiers is not None:
        config.height_tiers = _height_tier_rows(update.height_tiers)
    config.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(config)
    return config


@router.delete("/{config_id}")
def delete_pricing_config(config_id: str,
                          organization_id: str = Depends(get_organization_id),
                          db: Session = Depends(get_db)):
    """Quotes priced with this config can no longer be recalculated."""
    config = _get_config(config_id, organization_id, db)
    db.delete(config)
    db.commit()
    return {"ok": True}
