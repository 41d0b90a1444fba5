from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from database import get_db, atomic
from schemas.financial_settings import FinancialSettings, FinancialSettingsUpdate
from crud import financial_settings as crud_settings
from utils.tenancy import get_tenant_id, get_actor_id

router = APIRouter(
    prefix="/financial-settings",
    tags=["Financial Settings"],
)

@router.get("/{company_id}", response_model=FinancialSettings)
def get_settings(
    company_id: int,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    # First read creates the empty role map
    with atomic(db):
        settings = crud_settings.get_financial_settings(db, company_id, tenant_id)
    return settings

@router.patch("/{company_id}", response_model=FinancialSettings)
def update_settings(
    company_id: int,
    settings: FinancialSettingsUpdate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    actor_id: str = Depends(get_actor_id)
):
    with atomic(db):
        updated = crud_settings.update_financial_settings(db, company_id, settings, tenant_id, actor_id)
    return updated
