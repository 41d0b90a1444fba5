from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db, atomic
from schemas.business_partners import BusinessPartner, BusinessPartnerCreate, BusinessPartnerUpdate, PartnerStatus
from crud import business_partners as crud_partners
from utils.tenancy import get_tenant_id, get_actor_id

router = APIRouter(prefix="/business-partners", tags=["Business Partners"])
logger = logging.getLogger("business_partners")

@router.post("/", response_model=BusinessPartner, status_code=status.HTTP_201_CREATED)
def create_business_partner(
    partner: BusinessPartnerCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    actor_id: str = Depends(get_actor_id)
):
    with atomic(db):
        db_partner = crud_partners.create_business_partner(db, partner, tenant_id, actor_id)
    return db_partner

@router.get("/", response_model=List[BusinessPartner])
def read_business_partners(
    company_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
    status: Optional[PartnerStatus] = None,
    is_vendor: Optional[bool] = Query(None),
    is_customer: Optional[bool] = Query(None),
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    return crud_partners.get_business_partners(
        db, tenant_id,
        company_id=company_id,
        status=status,
        is_vendor=is_vendor,
        is_customer=is_customer,
        skip=skip,
        limit=limit,
    )

@router.get("/{partner_id}", response_model=BusinessPartner)
def read_business_partner(partner_id: int, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    return crud_partners.get_business_partner(db, partner_id, tenant_id)

@router.patch("/{partner_id}", response_model=BusinessPartner)
def update_business_partner(
    partner_id: int,
    partner: BusinessPartnerUpdate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    actor_id: str = Depends(get_actor_id)
):
    with atomic(db):
        db_partner = crud_partners.update_business_partner(db, partner_id, partner, tenant_id, actor_id)
    return db_partner

@router.delete("/{partner_id}", response_model=BusinessPartner)
def deactivate_business_partner(
    partner_id: int,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    actor_id: str = Depends(get_actor_id)
):
    """Mark a business partner inactive. Partners with orders stay readable for their documents."""
    with atomic(db):
        db_partner = crud_partners.deactivate_business_partner(db, partner_id, tenant_id, actor_id)
    return db_partner
